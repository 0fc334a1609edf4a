"""
Link import cache and transports.

``link "https://..."`` statements import the top-level modules and constants
of a remote program. The fetched program is parsed and evaluated once per
process; afterwards every evaluation that links the same URL reuses the
captured tables.
"""

import logging
import threading
import urllib.error
import urllib.request
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Optional

from ..ast import ModuleSyntax

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """A link target could not be fetched."""
    pass


class CircularLinkError(Exception):
    """A link target was requested while its own import was in progress."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"circular link to {url}")


class Transport:
    """Fetches the text of a link target."""

    def fetch(self, url: str) -> str:
        raise NotImplementedError


class UrlLibTransport(Transport):
    """HTTP(S) GET of the literal URL (``file:`` URLs work too)."""

    def __init__(self, timeout: float = 30.0, user_agent: Optional[str] = None):
        if user_agent is None:
            from ... import __version__
            user_agent = f"ascad/{__version__}"
        self.timeout = timeout
        self.user_agent = user_agent

    def fetch(self, url: str) -> str:
        request = urllib.request.Request(url, headers={"User-Agent": self.user_agent})
        try:
            with urllib.request.urlopen(request, timeout=self.timeout) as response:
                charset = response.headers.get_content_charset() or "utf-8"
                return response.read().decode(charset)
        except urllib.error.HTTPError as e:
            raise TransportError(f"HTTP {e.code} {e.reason}") from e
        except (urllib.error.URLError, OSError, ValueError, LookupError) as e:
            raise TransportError(str(getattr(e, "reason", e))) from e


@dataclass(frozen=True)
class LinkedProgram:
    """The top-level modules and constants a linked program leaves behind."""
    modules: Mapping[str, ModuleSyntax]
    constants: Mapping[str, float]

    @staticmethod
    def capture(modules: Dict[str, ModuleSyntax], constants: Dict[str, float]) -> "LinkedProgram":
        return LinkedProgram(
            modules=MappingProxyType(dict(modules)),
            constants=MappingProxyType(dict(constants)),
        )


class LinkCache:
    """
    Process-wide store of linked programs, keyed by normalized URL.

    Entries are populated once and never expire. Population of a given URL
    is serialized: concurrent requesters wait for the first one and then
    observe its entry, so the transport is called once per URL.

    Usage:
        cache = LinkCache(transport)
        linked = cache.populate_once(url, build)
    """

    def __init__(self, transport: Optional[Transport] = None):
        self.transport = transport if transport is not None else UrlLibTransport()
        self._entries: Dict[str, LinkedProgram] = {}
        self._locks: Dict[str, threading.RLock] = {}
        self._lock = threading.Lock()
        # url -> thread building it, thread -> url it is blocked on
        self._owners: Dict[str, int] = {}
        self._waiting: Dict[int, str] = {}

    def __contains__(self, url: str) -> bool:
        return url in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, url: str) -> Optional[LinkedProgram]:
        """Return the cached entry for ``url``, if any."""
        return self._entries.get(url)

    def fetch(self, url: str) -> str:
        """Fetch the program text for ``url`` through the transport."""
        logger.debug("fetching link %s", url)
        return self.transport.fetch(url)

    def _would_deadlock(self, url: str, me: int) -> bool:
        """
        Check whether waiting for ``url`` closes a wait-for cycle.

        Follows owner -> URL that owner waits on -> its owner, and so on;
        reaching the calling thread means a link cycle spread across
        threads. Call with ``self._lock`` held.
        """
        seen = set()
        owner = self._owners.get(url)
        while owner is not None and owner not in seen:
            if owner == me:
                return True
            seen.add(owner)
            waited = self._waiting.get(owner)
            owner = self._owners.get(waited) if waited is not None else None
        return False

    def populate_once(self, url: str, build: Callable[[str], LinkedProgram]) -> LinkedProgram:
        """
        Return the entry for ``url``, calling ``build(url)`` if there is none.

        ``build`` is called at most once per URL for the life of the cache
        (unless it raises, in which case the next requester tries again).

        Raises:
            CircularLinkError: if ``build`` for ``url`` (transitively)
                requests ``url`` again, on this thread or through threads
                that are waiting on each other.
        """
        entry = self._entries.get(url)
        if entry is not None:
            return entry

        me = threading.get_ident()
        with self._lock:
            if self._would_deadlock(url, me):
                raise CircularLinkError(url)
            url_lock = self._locks.setdefault(url, threading.RLock())
            self._waiting[me] = url

        try:
            url_lock.acquire()
        finally:
            with self._lock:
                del self._waiting[me]

        try:
            entry = self._entries.get(url)
            if entry is not None:
                return entry

            with self._lock:
                self._owners[url] = me
            try:
                entry = build(url)
            finally:
                with self._lock:
                    del self._owners[url]

            self._entries[url] = entry
            logger.info(
                "linked %s (%d module(s), %d constant(s))",
                url, len(entry.modules), len(entry.constants),
            )
            return entry
        finally:
            url_lock.release()

    def clear(self) -> None:
        """Forget every entry."""
        with self._lock:
            self._entries.clear()
            self._locks.clear()


_default_cache: Optional[LinkCache] = None
_default_lock = threading.Lock()


def default_link_cache() -> LinkCache:
    """Get the process-wide link cache."""
    global _default_cache
    with _default_lock:
        if _default_cache is None:
            _default_cache = LinkCache()
        return _default_cache
