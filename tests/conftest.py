"""
Shared fixtures: link programs are served from memory, never the network.
"""

import pytest

from ascad.dsl.runtime import LinkCache, Transport, TransportError


class StubTransport(Transport):
    """Serves link targets from a dict and counts fetches per URL."""

    def __init__(self, programs=None):
        self.programs = dict(programs or {})
        self.fetches = {}

    def fetch(self, url: str) -> str:
        self.fetches[url] = self.fetches.get(url, 0) + 1
        if url not in self.programs:
            raise TransportError("HTTP 404 Not Found")
        return self.programs[url]

    @property
    def total_fetches(self) -> int:
        return sum(self.fetches.values())


@pytest.fixture
def transport():
    return StubTransport()


@pytest.fixture
def link_cache(transport):
    return LinkCache(transport)
