"""
Tests for link imports and the link cache.
"""

import threading

import pytest

from ascad.dsl import parse, Interpreter, EvaluationError, ParserError, compile_and_run
from ascad.dsl.runtime import (
    LinkCache, LinkedProgram, CircularLinkError, TransportError, UrlLibTransport,
    default_link_cache,
)


LIB_URL = "https://lib.example.com/parts.ascad"
CONSTANTS_URL = "https://lib.example.com/constants.ascad"


def build(source: str, link_cache):
    return Interpreter(link_cache).build(parse(source, "main.ascad"))


def build_error(source: str, link_cache) -> EvaluationError:
    with pytest.raises(EvaluationError) as exc_info:
        build(source, link_cache)
    return exc_info.value


# --- Link Evaluation Tests ---

class TestLinkEvaluation:
    """Test importing modules and constants from linked programs."""

    def test_imports_modules_and_constants(self, transport, link_cache):
        transport.programs[LIB_URL] = "const size = 4; as part() { cube(size); }"
        shapes = build(f'link "{LIB_URL}"; part(); sphere(size);', link_cache)
        assert [(s.name, s.params) for s in shapes] == [("cube", (4.0,)), ("sphere", (4.0,))]

    def test_linked_shapes_discarded(self, transport, link_cache):
        transport.programs[LIB_URL] = "cube(1); const a = 2;"
        shapes = build(f'link "{LIB_URL}"; sphere(a);', link_cache)
        assert [s.name for s in shapes] == ["sphere"]

    def test_linked_modules_call_each_other(self, transport, link_cache):
        transport.programs[LIB_URL] = "as base(x) { cube(x); } as part() { base(2); }"
        shapes = build(f'link "{LIB_URL}"; part();', link_cache)
        assert shapes[0].params == (2.0,)

    def test_constants_overwrite(self, transport, link_cache):
        """Linked constants replace same-named constants silently."""
        transport.programs[CONSTANTS_URL] = "const size = 4;"
        shapes = build(f'const size = 1; cube(size); link "{CONSTANTS_URL}"; cube(size);',
                       link_cache)
        assert [s.params for s in shapes] == [(1.0,), (4.0,)]

    def test_link_is_scoped(self, transport, link_cache):
        """Imports bind into the scope holding the link statement."""
        transport.programs[CONSTANTS_URL] = "const size = 4;"
        error = build_error(f'union {{ link "{CONSTANTS_URL}"; }}\ncube(size);', link_cache)
        assert error.code == "E301"

    def test_module_collision(self, transport, link_cache):
        transport.programs[LIB_URL] = "as part() { cube(1); }"
        error = build_error(f'as part() {{ cube(2); }}\nlink "{LIB_URL}";', link_cache)
        assert error.code == "E303"
        assert error.line == 2

    def test_same_url_twice_in_scope(self, transport, link_cache):
        """Linking a module library twice into one scope duplicates its modules."""
        transport.programs[LIB_URL] = "as part() { cube(1); }"
        error = build_error(f'link "{LIB_URL}";\nlink "{LIB_URL}";', link_cache)
        assert error.code == "E303"

    def test_same_url_in_sibling_scopes(self, transport, link_cache):
        transport.programs[LIB_URL] = "as part() { cube(1); }"
        shapes = build(
            f'union {{ link "{LIB_URL}"; part(); }} union {{ link "{LIB_URL}"; part(); }}',
            link_cache,
        )
        assert len(shapes) == 2
        assert transport.fetches[LIB_URL] == 1

    def test_linked_program_runs_standalone(self, transport, link_cache):
        """A linked program cannot see the constants of the program linking it."""
        transport.programs[LIB_URL] = "const b = a;"
        error = build_error(f'const a = 1; link "{LIB_URL}";', link_cache)
        assert error.code == "E301"
        assert error.name == LIB_URL


# --- Cache Tests ---

class TestLinkCaching:
    """Test that each URL is fetched and evaluated once."""

    def test_one_fetch_across_evaluations(self, transport, link_cache):
        transport.programs[CONSTANTS_URL] = "const size = 4;"
        for _ in range(3):
            build(f'link "{CONSTANTS_URL}"; cube(size);', link_cache)
        assert transport.fetches == {CONSTANTS_URL: 1}
        assert CONSTANTS_URL in link_cache
        assert len(link_cache) == 1

    def test_normalized_url_shares_entry(self, transport, link_cache):
        transport.programs["https://lib.example.com/"] = "const size = 4;"
        build('link "https://LIB.example.com"; cube(size);', link_cache)
        build('link "HTTPS://lib.example.com/"; cube(size);', link_cache)
        assert transport.total_fetches == 1

    def test_fetch_failure(self, transport, link_cache):
        error = build_error(f'cube(1);\nlink "{LIB_URL}";', link_cache)
        assert error.code == "E308"
        assert LIB_URL in error.message
        assert (error.line, error.column) == (2, 6)

    def test_failure_not_cached(self, transport, link_cache):
        build_error(f'link "{LIB_URL}";', link_cache)
        transport.programs[LIB_URL] = "as part() { cube(1); }"
        shapes = build(f'link "{LIB_URL}"; part();', link_cache)
        assert len(shapes) == 1
        assert transport.fetches[LIB_URL] == 2

    def test_parse_error_in_linked_program(self, transport, link_cache):
        transport.programs[LIB_URL] = "cube(1"
        with pytest.raises(ParserError) as exc_info:
            build(f'link "{LIB_URL}";', link_cache)
        assert exc_info.value.name == LIB_URL

    def test_self_link(self, transport, link_cache):
        transport.programs[LIB_URL] = f'link "{LIB_URL}";'
        error = build_error(f'link "{LIB_URL}";', link_cache)
        assert error.code == "E309"

    def test_circular_link(self, transport, link_cache):
        transport.programs[LIB_URL] = f'link "{CONSTANTS_URL}";'
        transport.programs[CONSTANTS_URL] = f'link "{LIB_URL}";'
        error = build_error(f'link "{LIB_URL}";', link_cache)
        assert error.code == "E309"

    def test_compile_and_run_reports_link_errors(self, link_cache):
        result = compile_and_run(f'link "{LIB_URL}";', "main.ascad", link_cache)
        assert not result.success
        assert result.diagnostic.code == "E308"


class TestLinkCache:
    """Test the cache directly."""

    def test_populate_once(self, link_cache):
        calls = []

        def build_entry(url):
            calls.append(url)
            return LinkedProgram.capture({}, {"a": 1.0})

        first = link_cache.populate_once("u", build_entry)
        second = link_cache.populate_once("u", build_entry)
        assert first is second
        assert calls == ["u"]
        assert link_cache.lookup("u") is first
        assert link_cache.lookup("v") is None

    def test_reentrant_request_is_circular(self, link_cache):
        def build_entry(url):
            return link_cache.populate_once(url, build_entry)

        with pytest.raises(CircularLinkError):
            link_cache.populate_once("u", build_entry)
        assert "u" not in link_cache

    def test_concurrent_population(self, link_cache):
        """Concurrent requesters wait for the first population."""
        started = threading.Event()
        release = threading.Event()
        calls = []
        results = []

        def build_entry(url):
            calls.append(url)
            started.set()
            release.wait(timeout=5)
            return LinkedProgram.capture({}, {})

        def request():
            results.append(link_cache.populate_once("u", build_entry))

        threads = [threading.Thread(target=request) for _ in range(4)]
        threads[0].start()
        started.wait(timeout=5)
        for thread in threads[1:]:
            thread.start()
        release.set()
        for thread in threads:
            thread.join(timeout=5)

        assert calls == ["u"]
        assert len(results) == 4
        assert all(result is results[0] for result in results)

    def test_clear(self, link_cache):
        link_cache.populate_once("u", lambda url: LinkedProgram.capture({}, {}))
        link_cache.clear()
        assert len(link_cache) == 0

    def test_captured_tables_are_read_only(self):
        constants = {"a": 1.0}
        linked = LinkedProgram.capture({}, constants)
        constants["b"] = 2.0
        assert dict(linked.constants) == {"a": 1.0}
        with pytest.raises(TypeError):
            linked.constants["c"] = 3.0

    def test_default_cache_is_shared(self):
        assert default_link_cache() is default_link_cache()


class TestUrlLibTransport:
    """Test the urllib transport against local files."""

    def test_fetch_file_url(self, tmp_path):
        path = tmp_path / "lib.ascad"
        path.write_text("const size = 4;", encoding="utf-8")
        assert UrlLibTransport(timeout=1.0).fetch(path.as_uri()) == "const size = 4;"

    def test_missing_file(self, tmp_path):
        with pytest.raises(TransportError):
            UrlLibTransport(timeout=1.0).fetch((tmp_path / "missing.ascad").as_uri())

    def test_default_user_agent(self):
        assert UrlLibTransport().user_agent.startswith("ascad/")

    def test_file_link_end_to_end(self, tmp_path):
        path = tmp_path / "lib.ascad"
        path.write_text("as part(x) { cube(x); }", encoding="utf-8")
        cache = LinkCache(UrlLibTransport(timeout=1.0))
        shapes = build(f'link "{path.as_uri()}"; part(3);', cache)
        assert shapes[0].params == (3.0,)


class BarrierTransport:
    """Holds the first fetch of each URL until every thread has fetched one."""

    def __init__(self, programs, parties):
        self.programs = programs
        self.barrier = threading.Barrier(parties, timeout=5)
        self.fetched = set()
        self.lock = threading.Lock()

    def fetch(self, url):
        with self.lock:
            first = url not in self.fetched
            self.fetched.add(url)
        if first:
            self.barrier.wait()
        return self.programs[url]


class TestCrossThreadCycles:
    """Test link cycles whose imports run on different threads."""

    def test_cycle_across_threads_fails_instead_of_hanging(self):
        transport = BarrierTransport({
            LIB_URL: f'link "{CONSTANTS_URL}";',
            CONSTANTS_URL: f'link "{LIB_URL}";',
        }, parties=2)
        cache = LinkCache(transport)
        errors = {}

        def run(url):
            try:
                build(f'link "{url}";', cache)
            except EvaluationError as e:
                errors[url] = e.code

        threads = [threading.Thread(target=run, args=(url,)) for url in (LIB_URL, CONSTANTS_URL)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert not any(thread.is_alive() for thread in threads)
        assert errors == {LIB_URL: "E309", CONSTANTS_URL: "E309"}
        assert len(cache) == 0


class FakeResponse:
    """Minimal urlopen response with a declared charset."""

    def __init__(self, body, charset):
        self.body = body
        self.headers = self
        self.charset = charset

    def get_content_charset(self):
        return self.charset

    def read(self):
        return self.body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class TestUrlLibTransportErrors:
    """Test failures of the urllib transport that are not network errors."""

    def test_unknown_charset(self, monkeypatch):
        monkeypatch.setattr(
            "urllib.request.urlopen",
            lambda request, timeout: FakeResponse(b"cube(1);", "no-such-charset"),
        )
        with pytest.raises(TransportError):
            UrlLibTransport().fetch(LIB_URL)

    def test_unknown_charset_is_link_error(self, monkeypatch):
        monkeypatch.setattr(
            "urllib.request.urlopen",
            lambda request, timeout: FakeResponse(b"cube(1);", "no-such-charset"),
        )
        error = build_error(f'link "{LIB_URL}";', LinkCache(UrlLibTransport()))
        assert error.code == "E308"
