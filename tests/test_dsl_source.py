"""
Tests for the character source and position tracking.
"""

import dataclasses

import pytest

from ascad.dsl import Offset, Source, ROOT_NAME


class TestOffset:
    """Test line/column arithmetic."""

    def test_starts_at_one_one(self):
        """A fresh offset is at line 1, column 1."""
        offset = Offset("main.ascad")
        assert (offset.line, offset.column) == (1, 1)

    def test_root(self):
        """The root offset has the reserved name."""
        assert str(Offset.root()) == f"{ROOT_NAME}:1:1"

    def test_seek_plain_text(self):
        """Ordinary characters advance the column."""
        offset = Offset("f").seek("cube")
        assert (offset.line, offset.column) == (1, 5)

    def test_seek_newline(self):
        """A newline starts a new line at column 1."""
        offset = Offset("f").seek("ab\ncd")
        assert (offset.line, offset.column) == (2, 3)

    def test_seek_carriage_return(self):
        """A carriage return resets the column but not the line."""
        offset = Offset("f").seek("abc\rd")
        assert (offset.line, offset.column) == (1, 2)

    def test_seek_crlf(self):
        """CRLF counts as a single line break."""
        offset = Offset("f").seek("a\r\nb")
        assert (offset.line, offset.column) == (2, 2)

    def test_immutable(self):
        """Offsets are snapshots and cannot be changed."""
        offset = Offset("f")
        with pytest.raises(dataclasses.FrozenInstanceError):
            offset.line = 4

    def test_str(self):
        """Offsets render as name:line:column."""
        assert str(Offset("main.ascad", 3, 7)) == "main.ascad:3:7"


class TestSource:
    """Test bounded lookahead and consumption."""

    def test_peek_does_not_consume(self):
        """Peek returns text but leaves the cursor alone."""
        source = Source("f", "cube")
        assert source.peek(2) == "cu"
        assert source.peek(2) == "cu"
        assert source.offset == Offset("f")

    def test_peek_past_end(self):
        """Asking for more characters than remain gives None."""
        source = Source("f", "ab")
        assert source.peek(3) is None
        assert source.peek(2) == "ab"

    def test_consume_advances_offset(self):
        """Consumed text moves the offset, newlines included."""
        source = Source("f", "a\nbc")
        assert source.consume(3) == "a\nb"
        assert (source.offset.line, source.offset.column) == (2, 2)

    def test_consume_past_end(self):
        """Consuming beyond the end returns None and does not move."""
        source = Source("f", "a")
        assert source.consume(2) is None
        assert source.offset == Offset("f")
        assert source.consume() == "a"
        assert source.consume() is None
        assert source.at_end()

    def test_offset_is_snapshot(self):
        """A captured offset does not follow later consumption."""
        source = Source("f", "abc")
        before = source.offset
        source.consume(2)
        assert before.column == 1
        assert source.offset.column == 3

    def test_line_lookup(self):
        """Source lines are available for diagnostics."""
        source = Source("f", "first\nsecond\n")
        assert source.line(2) == "second"
        assert source.line(5) is None
