"""
Character source and position tracking for the ascad DSL parser.

The parser reads characters straight from a :class:`Source`; there is no
separate token stream. Every consumed character is fed through the current
:class:`Offset` so diagnostics and syntax nodes can point back at the text.
"""

from dataclasses import dataclass
from typing import List, Optional


ROOT_NAME = "__root__"


@dataclass(frozen=True)
class Offset:
    """A position in a named source (1-indexed line and column)."""
    name: str
    line: int = 1
    column: int = 1

    @staticmethod
    def root() -> "Offset":
        """Offset used for nodes that have no source text of their own."""
        return Offset(ROOT_NAME)

    def seek(self, text: str) -> "Offset":
        """Return the offset reached after reading ``text`` from here."""
        line = self.line
        column = self.column
        for ch in text:
            if ch == '\n':
                line += 1
                column = 1
            elif ch == '\r':
                column = 1
            else:
                column += 1
        return Offset(self.name, line, column)

    def __str__(self) -> str:
        return f"{self.name}:{self.line}:{self.column}"


class Source:
    """
    Full source text plus a cursor.

    Running out of input is not an error here: ``peek`` and ``consume``
    return ``None`` when fewer characters remain than were asked for.
    """

    def __init__(self, name: str, text: str):
        self.name = name
        self.text = text
        self.cursor = 0
        self._offset = Offset(name)
        self._lines: Optional[List[str]] = None

    @property
    def offset(self) -> Offset:
        """Snapshot of the current position."""
        return self._offset

    @property
    def lines(self) -> List[str]:
        """Lazy-load line list for error reporting."""
        if self._lines is None:
            self._lines = self.text.splitlines()
        return self._lines

    def line(self, line_num: int) -> Optional[str]:
        """Get a specific line of source (1-indexed)."""
        if 1 <= line_num <= len(self.lines):
            return self.lines[line_num - 1]
        return None

    def peek(self, length: int = 1) -> Optional[str]:
        """Look at the next ``length`` characters without consuming them."""
        if self.cursor + length > len(self.text):
            return None
        return self.text[self.cursor:self.cursor + length]

    def consume(self, length: int = 1) -> Optional[str]:
        """Consume and return the next ``length`` characters."""
        text = self.peek(length)
        if text is not None:
            self._offset = self._offset.seek(text)
            self.cursor += len(text)
        return text

    def at_end(self) -> bool:
        return self.cursor >= len(self.text)
