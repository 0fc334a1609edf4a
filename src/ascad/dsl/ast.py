"""
Syntax tree node definitions for the ascad DSL.

A program is an ordered list of syntax nodes; the order is the execution
order. Nodes are created by the parser and never modified afterwards, so a
module body can be shared between every invocation of that module.
"""

from dataclasses import dataclass, field
from typing import Any, List

from .source import Offset


@dataclass
class SyntaxNode:
    """Base class for all syntax nodes."""
    offset: Offset  # Source location for error reporting

    def accept(self, visitor: "SyntaxVisitor") -> Any:
        """Accept a visitor for traversal."""
        method_name = f"visit_{self.__class__.__name__}"
        method = getattr(visitor, method_name, visitor.generic_visit)
        return method(self)


class SyntaxVisitor:
    """Base class for syntax visitors."""

    def generic_visit(self, node: SyntaxNode) -> Any:
        """Default visit method."""
        raise NotImplementedError(f"No visitor for {node.__class__.__name__}")


Program = List[SyntaxNode]


@dataclass
class ModuleSyntax(SyntaxNode):
    """A named, parameterized subprogram: ``as name(a, b) { ... }``."""
    name: str
    params: List[str] = field(default_factory=list)
    body: List[SyntaxNode] = field(default_factory=list)


@dataclass
class ConstSyntax(SyntaxNode):
    """A constant binding: ``const name = value;``.

    ``value`` is the raw token; it is resolved to a number (literal or
    another constant) only at evaluation time.
    """
    name: str
    value: str


@dataclass
class ShapeSyntax(SyntaxNode):
    """A builtin shape or module invocation: ``name(p, ...) { ... }``."""
    name: str
    params: List[str] = field(default_factory=list)
    body: List[SyntaxNode] = field(default_factory=list)


@dataclass
class ForSyntax(SyntaxNode):
    """A bounded numeric loop: ``for(i, start, end, delta) { ... }``."""
    constant: str
    start: str
    end: str
    delta: str
    body: List[SyntaxNode] = field(default_factory=list)


@dataclass
class LinkSyntax(SyntaxNode):
    """Import of the modules and constants of a remote program."""
    url: str


@dataclass
class CommentSyntax(SyntaxNode):
    """A line or block comment; ignored by the interpreter."""
    text: str

    @property
    def is_multiline(self) -> bool:
        return "\n" in self.text

