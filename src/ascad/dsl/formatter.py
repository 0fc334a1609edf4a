"""
Canonical re-printer for ascad programs.

The formatter is a pure function of the syntax tree: it never evaluates
anything, so programs with undefined names still format. Its output is a
fixed point: formatting formatted text returns the same text.
"""

import textwrap
from typing import List

from .source import Offset
from .ast import (
    SyntaxNode, SyntaxVisitor, Program,
    ModuleSyntax, ConstSyntax, ShapeSyntax, ForSyntax, LinkSyntax, CommentSyntax,
)
from .errors import error_nesting_too_deep
from .parser import parse


INDENT = "  "


class Formatter(SyntaxVisitor):
    """Formats each syntax node as canonical text ending in a newline."""

    def format(self, program: Program) -> str:
        return "".join(node.accept(self) for node in program)

    def _block(self, body: List[SyntaxNode]) -> str:
        """Format a non-empty body as an indented brace block."""
        inner = "".join(textwrap.indent(node.accept(self), INDENT) for node in body)
        return " {\n" + inner + "}\n"

    def _params(self, params: List[str]) -> str:
        return "(" + ", ".join(params) + ")"

    def visit_ModuleSyntax(self, node: ModuleSyntax) -> str:
        text = f"as {node.name}{self._params(node.params)}"
        if not node.body:
            return text + " {\n}\n"
        return text + self._block(node.body)

    def visit_ConstSyntax(self, node: ConstSyntax) -> str:
        return f"const {node.name} = {node.value};\n"

    def visit_ShapeSyntax(self, node: ShapeSyntax) -> str:
        text = node.name
        if node.params or not node.body:
            text += self._params(node.params)
        if not node.body:
            return text + ";\n"
        return text + self._block(node.body)

    def visit_ForSyntax(self, node: ForSyntax) -> str:
        text = "for" + self._params([node.constant, node.start, node.end, node.delta])
        if not node.body:
            return text + ";\n"
        return text + self._block(node.body)

    def visit_LinkSyntax(self, node: LinkSyntax) -> str:
        return f'link "{node.url}";\n'

    def visit_CommentSyntax(self, node: CommentSyntax) -> str:
        if not node.is_multiline:
            return f"// {node.text}".rstrip() + "\n"
        first, rest = node.text.split("\n", 1)
        # Lines after the first keep only their indentation relative to each other
        body = first + "\n" + textwrap.dedent(rest)
        return "/*\n" + body + "\n*/\n"


def format_program(program: Program) -> str:
    """Format an already parsed program."""
    try:
        return Formatter().format(program)
    except RecursionError:
        offset = program[0].offset if program else Offset.root()
        raise error_nesting_too_deep(offset) from None


def format_source(text: str, name: str = "<string>") -> str:
    """
    Parse ``text`` and return it in canonical form.

    Raises:
        ParserError: if ``text`` does not parse
    """
    return format_program(parse(text, name))
