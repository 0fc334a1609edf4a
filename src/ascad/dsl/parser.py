"""
Recursive descent parser for the ascad DSL.

Reads characters directly from a :class:`~ascad.dsl.source.Source` and builds
the syntax tree. There is no separate lexer: keywords, symbols and string
literals are recognized on demand by the parse methods.

Grammar:
    Program := (Syntax)* EOF
    Syntax  := Comment | "as" Module | "const" Const | "for" For
             | "link" Link | Shape
    Module  := name ["(" keyword ("," keyword)* ")"] Block
    Const   := name "=" keyword ";"
    Shape   := name ["(" keyword ("," keyword)* ")"] Block
    For     := "(" keyword "," keyword "," keyword "," keyword ")" Block
    Link    := StringLiteral ";"
    Block   := "{" Syntax* "}" | ";"
"""

from typing import List, Optional
from urllib.parse import urlsplit, urlunsplit

from .source import Offset, Source
from .ast import (
    SyntaxNode, Program,
    ModuleSyntax, ConstSyntax, ShapeSyntax, ForSyntax, LinkSyntax, CommentSyntax,
)
from .errors import (
    error_expected_symbol,
    error_expected_keyword,
    error_unterminated_string,
    error_unterminated_comment,
    error_invalid_url,
    error_nesting_too_deep,
)


KEYWORD_PUNCTUATION = frozenset("_.-")


def is_keyword_char(ch: str) -> bool:
    """Check if a character may appear in a keyword."""
    return ch in KEYWORD_PUNCTUATION or ch.isalpha() or ch.isdigit()


def normalize_url(url: str) -> Optional[str]:
    """
    Normalize an absolute URL, or return None if ``url`` is not one.

    Scheme and host are lower-cased and an empty path becomes ``/``, so
    that spellings of the same location share one link cache entry.
    """
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return None
    scheme = parts.scheme.lower()
    if not scheme:
        return None
    if scheme == "file":
        if not parts.path:
            return None
    elif not parts.netloc:
        return None
    path = parts.path or "/"
    return urlunsplit((scheme, parts.netloc.lower(), path, parts.query, parts.fragment))


class Parser:
    """
    Recursive descent parser for the ascad DSL.

    Usage:
        parser = Parser(Source("main.ascad", text))
        program = parser.parse()

    Names are not validated here: any keyword that is not ``as``, ``const``,
    ``for`` or ``link`` is taken as a shape or module invocation and resolved
    by the interpreter.
    """

    def __init__(self, source: Source):
        self.source = source

    @property
    def offset(self) -> Offset:
        return self.source.offset

    # =========================================================================
    # Character Navigation
    # =========================================================================

    def _source_line(self, offset: Offset) -> Optional[str]:
        return self.source.line(offset.line)

    def _skip_space(self) -> None:
        """Skip any whitespace characters."""
        while True:
            ch = self.source.peek()
            if ch is None or not ch.isspace():
                break
            self.source.consume()

    def is_eof(self) -> bool:
        """Check if only whitespace remains."""
        self._skip_space()
        return self.source.peek() is None

    def starts_with_symbol(self, symbol: str) -> bool:
        """Check (without consuming) if the next symbol is ``symbol``."""
        self._skip_space()
        return self.source.peek(len(symbol)) == symbol

    def parse_symbol(self, symbol: str) -> str:
        """Consume ``symbol`` or raise an error naming it."""
        self._skip_space()
        if self.source.peek(len(symbol)) == symbol:
            self.source.consume(len(symbol))
            return symbol
        offset = self.offset
        raise error_expected_symbol(symbol, offset, self._source_line(offset))

    def parse_keyword(self) -> str:
        """Consume a maximal run of keyword characters."""
        self._skip_space()
        chars = []
        while True:
            ch = self.source.peek()
            if ch is None or not is_keyword_char(ch):
                break
            chars.append(ch)
            self.source.consume()
        if not chars:
            offset = self.offset
            raise error_expected_keyword(offset, self._source_line(offset))
        return "".join(chars)

    def parse_string(self) -> str:
        """Consume a double-quoted string literal (no escape sequences)."""
        self.parse_symbol('"')
        start = self.offset
        chars = []
        while self.source.peek() != '"':
            ch = self.source.consume()
            if ch is None:
                raise error_unterminated_string(start, self._source_line(start))
            chars.append(ch)
        self.source.consume()
        return "".join(chars)

    # =========================================================================
    # Program
    # =========================================================================

    def parse(self) -> Program:
        """Parse the whole source into a program."""
        syntaxes: Program = []
        try:
            while not self.is_eof():
                syntaxes.append(self.parse_syntax())
        except RecursionError:
            offset = self.offset
            raise error_nesting_too_deep(offset, self._source_line(offset)) from None
        return syntaxes

    def parse_syntax(self) -> SyntaxNode:
        """Parse one syntax node, dispatching on its leading keyword."""
        if self.starts_with_symbol("//") or self.starts_with_symbol("/*"):
            return self.parse_comment()

        offset = self.offset
        keyword = self.parse_keyword()
        if keyword == "as":
            return self.parse_module()
        elif keyword == "const":
            return self.parse_const()
        elif keyword == "for":
            return self.parse_for()
        elif keyword == "link":
            return self.parse_link()
        else:
            return self.parse_shape(keyword, offset)

    def _parse_params(self) -> List[str]:
        """Parse an optional parenthesized, comma separated keyword list."""
        params: List[str] = []
        if not self.starts_with_symbol("("):
            return params
        self.parse_symbol("(")
        while not self.starts_with_symbol(")"):
            params.append(self.parse_keyword())
            if self.starts_with_symbol(")"):
                break
            self.parse_symbol(",")
        self.parse_symbol(")")
        return params

    def _parse_block(self) -> List[SyntaxNode]:
        """Parse ``{ Syntax* }`` or ``;`` (an empty body)."""
        syntaxes: List[SyntaxNode] = []
        if self.starts_with_symbol("{"):
            self.parse_symbol("{")
            while not self.starts_with_symbol("}"):
                if self.source.peek() is None:
                    offset = self.offset
                    raise error_expected_symbol("}", offset, self._source_line(offset))
                syntaxes.append(self.parse_syntax())
            self.parse_symbol("}")
        else:
            self.parse_symbol(";")
        return syntaxes

    # =========================================================================
    # Declarations and Statements
    # =========================================================================

    def parse_module(self) -> ModuleSyntax:
        """Parse ``as name(params) Block``."""
        self._skip_space()
        offset = self.offset
        name = self.parse_keyword()
        params = self._parse_params()
        body = self._parse_block()
        return ModuleSyntax(offset=offset, name=name, params=params, body=body)

    def parse_const(self) -> ConstSyntax:
        """Parse ``const name = value;``."""
        self._skip_space()
        offset = self.offset
        name = self.parse_keyword()
        self.parse_symbol("=")
        value = self.parse_keyword()
        self.parse_symbol(";")
        return ConstSyntax(offset=offset, name=name, value=value)

    def parse_shape(self, name: str, offset: Offset) -> ShapeSyntax:
        """Parse the rest of an invocation whose name was already read."""
        params = self._parse_params()
        body = self._parse_block()
        return ShapeSyntax(offset=offset, name=name, params=params, body=body)

    def parse_for(self) -> ForSyntax:
        """Parse ``(constant, start, end, delta) Block``."""
        self._skip_space()
        offset = self.offset
        self.parse_symbol("(")
        constant = self.parse_keyword()
        self.parse_symbol(",")
        start = self.parse_keyword()
        self.parse_symbol(",")
        end = self.parse_keyword()
        self.parse_symbol(",")
        delta = self.parse_keyword()
        self.parse_symbol(")")
        body = self._parse_block()
        return ForSyntax(
            offset=offset, constant=constant, start=start, end=end, delta=delta, body=body,
        )

    def parse_link(self) -> LinkSyntax:
        """Parse ``"url";``; the URL must be absolute."""
        self._skip_space()
        offset = self.offset
        text = self.parse_string()
        url = normalize_url(text)
        if url is None:
            raise error_invalid_url(text, offset, self._source_line(offset))
        self.parse_symbol(";")
        return LinkSyntax(offset=offset, url=url)

    def parse_comment(self) -> CommentSyntax:
        """Parse a ``//`` line comment or a ``/* */`` block comment."""
        offset = self.offset
        chars = []
        if self.starts_with_symbol("/*"):
            self.parse_symbol("/*")
            while self.source.peek(2) != "*/":
                ch = self.source.consume()
                if ch is None:
                    raise error_unterminated_comment(offset, self._source_line(offset))
                chars.append(ch)
            self.parse_symbol("*/")
        else:
            self.parse_symbol("//")
            while True:
                ch = self.source.consume()
                if ch is None or ch == "\n":
                    break
                chars.append(ch)
        return CommentSyntax(offset=offset, text="".join(chars).strip())


def parse(text: str, name: str = "<string>") -> Program:
    """
    Parse source text into a program.

    This is the main entry point for parsing:

        from ascad.dsl import parse
        program = parse('cube(10);', 'main.ascad')

    Raises:
        ParserError: on the first syntax error
    """
    return Parser(Source(name, text)).parse()
