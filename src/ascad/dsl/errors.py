"""
DSL-specific exceptions and error handling.

Every fault raised by the parser or the interpreter is a :class:`DslError`
carrying a :class:`Diagnostic`. Nothing is recovered: the first error aborts
the parse or the evaluation.

Error code ranges:
- E1xx: Parser errors
- E3xx: Evaluation errors
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .source import Offset


class ErrorSeverity(Enum):
    """Severity levels for diagnostics."""
    ERROR = "error"


@dataclass
class Diagnostic:
    """A single diagnostic message."""
    code: str                       # E101, E301, etc.
    message: str                    # Human-readable message
    severity: ErrorSeverity
    offset: Offset
    source_line: Optional[str] = None   # The actual line of source code
    hints: List[str] = field(default_factory=list)
    related: List["Diagnostic"] = field(default_factory=list)

    def format(self, show_source: bool = True) -> str:
        """Format the diagnostic for display."""
        parts = [f"{self.offset}: {self.severity.value}[{self.code}]: {self.message}"]

        # Source line with caret
        if show_source and self.source_line is not None:
            parts.append("    |")
            parts.append(f"{self.offset.line:>3} | {self.source_line}")
            parts.append(f"    | {' ' * (self.offset.column - 1)}^")

        for hint in self.hints:
            parts.append(f"    = hint: {hint}")

        for related in self.related:
            parts.append(f"    --> {related.offset}: {related.message}")

        return "\n".join(parts)

    def to_json(self) -> dict:
        """Convert to JSON-serializable dict for tooling integration."""
        return {
            "code": self.code,
            "message": self.message,
            "severity": self.severity.value,
            "source": self.offset.name,
            "line": self.offset.line,
            "column": self.offset.column,
            "hints": self.hints,
            "related": [r.to_json() for r in self.related],
        }


class DslError(Exception):
    """Base exception for DSL errors."""

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(diagnostic.message)

    @property
    def offset(self) -> Offset:
        return self.diagnostic.offset

    @property
    def name(self) -> str:
        return self.diagnostic.offset.name

    @property
    def line(self) -> int:
        return self.diagnostic.offset.line

    @property
    def column(self) -> int:
        return self.diagnostic.offset.column

    @property
    def message(self) -> str:
        return self.diagnostic.message

    @property
    def code(self) -> str:
        return self.diagnostic.code

    def __str__(self) -> str:
        return self.diagnostic.format()


class ParserError(DslError):
    """Error during parsing (E1xx)."""
    pass


class EvaluationError(DslError):
    """Error during evaluation (E3xx)."""
    pass


def _error(code: str, message: str, offset: Offset, source_line: str = None,
           hints: List[str] = None) -> Diagnostic:
    return Diagnostic(
        code=code,
        message=message,
        severity=ErrorSeverity.ERROR,
        offset=offset,
        source_line=source_line,
        hints=hints or [],
    )


# --- Parser error codes ---

def error_expected_symbol(symbol: str, offset: Offset, source_line: str = None) -> ParserError:
    """E101: Expected a literal symbol."""
    return ParserError(_error("E101", f'expected symbol "{symbol}"', offset, source_line))


def error_expected_keyword(offset: Offset, source_line: str = None) -> ParserError:
    """E102: Expected a keyword (name or value)."""
    return ParserError(_error(
        "E102", "expected keyword", offset, source_line,
        hints=["keywords are made of letters, digits, '_', '.' and '-'"],
    ))


def error_unterminated_string(offset: Offset, source_line: str = None) -> ParserError:
    """E103: Unterminated string literal."""
    return ParserError(_error(
        "E103", 'unterminated string literal (expected closing ")', offset, source_line,
        hints=["string literals have no escape sequences; they end at the next '\"'"],
    ))


def error_unterminated_comment(offset: Offset, source_line: str = None) -> ParserError:
    """E104: Unterminated block comment."""
    return ParserError(_error(
        "E104", "unterminated block comment (expected closing */)", offset, source_line,
    ))


def error_invalid_url(url: str, offset: Offset, source_line: str = None) -> ParserError:
    """E105: Link target is not an absolute URL."""
    return ParserError(_error(
        "E105", f'invalid URL "{url}"', offset, source_line,
        hints=[
            "links need an absolute hierarchical URL with a host, such as "
            "https://example.com/lib.ascad (or a file:/// path)",
        ],
    ))


def error_nesting_too_deep(offset: Offset, source_line: str = None) -> ParserError:
    """E106: Blocks nested deeper than the parser stack allows."""
    return ParserError(_error("E106", "nesting too deep", offset, source_line))


# --- Evaluation error codes ---

def error_undefined_constant(name: str, offset: Offset, source_line: str = None) -> EvaluationError:
    """E301: Reference to an undefined constant."""
    return EvaluationError(_error("E301", f'constant "{name}" is undefined', offset, source_line))


def error_undefined_module(name: str, offset: Offset, source_line: str = None) -> EvaluationError:
    """E302: Invocation of an undefined module."""
    return EvaluationError(_error("E302", f'module "{name}" is undefined', offset, source_line))


def error_duplicate_module(name: str, offset: Offset, source_line: str = None) -> EvaluationError:
    """E303: Two modules with the same name in one scope."""
    return EvaluationError(_error("E303", f'duplicating module "{name}"', offset, source_line))


def error_argument_count(name: str, expected: int, found: int, offset: Offset,
                         definition: Offset, source_line: str = None) -> EvaluationError:
    """E304: Module invoked with the wrong number of arguments."""
    diag = _error(
        "E304",
        f'module "{name}" expects {expected} parameter(s), found {found}',
        offset, source_line,
    )
    diag.related.append(_error("E304", f'module "{name}" is defined here', definition))
    return EvaluationError(diag)


def error_self_recursion(name: str, offset: Offset, source_line: str = None) -> EvaluationError:
    """E305: Module invokes itself directly."""
    return EvaluationError(_error(
        "E305", f'module "{name}" has infinite size', offset, source_line,
        hints=["a module cannot invoke itself"],
    ))


def error_missing_argument(index: int, offset: Offset, source_line: str = None) -> EvaluationError:
    """E306: Required shape argument missing."""
    return EvaluationError(_error("E306", f"expected argument of ${index}", offset, source_line))


def error_negative_argument(index: int, offset: Offset, source_line: str = None) -> EvaluationError:
    """E307: Negative value where a non-negative one is required."""
    return EvaluationError(_error(
        "E307", f"argument of ${index} must not be less than zero", offset, source_line,
    ))


def error_link_fetch(url: str, reason: str, offset: Offset, source_line: str = None) -> EvaluationError:
    """E308: Link target could not be fetched."""
    return EvaluationError(_error(
        "E308", f'network error while fetching "{url}": {reason}', offset, source_line,
    ))


def error_circular_link(url: str, offset: Offset, source_line: str = None) -> EvaluationError:
    """E309: Link target (transitively) links itself."""
    return EvaluationError(_error("E309", f'circular link to "{url}"', offset, source_line))


def error_recursion_limit(offset: Offset) -> EvaluationError:
    """E310: Evaluation exhausted the interpreter stack."""
    return EvaluationError(_error(
        "E310", "maximum module nesting depth exceeded", offset,
        hints=["modules that invoke each other are not detected as recursion"],
    ))


def attach_source_line(error: DslError, name: str, text: str) -> DslError:
    """Fill in the source line of ``error`` when it points into ``text``."""
    diagnostic = error.diagnostic
    if diagnostic.source_line is None and diagnostic.offset.name == name:
        lines = text.splitlines()
        if 1 <= diagnostic.offset.line <= len(lines):
            diagnostic.source_line = lines[diagnostic.offset.line - 1]
    return error
