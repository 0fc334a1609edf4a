"""
Evaluation scopes for the ascad interpreter.

Each block being evaluated gets its own :class:`Environment`, chained to the
environment it was entered from. Constants and modules are looked up locally
first, then through the parent chain up to the root.
"""

import re
from typing import Dict, List, Optional, Union

from ..ast import SyntaxNode, ModuleSyntax
from ..errors import error_duplicate_module


# Leading numeric prefix of a value token: "10", "-2.5", "1e3", ".5", "3mm"
_NUMBER_PREFIX = re.compile(r'-?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?')

RESERVED_CONSTANTS = {
    "true": 1.0,
    "false": 0.0,
}


class _Recursion:
    """Marker returned by :meth:`Environment.get_module` for self-invocation."""

    def __repr__(self) -> str:
        return "RECURSION"


RECURSION = _Recursion()


def parse_number(token: str) -> Optional[float]:
    """Parse the numeric prefix of ``token``, or return None if it has none."""
    match = _NUMBER_PREFIX.match(token)
    if match is None:
        return None
    return float(match.group(0))


class Environment:
    """
    A single evaluation scope.

    Attributes:
        syntaxes: The syntax list this scope evaluates.
        constants: Constants bound in this scope (name -> number).
        modules: Modules defined in this scope (name -> ModuleSyntax),
            filled by :meth:`enumerate_modules` and by link imports.
        parent: The enclosing scope, or None for a root scope.
        current_module: Name of the module whose body is being evaluated.
    """

    def __init__(
        self,
        syntaxes: List[SyntaxNode],
        parent: Optional["Environment"] = None,
        constants: Optional[Dict[str, float]] = None,
        current_module: Optional[str] = None,
    ):
        self.syntaxes = syntaxes
        self.constants: Dict[str, float] = constants if constants is not None else {}
        self.modules: Dict[str, ModuleSyntax] = {}
        self.parent = parent
        self.current_module = current_module

    def __repr__(self) -> str:
        return (
            f"Environment(constants={self.constants!r}, modules={list(self.modules)!r}, "
            f"current_module={self.current_module!r})"
        )

    def get_value(self, token: str) -> Optional[float]:
        """Resolve a value token: a number literal or a constant name."""
        number = parse_number(token)
        if number is not None:
            return number
        return self.get_constant(token)

    def get_constant(self, name: str) -> Optional[float]:
        """Look up a constant in this scope or parent scopes."""
        if name in RESERVED_CONSTANTS:
            return RESERVED_CONSTANTS[name]
        scope = self
        while scope is not None:
            if name in scope.constants:
                return scope.constants[name]
            scope = scope.parent
        return None

    def set_constant(self, name: str, value: float) -> None:
        """Bind a constant in this scope (shadowing any outer binding)."""
        self.constants[name] = value

    def get_module(self, name: str) -> Union[ModuleSyntax, _Recursion, None]:
        """
        Look up a module in this scope or parent scopes.

        Returns RECURSION when ``name`` is the module this scope is
        evaluating; only this frame is checked.
        """
        if self.current_module == name:
            return RECURSION
        scope = self
        while scope is not None:
            if name in scope.modules:
                return scope.modules[name]
            scope = scope.parent
        return None

    def enumerate_modules(self) -> Dict[str, ModuleSyntax]:
        """Collect the modules defined directly in this scope's syntax list."""
        modules: Dict[str, ModuleSyntax] = {}
        for syntax in self.syntaxes:
            if isinstance(syntax, ModuleSyntax):
                if syntax.name in modules:
                    raise error_duplicate_module(syntax.name, syntax.offset)
                modules[syntax.name] = syntax
        return modules

    def add_module(self, module: ModuleSyntax, offset) -> None:
        """Add an imported module; a name already defined here is an error."""
        if module.name in self.modules:
            raise error_duplicate_module(module.name, offset)
        self.modules[module.name] = module

    def inherit(
        self,
        syntaxes: List[SyntaxNode],
        constants: Optional[Dict[str, float]] = None,
        module_name: Optional[str] = None,
    ) -> "Environment":
        """
        Create a child scope for ``syntaxes``.

        The child keeps this scope's current module name unless
        ``module_name`` is given.
        """
        if module_name is None:
            module_name = self.current_module
        return Environment(syntaxes, parent=self, constants=constants, current_module=module_name)
