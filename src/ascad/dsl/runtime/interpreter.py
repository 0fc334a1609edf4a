"""
Tree-walking interpreter for ascad programs.

Evaluates a syntax tree into a tree of :class:`ShapeNode` objects. Every
block gets its own :class:`Environment`; constants are bound in order as the
block is walked, so a later ``const`` with the same name changes what later
siblings see.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .context import Environment, RECURSION
from .links import (
    CircularLinkError, LinkCache, LinkedProgram, TransportError, default_link_cache,
)
from .shapes import ShapeNode, is_builtin

from ..ast import (
    SyntaxNode, Program,
    ModuleSyntax, ConstSyntax, ShapeSyntax, ForSyntax, LinkSyntax, CommentSyntax,
)
from ..errors import (
    Diagnostic,
    DslError,
    error_undefined_constant,
    error_undefined_module,
    error_argument_count,
    error_self_recursion,
    error_link_fetch,
    error_circular_link,
    error_recursion_limit,
    attach_source_line,
)
from ..parser import parse
from ..source import Offset

logger = logging.getLogger(__name__)


@dataclass
class ExecutionResult:
    """Result of evaluating a program."""
    success: bool
    root: Optional[ShapeNode] = None
    solids: List = field(default_factory=list)
    diagnostic: Optional[Diagnostic] = None

    @property
    def shapes(self) -> List[ShapeNode]:
        """Get the top-level shape nodes."""
        if self.root is None:
            return []
        return list(self.root.children)

    @property
    def error_message(self) -> Optional[str]:
        if self.diagnostic is None:
            return None
        return self.diagnostic.format()


class Interpreter:
    """
    Tree-walking interpreter for ascad programs.

    Usage:
        interpreter = Interpreter()
        root = interpreter.assemble(parse(text, "main.ascad"))
        solids = root.as_solid()
    """

    def __init__(self, link_cache: Optional[LinkCache] = None):
        """
        Initialize the interpreter.

        Args:
            link_cache: Cache for ``link`` imports; the process-wide cache
                is used when omitted.
        """
        self.link_cache = link_cache if link_cache is not None else default_link_cache()

    def assemble(self, program: Program) -> ShapeNode:
        """Evaluate ``program`` and wrap its shapes in a root ``assemble`` node."""
        return ShapeNode(Offset.root(), "assemble", (), tuple(self.build(program)))

    def build(self, program: Program) -> List[ShapeNode]:
        """Evaluate ``program`` in a fresh root scope and return its shapes."""
        try:
            return self._build(Environment(program))
        except RecursionError:
            raise error_recursion_limit(Offset.root()) from None

    # =========================================================================
    # Scope evaluation
    # =========================================================================

    def _build(self, env: Environment) -> List[ShapeNode]:
        """Evaluate every syntax node of ``env`` in order."""
        env.modules = env.enumerate_modules()
        shapes: List[ShapeNode] = []
        for syntax in env.syntaxes:
            shapes.extend(self._build_syntax(syntax, env))
        return shapes

    def _build_syntax(self, syntax: SyntaxNode, env: Environment) -> List[ShapeNode]:
        if isinstance(syntax, (ModuleSyntax, CommentSyntax)):
            return []
        elif isinstance(syntax, ConstSyntax):
            self._build_const(syntax, env)
            return []
        elif isinstance(syntax, ShapeSyntax):
            return self._build_shape(syntax, env)
        elif isinstance(syntax, ForSyntax):
            return self._build_for(syntax, env)
        elif isinstance(syntax, LinkSyntax):
            self._build_link(syntax, env)
            return []
        else:
            raise RuntimeError(f"Unknown syntax type: {type(syntax).__name__}")

    def _resolve(self, token: str, offset: Offset, env: Environment) -> float:
        value = env.get_value(token)
        if value is None:
            raise error_undefined_constant(token, offset)
        return value

    def _build_const(self, syntax: ConstSyntax, env: Environment) -> None:
        env.set_constant(syntax.name, self._resolve(syntax.value, syntax.offset, env))

    def _build_shape(self, syntax: ShapeSyntax, env: Environment) -> List[ShapeNode]:
        params = [self._resolve(token, syntax.offset, env) for token in syntax.params]

        if is_builtin(syntax.name):
            children = self._build(env.inherit(syntax.body))
            return [ShapeNode(syntax.offset, syntax.name, tuple(params), tuple(children))]

        module = env.get_module(syntax.name)
        if module is RECURSION:
            raise error_self_recursion(syntax.name, syntax.offset)
        if module is None:
            raise error_undefined_module(syntax.name, syntax.offset)
        return self._build_module(module, params, syntax.offset, env)

    def _build_module(self, module: ModuleSyntax, params: List[float], call_offset: Offset,
                      env: Environment) -> List[ShapeNode]:
        """Expand a module call; the body sees the calling scope as its parent."""
        if len(params) != len(module.params):
            raise error_argument_count(
                module.name, len(module.params), len(params), call_offset, module.offset,
            )
        constants = dict(zip(module.params, params))
        return self._build(env.inherit(module.body, constants, module.name))

    def _build_for(self, syntax: ForSyntax, env: Environment) -> List[ShapeNode]:
        start = self._resolve(syntax.start, syntax.offset, env)
        end = self._resolve(syntax.end, syntax.offset, env)
        delta = self._resolve(syntax.delta, syntax.offset, env)

        shapes: List[ShapeNode] = []
        if delta == 0:
            return shapes

        i = start
        while (i < end) if delta > 0 else (end < i):
            constants = dict(env.constants)
            constants[syntax.constant] = i
            shapes.extend(self._build(env.inherit(syntax.body, constants)))
            i += delta
        return shapes

    # =========================================================================
    # Links
    # =========================================================================

    def _build_link(self, syntax: LinkSyntax, env: Environment) -> None:
        try:
            linked = self.link_cache.populate_once(syntax.url, self._load_link)
        except TransportError as e:
            raise error_link_fetch(syntax.url, str(e), syntax.offset) from e
        except CircularLinkError:
            raise error_circular_link(syntax.url, syntax.offset) from None

        env.constants.update(linked.constants)
        for module in linked.modules.values():
            env.add_module(module, syntax.offset)

    def _load_link(self, url: str) -> LinkedProgram:
        """Fetch, parse and evaluate a linked program in its own root scope."""
        text = self.link_cache.fetch(url)
        root = Environment(parse(text, url))
        try:
            self._build(root)
        except DslError as e:
            raise attach_source_line(e, url, text)
        return LinkedProgram.capture(root.modules, root.constants)


def compute_solids(root: ShapeNode) -> List:
    """
    Compute the solids of an evaluated shape tree.

    Raises:
        EvaluationError: E306/E307 for bad shape arguments, E310 when the
            tree is too deep to walk
    """
    try:
        return root.as_solid()
    except RecursionError:
        raise error_recursion_limit(root.offset) from None


def evaluate(program: Program, link_cache: Optional[LinkCache] = None) -> List:
    """
    Evaluate ``program`` and return the solids of its top-level shapes.

    Raises:
        DslError: on the first evaluation error
    """
    return compute_solids(Interpreter(link_cache).assemble(program))


def evaluate_source(text: str, name: str = "<string>",
                    link_cache: Optional[LinkCache] = None) -> ShapeNode:
    """Parse and evaluate ``text``, returning the root shape node."""
    try:
        return Interpreter(link_cache).assemble(parse(text, name))
    except DslError as e:
        raise attach_source_line(e, name, text)


def compile_and_run(text: str, name: str = "<string>",
                    link_cache: Optional[LinkCache] = None) -> ExecutionResult:
    """
    High-level API to parse and evaluate source text in one call.

        from ascad.dsl import compile_and_run

        result = compile_and_run('subtract { cube(10); sphere(6); }')
        if result.success:
            solids = result.solids
        else:
            print(result.error_message)

    Geometry is computed eagerly so that argument errors raised by shape
    nodes (E306, E307) are reported as well.
    """
    try:
        root = evaluate_source(text, name, link_cache)
        solids = compute_solids(root)
    except DslError as e:
        attach_source_line(e, name, text)
        logger.debug("evaluation of %s failed: %s", name, e.message)
        return ExecutionResult(success=False, diagnostic=e.diagnostic)
    return ExecutionResult(success=True, root=root, solids=solids)
