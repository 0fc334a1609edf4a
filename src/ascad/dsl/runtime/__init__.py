"""
DSL Runtime - Tree-walking interpreter for ascad programs.

This module provides:
- Interpreter: Evaluates a program into a tree of shape nodes
- Environment: Constant and module scope chain
- ShapeNode: Lazy shape tree mapped onto the geometry kernel
- LinkCache: Process-wide cache of linked remote programs
"""

from .context import (
    Environment,
    RECURSION,
    RESERVED_CONSTANTS,
    parse_number,
)

from .shapes import (
    SHAPE_NAMES,
    ShapeNode,
    is_builtin,
    solids_of,
)

from .links import (
    Transport,
    TransportError,
    UrlLibTransport,
    CircularLinkError,
    LinkedProgram,
    LinkCache,
    default_link_cache,
)

from .interpreter import (
    Interpreter,
    ExecutionResult,
    compute_solids,
    evaluate,
    evaluate_source,
    compile_and_run,
)

__all__ = [
    # Context
    'Environment',
    'RECURSION',
    'RESERVED_CONSTANTS',
    'parse_number',

    # Shapes
    'SHAPE_NAMES',
    'ShapeNode',
    'is_builtin',
    'solids_of',

    # Links
    'Transport',
    'TransportError',
    'UrlLibTransport',
    'CircularLinkError',
    'LinkedProgram',
    'LinkCache',
    'default_link_cache',

    # Interpreter
    'Interpreter',
    'ExecutionResult',
    'compute_solids',
    'evaluate',
    'evaluate_source',
    'compile_and_run',
]
