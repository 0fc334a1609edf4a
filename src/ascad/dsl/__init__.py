"""
ascad modeling language.

This module provides:
- Source: Character source with line/column tracking
- Parser: Builds the syntax tree from source text
- Formatter: Re-prints a program in canonical form
- Interpreter: Evaluates a program into a tree of shape nodes

Usage:
    from ascad.dsl import parse, format_source, compile_and_run

    source = '''
    as post(h) {
      cylinder(1, h);
    }
    for(i, 0, 4, 1) {
      translate(i, 0, 0) { post(10); }
    }
    '''
    program = parse(source, "posts.ascad")
    print(format_source(source))

    result = compile_and_run(source, "posts.ascad")
    if not result.success:
        print(result.error_message)
"""

from .source import (
    ROOT_NAME,
    Offset,
    Source,
)

from .ast import (
    SyntaxNode,
    SyntaxVisitor,
    Program,
    ModuleSyntax,
    ConstSyntax,
    ShapeSyntax,
    ForSyntax,
    LinkSyntax,
    CommentSyntax,
)

from .parser import (
    Parser,
    parse,
    normalize_url,
)

from .formatter import (
    Formatter,
    format_program,
    format_source,
)

from .errors import (
    ErrorSeverity,
    Diagnostic,
    DslError,
    ParserError,
    EvaluationError,
)

from .runtime import (
    Interpreter,
    ExecutionResult,
    ShapeNode,
    LinkCache,
    UrlLibTransport,
    default_link_cache,
    compute_solids,
    evaluate,
    evaluate_source,
    compile_and_run,
)

__all__ = [
    # Source
    'ROOT_NAME',
    'Offset',
    'Source',

    # Syntax tree
    'SyntaxNode',
    'SyntaxVisitor',
    'Program',
    'ModuleSyntax',
    'ConstSyntax',
    'ShapeSyntax',
    'ForSyntax',
    'LinkSyntax',
    'CommentSyntax',

    # Parser
    'Parser',
    'parse',
    'normalize_url',

    # Formatter
    'Formatter',
    'format_program',
    'format_source',

    # Errors
    'ErrorSeverity',
    'Diagnostic',
    'DslError',
    'ParserError',
    'EvaluationError',

    # Runtime
    'Interpreter',
    'ExecutionResult',
    'ShapeNode',
    'LinkCache',
    'UrlLibTransport',
    'default_link_cache',
    'compute_solids',
    'evaluate',
    'evaluate_source',
    'compile_and_run',
]
