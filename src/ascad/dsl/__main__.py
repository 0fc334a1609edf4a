#!/usr/bin/env python3
"""
CLI for the ascad modeling language.

Usage:
    python -m ascad.dsl format FILE [--write | --check]
    python -m ascad.dsl check FILE [--json]
    python -m ascad.dsl run FILE --output OUT.stl

Examples:
    # Print a file in canonical form
    python -m ascad.dsl format bracket.ascad

    # Fail (exit 1) when a file is not canonically formatted
    python -m ascad.dsl format bracket.ascad --check

    # Parse and evaluate, reporting the first error
    python -m ascad.dsl check bracket.ascad

    # Same, as JSON for editor integration
    python -m ascad.dsl check --json bracket.ascad

    # Evaluate and export to binary STL, allowing slow link hosts
    python -m ascad.dsl --timeout 60 run bracket.ascad -o bracket.stl
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from .errors import DslError, attach_source_line
from .formatter import format_source
from .runtime import LinkCache, UrlLibTransport, compute_solids, evaluate_source

logger = logging.getLogger(__name__)


def read_source(path: Path) -> str:
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    return path.read_text(encoding="utf-8")


def make_link_cache(args) -> Optional[LinkCache]:
    """Link cache whose fetches honour ``--timeout``; None selects the shared cache."""
    if args.timeout is None:
        return None
    return LinkCache(UrlLibTransport(timeout=args.timeout))


def build_solids(args, source_path: Path):
    """Evaluate a file and compute its solids, returning (root, solids)."""
    text = read_source(source_path)
    name = str(source_path)
    root = evaluate_source(text, name, make_link_cache(args))
    try:
        return root, compute_solids(root)
    except DslError as e:
        raise attach_source_line(e, name, text)


def cmd_format(args):
    """Print or rewrite a file in canonical form."""
    source_path = Path(args.file)
    text = read_source(source_path)
    formatted = format_source(text, str(source_path))

    if args.check:
        if formatted != text:
            print(f"{source_path}: not formatted", file=sys.stderr)
            return 1
        return 0

    if args.write:
        if formatted != text:
            source_path.write_text(formatted, encoding="utf-8")
            logger.info("reformatted %s", source_path)
        return 0

    sys.stdout.write(formatted)
    return 0


def cmd_check(args):
    """Parse and evaluate a file, reporting the first error."""
    source_path = Path(args.file)
    if args.json:
        try:
            build_solids(args, source_path)
        except DslError as e:
            print(json.dumps({"ok": False, "diagnostics": [e.diagnostic.to_json()]}, indent=2))
            return 1
        print(json.dumps({"ok": True, "diagnostics": []}, indent=2))
        return 0

    root, solids = build_solids(args, source_path)
    print(f"OK: {source_path.name} - {len(root.children)} shape(s), {len(solids)} solid(s)")
    return 0


def cmd_run(args):
    """Evaluate a file and export its solids to binary STL."""
    from ascad.io import write_stl

    source_path = Path(args.file)
    _, solids = build_solids(args, source_path)

    output_path = Path(args.output) if args.output else source_path.with_suffix(".stl")
    if output_path.suffix.lower() != ".stl":
        print(f"Error: Unsupported output format: {output_path.suffix}", file=sys.stderr)
        return 1

    write_stl(solids, str(output_path), name=source_path.stem)
    print(f"Exported {len(solids)} solid(s) to: {output_path}")
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog='python -m ascad.dsl',
        description='ascad modeling language tools',
    )
    parser.add_argument('--timeout', type=float, metavar='SECONDS',
                        help='Timeout for fetching linked programs')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable debug logging')

    subparsers = parser.add_subparsers(dest='action', required=True)

    # format command
    format_parser = subparsers.add_parser('format', help='Print a file in canonical form')
    format_parser.add_argument('file', help='ascad source file')
    mode = format_parser.add_mutually_exclusive_group()
    mode.add_argument('-w', '--write', action='store_true',
                      help='Rewrite the file in place')
    mode.add_argument('--check', action='store_true',
                      help='Exit with status 1 if the file is not formatted')

    # check command
    check_parser = subparsers.add_parser('check', help='Check a file for errors')
    check_parser.add_argument('file', help='ascad source file')
    check_parser.add_argument('--json', action='store_true',
                              help='Print diagnostics as JSON on stdout')

    # run command
    run_parser = subparsers.add_parser('run', help='Evaluate a file and export STL')
    run_parser.add_argument('file', help='ascad source file')
    run_parser.add_argument('-o', '--output', metavar='FILE',
                            help='Output STL file (default: FILE with .stl suffix)')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    commands = {
        'format': cmd_format,
        'check': cmd_check,
        'run': cmd_run,
    }
    try:
        return commands[args.action](args)
    except DslError as e:
        print(e.diagnostic.format(), file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
