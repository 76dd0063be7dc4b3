#!/usr/bin/env python3
"""
CLI for the taskscript evaluation core.

Usage:
    python -m taskscript call NAME [ARG ...]
    python -m taskscript features CLAUSE [CLAUSE ...]
    python -m taskscript platform
    python -m taskscript list

Clauses are written KEY:VALUE[,VALUE...], prefixed with '!' to negate.

Examples:
    # Change an extension
    python -m taskscript call with_ext src/main.c o

    # Pad to ten columns
    python -m taskscript call pad-center abc += 10

    # Is this a 64-bit Linux build with the 'gui' feature?
    python -m taskscript -f gui features os:linux bit:64 feature:gui

    # Enabled features can also come from a YAML file or the environment
    TASKSCRIPT_FEATURES=gui,debug python -m taskscript features '!feat:release'
"""

import argparse
import logging
import sys
from typing import Any, List

from .errors import EvaluationError
from .runtime import (
    ExecutionContext,
    FeatureClause,
    RunOptions,
    get_builtin_registry,
    host_platform,
    wrap_value,
)
from .runtime.values import DECIMAL_RE


def parse_arg(arg_str: str) -> Any:
    """Parse a command-line argument: integers stay integers, text loses quotes."""
    if DECIMAL_RE.fullmatch(arg_str):
        return int(arg_str)

    if (arg_str.startswith('"') and arg_str.endswith('"') and len(arg_str) >= 2) or \
       (arg_str.startswith("'") and arg_str.endswith("'") and len(arg_str) >= 2):
        arg_str = arg_str[1:-1]

    return arg_str


def parse_clause(clause_str: str) -> FeatureClause:
    """Parse a clause like 'os:linux,macos' or '!feature:gui'."""
    negated = clause_str.startswith('!')
    if negated:
        clause_str = clause_str[1:]
    name, _, values_str = clause_str.partition(':')
    name = name.strip()
    if not name:
        raise ValueError(f"Invalid clause: {clause_str!r} (expected KEY:VALUE[,VALUE...])")
    values = [v.strip() for v in values_str.split(',') if v.strip()]
    return FeatureClause(name, values, negated)


def load_options(args) -> RunOptions:
    opts = RunOptions.load(args.config, features=args.feature or ())
    opts.verbose = opts.verbose or args.verbose
    return opts


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(format='%(levelname)s %(name)s: %(message)s')
    logging.getLogger('taskscript').setLevel(logging.DEBUG if verbose else logging.WARNING)


def cmd_call(args) -> int:
    """Invoke a built-in function and print its result."""
    values = [wrap_value(parse_arg(a)) for a in args.args]
    result = get_builtin_registry().invoke(args.name, values)
    if args.name.lower() in ('print', 'println'):
        # The function already wrote its output
        return 0
    print(result.to_text())
    return 0


def cmd_features(args, opts: RunOptions) -> int:
    """Evaluate clauses against the host platform and enabled features."""
    clauses: List[FeatureClause] = []
    for text in args.clauses:
        try:
            clauses.append(parse_clause(text))
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 2

    ctx = ExecutionContext(options=opts)
    active = ctx.is_active(clauses)
    print("active" if active else "inactive")
    referenced = ctx.referenced_features()
    if referenced:
        print(f"features: {', '.join(referenced)}")
    unused = ctx.unused_features()
    if unused:
        print(f"Warning: enabled but not referenced: {', '.join(unused)}", file=sys.stderr)
    return 0 if active else 1


def cmd_platform(args) -> int:
    """Print the host platform facts."""
    for key, value in host_platform().as_dict().items():
        print(f"{key:<8}{value}")
    return 0


def cmd_list(args) -> int:
    """List built-in functions and their synonyms."""
    for func in get_builtin_registry().functions():
        aliases = f" ({', '.join(func.aliases)})" if func.aliases else ""
        print(f"  {func.category:<11}{func.name}{aliases}")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog='python -m taskscript',
        description='Task-script built-in functions and feature predicates',
    )
    parser.add_argument('-f', '--feature', action='append', metavar='NAME',
                        help='Enable a feature (can be repeated)')
    parser.add_argument('-c', '--config', metavar='FILE',
                        help='YAML options file')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Log evaluation details')

    subparsers = parser.add_subparsers(dest='action', required=True)

    # call command
    call_parser = subparsers.add_parser('call', help='Call a built-in function')
    call_parser.add_argument('name', help='Function name')
    call_parser.add_argument('args', nargs='*', help='Function arguments')

    # features command
    feat_parser = subparsers.add_parser('features', help='Evaluate a conditional directive')
    feat_parser.add_argument('clauses', nargs='+', metavar='CLAUSE',
                             help='Clause as [!]KEY:VALUE[,VALUE...]')

    # platform command
    subparsers.add_parser('platform', help='Show platform facts')

    # list command
    subparsers.add_parser('list', help='List built-in functions')

    args = parser.parse_args(argv)

    try:
        # The options file may turn on verbose output too
        opts = load_options(args)
        setup_logging(opts.verbose)

        if args.action == 'call':
            return cmd_call(args)
        elif args.action == 'features':
            return cmd_features(args, opts)
        elif args.action == 'platform':
            return cmd_platform(args)
        elif args.action == 'list':
            return cmd_list(args)
        else:
            parser.print_help()
            return 1
    except EvaluationError as e:
        print(e.format(), file=sys.stderr)
        return 2
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == '__main__':
    sys.exit(main())
