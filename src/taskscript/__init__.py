"""
taskscript - evaluation core of a declarative task-script runner.

This package provides:
- Built-in functions: path, string, time and system location helpers
- Feature predicates: platform and user-feature conditional directives
- Execution context: per-script state shared by both

Usage:
    from taskscript import call_builtin, text_val, FeatureClause, create_context

    call_builtin("with_ext", [text_val("build/app.c"), text_val("o")])

    ctx = create_context(features=["debug"])
    if ctx.is_active([FeatureClause("feature", ["debug"])]):
        ...
    print(ctx.referenced_features())
"""

__version__ = "0.3.5"

from .errors import (
    EvaluationError,
    UnknownFunctionError,
    FunctionError,
    UnknownPredicateError,
    ConfigError,
)

from .runtime import (
    Value,
    ValueKind,
    int_val,
    text_val,
    wrap_value,
    wrap_values,
    PlatformFacts,
    detect_platform,
    host_platform,
    RunOptions,
    BuiltinRegistry,
    get_builtin_registry,
    call_builtin,
    PredicateKey,
    FeatureClause,
    evaluate_features,
    ExecutionContext,
    create_context,
)

__all__ = [
    # Errors
    'EvaluationError',
    'UnknownFunctionError',
    'FunctionError',
    'UnknownPredicateError',
    'ConfigError',

    # Runtime
    'Value',
    'ValueKind',
    'int_val',
    'text_val',
    'wrap_value',
    'wrap_values',
    'PlatformFacts',
    'detect_platform',
    'host_platform',
    'RunOptions',
    'BuiltinRegistry',
    'get_builtin_registry',
    'call_builtin',
    'PredicateKey',
    'FeatureClause',
    'evaluate_features',
    'ExecutionContext',
    'create_context',
]
