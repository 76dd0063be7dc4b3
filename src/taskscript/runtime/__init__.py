"""
Script runtime - the evaluation core used by the task-script interpreter.

This module provides:
- Value: Integer/text runtime values
- PlatformFacts: Platform facts tested by built-ins and directives
- RunOptions: The user's enabled features
- BuiltinRegistry: Built-in function implementations
- evaluate_features: Conditional directive evaluation
- ExecutionContext: Per-script evaluation state
"""

from .values import (
    Value,
    ValueKind,
    int_val,
    text_val,
    bool_val,
    wrap_value,
    wrap_values,
)

from .platform import (
    PlatformFacts,
    detect_platform,
    host_platform,
)

from .options import (
    RunOptions,
    FEATURES_ENV,
)

from .builtins import (
    BuiltinFunction,
    BuiltinRegistry,
    display_width,
    get_builtin_registry,
    call_builtin,
)

from .features import (
    PredicateKey,
    FeatureClause,
    resolve_predicate,
    evaluate_clause,
    evaluate_features,
)

from .context import (
    ExecutionContext,
    create_context,
)

__all__ = [
    # Values
    'Value',
    'ValueKind',
    'int_val',
    'text_val',
    'bool_val',
    'wrap_value',
    'wrap_values',

    # Platform
    'PlatformFacts',
    'detect_platform',
    'host_platform',

    # Options
    'RunOptions',
    'FEATURES_ENV',

    # Builtins
    'BuiltinFunction',
    'BuiltinRegistry',
    'display_width',
    'get_builtin_registry',
    'call_builtin',

    # Features
    'PredicateKey',
    'FeatureClause',
    'resolve_predicate',
    'evaluate_clause',
    'evaluate_features',

    # Context
    'ExecutionContext',
    'create_context',
]
