"""
Execution context for the script evaluator.

Bundles what an interpreter needs while it walks one script: the run
options, the platform facts, the built-in registry, and the names of all
features the script's conditional directives mention.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .builtins import BuiltinRegistry, get_builtin_registry
from .features import FeatureClause, evaluate_features
from .options import RunOptions
from .platform import PlatformFacts, host_platform
from .values import Value


@dataclass
class ExecutionContext:
    """
    State of one evaluation pass over a script.

    `collected_features` grows with every feature clause evaluated, active
    or not, and keeps repeats; `referenced_features()` gives the report view.
    """
    options: RunOptions = field(default_factory=RunOptions)
    platform: Optional[PlatformFacts] = None
    registry: Optional[BuiltinRegistry] = None
    collected_features: List[str] = field(default_factory=list)

    def __post_init__(self):
        if self.platform is None:
            self.platform = host_platform()
        if self.registry is None:
            if self.platform == host_platform():
                self.registry = get_builtin_registry()
            else:
                self.registry = BuiltinRegistry(platform=self.platform)

    def call_function(self, name: str, args: Sequence[Value]) -> Value:
        """Compute a function-call expression."""
        return self.registry.invoke(name, args)

    def is_active(self, clauses: Sequence[FeatureClause]) -> bool:
        """Decide whether a conditional section is active."""
        return evaluate_features(clauses, self.options, self.collected_features, self.platform)

    def referenced_features(self) -> List[str]:
        """Every feature name seen so far, once each, in first-seen order."""
        seen: List[str] = []
        for name in self.collected_features:
            if name not in seen:
                seen.append(name)
        return seen

    def unused_features(self) -> List[str]:
        """Enabled features that no evaluated clause has mentioned."""
        referenced = set(self.collected_features)
        return [f for f in self.options.features if f.lower() not in referenced]


def create_context(
    features: Sequence[str] = (),
    platform: Optional[PlatformFacts] = None,
) -> ExecutionContext:
    """Create a context with the given enabled features."""
    return ExecutionContext(options=RunOptions(features=list(features)), platform=platform)
