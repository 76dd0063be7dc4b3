"""
Feature predicate evaluation for conditional directives.

A directive is a list of clauses such as ``os(linux,macos)``,
``not arch(x86)`` or ``feature(gui)``. It is active when every clause holds.

Clauses on the platform compare a platform fact against the listed values.
Feature clauses compare against the features the user enabled for the run,
and also record every feature name they mention so the caller can later
report all features a script knows about, including those in inactive
sections. For that reason all clauses are evaluated even once the result is
known to be false.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence

from .options import RunOptions
from .platform import PlatformFacts, host_platform
from ..errors import error_unknown_predicate

logger = logging.getLogger(__name__)


class PredicateKey(Enum):
    """What a clause tests."""
    OPERATING_SYSTEM = "os"
    POINTER_WIDTH = "bit"
    FAMILY = "family"
    ARCHITECTURE = "arch"
    ENDIANNESS = "endian"
    FEATURE = "feature"


PREDICATE_NAMES: Dict[str, PredicateKey] = {
    "os": PredicateKey.OPERATING_SYSTEM,
    "bit": PredicateKey.POINTER_WIDTH,
    "family": PredicateKey.FAMILY,
    "platform": PredicateKey.FAMILY,
    "arch": PredicateKey.ARCHITECTURE,
    "endian": PredicateKey.ENDIANNESS,
    "feature": PredicateKey.FEATURE,
    "feat": PredicateKey.FEATURE,
}

_FACT_ATTRS: Dict[PredicateKey, str] = {
    PredicateKey.OPERATING_SYSTEM: "os",
    PredicateKey.POINTER_WIDTH: "pointer_width",
    PredicateKey.FAMILY: "family",
    PredicateKey.ARCHITECTURE: "arch",
    PredicateKey.ENDIANNESS: "endian",
}


def resolve_predicate(name: str) -> Optional[PredicateKey]:
    """Look up a predicate key by its script spelling, ignoring case."""
    return PREDICATE_NAMES.get(name.lower())


@dataclass
class FeatureClause:
    """
    One clause of a conditional directive.

    `name` is the predicate key as written in the script; `values` are the
    alternatives, any of which satisfies the clause.
    """
    name: str
    values: Sequence[str]
    negated: bool = False

    def __str__(self) -> str:
        text = f"{self.name}({','.join(self.values)})"
        return f"not {text}" if self.negated else text


def check_platform_value(fact: str, values: Sequence[str], negated: bool) -> bool:
    """True if `fact` equals any of `values`, ignoring case, then negated."""
    fact = fact.lower()
    found = any(v.lower() == fact for v in values)
    return not found if negated else found


def check_feature_list(
    enabled: Sequence[str],
    values: Sequence[str],
    negated: bool,
    collected: List[str],
) -> bool:
    """
    True if any of `values` is among the `enabled` features, then negated.

    Every value is appended to `collected` first. With no enabled features
    at all the clause is false whether or not it is negated.
    """
    wanted = [v.lower() for v in values]
    collected.extend(wanted)
    if not enabled:
        # Negation is not applied here: "not feature(x)" is also false
        return False
    enabled_low = {e.lower() for e in enabled}
    found = any(w in enabled_low for w in wanted)
    return not found if negated else found


def evaluate_clause(
    clause: FeatureClause,
    options: RunOptions,
    collected: List[str],
    platform: Optional[PlatformFacts] = None,
) -> bool:
    """Evaluate a single clause. Raises UnknownPredicateError for an unknown key."""
    key = resolve_predicate(clause.name)
    if key is None:
        logger.warning("unknown feature predicate %r", clause.name)
        raise error_unknown_predicate(clause.name)
    if key == PredicateKey.FEATURE:
        return check_feature_list(options.features, clause.values, clause.negated, collected)
    facts = platform if platform is not None else host_platform()
    return check_platform_value(getattr(facts, _FACT_ATTRS[key]), clause.values, clause.negated)


def evaluate_features(
    clauses: Sequence[FeatureClause],
    options: RunOptions,
    collected: List[str],
    platform: Optional[PlatformFacts] = None,
) -> bool:
    """
    Evaluate a directive: the AND of all its clauses.

    Every clause runs even after one has failed, so `collected` ends up
    holding all feature names the directive mentions. An unknown predicate
    key stops evaluation with UnknownPredicateError.
    """
    verdicts = []
    for clause in clauses:
        verdict = evaluate_clause(clause, options, collected, platform)
        logger.debug("clause %s -> %s", clause, verdict)
        verdicts.append(verdict)
    return all(verdicts)
