"""Run options: the user's enabled features and related switches."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional

from ..errors import ConfigError

logger = logging.getLogger(__name__)

FEATURES_ENV = "TASKSCRIPT_FEATURES"


def _split_features(raw: str) -> List[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class RunOptions:
    """
    Options of one script run.

    `features` keeps the order the user gave and the case they typed;
    comparisons against script clauses lowercase both sides.
    """
    features: List[str] = field(default_factory=list)
    verbose: bool = False

    def add_features(self, names: Iterable[str]) -> None:
        """Append feature names, skipping exact duplicates."""
        for name in names:
            if name not in self.features:
                self.features.append(name)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RunOptions":
        """Build options from a decoded options document."""
        raw = data.get("features", []) or []
        if isinstance(raw, str):
            raw = _split_features(raw)
        if not isinstance(raw, list):
            raise ConfigError(f"'features' must be a list, got {type(raw).__name__}")
        opts = cls(verbose=bool(data.get("verbose", False)))
        for item in raw:
            if not isinstance(item, str):
                raise ConfigError(f"feature names must be strings, got {item!r}")
        opts.add_features(item.strip() for item in raw if item.strip())
        return opts

    @classmethod
    def load(
        cls,
        path: Optional[Path | str] = None,
        features: Iterable[str] = (),
        environ: Optional[Mapping[str, str]] = None,
    ) -> "RunOptions":
        """
        Assemble options from an options file, the environment and
        explicit feature names, in that order.
        """
        if path is not None:
            opts_path = Path(path)
            if not opts_path.exists():
                raise FileNotFoundError(f"options file not found: {opts_path}")
            import yaml

            with opts_path.open("r", encoding="utf-8") as fp:
                try:
                    data = yaml.safe_load(fp) or {}
                except yaml.YAMLError as e:
                    raise ConfigError(f"cannot parse options file {opts_path}: {e}") from e
            if not isinstance(data, dict):
                raise ConfigError(f"options file must be a mapping, got {type(data).__name__}")
            opts = cls.from_mapping(data)
            logger.debug("loaded %d feature(s) from %s", len(opts.features), opts_path)
        else:
            opts = cls()

        env = os.environ if environ is None else environ
        env_features = env.get(FEATURES_ENV, "")
        if env_features:
            opts.add_features(_split_features(env_features))

        opts.add_features(features)
        return opts
