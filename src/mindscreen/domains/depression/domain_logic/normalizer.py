"""Feature normalization: raw 1-6 answers -> bounded model inputs.

Per-field min/max statistics come from the training data and are loaded once
at startup from ``feature_stats.yaml``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType

import yaml

from mindscreen.domains.depression.domain_logic.questionnaire import MENTAL_HEALTH_FIELDS

logger = logging.getLogger(__name__)

DEFAULT_FEATURE_STATS_PATH = Path(__file__).resolve().parent.parent / "resources" / "feature_stats.yaml"

FeatureVector = tuple[float, ...]


class FeatureStatsError(Exception):
    """Raised when the feature statistics artifact is missing or malformed."""


@dataclass(frozen=True)
class FeatureStats:
    """Read-only per-field (min, max) pairs in questionnaire order."""

    ranges: Mapping[str, tuple[float, float]]

    def __post_init__(self) -> None:
        missing = [name for name in MENTAL_HEALTH_FIELDS if name not in self.ranges]
        if missing:
            raise FeatureStatsError(f"Feature stats missing fields: {missing}")
        for name in MENTAL_HEALTH_FIELDS:
            lo, hi = self.ranges[name]
            if hi < lo:
                raise FeatureStatsError(f"Feature stats for {name!r} have max < min")
        object.__setattr__(self, "ranges", MappingProxyType(dict(self.ranges)))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Mapping[str, float]]) -> FeatureStats:
        try:
            ranges = {
                name: (float(entry["min"]), float(entry["max"]))
                for name, entry in data.items()
            }
        except (KeyError, TypeError, ValueError) as exc:
            raise FeatureStatsError(f"Malformed feature stats entry: {exc}") from exc
        return cls(ranges)

    @classmethod
    def uniform(cls, lo: float, hi: float) -> FeatureStats:
        return cls({name: (lo, hi) for name in MENTAL_HEALTH_FIELDS})

    def bounds(self) -> list[tuple[float, float]]:
        return [self.ranges[name] for name in MENTAL_HEALTH_FIELDS]


def load_feature_stats(path: str | Path | None = None) -> FeatureStats:
    """Load FeatureStats from a YAML file of ``field: {min, max}`` entries."""
    path = Path(path).expanduser() if path else DEFAULT_FEATURE_STATS_PATH
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise FeatureStatsError(f"Cannot read feature stats from {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise FeatureStatsError(f"Feature stats file {path} must be a mapping")
    # Accept both a bare mapping and one nested under "features".
    stats = FeatureStats.from_mapping(data.get("features", data))
    logger.info("Loaded feature stats for %d fields from %s", len(stats.ranges), path)
    return stats


def normalize(
    scores: Sequence[float],
    stats: FeatureStats,
    *,
    degenerate_value: float = 0.0,
) -> FeatureVector:
    """Min-max scale each score with its field's stats.

    A field whose max equals its min carries no information, so it maps to
    ``degenerate_value`` instead of dividing by zero. Results are clamped to [0, 1].
    """
    if len(scores) != len(MENTAL_HEALTH_FIELDS):
        raise ValueError(
            f"Expected {len(MENTAL_HEALTH_FIELDS)} scores, got {len(scores)}"
        )
    features: list[float] = []
    for value, (lo, hi) in zip(scores, stats.bounds()):
        if hi == lo:
            features.append(degenerate_value)
            continue
        scaled = (value - lo) / (hi - lo)
        features.append(max(0.0, min(1.0, scaled)))
    return tuple(features)


class FeatureNormalizer:
    """Stats plus the degenerate-range policy, bound once and injected."""

    def __init__(self, stats: FeatureStats, *, degenerate_value: float = 0.0) -> None:
        if not 0.0 <= degenerate_value <= 1.0:
            raise ValueError("degenerate_value must lie in [0, 1]")
        self.stats = stats
        self.degenerate_value = degenerate_value

    def __call__(self, scores: Sequence[float]) -> FeatureVector:
        return normalize(scores, self.stats, degenerate_value=self.degenerate_value)
