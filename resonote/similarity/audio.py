"""
Audio-feature similarity: weighted Euclidean distance mapped to [0, 1].
"""
from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any, Mapping, Optional, Tuple

from .constants import BINARY_FEATURES, FEATURE_RANGES, FEATURE_WEIGHTS

if TYPE_CHECKING:
    from ..track_store import Track


def normalize(value: float, min_value: float, max_value: float) -> float:
    """Linear min-max scaling; 0.5 for a degenerate domain."""
    if max_value == min_value:
        return 0.5
    return (value - min_value) / (max_value - min_value)


def normalize_feature(feature: str, value: float) -> float:
    """Map a raw feature value onto [0, 1] using its natural domain (if any)."""
    if feature in FEATURE_RANGES:
        low, high = FEATURE_RANGES[feature]
        return normalize(value, low, high)
    return value


def comparable_values(
    features1: Optional[Mapping[str, Any]],
    features2: Optional[Mapping[str, Any]],
    feature: str,
) -> Optional[Tuple[Any, Any]]:
    """Raw values for ``feature`` when present and non-null on both sides."""
    if not features1 or not features2:
        return None
    value1 = features1.get(feature)
    value2 = features2.get(feature)
    if value1 is None or value2 is None:
        return None
    return value1, value2


def feature_difference(feature: str, value1: Any, value2: Any) -> float:
    """Signed difference on the normalized scale; binary features give 0 or 1."""
    if feature in BINARY_FEATURES:
        return 0.0 if value1 == value2 else 1.0
    return normalize_feature(feature, float(value1)) - normalize_feature(feature, float(value2))


def audio_similarity(track1: Track, track2: Track) -> float:
    """
    ``1 - sqrt(sum(w * diff^2) / sum(w))`` over features present on both tracks.

    The distance is capped at 1, so the result is never negative. Returns 0 when
    either track has no features or nothing is comparable.
    """
    if not track1.features or not track2.features:
        return 0.0

    sum_squared_diff = 0.0
    total_weight = 0.0

    for feature, weight in FEATURE_WEIGHTS.items():
        values = comparable_values(track1.features, track2.features, feature)
        if values is None:
            continue
        diff = feature_difference(feature, *values)
        sum_squared_diff += (diff * diff) * weight
        total_weight += weight

    if total_weight == 0:
        return 0.0

    distance = math.sqrt(sum_squared_diff / total_weight)
    return 1.0 - min(distance, 1.0)
