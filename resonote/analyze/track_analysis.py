"""Per-track analysis: tag distribution, normalized features, 2-D embedding proxy."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from numbers import Real
from typing import Any, Dict, List, Optional, Tuple

from ..similarity.audio import normalize_feature
from ..similarity.constants import BINARY_FEATURES
from ..track_store import Track


@dataclass(frozen=True)
class TagConfidence:
    tag: str
    confidence: Optional[float] = None


@dataclass(frozen=True)
class FacetDistribution:
    facet: str
    tags: List[TagConfidence] = field(default_factory=list)


@dataclass(frozen=True)
class TrackAnalysis:
    track_id: str
    tag_distribution: List[FacetDistribution]
    normalized_features: Dict[str, float]
    semantic_embedding: Tuple[float, float]

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        x, y = self.semantic_embedding
        data["semantic_embedding"] = {"x": x, "y": y}
        return data


def normalized_features(features: Optional[Dict[str, Any]]) -> Dict[str, float]:
    """Numeric features only; tempo and loudness scaled to [0, 1], the rest kept raw."""
    result: Dict[str, float] = {}
    for key, value in (features or {}).items():
        if isinstance(value, bool) or not isinstance(value, Real):
            continue
        if key in BINARY_FEATURES:
            result[key] = float(value)
        else:
            result[key] = normalize_feature(key, float(value))
    return result


def analyze_track(track: Track) -> TrackAnalysis:
    distribution = [
        FacetDistribution(
            facet=facet,
            tags=[TagConfidence(tag, track.facet_scores(facet).get(tag)) for tag in tags],
        )
        for facet, tags in track.tags.items()
    ]
    features = track.features or {}
    embedding = (float(features.get("valence") or 0.0), float(features.get("energy") or 0.0))
    return TrackAnalysis(
        track_id=track.track_id,
        tag_distribution=distribution,
        normalized_features=normalized_features(track.features),
        semantic_embedding=embedding,
    )
