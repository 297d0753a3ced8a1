"""
Similarity breakdown - diagnostic view of how two tracks compare.

Uses the same semantic and audio computations as the engine and adds:
- per facet: matching tags, average confidence per matching tag, tag lists
- per feature: raw and normalized values, per-feature similarity
- top co-occurrence patterns shared by both tracks
"""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .audio import comparable_values, feature_difference, normalize_feature
from .constants import (
    BASIC_FACET_BLEND,
    BINARY_FEATURES,
    CO_OCCURRENCE_BLEND,
    FACET_WEIGHTS,
    FEATURE_WEIGHTS,
    MIN_FACETS_FOR_CO_OCCURRENCE,
    TOP_CO_OCCURRENCE_PATTERNS,
)
from .engine import combine_scores, validate_weights
from .semantic import build_tag_vector, cosine_similarity, facet_similarity, shared_facets

if TYPE_CHECKING:
    from ..track_store import Track


@dataclass(frozen=True)
class FacetBreakdown:
    similarity: float
    weight: float
    matching_tags: List[str] = field(default_factory=list)
    matching_scores: Dict[str, float] = field(default_factory=dict)
    tags1: List[str] = field(default_factory=list)
    tags2: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class CoOccurrencePattern:
    pattern: str
    confidence1: float
    confidence2: float
    combined: float


@dataclass(frozen=True)
class CoOccurrenceBreakdown:
    score: float = 0.0
    matching_patterns: List[CoOccurrencePattern] = field(default_factory=list)


@dataclass(frozen=True)
class SemanticBreakdown:
    overall: float = 0.0
    facets: Dict[str, FacetBreakdown] = field(default_factory=dict)
    co_occurrence: CoOccurrenceBreakdown = field(default_factory=CoOccurrenceBreakdown)


@dataclass(frozen=True)
class FeatureBreakdown:
    similarity: float
    weight: float
    value1: Any = None
    value2: Any = None
    normalized1: Optional[float] = None
    normalized2: Optional[float] = None


@dataclass(frozen=True)
class AudioBreakdown:
    overall: float = 0.0
    features: Dict[str, FeatureBreakdown] = field(default_factory=dict)


@dataclass(frozen=True)
class SimilarityBreakdown:
    track_id1: str
    track_id2: str
    semantic: SemanticBreakdown
    audio: AudioBreakdown
    combined: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _matching_patterns(vector1: Dict[str, float], vector2: Dict[str, float]) -> List[CoOccurrencePattern]:
    patterns = []
    for key, confidence1 in vector1.items():
        if '|' not in key or not vector2.get(key):
            continue
        part1, part2 = key.split('|', 1)
        facet1, tag1 = part1.split(':', 1)
        facet2, tag2 = part2.split(':', 1)
        confidence2 = vector2[key]
        patterns.append(CoOccurrencePattern(
            pattern=f"{tag1} ({facet1}) with {tag2} ({facet2})",
            confidence1=confidence1,
            confidence2=confidence2,
            combined=(confidence1 + confidence2) / 2,
        ))
    patterns.sort(key=lambda p: p.combined, reverse=True)
    return patterns[:TOP_CO_OCCURRENCE_PATTERNS]


def semantic_breakdown(track1: Track, track2: Track) -> SemanticBreakdown:
    facets_with_data = shared_facets(track1, track2)
    facets: Dict[str, FacetBreakdown] = {}
    weighted_total = 0.0

    for facet, weight in FACET_WEIGHTS.items():
        if facet not in facets_with_data:
            facets[facet] = FacetBreakdown(similarity=0.0, weight=weight)
            continue

        tags1 = track1.facet_tags(facet)
        tags2 = track2.facet_tags(facet)
        scores1 = track1.facet_scores(facet)
        scores2 = track2.facet_scores(facet)

        matching = [tag for tag in tags1 if tag in tags2]
        matching_scores = {
            tag: ((scores1.get(tag) or 1.0) + (scores2.get(tag) or 1.0)) / 2
            for tag in matching
        }
        similarity = facet_similarity(track1, track2, facet)
        weighted_total += similarity * weight

        facets[facet] = FacetBreakdown(
            similarity=similarity,
            weight=weight,
            matching_tags=matching,
            matching_scores=matching_scores,
            tags1=list(tags1),
            tags2=list(tags2),
        )

    if not facets_with_data:
        return SemanticBreakdown(facets=facets)

    basic = weighted_total / len(facets_with_data)
    if len(facets_with_data) < MIN_FACETS_FOR_CO_OCCURRENCE:
        return SemanticBreakdown(overall=basic, facets=facets)

    vector1 = build_tag_vector(track1, facets_with_data)
    vector2 = build_tag_vector(track2, facets_with_data)
    score = cosine_similarity(vector1, vector2)
    return SemanticBreakdown(
        overall=basic * BASIC_FACET_BLEND + score * CO_OCCURRENCE_BLEND,
        facets=facets,
        co_occurrence=CoOccurrenceBreakdown(
            score=score,
            matching_patterns=_matching_patterns(vector1, vector2),
        ),
    )


def audio_breakdown(track1: Track, track2: Track) -> AudioBreakdown:
    if not track1.features or not track2.features:
        return AudioBreakdown()

    features: Dict[str, FeatureBreakdown] = {}
    sum_squared_diff = 0.0
    total_weight = 0.0

    for feature, weight in FEATURE_WEIGHTS.items():
        values = comparable_values(track1.features, track2.features, feature)
        if values is None:
            features[feature] = FeatureBreakdown(similarity=0.0, weight=weight)
            continue

        value1, value2 = values
        diff = feature_difference(feature, value1, value2)
        if feature in BINARY_FEATURES:
            normalized1, normalized2 = value1, value2
        else:
            normalized1 = normalize_feature(feature, float(value1))
            normalized2 = normalize_feature(feature, float(value2))

        features[feature] = FeatureBreakdown(
            similarity=1.0 - min(abs(diff), 1.0),
            weight=weight,
            value1=value1,
            value2=value2,
            normalized1=normalized1,
            normalized2=normalized2,
        )
        sum_squared_diff += (diff * diff) * weight
        total_weight += weight

    overall = 0.0
    if total_weight > 0:
        overall = 1.0 - min(math.sqrt(sum_squared_diff / total_weight), 1.0)
    return AudioBreakdown(overall=overall, features=features)


def get_similarity_breakdown(
    track1: Track,
    track2: Track,
    semantic_weight: float = 0.5,
    audio_weight: float = 0.5,
) -> SimilarityBreakdown:
    """
    Detailed semantic/audio comparison; ``combined`` uses the given weights.

    As with SimilarityEngine.similarity, a track compared with itself has
    ``combined`` 1.0; the semantic and audio parts still show the raw detail.
    """
    validate_weights(semantic_weight, audio_weight)
    semantic = semantic_breakdown(track1, track2)
    audio = audio_breakdown(track1, track2)
    if track1.track_id == track2.track_id:
        combined = 1.0
    else:
        combined = combine_scores(semantic.overall, audio.overall, semantic_weight, audio_weight)
    return SimilarityBreakdown(
        track_id1=track1.track_id,
        track_id2=track2.track_id,
        semantic=semantic,
        audio=audio,
        combined=combined,
    )
