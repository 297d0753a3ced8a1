"""
Semantic (tag-based) similarity.

Two components are blended:
- basic facet overlap: confidence-weighted Jaccard per facet, falling back to
  plain set Jaccard when neither track carries confidences for the facet
- co-occurrence: cosine similarity between sparse vectors of single tags and
  cross-facet tag pairs

Missing confidences count as 0 for the Jaccard intersection/union and as 1
when building co-occurrence vectors.
"""
from __future__ import annotations

import math
from typing import TYPE_CHECKING, Dict, Iterable, List, Mapping, Optional, Sequence

from .constants import (
    BASIC_FACET_BLEND,
    CO_OCCURRENCE_BLEND,
    FACET_WEIGHTS,
    MIN_FACETS_FOR_CO_OCCURRENCE,
)

if TYPE_CHECKING:
    from ..track_store import Track

TagVector = Dict[str, float]


def jaccard_similarity(set1: Iterable[str], set2: Iterable[str]) -> float:
    """|A ∩ B| / |A ∪ B|, 0 for an empty union."""
    a, b = set(set1), set(set2)
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


def weighted_jaccard(
    tags1: Sequence[str],
    tags2: Sequence[str],
    scores1: Mapping[str, float],
    scores2: Mapping[str, float],
) -> float:
    """
    Confidence-weighted Jaccard over the union of both tag lists.

    Falls back to plain Jaccard when both accumulators are exactly zero.
    """
    intersection = 0.0
    union = 0.0
    # Sorted iteration keeps the float sums identical regardless of argument order
    for tag in sorted(set(tags1) | set(tags2)):
        score1 = scores1.get(tag) or 0.0
        score2 = scores2.get(tag) or 0.0
        intersection += min(score1, score2)
        union += max(score1, score2)

    if intersection == 0 and union == 0:
        return jaccard_similarity(tags1, tags2)
    return intersection / union if union > 0 else 0.0


def shared_facets(track1: Track, track2: Track) -> List[str]:
    """Facets (in fixed order) where both tracks carry at least one tag."""
    return [
        facet for facet in FACET_WEIGHTS
        if track1.facet_tags(facet) and track2.facet_tags(facet)
    ]


def facet_similarity(track1: Track, track2: Track, facet: str) -> float:
    return weighted_jaccard(
        track1.facet_tags(facet),
        track2.facet_tags(facet),
        track1.facet_scores(facet),
        track2.facet_scores(facet),
    )


def basic_facet_similarity(track1: Track, track2: Track, facets: Optional[Sequence[str]] = None) -> float:
    """
    Sum of ``similarity * facet_weight`` over shared facets divided by the
    number of shared facets (not by the sum of their weights).
    """
    if facets is None:
        facets = shared_facets(track1, track2)
    if not facets:
        return 0.0
    total = sum(facet_similarity(track1, track2, facet) * FACET_WEIGHTS[facet] for facet in facets)
    return total / len(facets)


def _confidence(track: Track, facet: str, tag: str) -> float:
    value = track.facet_scores(facet).get(tag)
    return 1.0 if value is None else value


def build_tag_vector(track: Track, facets: Sequence[str]) -> TagVector:
    """
    Sparse vector of ``facet:tag`` entries plus ``facet1:tag1|facet2:tag2``
    pair entries for every facet pair i < j.
    """
    vector: TagVector = {}

    for facet in facets:
        for tag in track.facet_tags(facet):
            vector[f"{facet}:{tag}"] = _confidence(track, facet, tag)

    for i, facet1 in enumerate(facets):
        for facet2 in facets[i + 1:]:
            for tag1 in track.facet_tags(facet1):
                confidence1 = _confidence(track, facet1, tag1)
                for tag2 in track.facet_tags(facet2):
                    key = f"{facet1}:{tag1}|{facet2}:{tag2}"
                    vector[key] = confidence1 * _confidence(track, facet2, tag2)

    return vector


def cosine_similarity(vector1: Mapping[str, float], vector2: Mapping[str, float]) -> float:
    """Cosine over the union of keys; 0 when either norm is 0."""
    dot = 0.0
    magnitude1 = 0.0
    magnitude2 = 0.0
    for key in sorted(set(vector1) | set(vector2)):
        value1 = vector1.get(key, 0.0)
        value2 = vector2.get(key, 0.0)
        dot += value1 * value2
        magnitude1 += value1 * value1
        magnitude2 += value2 * value2

    magnitude_product = math.sqrt(magnitude1) * math.sqrt(magnitude2)
    if magnitude_product == 0:
        return 0.0
    return dot / magnitude_product


def co_occurrence_similarity(track1: Track, track2: Track, facets: Sequence[str]) -> float:
    return cosine_similarity(build_tag_vector(track1, facets), build_tag_vector(track2, facets))


def semantic_similarity(track1: Track, track2: Track) -> float:
    """
    Blend of basic facet overlap and co-occurrence similarity in [0, 1].

    With fewer than two shared facets the basic similarity is returned alone.
    """
    facets = shared_facets(track1, track2)
    if not facets:
        return 0.0

    basic = basic_facet_similarity(track1, track2, facets)
    if len(facets) < MIN_FACETS_FOR_CO_OCCURRENCE:
        return basic

    co_occurrence = co_occurrence_similarity(track1, track2, facets)
    return basic * BASIC_FACET_BLEND + co_occurrence * CO_OCCURRENCE_BLEND
