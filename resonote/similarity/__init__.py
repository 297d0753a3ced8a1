"""Similarity engine, breakdown and retrieval."""

from .audio import audio_similarity
from .breakdown import SimilarityBreakdown, get_similarity_breakdown
from .constants import FACETS, FACET_WEIGHTS, FEATURE_WEIGHTS, SIMILARITY_TYPES, SimilarityType
from .engine import SimilarityEngine, combine_scores, validate_similarity_type, validate_weights
from .retrieval import SimilarityResult, SimilarTrackFinder
from .semantic import semantic_similarity

__all__ = [
    "FACETS",
    "FACET_WEIGHTS",
    "FEATURE_WEIGHTS",
    "SIMILARITY_TYPES",
    "SimilarityType",
    "SimilarityEngine",
    "SimilarityBreakdown",
    "SimilarityResult",
    "SimilarTrackFinder",
    "audio_similarity",
    "combine_scores",
    "get_similarity_breakdown",
    "semantic_similarity",
    "validate_similarity_type",
    "validate_weights",
]
