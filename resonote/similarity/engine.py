"""
Similarity Engine - single entry point for track-to-track similarity.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..errors import InvalidArgumentError
from .audio import audio_similarity
from .constants import SIMILARITY_TYPES
from .semantic import semantic_similarity

if TYPE_CHECKING:
    from ..track_store import Track

logger = logging.getLogger(__name__)


def validate_similarity_type(similarity_type: str) -> str:
    if similarity_type not in SIMILARITY_TYPES:
        raise InvalidArgumentError(
            f'Invalid similarityType: {similarity_type!r}; must be "semantic", "audio", or "combined"',
            parameter="similarity_type",
        )
    return similarity_type


def validate_weights(semantic_weight: float, audio_weight: float) -> None:
    for name, value in (("semantic_weight", semantic_weight), ("audio_weight", audio_weight)):
        if value < 0:
            raise InvalidArgumentError(f"{name} must be non-negative (got {value})", parameter=name)


def combine_scores(semantic: float, audio: float, semantic_weight: float, audio_weight: float) -> float:
    """Weighted mean with weights normalized to sum to 1; 0 when both weights are 0."""
    validate_weights(semantic_weight, audio_weight)
    total_weight = semantic_weight + audio_weight
    if total_weight == 0:
        return 0.0
    return semantic * (semantic_weight / total_weight) + audio * (audio_weight / total_weight)


class SimilarityEngine:
    """
    Computes semantic, audio and combined similarity between resolved tracks.

    Stateless; a single instance is shared by retrieval, playlist generation
    and evaluation. Callers resolve track IDs before calling.
    """

    def similarity(
        self,
        track1: Track,
        track2: Track,
        similarity_type: str = "combined",
        semantic_weight: float = 0.5,
        audio_weight: float = 0.5,
    ) -> float:
        """
        Similarity in [0, 1].

        Tracks with the same ID always score exactly 1. Unknown
        ``similarity_type`` or a negative weight raises InvalidArgumentError.
        """
        validate_similarity_type(similarity_type)
        validate_weights(semantic_weight, audio_weight)

        if track1.track_id == track2.track_id:
            return 1.0

        if similarity_type == "semantic":
            return semantic_similarity(track1, track2)
        if similarity_type == "audio":
            return audio_similarity(track1, track2)

        semantic = semantic_similarity(track1, track2)
        audio = audio_similarity(track1, track2)
        return combine_scores(semantic, audio, semantic_weight, audio_weight)

    def semantic(self, track1: Track, track2: Track) -> float:
        return self.similarity(track1, track2, "semantic")

    def audio(self, track1: Track, track2: Track) -> float:
        return self.similarity(track1, track2, "audio")
