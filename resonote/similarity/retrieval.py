"""
Retrieval - nearest-neighbour scan over the whole corpus.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional

from ..errors import InvalidArgumentError
from .engine import SimilarityEngine, validate_similarity_type

if TYPE_CHECKING:
    from ..track_store import TrackStore

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20
DEFAULT_MIN_SIMILARITY = 0.1


@dataclass(frozen=True)
class SimilarityResult:
    """One retrieval hit; ``matched_seed`` is set when produced for a playlist seed."""
    track_id: str
    similarity: float
    matched_seed: Optional[str] = None


class SimilarTrackFinder:
    """Scores every corpus track against a source track and keeps the top K."""

    def __init__(self, store: TrackStore, engine: Optional[SimilarityEngine] = None):
        self.store = store
        self.engine = engine or SimilarityEngine()

    def find_similar(
        self,
        source_id: str,
        limit: int = DEFAULT_LIMIT,
        similarity_type: str = "combined",
        semantic_weight: float = 0.5,
        audio_weight: float = 0.5,
        min_similarity: float = DEFAULT_MIN_SIMILARITY,
        matched_seed: Optional[str] = None,
    ) -> List[SimilarityResult]:
        """
        Return up to ``limit`` tracks ordered by similarity (highest first).

        The source track is never included and every result scores at least
        ``min_similarity``. Ties keep corpus order (stable sort).

        Raises:
            TrackNotFoundError: ``source_id`` is not in the store
            InvalidArgumentError: bad ``limit`` or ``similarity_type``
        """
        validate_similarity_type(similarity_type)
        if limit < 1:
            raise InvalidArgumentError(f"limit must be at least 1 (got {limit})", parameter="limit")

        source = self.store.require_track(source_id)

        results: List[SimilarityResult] = []
        for candidate_id, candidate in self.store.get_all_tracks():
            if candidate_id == source_id:
                continue

            similarity = self.engine.similarity(
                source, candidate, similarity_type, semantic_weight, audio_weight
            )
            if similarity < min_similarity:
                continue

            results.append(SimilarityResult(
                track_id=candidate_id,
                similarity=similarity,
                matched_seed=matched_seed,
            ))

        results.sort(key=lambda r: r.similarity, reverse=True)
        logger.debug(
            f"find_similar({source_id}): {len(results)} above {min_similarity:.2f}, returning {min(limit, len(results))}"
        )
        return results[:limit]
