"""
Diversity reranking for playlist generation.

Trades cohesion (similarity to the seeds) against variety among the tracks
already selected. The greedy reranker is the default strategy; anything with
a matching ``rerank`` method can replace it.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, List, Protocol, Sequence

from ..similarity.constants import DIVERSITY_AUDIO_WEIGHT, DIVERSITY_SEMANTIC_WEIGHT
from ..similarity.engine import SimilarityEngine
from .models import Candidate

if TYPE_CHECKING:
    from ..track_store import Track

logger = logging.getLogger(__name__)


def sort_by_similarity(candidates: Sequence[Candidate]) -> List[Candidate]:
    """Highest similarity first; ties keep input order."""
    return sorted(candidates, key=lambda c: c.similarity, reverse=True)


class Reranker(Protocol):
    def rerank(
        self,
        candidates: Sequence[Candidate],
        tracks: Dict[str, Track],
        diversity_factor: float,
    ) -> List[Candidate]:
        ...


class GreedyDiversityReranker:
    """
    Greedy maximal-marginal-relevance style reranking.

    Starting from the most similar candidate, each step picks the remaining
    candidate maximizing::

        similarity * (1 - diversity_factor) + avg_diversity * diversity_factor

    where ``avg_diversity`` is the mean of ``1 - combined_similarity`` to every
    selected track, measured with an even semantic/audio split regardless of
    the request's weights.
    """

    def __init__(self, engine: SimilarityEngine):
        self.engine = engine

    def _diversity(self, track1: Track, track2: Track) -> float:
        return 1.0 - self.engine.similarity(
            track1, track2, "combined", DIVERSITY_SEMANTIC_WEIGHT, DIVERSITY_AUDIO_WEIGHT
        )

    def rerank(
        self,
        candidates: Sequence[Candidate],
        tracks: Dict[str, Track],
        diversity_factor: float,
    ) -> List[Candidate]:
        if len(candidates) <= 1 or diversity_factor <= 0:
            return sort_by_similarity(candidates)

        remaining = sort_by_similarity(candidates)
        selected = [remaining.pop(0)]
        # Running sum of diversity from each remaining candidate to the selected set
        total_diversity = {c.track_id: 0.0 for c in remaining}

        while remaining:
            newest = tracks[selected[-1].track_id]
            scores = {}
            for candidate in remaining:
                total_diversity[candidate.track_id] += self._diversity(tracks[candidate.track_id], newest)
                avg_diversity = total_diversity[candidate.track_id] / len(selected)
                scores[candidate.track_id] = (
                    candidate.similarity * (1 - diversity_factor) + avg_diversity * diversity_factor
                )

            remaining.sort(key=lambda c: scores[c.track_id], reverse=True)
            selected.append(remaining.pop(0))

        logger.debug(f"Diversity rerank: {len(selected)} candidates, factor={diversity_factor:.2f}")
        return selected
