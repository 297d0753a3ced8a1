"""
Evaluation Metrics - aggregate quality measures over built playlists.

Provides:
- Intra-list diversity (mean pairwise 1 - similarity)
- Average similarity of playlist tracks to the seeds
- Tag coverage (distinct tags across the playlist)
- A naive k-fold helper for sanity-checking similarity distributions
- Pairwise similarity matrix

These reuse the similarity engine; no new scoring is introduced here.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from ..errors import InvalidArgumentError
from ..similarity.engine import SimilarityEngine, validate_similarity_type
from ..track_store import Track, TrackStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlaylistEvaluation:
    """ILD is None for single-track playlists (no pairs)."""
    intra_list_diversity: Optional[float]
    avg_similarity_to_seeds: float
    tag_coverage: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CrossValidationFold:
    seed: str
    candidates: List[str] = field(default_factory=list)
    similarities: List[float] = field(default_factory=list)

    @property
    def mean_similarity(self) -> float:
        return float(np.mean(self.similarities))


@dataclass(frozen=True)
class CrossValidationResult:
    folds: List[CrossValidationFold]

    @property
    def mean_similarities(self) -> List[float]:
        return [fold.mean_similarity for fold in self.folds]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "folds": [asdict(fold) for fold in self.folds],
            "mean_similarities": self.mean_similarities,
        }


def tag_coverage(tracks: Sequence[Track]) -> int:
    """Count of distinct tag strings across all facets of ``tracks``."""
    unique_tags = set()
    for track in tracks:
        for tags in track.tags.values():
            unique_tags.update(tags)
    return len(unique_tags)


class PlaylistEvaluator:
    """Evaluation helpers bound to a loaded TrackStore."""

    def __init__(self, store: TrackStore, engine: Optional[SimilarityEngine] = None):
        self.store = store
        self.engine = engine or SimilarityEngine()

    def _resolve(self, track_ids: Sequence[str]) -> List[Track]:
        return [self.store.require_track(track_id) for track_id in track_ids]

    def evaluate_playlist(
        self,
        seed_ids: Sequence[str],
        playlist_ids: Sequence[str],
        similarity_type: str = "combined",
        semantic_weight: float = 0.5,
        audio_weight: float = 0.5,
    ) -> PlaylistEvaluation:
        """
        Evaluate a playlist against its seeds.

        Raises:
            InvalidArgumentError: empty seed or playlist list, unknown similarity type
            TrackNotFoundError: any ID missing from the store
        """
        if not seed_ids or not playlist_ids:
            raise InvalidArgumentError(
                "Both seedTrackIds and playlistTrackIds are required and must not be empty",
                parameter="seed_track_ids" if not seed_ids else "playlist_track_ids",
            )
        validate_similarity_type(similarity_type)

        seeds = self._resolve(seed_ids)
        playlist = self._resolve(playlist_ids)

        def sim(a: Track, b: Track) -> float:
            return self.engine.similarity(a, b, similarity_type, semantic_weight, audio_weight)

        diversities = [
            1.0 - sim(playlist[i], playlist[j])
            for i in range(len(playlist))
            for j in range(i + 1, len(playlist))
        ]
        ild = float(np.mean(diversities)) if diversities else None

        seed_sims = [sim(track, seed) for track in playlist for seed in seeds]

        evaluation = PlaylistEvaluation(
            intra_list_diversity=ild,
            avg_similarity_to_seeds=float(np.mean(seed_sims)),
            tag_coverage=tag_coverage(playlist),
        )
        logger.debug(
            f"Evaluated {len(playlist)} tracks against {len(seeds)} seeds: "
            f"ild={evaluation.intra_list_diversity}, seed_sim={evaluation.avg_similarity_to_seeds:.3f}"
        )
        return evaluation

    def cross_validate(
        self,
        track_ids: Sequence[str],
        k: int = 5,
        similarity_type: str = "combined",
        semantic_weight: float = 0.5,
        audio_weight: float = 0.5,
    ) -> CrossValidationResult:
        """
        Naive k-fold check: fold i uses track_ids[i] as the seed and scores it
        against every other input track.

        Raises:
            InvalidArgumentError: k < 1, fewer than max(k, 2) tracks, unknown similarity type
        """
        if k < 1:
            raise InvalidArgumentError(f"k must be at least 1 (got {k})", parameter="k")
        if len(track_ids) < max(k, 2):
            raise InvalidArgumentError("Not enough tracks for cross-validation", parameter="track_ids")
        validate_similarity_type(similarity_type)

        tracks = self._resolve(track_ids)
        folds = []
        for i in range(k):
            seed = tracks[i]
            others = [t for idx, t in enumerate(tracks) if idx != i]
            folds.append(CrossValidationFold(
                seed=seed.track_id,
                candidates=[t.track_id for t in others],
                similarities=[
                    self.engine.similarity(seed, t, similarity_type, semantic_weight, audio_weight)
                    for t in others
                ],
            ))
        return CrossValidationResult(folds=folds)

    def similarity_matrix(
        self,
        track_ids: Sequence[str],
        similarity_type: str = "combined",
        semantic_weight: float = 0.5,
        audio_weight: float = 0.5,
    ) -> np.ndarray:
        """Symmetric N x N similarity matrix with a unit diagonal."""
        if len(track_ids) < 2:
            raise InvalidArgumentError("Please provide at least 2 track IDs", parameter="track_ids")
        validate_similarity_type(similarity_type)

        tracks = self._resolve(track_ids)
        n = len(tracks)
        matrix = np.eye(n, dtype=float)
        for i in range(n):
            for j in range(i + 1, n):
                value = self.engine.similarity(tracks[i], tracks[j], similarity_type, semantic_weight, audio_weight)
                matrix[i, j] = matrix[j, i] = value
        return matrix
