"""
Playlist Generator - seed-driven playlist assembly.

Pipeline:
1. Resolve seeds (unknown IDs are skipped, duplicates collapsed)
2. Retrieve 2 * max_tracks candidates per seed
3. Merge across seeds keeping the best score per track
4. Apply the variation policy
5. Diversity rerank
6. Truncate so seeds + candidates fit max_tracks
7. Prepend seeds (similarity 1.0) when requested
8. Fail with InsufficientResultsError below min_tracks
"""
from __future__ import annotations

import logging
import random
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..errors import InsufficientResultsError, InvalidArgumentError
from ..logging_utils import stage_timer, truncate_list
from ..similarity.engine import SimilarityEngine
from ..similarity.retrieval import SimilarTrackFinder
from ..track_store import Track, TrackStore
from ..variations import VariationResolver
from .config import PlaylistOptions
from .diversity import GreedyDiversityReranker, Reranker
from .models import Candidate, Playlist, PlaylistStats, PlaylistTrack
from .utils import display_artist, display_name, generate_playlist_id, generate_playlist_name

logger = logging.getLogger(__name__)

CANDIDATE_HEADROOM = 2


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def merge_candidates(
    per_seed_results: Sequence[Sequence[Candidate]],
    seed_ids: Sequence[str],
    exclude_seeds: bool,
) -> List[Candidate]:
    """
    Collapse candidates retrieved for several seeds.

    A track found for more than one seed keeps the occurrence with the strictly
    higher similarity; first-seen order is preserved. Seed IDs are dropped when
    ``exclude_seeds`` is set.
    """
    seed_set = set(seed_ids)
    merged: Dict[str, Candidate] = {}
    for results in per_seed_results:
        for candidate in results:
            if exclude_seeds and candidate.track_id in seed_set:
                continue
            existing = merged.get(candidate.track_id)
            if existing is None or candidate.similarity > existing.similarity:
                merged[candidate.track_id] = candidate
    return list(merged.values())


class PlaylistGenerator:
    """
    Builds diversity-aware playlists from seed tracks.

    Collaborators are injected so tests can swap the reranking strategy,
    variation matchers or the random source used for playlist IDs.
    """

    def __init__(
        self,
        store: TrackStore,
        engine: Optional[SimilarityEngine] = None,
        finder: Optional[SimilarTrackFinder] = None,
        variation_resolver: Optional[VariationResolver] = None,
        reranker: Optional[Reranker] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.engine = engine or SimilarityEngine()
        self.finder = finder or SimilarTrackFinder(store, self.engine)
        self.variation_resolver = variation_resolver or VariationResolver()
        self.reranker = reranker or GreedyDiversityReranker(self.engine)
        self.rng = rng or random.Random()
        self.clock = clock

    def _resolve_seeds(self, seed_ids: Sequence[str]) -> List[Track]:
        if not seed_ids:
            raise InvalidArgumentError("Please provide at least one track ID", parameter="seed_track_ids")

        seeds: List[Track] = []
        seen = set()
        for track_id in seed_ids:
            if track_id in seen:
                continue
            seen.add(track_id)
            track = self.store.get_track_by_id(track_id)
            if track is None:
                logger.warning(f"Seed track {track_id} not found; skipping")
                continue
            seeds.append(track)

        if not seeds:
            raise InvalidArgumentError("No valid seed tracks provided", parameter="seed_track_ids")
        return seeds

    def _retrieve(self, seeds: Sequence[Track], options: PlaylistOptions) -> List[List[Candidate]]:
        per_seed = []
        for seed in seeds:
            results = self.finder.find_similar(
                seed.track_id,
                limit=options.max_tracks * CANDIDATE_HEADROOM,
                similarity_type=options.similarity_type,
                semantic_weight=options.semantic_weight,
                audio_weight=options.audio_weight,
                min_similarity=options.min_similarity,
                matched_seed=seed.track_id,
            )
            per_seed.append([
                Candidate(track_id=r.track_id, similarity=r.similarity, matched_seed=r.matched_seed)
                for r in results
            ])
        return per_seed

    def _seed_entries(self, seeds: Sequence[Track]) -> List[PlaylistTrack]:
        return [
            PlaylistTrack(
                track_id=seed.track_id,
                name=display_name(seed),
                artist=display_artist(seed),
                similarity=1.0,
                is_seed=True,
            )
            for seed in seeds
        ]

    def _candidate_entry(self, candidate: Candidate, track: Track) -> PlaylistTrack:
        return PlaylistTrack(
            track_id=candidate.track_id,
            name=display_name(track),
            artist=display_artist(track),
            similarity=candidate.similarity,
            matched_seed=candidate.matched_seed,
            is_variation=candidate.is_variation,
            variation_of=candidate.variation_of,
            variation_group_size=candidate.variation_group_size,
        )

    def generate(self, seed_ids: Sequence[str], options: Optional[PlaylistOptions] = None) -> Playlist:
        """
        Generate a playlist.

        Raises:
            InvalidArgumentError: invalid options, empty seed list or no resolvable seeds
            InsufficientResultsError: fewer than ``min_tracks`` tracks after filtering
        """
        options = (options or PlaylistOptions()).validate()

        with stage_timer("Playlist generation", logger):
            seeds = self._resolve_seeds(seed_ids)
            seed_ids_resolved = [s.track_id for s in seeds]
            logger.info(f"Generating playlist from seeds: {truncate_list([display_name(s) for s in seeds])}")

            seed_entries = self._seed_entries(seeds) if options.include_seed_tracks else []
            if len(seed_entries) > options.max_tracks:
                raise InvalidArgumentError(
                    f"{len(seed_entries)} seed tracks do not fit in maxTracks={options.max_tracks}",
                    parameter="max_tracks",
                )

            per_seed = self._retrieve(seeds, options)
            retrieved = sum(len(r) for r in per_seed)
            candidates = merge_candidates(per_seed, seed_ids_resolved, options.include_seed_tracks)
            merged_count = len(candidates)

            tracks: Dict[str, Track] = {c.track_id: self.store.require_track(c.track_id) for c in candidates}
            candidates = self.variation_resolver.resolve(
                candidates, tracks, seeds, options.allow_track_variations
            )
            after_variations = len(candidates)

            ranked = self.reranker.rerank(candidates, tracks, options.diversity_factor)
            room = options.max_tracks - len(seed_entries)
            selected = ranked[:room]

            playlist_tracks: Tuple[PlaylistTrack, ...] = tuple(seed_entries) + tuple(
                self._candidate_entry(c, tracks[c.track_id]) for c in selected
            )

        logger.info(
            f"Candidates: {retrieved} retrieved -> {merged_count} merged -> "
            f"{after_variations} after variations -> {len(selected)} selected"
        )

        if len(playlist_tracks) < options.min_tracks:
            raise InsufficientResultsError(found=len(playlist_tracks), required=options.min_tracks)

        created_at = self.clock()
        return Playlist(
            id=generate_playlist_id(self.rng, created_at),
            name=generate_playlist_name(seeds),
            tracks=playlist_tracks,
            seed_track_ids=tuple(seed_ids_resolved),
            options=options.to_dict(),
            stats=PlaylistStats.from_tracks(playlist_tracks, seed_track_count=len(seeds)),
            created_at=created_at,
            diagnostics={
                "retrieved": retrieved,
                "merged": merged_count,
                "after_variations": after_variations,
            },
        )
