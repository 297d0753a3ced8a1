"""
Recommendation Service - single facade over the ResoNote core.

Owns one SimilarityEngine and wires retrieval, playlist generation, evaluation
and analysis around a shared, already-loaded TrackStore. The HTTP layer and
the CLI both talk to this class only.
"""
import logging
import random
from typing import Any, List, Mapping, Optional, Sequence, Union

import numpy as np

from .analyze import TrackAnalysis, analyze_track
from .config_loader import Config
from .eval import CrossValidationResult, PlaylistEvaluation, PlaylistEvaluator
from .playlist import Playlist, PlaylistGenerator, PlaylistOptions
from .similarity import (
    SimilarityBreakdown,
    SimilarityEngine,
    SimilarityResult,
    SimilarTrackFinder,
    get_similarity_breakdown,
    validate_similarity_type,
)
from .track_store import TrackStore
from .variations import VariationResolver

logger = logging.getLogger(__name__)


class RecommendationService:
    """
    Usage:
        store = TrackStore()
        store.load(config.tracks_path, config.features_path)
        service = RecommendationService(store, config)
        playlist = service.generate_playlist(["t1"], {"maxTracks": 15})
    """

    def __init__(
        self,
        store: TrackStore,
        config: Optional[Config] = None,
        engine: Optional[SimilarityEngine] = None,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.config = config
        self.engine = engine or SimilarityEngine()
        self.defaults = config.playlist_defaults() if config else PlaylistOptions()
        variation_config = config.variation_config() if config else None

        self.finder = SimilarTrackFinder(store, self.engine)
        self.generator = PlaylistGenerator(
            store,
            engine=self.engine,
            finder=self.finder,
            variation_resolver=VariationResolver(variation_config),
            rng=rng,
        )
        self.evaluator = PlaylistEvaluator(store, self.engine)

    def options(self, overrides: Optional[Mapping[str, Any]] = None) -> PlaylistOptions:
        """Defaults with per-request overrides applied, validated."""
        return self.defaults.with_overrides(overrides).validate()

    def generate_playlist(
        self, seed_ids: Sequence[str], overrides: Optional[Mapping[str, Any]] = None
    ) -> Playlist:
        return self.generator.generate(seed_ids, self.options(overrides))

    def find_similar_tracks(
        self, track_id: str, overrides: Optional[Mapping[str, Any]] = None
    ) -> List[SimilarityResult]:
        options = self.options(overrides)
        return self.finder.find_similar(
            track_id,
            limit=options.limit,
            similarity_type=options.similarity_type,
            semantic_weight=options.semantic_weight,
            audio_weight=options.audio_weight,
            min_similarity=options.min_similarity,
        )

    def similarity(
        self,
        track_id1: str,
        track_id2: str,
        similarity_type: str = "combined",
        semantic_weight: float = 0.5,
        audio_weight: float = 0.5,
        breakdown: bool = False,
    ) -> Union[float, SimilarityBreakdown]:
        """Score two tracks; with ``breakdown`` return the detailed comparison instead."""
        validate_similarity_type(similarity_type)
        track1 = self.store.require_track(track_id1)
        track2 = self.store.require_track(track_id2)
        if breakdown:
            return get_similarity_breakdown(track1, track2, semantic_weight, audio_weight)
        return self.engine.similarity(track1, track2, similarity_type, semantic_weight, audio_weight)

    def evaluate_playlist(
        self,
        seed_ids: Sequence[str],
        playlist_ids: Sequence[str],
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> PlaylistEvaluation:
        options = self.options(overrides)
        return self.evaluator.evaluate_playlist(
            seed_ids,
            playlist_ids,
            similarity_type=options.similarity_type,
            semantic_weight=options.semantic_weight,
            audio_weight=options.audio_weight,
        )

    def cross_validate(
        self,
        track_ids: Sequence[str],
        k: int = 5,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> CrossValidationResult:
        options = self.options(overrides)
        return self.evaluator.cross_validate(
            track_ids,
            k=k,
            similarity_type=options.similarity_type,
            semantic_weight=options.semantic_weight,
            audio_weight=options.audio_weight,
        )

    def similarity_matrix(
        self, track_ids: Sequence[str], overrides: Optional[Mapping[str, Any]] = None
    ) -> np.ndarray:
        options = self.options(overrides)
        return self.evaluator.similarity_matrix(
            track_ids,
            similarity_type=options.similarity_type,
            semantic_weight=options.semantic_weight,
            audio_weight=options.audio_weight,
        )

    def analyze_track(self, track_id: str) -> TrackAnalysis:
        return analyze_track(self.store.require_track(track_id))

    def get_facets(self) -> List[str]:
        return self.store.get_facets()

    def get_tags(self, facet: Optional[str] = None):
        return self.store.get_tags(facet)
