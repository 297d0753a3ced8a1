# -*- coding: utf-8 -*-
"""
ResoNote - Main Application
Generates diversity-aware playlists from seed tracks and inspects track similarity
"""
import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from resonote.config_loader import Config
from resonote.errors import ResoNoteError
from resonote.logging_utils import add_logging_args, configure_logging, new_run_id, resolve_log_level
from resonote.service import RecommendationService
from resonote.similarity.constants import SIMILARITY_TYPES
from resonote.track_store import TrackStore

logger = logging.getLogger(__name__)

EXIT_CONFIG_ERROR = 1
EXIT_REQUEST_ERROR = 2


class ResoNoteApp:
    """Main application orchestrator"""

    def __init__(self, config_path: str = "config.yaml"):
        self.config = Config(config_path)
        self.store = TrackStore()
        self.store.load(self.config.tracks_path, self.config.features_path)
        self.service = RecommendationService(self.store, self.config)

    def generate(self, seed_ids: List[str], overrides: Dict[str, Any]) -> Dict[str, Any]:
        playlist = self.service.generate_playlist(seed_ids, overrides)
        logger.info(
            f"Generated '{playlist.name}': {playlist.stats.track_count} tracks, "
            f"avg similarity {playlist.stats.average_similarity:.3f}"
        )
        return playlist.to_dict()

    def similar(self, track_id: str, overrides: Dict[str, Any]) -> List[Dict[str, Any]]:
        results = self.service.find_similar_tracks(track_id, overrides)
        output = []
        for result in results:
            track = self.store.require_track(result.track_id)
            output.append({
                "track_id": result.track_id,
                "name": track.name,
                "artist": track.artist,
                "similarity": result.similarity,
            })
        return output

    def similarity(
        self,
        track_id1: str,
        track_id2: str,
        similarity_type: str,
        semantic_weight: float,
        audio_weight: float,
        breakdown: bool,
    ) -> Dict[str, Any]:
        result = self.service.similarity(
            track_id1, track_id2, similarity_type, semantic_weight, audio_weight, breakdown=breakdown
        )
        if breakdown:
            return result.to_dict()
        return {"track_id1": track_id1, "track_id2": track_id2, "similarity": result}

    def evaluate(self, seed_ids: List[str], playlist_ids: List[str], overrides: Dict[str, Any]) -> Dict[str, Any]:
        return self.service.evaluate_playlist(seed_ids, playlist_ids, overrides).to_dict()

    def cross_validate(self, track_ids: List[str], k: int, overrides: Dict[str, Any]) -> Dict[str, Any]:
        return self.service.cross_validate(track_ids, k, overrides).to_dict()


def _add_similarity_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--similarity-type",
        choices=SIMILARITY_TYPES,
        help="Similarity mode (default from config defaults.similarity_type)",
    )
    parser.add_argument("--semantic-weight", type=float, help="Weight of tag similarity")
    parser.add_argument("--audio-weight", type=float, help="Weight of audio-feature similarity")


def _similarity_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    return {
        "similarity_type": args.similarity_type,
        "semantic_weight": args.semantic_weight,
        "audio_weight": args.audio_weight,
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate playlists from seed tracks using tag and audio-feature similarity"
    )
    parser.add_argument(
        "--config",
        default="config.yaml",
        help="Path to the YAML configuration file (default: config.yaml)",
    )
    add_logging_args(parser)

    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Generate a playlist from seed track IDs")
    generate.add_argument("track_ids", nargs="+", help="Seed track IDs")
    generate.add_argument("--min-tracks", type=int, help="Fail when fewer tracks survive filtering")
    generate.add_argument("--max-tracks", type=int, help="Maximum playlist length (seeds included)")
    generate.add_argument("--diversity", type=float, dest="diversity_factor",
                          help="Diversity factor in [0, 1] (0 = pure similarity)")
    generate.add_argument("--min-similarity", type=float, help="Drop candidates scoring below this")
    generate.add_argument("--no-seeds", action="store_true",
                          help="Do not include the seed tracks in the playlist")
    generate.add_argument("--no-variations", action="store_true",
                          help="Drop remixes, live versions and other variations of the same song")
    _add_similarity_args(generate)

    similar = subparsers.add_parser("similar", help="List tracks similar to a track")
    similar.add_argument("track_id", help="Source track ID")
    similar.add_argument("--limit", type=int, help="Number of results (default from config)")
    similar.add_argument("--min-similarity", type=float, help="Drop results scoring below this")
    _add_similarity_args(similar)

    similarity = subparsers.add_parser("similarity", help="Score two tracks against each other")
    similarity.add_argument("track_id1")
    similarity.add_argument("track_id2")
    similarity.add_argument("--similarity-type", choices=SIMILARITY_TYPES, default="combined")
    similarity.add_argument("--semantic-weight", type=float, default=0.5)
    similarity.add_argument("--audio-weight", type=float, default=0.5)
    similarity.add_argument("--breakdown", action="store_true",
                            help="Show per-facet and per-feature detail")

    evaluate = subparsers.add_parser("evaluate", help="Evaluate a playlist against its seeds")
    evaluate.add_argument("--seeds", nargs="+", required=True, help="Seed track IDs")
    evaluate.add_argument("--playlist", nargs="+", required=True, help="Playlist track IDs")
    _add_similarity_args(evaluate)

    cross_validate = subparsers.add_parser("cross-validate", help="Naive k-fold similarity sanity check")
    cross_validate.add_argument("track_ids", nargs="+")
    cross_validate.add_argument("-k", type=int, default=5, help="Number of folds (default: 5)")
    _add_similarity_args(cross_validate)

    return parser


def run_command(app: ResoNoteApp, args: argparse.Namespace) -> Any:
    if args.command == "generate":
        overrides = _similarity_overrides(args)
        overrides.update({
            "min_tracks": args.min_tracks,
            "max_tracks": args.max_tracks,
            "diversity_factor": args.diversity_factor,
            "min_similarity": args.min_similarity,
            "include_seed_tracks": False if args.no_seeds else None,
            "allow_track_variations": False if args.no_variations else None,
        })
        return app.generate(args.track_ids, overrides)
    if args.command == "similar":
        overrides = _similarity_overrides(args)
        overrides.update({"limit": args.limit, "min_similarity": args.min_similarity})
        return app.similar(args.track_id, overrides)
    if args.command == "similarity":
        return app.similarity(
            args.track_id1,
            args.track_id2,
            args.similarity_type,
            args.semantic_weight,
            args.audio_weight,
            args.breakdown,
        )
    if args.command == "evaluate":
        return app.evaluate(args.seeds, args.playlist, _similarity_overrides(args))
    return app.cross_validate(args.track_ids, args.k, _similarity_overrides(args))


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point"""
    args = build_parser().parse_args(argv)
    configure_logging(
        level=resolve_log_level(args),
        log_file=args.log_file,
        run_id=new_run_id(),
        show_run_id=args.show_run_id,
    )

    try:
        app = ResoNoteApp(args.config)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG_ERROR

    try:
        result = run_command(app, args)
    except ResoNoteError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return EXIT_REQUEST_ERROR

    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
