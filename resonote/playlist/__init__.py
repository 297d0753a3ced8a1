"""Seed-driven playlist assembly with variation handling and diversity reranking."""
from .config import MAX_TRACKS_HARD_CAP, PlaylistOptions
from .diversity import GreedyDiversityReranker, Reranker, sort_by_similarity
from .generator import PlaylistGenerator, merge_candidates
from .models import Candidate, Playlist, PlaylistStats, PlaylistTrack
from .utils import generate_playlist_id, generate_playlist_name

__all__ = [
    "MAX_TRACKS_HARD_CAP",
    "PlaylistOptions",
    "GreedyDiversityReranker",
    "Reranker",
    "sort_by_similarity",
    "PlaylistGenerator",
    "merge_candidates",
    "Candidate",
    "Playlist",
    "PlaylistStats",
    "PlaylistTrack",
    "generate_playlist_id",
    "generate_playlist_name",
]
