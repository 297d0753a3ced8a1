"""
Playlist value objects.

Candidates flow through merge, variation and reranking stages as frozen
records; the finished Playlist is built once per request and never mutated.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Candidate:
    """A non-seed track competing for a playlist slot."""
    track_id: str
    similarity: float
    matched_seed: Optional[str] = None
    is_variation: bool = False
    variation_of: Optional[str] = None
    variation_group_size: int = 1


@dataclass(frozen=True)
class PlaylistTrack:
    track_id: str
    name: str
    artist: str
    similarity: float
    is_seed: bool = False
    matched_seed: Optional[str] = None
    is_variation: bool = False
    variation_of: Optional[str] = None
    variation_group_size: int = 1


@dataclass(frozen=True)
class PlaylistStats:
    track_count: int
    seed_track_count: int
    average_similarity: float

    @classmethod
    def from_tracks(cls, tracks: Tuple[PlaylistTrack, ...], seed_track_count: int) -> "PlaylistStats":
        """Average similarity is taken over non-seed tracks only (0 when there are none)."""
        non_seed = [t.similarity for t in tracks if not t.is_seed]
        average = sum(non_seed) / len(non_seed) if non_seed else 0.0
        return cls(
            track_count=len(tracks),
            seed_track_count=seed_track_count,
            average_similarity=average,
        )


@dataclass(frozen=True)
class Playlist:
    id: str
    name: str
    tracks: Tuple[PlaylistTrack, ...]
    seed_track_ids: Tuple[str, ...]
    options: Dict[str, Any]
    stats: PlaylistStats
    created_at: datetime
    diagnostics: Dict[str, Any] = field(default_factory=dict)

    @property
    def track_ids(self) -> List[str]:
        return [t.track_id for t in self.tracks]

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["tracks"] = [asdict(t) for t in self.tracks]
        data["seed_track_ids"] = list(self.seed_track_ids)
        data["created_at"] = self.created_at.isoformat()
        return data
