from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional

from ..errors import InvalidArgumentError
from ..similarity.constants import SIMILARITY_TYPES

MAX_TRACKS_HARD_CAP = 100

# camelCase wire keys accepted alongside the snake_case field names
_WIRE_KEYS = {
    "minTracks": "min_tracks",
    "maxTracks": "max_tracks",
    "similarityType": "similarity_type",
    "semanticWeight": "semantic_weight",
    "audioWeight": "audio_weight",
    "diversityFactor": "diversity_factor",
    "includeSeedTracks": "include_seed_tracks",
    "allowTrackVariations": "allow_track_variations",
    "minSimilarity": "min_similarity",
}


@dataclass(frozen=True)
class PlaylistOptions:
    """Options recognized by playlist generation, retrieval and evaluation."""
    min_tracks: int = 10
    max_tracks: int = 30
    similarity_type: str = "combined"
    semantic_weight: float = 0.5
    audio_weight: float = 0.5
    diversity_factor: float = 0.3
    include_seed_tracks: bool = True
    allow_track_variations: bool = True
    min_similarity: float = 0.1
    limit: int = 20

    def validate(self) -> "PlaylistOptions":
        """Raise InvalidArgumentError on the first out-of-range value."""
        if self.min_tracks < 1:
            raise InvalidArgumentError(
                f"minTracks must be at least 1 (got {self.min_tracks})", parameter="min_tracks"
            )
        if self.max_tracks < self.min_tracks or self.max_tracks > MAX_TRACKS_HARD_CAP:
            raise InvalidArgumentError(
                f"maxTracks must be between minTracks ({self.min_tracks}) and "
                f"{MAX_TRACKS_HARD_CAP} (got {self.max_tracks})",
                parameter="max_tracks",
            )
        if self.similarity_type not in SIMILARITY_TYPES:
            raise InvalidArgumentError(
                f'Invalid similarityType: {self.similarity_type!r}; must be "semantic", "audio", or "combined"',
                parameter="similarity_type",
            )
        for name in ("semantic_weight", "audio_weight"):
            if getattr(self, name) < 0:
                raise InvalidArgumentError(
                    f"{name} must be non-negative (got {getattr(self, name)})", parameter=name
                )
        if not 0.0 <= self.diversity_factor <= 1.0:
            raise InvalidArgumentError(
                f"diversityFactor must be within [0, 1] (got {self.diversity_factor})",
                parameter="diversity_factor",
            )
        if not 0.0 <= self.min_similarity <= 1.0:
            raise InvalidArgumentError(
                f"minSimilarity must be within [0, 1] (got {self.min_similarity})",
                parameter="min_similarity",
            )
        if self.limit < 1:
            raise InvalidArgumentError(f"limit must be at least 1 (got {self.limit})", parameter="limit")
        return self

    def with_overrides(self, overrides: Optional[Mapping[str, Any]] = None) -> "PlaylistOptions":
        """
        Return a copy with overrides applied.

        Accepts snake_case field names or the camelCase wire keys; None values
        and unknown keys are ignored.
        """
        if not overrides:
            return self
        known = {f.name for f in fields(self)}
        changes: Dict[str, Any] = {}
        for key, value in overrides.items():
            name = _WIRE_KEYS.get(key, key)
            if name in known and value is not None:
                changes[name] = value
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
