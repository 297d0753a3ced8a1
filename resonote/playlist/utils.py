"""
Shared utility functions for playlist generation.
"""
import random
from datetime import datetime
from typing import Optional, Sequence

from ..track_store import Track

UNKNOWN_TRACK = "Unknown Track"
UNKNOWN_ARTIST = "Unknown Artist"
DEFAULT_PLAYLIST_NAME = "ResoNote Playlist"


def display_name(track: Track) -> str:
    return track.name or UNKNOWN_TRACK


def display_artist(track: Track) -> str:
    return track.artist or UNKNOWN_ARTIST


def generate_playlist_name(seed_tracks: Sequence[Track]) -> str:
    """
    Human-readable name from the seed tracks.

    - 1 seed:  'Songs like "Title" by Artist'
    - 2 seeds: 'Mix of ArtistA and ArtistB'
    - 3+:      'Mix of ArtistA, ArtistB, and N more'
    """
    if not seed_tracks:
        return DEFAULT_PLAYLIST_NAME

    if len(seed_tracks) == 1:
        track = seed_tracks[0]
        return f'Songs like "{display_name(track)}" by {display_artist(track)}'

    first, second = display_artist(seed_tracks[0]), display_artist(seed_tracks[1])
    if len(seed_tracks) == 2:
        return f"Mix of {first} and {second}"

    return f"Mix of {first}, {second}, and {len(seed_tracks) - 2} more"


def generate_playlist_id(rng: random.Random, now: Optional[datetime] = None) -> str:
    """'pl_<epoch_ms>_<n>' with n drawn from the injected RNG."""
    now = now or datetime.now()
    return f"pl_{int(now.timestamp() * 1000)}_{rng.randrange(10000)}"
