"""Test configuration and fixtures."""

import json
import sys
from pathlib import Path

import pytest

# Add repo root to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from resonote.track_store import Track, TrackStore


def make_track(
    track_id,
    name=None,
    artist=None,
    tags=None,
    scores=None,
    features=None,
    lyrics=None,
):
    """Build a Track from loose keyword arguments."""
    return Track.from_record({
        "track_id": track_id,
        "track_name": name,
        "artist_name": artist,
        "tags": tags or {},
        "scores": scores or {},
        "features": features,
        "lyrics": lyrics,
    })


SONG_LYRICS = "I walk alone through the empty streets tonight and the city sleeps"

# Tag records as they appear in the JSONL corpus
TAG_RECORDS = [
    {
        "track_id": "t1",
        "tags": {
            "Emotional_Tone": ["melancholy", "nostalgic"],
            "Thematic_Content": ["loss"],
            "Lyrical_Style": ["poetic"],
        },
        "scores": {
            "Emotional_Tone": {"melancholy": 0.9, "nostalgic": 0.7},
            "Thematic_Content": {"loss": 0.8},
            "Lyrical_Style": {"poetic": 0.6},
        },
    },
    {
        "track_id": "t2",
        "tags": {
            "Emotional_Tone": ["melancholy", "nostalgic"],
            "Thematic_Content": ["loss"],
            "Lyrical_Style": ["poetic"],
        },
        "scores": {
            "Emotional_Tone": {"melancholy": 0.85, "nostalgic": 0.6},
            "Thematic_Content": {"loss": 0.7},
            "Lyrical_Style": {"poetic": 0.5},
        },
    },
    {
        "track_id": "t3",
        "tags": {
            "Emotional_Tone": ["hopeful"],
            "Thematic_Content": ["love"],
        },
        "scores": {
            "Emotional_Tone": {"hopeful": 0.9},
            "Thematic_Content": {"love": 0.8},
        },
    },
    {
        "track_id": "t4",
        "tags": {
            "Emotional_Tone": ["melancholy"],
            "Thematic_Content": ["freedom"],
            "Narrative_Structure": ["linear"],
        },
        "scores": {
            "Emotional_Tone": {"melancholy": 0.6},
            "Thematic_Content": {"freedom": 0.9},
            "Narrative_Structure": {"linear": 0.7},
        },
    },
    {
        "track_id": "t5",
        "tags": {
            "Emotional_Tone": ["nostalgic", "melancholy"],
            "Lyrical_Style": ["poetic"],
        },
        "scores": {
            "Emotional_Tone": {"nostalgic": 0.8, "melancholy": 0.5},
            "Lyrical_Style": {"poetic": 0.9},
        },
    },
    {
        "track_id": "t6",
        "tags": {
            "Emotional_Tone": ["angry"],
            "Thematic_Content": ["rebellion"],
        },
        "scores": {},
    },
]

# Feature records as they appear in the JSON array corpus (t6 has none)
FEATURE_RECORDS = [
    {
        "track_id": "t1", "track_name": "Song (Original)", "artist_name": "Artist A",
        "lyrics": SONG_LYRICS,
        "danceability": 0.4, "energy": 0.3, "acousticness": 0.8, "instrumentalness": 0.0,
        "valence": 0.2, "tempo": 90.0, "loudness": -12.0, "speechiness": 0.04,
        "liveness": 0.1, "mode": 0, "key": 4, "popularity": 40,
    },
    {
        "track_id": "t2", "track_name": "Song (Remix)", "artist_name": "Artist B",
        "lyrics": SONG_LYRICS + " yeah",
        "danceability": 0.7, "energy": 0.8, "acousticness": 0.2, "instrumentalness": 0.1,
        "valence": 0.5, "tempo": 124.0, "loudness": -6.0, "speechiness": 0.06,
        "liveness": 0.2, "mode": 0, "key": 4, "popularity": 35,
    },
    {
        "track_id": "t3", "track_name": "Golden Hour", "artist_name": "Artist C",
        "danceability": 0.6, "energy": 0.6, "acousticness": 0.5, "instrumentalness": 0.0,
        "valence": 0.8, "tempo": 110.0, "loudness": -8.0, "speechiness": 0.05,
        "liveness": 0.15, "mode": 1,
    },
    {
        "track_id": "t4", "track_name": "Night Drive", "artist_name": "Artist D",
        "danceability": 0.5, "energy": 0.4, "acousticness": 0.6, "instrumentalness": 0.2,
        "valence": 0.3, "tempo": 95.0, "loudness": -10.0, "speechiness": 0.03,
        "liveness": 0.1, "mode": 0,
    },
    {
        "track_id": "t5", "track_name": "Paper Boats", "artist_name": "Artist E",
        "danceability": 0.45, "energy": 0.35, "acousticness": 0.75, "instrumentalness": 0.05,
        "valence": 0.25, "tempo": 92.0, "loudness": -11.0, "speechiness": 0.04,
        "liveness": 0.12, "mode": 0,
    },
]


@pytest.fixture()
def corpus_files(tmp_path):
    """Write the sample corpus to disk; returns (tracks_path, features_path)."""
    tracks_path = tmp_path / "tracks.jsonl"
    features_path = tmp_path / "features.json"
    tracks_path.write_text(
        "\n".join(json.dumps(record) for record in TAG_RECORDS) + "\n",
        encoding="utf-8",
    )
    features_path.write_text(json.dumps(FEATURE_RECORDS), encoding="utf-8")
    return tracks_path, features_path


@pytest.fixture()
def store(corpus_files):
    """Loaded TrackStore over the six-track sample corpus."""
    track_store = TrackStore()
    track_store.load(*corpus_files)
    return track_store


@pytest.fixture()
def config_file(tmp_path, corpus_files):
    """Minimal valid config.yaml pointing at the sample corpus."""
    tracks_path, features_path = corpus_files
    path = tmp_path / "config.yaml"
    path.write_text(
        "data:\n"
        f"  tracks_path: {tracks_path.name}\n"
        f"  features_path: {features_path.name}\n"
        "defaults:\n"
        "  min_tracks: 2\n"
        "  max_tracks: 4\n",
        encoding="utf-8",
    )
    return path
