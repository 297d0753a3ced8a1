"""
Track Store - In-memory corpus of tagged tracks with audio features.

Merges two flat files once at startup:
- a JSONL file of semantic tag records (``track_id``, ``tags``, ``scores``)
- a JSON array of audio-feature records (``track_id``, ``track_name``,
  ``artist_name``, ``lyrics`` and numeric audio attributes)

After load the store is read-only; every query before load raises
NotReadyError.
"""
import asyncio
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from .errors import InvalidArgumentError, NotReadyError, TrackNotFoundError
from .logging_utils import format_count, stage_timer
from .similarity.constants import FACETS

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

AUDIO_FEATURE_KEYS = (
    'acousticness', 'danceability', 'duration_ms', 'energy',
    'instrumentalness', 'key', 'liveness', 'loudness',
    'mode', 'speechiness', 'tempo', 'time_signature', 'valence', 'popularity',
)


@dataclass(frozen=True)
class Track:
    """
    A single corpus track.

    Attributes:
        track_id: Unique identifier
        name: Track title (None when the feature record is missing)
        artist: Artist name (None when the feature record is missing)
        tags: facet -> ordered, de-duplicated tag tuple
        scores: facet -> tag -> confidence in [0, 1] (may be sparse)
        features: audio attribute -> value, or None when no feature record exists
        lyrics: Optional lyrics text
    """
    track_id: str
    name: Optional[str] = None
    artist: Optional[str] = None
    tags: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    scores: Dict[str, Dict[str, float]] = field(default_factory=dict)
    features: Optional[Dict[str, Any]] = None
    lyrics: Optional[str] = None

    def facet_tags(self, facet: str) -> Tuple[str, ...]:
        return self.tags.get(facet) or ()

    def facet_scores(self, facet: str) -> Dict[str, float]:
        return self.scores.get(facet) or {}

    def has_semantic_data(self) -> bool:
        return any(self.tags.values())

    def has_audio_features(self) -> bool:
        return bool(self.features)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Track":
        """Build a Track from a loose dict (merged record or test fixture)."""
        raw_tags = record.get('tags') or {}
        tags = {
            facet: tuple(dict.fromkeys(values or ()))
            for facet, values in raw_tags.items()
            if isinstance(values, (list, tuple))
        }
        raw_scores = record.get('scores') or {}
        scores = {
            facet: {tag: float(conf) for tag, conf in (values or {}).items() if conf is not None}
            for facet, values in raw_scores.items()
            if isinstance(values, Mapping)
        }
        features = record.get('features')
        return cls(
            track_id=str(record['track_id']),
            name=record.get('track_name') or record.get('name'),
            artist=record.get('artist_name') or record.get('artist'),
            tags=tags,
            scores=scores,
            features=dict(features) if features is not None else None,
            lyrics=record.get('lyrics') or None,
        )


def _load_jsonl(path: Path) -> Dict[str, Dict[str, Any]]:
    """Load tag records keyed by track_id; malformed lines are logged and skipped."""
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    records: Dict[str, Dict[str, Any]] = {}
    skipped = 0
    with path.open('r', encoding='utf-8') as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError as e:
                skipped += 1
                logger.warning(f"Error parsing line {line_no} of {path.name}: {e}")
                continue
            if isinstance(data, dict) and data.get('track_id'):
                records[str(data['track_id'])] = data

    if skipped:
        logger.warning(f"Skipped {format_count(skipped, 'malformed line')} in {path.name}")
    return records


def _load_json_array(path: Path) -> Dict[str, Dict[str, Any]]:
    """Load feature records keyed by track_id from a JSON array file."""
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    with path.open('r', encoding='utf-8') as f:
        data = json.load(f)

    records: Dict[str, Dict[str, Any]] = {}
    if isinstance(data, list):
        for item in data:
            if isinstance(item, dict) and item.get('track_id'):
                records[str(item['track_id'])] = item
    else:
        logger.warning(f"{path.name} is not a JSON array; no feature records loaded")
    return records


def merge_track_records(
    tag_records: Mapping[str, Mapping[str, Any]],
    feature_records: Mapping[str, Mapping[str, Any]],
) -> Dict[str, Track]:
    """
    Merge tag and feature records by track_id.

    Tag-only tracks keep ``features=None``; feature-only tracks get empty tags.
    Corpus order is tag-file order followed by feature-only tracks.
    """
    merged: Dict[str, Dict[str, Any]] = {}

    for track_id, record in tag_records.items():
        merged[track_id] = {
            'track_id': track_id,
            'tags': record.get('tags') or {},
            'scores': record.get('scores') or {},
            'features': None,
            'lyrics': None,
        }

    for track_id, record in feature_records.items():
        entry = merged.setdefault(track_id, {'track_id': track_id, 'tags': {}, 'scores': {}})
        entry['features'] = {key: record[key] for key in AUDIO_FEATURE_KEYS if key in record}
        entry['lyrics'] = record.get('lyrics') or None
        entry['artist_name'] = record.get('artist_name') or None
        entry['track_name'] = record.get('track_name') or None

    return {track_id: Track.from_record(entry) for track_id, entry in merged.items()}


class TrackStore:
    """
    Read-only track corpus shared by retrieval, playlist generation and evaluation.

    Lifecycle: construct, load once (or build with from_tracks), query many.
    """

    def __init__(self):
        self._tracks: Dict[str, Track] = {}
        self._loaded = False

    @classmethod
    def from_tracks(cls, tracks: Iterable[Union[Track, Mapping[str, Any]]]) -> "TrackStore":
        """Build a loaded store directly from Track objects or record dicts."""
        store = cls()
        for item in tracks:
            track = item if isinstance(item, Track) else Track.from_record(item)
            store._tracks[track.track_id] = track
        store._loaded = True
        return store

    def load(self, tracks_path: PathLike, features_path: PathLike) -> None:
        """Load and merge both corpus files. Any failure propagates."""
        with stage_timer("Corpus load", logger):
            tag_records = _load_jsonl(Path(tracks_path))
            logger.info(f"Loaded {format_count(len(tag_records), 'track')} with tags")

            feature_records = _load_json_array(Path(features_path))
            logger.info(f"Loaded {format_count(len(feature_records), 'track')} with features")

            self._tracks = merge_track_records(tag_records, feature_records)
            self._loaded = True
        logger.info(f"Total unique tracks: {len(self._tracks):,}")

    async def load_async(self, tracks_path: PathLike, features_path: PathLike) -> None:
        """Load off the event loop; callers must await completion before serving."""
        await asyncio.to_thread(self.load, tracks_path, features_path)

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def _require_loaded(self) -> None:
        if not self._loaded:
            raise NotReadyError()

    def __len__(self) -> int:
        self._require_loaded()
        return len(self._tracks)

    def get_track_by_id(self, track_id: str) -> Optional[Track]:
        self._require_loaded()
        return self._tracks.get(track_id)

    def require_track(self, track_id: str) -> Track:
        """Like get_track_by_id but raises TrackNotFoundError."""
        track = self.get_track_by_id(track_id)
        if track is None:
            raise TrackNotFoundError(track_id)
        return track

    def get_all_tracks(self) -> Iterator[Tuple[str, Track]]:
        """Iterate (track_id, track) in corpus order."""
        self._require_loaded()
        return iter(self._tracks.items())

    def get_facets(self) -> List[str]:
        self._require_loaded()
        return list(FACETS)

    def get_tags(self, facet: Optional[str] = None) -> Union[List[str], Dict[str, List[str]]]:
        """
        Collect sorted unique tags.

        Args:
            facet: Restrict to one facet (must be one of the fixed facets)

        Returns:
            Sorted tag list for ``facet``, otherwise a facet -> sorted tags dict
        """
        self._require_loaded()
        if facet is not None and facet not in FACETS:
            raise InvalidArgumentError(
                f"Invalid facet name: {facet}. Valid facets are: {', '.join(FACETS)}",
                parameter="facet",
            )

        tags_by_facet = {name: set() for name in FACETS}
        for track in self._tracks.values():
            for name, tags in track.tags.items():
                if name in tags_by_facet:
                    tags_by_facet[name].update(tags)

        if facet is not None:
            return sorted(tags_by_facet[facet])
        return {name: sorted(tags) for name, tags in tags_by_facet.items()}
