"""
Configuration Loader - Manages YAML configuration and environment variables
"""
import os
from pathlib import Path
from typing import Any, Optional

import yaml

from .playlist.config import PlaylistOptions
from .variations import VariationConfig


class Config:
    """Configuration manager for ResoNote"""

    def __init__(self, config_path: str = "config.yaml"):
        self.config_path = config_path
        self.config = self._load_config()
        self._validate_config()

    def _load_config(self) -> dict:
        """Load configuration from YAML file"""
        if not os.path.exists(self.config_path):
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        with open(self.config_path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f) or {}

    def _validate_config(self):
        """Validate required configuration fields"""
        if not isinstance(self.config, dict):
            raise ValueError(f"Configuration root must be a mapping in {self.config_path}")

        for section in ('data', 'defaults', 'variations', 'logging', 'server'):
            value = self.config.get(section)
            if value is not None and not isinstance(value, dict):
                raise ValueError(f"Configuration section '{section}' must be a mapping")

        if not self.tracks_path:
            raise ValueError(f"Please set data.tracks_path in {self.config_path}")
        if not self.features_path:
            raise ValueError(f"Please set data.features_path in {self.config_path}")

        # Option ranges are enforced by PlaylistOptions (InvalidArgumentError is a ValueError)
        self.playlist_defaults()

        variations = self.variation_config()
        for name in ('title_threshold', 'lyrics_seed_threshold', 'lyrics_group_threshold'):
            value = getattr(variations, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"variations.{name} must be within [0, 1] (got {value})")

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """
        Get configuration value

        Args:
            section: Configuration section
            key: Configuration key
            default: Default value if not found

        Returns:
            Configuration value or default
        """
        if section not in self.config or self.config[section] is None:
            return default
        return self.config[section].get(key, default)

    def _resolve_path(self, value: Optional[str]) -> Optional[str]:
        """Relative data paths are resolved against the config file's directory."""
        if not value:
            return None
        path = Path(value)
        if not path.is_absolute():
            path = Path(self.config_path).resolve().parent / path
        return str(path)

    @property
    def tracks_path(self) -> Optional[str]:
        """Get JSONL tag corpus path (with environment variable override)"""
        return os.getenv('RESONOTE_TRACKS_PATH') or self._resolve_path(self.get('data', 'tracks_path'))

    @property
    def features_path(self) -> Optional[str]:
        """Get JSON audio feature corpus path (with environment variable override)"""
        return os.getenv('RESONOTE_FEATURES_PATH') or self._resolve_path(self.get('data', 'features_path'))

    @property
    def similar_limit(self) -> int:
        """Default result count for similar-track lookups"""
        return int(self.get('defaults', 'similar_limit', 20))

    @property
    def log_level(self) -> str:
        return os.getenv('LOG_LEVEL') or self.get('logging', 'level', 'INFO')

    @property
    def log_file(self) -> Optional[str]:
        return os.getenv('LOG_FILE') or self.get('logging', 'file')

    @property
    def server_host(self) -> str:
        return self.get('server', 'host', '127.0.0.1')

    @property
    def server_port(self) -> int:
        return int(self.get('server', 'port', 8000))

    def _get_bool(self, section: str, key: str, default: bool) -> bool:
        value = self.get(section, key, default)
        if not isinstance(value, bool):
            raise ValueError(f"{section}.{key} must be true or false (got {value!r})")
        return value

    def playlist_defaults(self) -> PlaylistOptions:
        """PlaylistOptions seeded from the 'defaults' section (validated)."""
        return PlaylistOptions(
            min_tracks=int(self.get('defaults', 'min_tracks', 5)),
            max_tracks=int(self.get('defaults', 'max_tracks', 10)),
            similarity_type=self.get('defaults', 'similarity_type', 'combined'),
            semantic_weight=float(self.get('defaults', 'semantic_weight', 0.5)),
            audio_weight=float(self.get('defaults', 'audio_weight', 0.5)),
            diversity_factor=float(self.get('defaults', 'diversity_factor', 0.3)),
            include_seed_tracks=self._get_bool('defaults', 'include_seed_tracks', True),
            allow_track_variations=self._get_bool('defaults', 'allow_track_variations', True),
            min_similarity=float(self.get('defaults', 'min_similarity', 0.1)),
            limit=self.similar_limit,
        ).validate()

    def variation_config(self) -> VariationConfig:
        return VariationConfig(
            title_threshold=float(self.get('variations', 'title_threshold', 0.3)),
            lyrics_seed_threshold=float(self.get('variations', 'lyrics_seed_threshold', 0.6)),
            lyrics_group_threshold=float(self.get('variations', 'lyrics_group_threshold', 0.7)),
        )

    def __repr__(self) -> str:
        return f"Config(tracks={self.tracks_path}, features={self.features_path})"
