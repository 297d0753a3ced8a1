"""Tests for YAML configuration loading."""
from pathlib import Path

import pytest

from resonote.config_loader import Config
from resonote.variations import VariationConfig


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    for name in ("RESONOTE_TRACKS_PATH", "RESONOTE_FEATURES_PATH", "LOG_LEVEL", "LOG_FILE"):
        monkeypatch.delenv(name, raising=False)


def _write(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return str(path)


class TestConfig:
    def test_relative_paths_resolve_against_config_dir(self, config_file, corpus_files):
        config = Config(str(config_file))
        tracks_path, features_path = corpus_files
        assert Path(config.tracks_path) == tracks_path.resolve()
        assert Path(config.features_path) == features_path.resolve()

    def test_playlist_defaults(self, config_file):
        options = Config(str(config_file)).playlist_defaults()
        assert options.min_tracks == 2
        assert options.max_tracks == 4
        assert options.similarity_type == "combined"
        assert options.diversity_factor == 0.3
        assert options.limit == 20

    def test_builtin_defaults(self, tmp_path):
        config = Config(_write(tmp_path, "data:\n  tracks_path: /x/t.jsonl\n  features_path: /x/f.json\n"))
        options = config.playlist_defaults()
        assert (options.min_tracks, options.max_tracks) == (5, 10)
        assert config.variation_config() == VariationConfig()
        assert config.log_level == "INFO"
        assert (config.server_host, config.server_port) == ("127.0.0.1", 8000)

    def test_env_overrides(self, config_file, monkeypatch):
        monkeypatch.setenv("RESONOTE_TRACKS_PATH", "/data/other.jsonl")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        config = Config(str(config_file))
        assert config.tracks_path == "/data/other.jsonl"
        assert config.log_level == "DEBUG"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Config(str(tmp_path / "nope.yaml"))

    def test_missing_data_paths(self, tmp_path):
        with pytest.raises(ValueError, match="tracks_path"):
            Config(_write(tmp_path, "defaults:\n  max_tracks: 10\n"))

    def test_invalid_defaults(self, tmp_path):
        text = (
            "data:\n  tracks_path: t.jsonl\n  features_path: f.json\n"
            "defaults:\n  min_tracks: 8\n  max_tracks: 4\n"
        )
        with pytest.raises(ValueError):
            Config(_write(tmp_path, text))

    @pytest.mark.parametrize("value", ["\"false\"", "0", "no_thanks"])
    def test_non_bool_flag_rejected(self, tmp_path, value):
        text = (
            "data:\n  tracks_path: t.jsonl\n  features_path: f.json\n"
            f"defaults:\n  allow_track_variations: {value}\n"
        )
        with pytest.raises(ValueError, match="allow_track_variations"):
            Config(_write(tmp_path, text))

    def test_bool_flag_read(self, tmp_path):
        text = (
            "data:\n  tracks_path: t.jsonl\n  features_path: f.json\n"
            "defaults:\n  include_seed_tracks: false\n"
        )
        assert Config(_write(tmp_path, text)).playlist_defaults().include_seed_tracks is False

    def test_invalid_variation_threshold(self, tmp_path):
        text = (
            "data:\n  tracks_path: t.jsonl\n  features_path: f.json\n"
            "variations:\n  title_threshold: 2\n"
        )
        with pytest.raises(ValueError, match="title_threshold"):
            Config(_write(tmp_path, text))

    def test_variation_config(self, tmp_path):
        text = (
            "data:\n  tracks_path: t.jsonl\n  features_path: f.json\n"
            "variations:\n  lyrics_group_threshold: 0.5\n"
        )
        assert Config(_write(tmp_path, text)).variation_config().lyrics_group_threshold == 0.5
