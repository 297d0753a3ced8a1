"""Tests for playlist assembly."""
import random
import re
from datetime import datetime, timezone

import pytest

from resonote.errors import InsufficientResultsError, InvalidArgumentError
from resonote.playlist.config import PlaylistOptions
from resonote.playlist.generator import PlaylistGenerator, merge_candidates
from resonote.playlist.models import Candidate

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def generator(store):
    return PlaylistGenerator(store, rng=random.Random(7), clock=lambda: FIXED_NOW)


def _options(**changes):
    base = PlaylistOptions(min_tracks=1, max_tracks=5, min_similarity=0.0)
    return base.with_overrides(changes)


class TestMergeCandidates:
    def test_keeps_higher_score(self):
        merged = merge_candidates(
            [[Candidate("x", 0.4, "s1"), Candidate("y", 0.6, "s1")],
             [Candidate("x", 0.7, "s2")]],
            ["s1", "s2"],
            exclude_seeds=True,
        )
        by_id = {c.track_id: c for c in merged}
        assert by_id["x"].similarity == 0.7
        assert by_id["x"].matched_seed == "s2"
        assert [c.track_id for c in merged] == ["x", "y"]

    def test_tie_keeps_first_occurrence(self):
        merged = merge_candidates(
            [[Candidate("x", 0.5, "s1")], [Candidate("x", 0.5, "s2")]], ["s1", "s2"], exclude_seeds=True
        )
        assert merged[0].matched_seed == "s1"

    def test_excludes_seed_ids(self):
        merged = merge_candidates([[Candidate("s2", 0.9, "s1")]], ["s1", "s2"], exclude_seeds=True)
        assert merged == []

    def test_seed_ids_kept_when_not_excluded(self):
        merged = merge_candidates([[Candidate("s2", 0.9, "s1")]], ["s1", "s2"], exclude_seeds=False)
        assert [c.track_id for c in merged] == ["s2"]


class TestGenerate:
    def test_seeds_first_with_unit_similarity(self, generator):
        playlist = generator.generate(["t3", "t1"], _options())

        assert playlist.track_ids[:2] == ["t3", "t1"]
        for entry in playlist.tracks[:2]:
            assert entry.is_seed
            assert entry.similarity == 1.0
        assert not any(entry.is_seed for entry in playlist.tracks[2:])

    def test_never_exceeds_max_tracks(self, generator):
        for max_tracks in (1, 2, 3, 4):
            playlist = generator.generate(["t1"], _options(max_tracks=max_tracks))
            assert len(playlist.tracks) <= max_tracks

    def test_no_duplicate_tracks(self, generator):
        playlist = generator.generate(["t1", "t4"], _options(max_tracks=10))
        assert len(playlist.track_ids) == len(set(playlist.track_ids))

    def test_insufficient_results(self, generator):
        with pytest.raises(InsufficientResultsError) as exc_info:
            generator.generate(["t1"], _options(min_tracks=20, max_tracks=30))
        assert exc_info.value.required == 20
        assert exc_info.value.found <= 6

    def test_empty_seed_list(self, generator):
        with pytest.raises(InvalidArgumentError):
            generator.generate([], _options())

    def test_no_resolvable_seed(self, generator):
        with pytest.raises(InvalidArgumentError):
            generator.generate(["missing", "also-missing"], _options())

    def test_unresolved_seeds_are_skipped(self, generator):
        playlist = generator.generate(["missing", "t1"], _options())
        assert playlist.seed_track_ids == ("t1",)
        assert playlist.track_ids[0] == "t1"

    def test_duplicate_seed_ids_collapsed(self, generator):
        playlist = generator.generate(["t1", "t1"], _options())
        assert playlist.seed_track_ids == ("t1",)
        assert playlist.track_ids.count("t1") == 1

    def test_seeds_not_fitting_max_tracks(self, generator):
        with pytest.raises(InvalidArgumentError):
            generator.generate(["t1", "t3", "t4"], _options(max_tracks=2))

    def test_without_seed_tracks(self, generator):
        playlist = generator.generate(["t1"], _options(include_seed_tracks=False))
        assert "t1" not in playlist.track_ids
        assert not any(entry.is_seed for entry in playlist.tracks)
        assert playlist.stats.seed_track_count == 1

    def test_min_similarity_applies(self, generator, store):
        playlist = generator.generate(["t1"], _options(min_similarity=0.3, max_tracks=10))
        assert all(entry.similarity >= 0.3 for entry in playlist.tracks if not entry.is_seed)

    def test_invalid_options_rejected(self, generator):
        with pytest.raises(InvalidArgumentError):
            generator.generate(["t1"], _options(similarity_type="mood"))

    def test_metadata(self, generator):
        playlist = generator.generate(["t1"], _options())

        assert playlist.name == 'Songs like "Song (Original)" by Artist A'
        assert playlist.created_at == FIXED_NOW
        assert re.fullmatch(r"pl_\d+_\d+", playlist.id)
        assert playlist.id.startswith(f"pl_{int(FIXED_NOW.timestamp() * 1000)}_")
        assert playlist.options["max_tracks"] == 5

    def test_ids_are_reproducible_with_seeded_rng(self, store):
        first = PlaylistGenerator(store, rng=random.Random(3), clock=lambda: FIXED_NOW)
        second = PlaylistGenerator(store, rng=random.Random(3), clock=lambda: FIXED_NOW)
        assert first.generate(["t1"], _options()).id == second.generate(["t1"], _options()).id

    def test_stats_average_non_seed_tracks(self, generator):
        playlist = generator.generate(["t1"], _options())
        non_seed = [entry.similarity for entry in playlist.tracks if not entry.is_seed]

        assert playlist.stats.track_count == len(playlist.tracks)
        assert playlist.stats.seed_track_count == 1
        assert playlist.stats.average_similarity == pytest.approx(sum(non_seed) / len(non_seed))

    def test_multi_seed_name(self, generator):
        playlist = generator.generate(["t1", "t3", "t4"], _options())
        assert playlist.name == "Mix of Artist A, Artist C, and 1 more"

    def test_to_dict(self, generator):
        data = generator.generate(["t1"], _options()).to_dict()
        assert data["tracks"][0]["is_seed"] is True
        assert data["created_at"] == FIXED_NOW.isoformat()
        assert data["seed_track_ids"] == ["t1"]
