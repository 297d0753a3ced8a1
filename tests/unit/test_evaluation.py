"""Tests for playlist evaluation metrics."""
import numpy as np
import pytest

from resonote.errors import InvalidArgumentError, TrackNotFoundError
from resonote.eval.metrics import PlaylistEvaluator, tag_coverage
from resonote.similarity.engine import SimilarityEngine


@pytest.fixture()
def evaluator(store):
    return PlaylistEvaluator(store)


class TestEvaluatePlaylist:
    def test_metrics(self, evaluator, store):
        engine = SimilarityEngine()
        t = {tid: store.get_track_by_id(tid) for tid in ("t1", "t3", "t4", "t5")}

        evaluation = evaluator.evaluate_playlist(["t1"], ["t3", "t4", "t5"])

        pairs = [("t3", "t4"), ("t3", "t5"), ("t4", "t5")]
        expected_ild = np.mean([1 - engine.similarity(t[a], t[b]) for a, b in pairs])
        expected_seed = np.mean([engine.similarity(t[x], t["t1"]) for x in ("t3", "t4", "t5")])
        assert evaluation.intra_list_diversity == pytest.approx(expected_ild)
        assert evaluation.avg_similarity_to_seeds == pytest.approx(expected_seed)
        # hopeful, love, melancholy, freedom, linear, nostalgic, poetic
        assert evaluation.tag_coverage == 7

    def test_single_track_has_no_ild(self, evaluator):
        evaluation = evaluator.evaluate_playlist(["t1"], ["t2"])
        assert evaluation.intra_list_diversity is None

    def test_seed_in_playlist_counts_as_one(self, evaluator):
        evaluation = evaluator.evaluate_playlist(["t1"], ["t1"], similarity_type="audio")
        assert evaluation.avg_similarity_to_seeds == 1.0

    def test_requires_both_lists(self, evaluator):
        with pytest.raises(InvalidArgumentError):
            evaluator.evaluate_playlist([], ["t1"])
        with pytest.raises(InvalidArgumentError):
            evaluator.evaluate_playlist(["t1"], [])

    def test_unknown_track(self, evaluator):
        with pytest.raises(TrackNotFoundError):
            evaluator.evaluate_playlist(["t1"], ["nope"])

    def test_to_dict(self, evaluator):
        data = evaluator.evaluate_playlist(["t1"], ["t2", "t3"]).to_dict()
        assert set(data) == {"intra_list_diversity", "avg_similarity_to_seeds", "tag_coverage"}


class TestCrossValidate:
    def test_folds(self, evaluator):
        result = evaluator.cross_validate(["t1", "t2", "t3", "t4"], k=3)

        assert len(result.folds) == 3
        assert [fold.seed for fold in result.folds] == ["t1", "t2", "t3"]
        assert result.folds[1].candidates == ["t1", "t3", "t4"]
        assert len(result.mean_similarities) == 3
        assert result.mean_similarities[0] == pytest.approx(np.mean(result.folds[0].similarities))

    def test_not_enough_tracks(self, evaluator):
        with pytest.raises(InvalidArgumentError):
            evaluator.cross_validate(["t1", "t2"], k=5)

    def test_invalid_k(self, evaluator):
        with pytest.raises(InvalidArgumentError):
            evaluator.cross_validate(["t1", "t2"], k=0)

    def test_to_dict(self, evaluator):
        data = evaluator.cross_validate(["t1", "t2"], k=2).to_dict()
        assert len(data["folds"]) == 2
        assert len(data["mean_similarities"]) == 2


class TestSimilarityMatrix:
    def test_symmetric_with_unit_diagonal(self, evaluator):
        matrix = evaluator.similarity_matrix(["t1", "t2", "t3", "t6"])

        assert matrix.shape == (4, 4)
        assert np.allclose(np.diag(matrix), 1.0)
        assert np.array_equal(matrix, matrix.T)
        assert ((matrix >= 0) & (matrix <= 1)).all()

    def test_needs_two_tracks(self, evaluator):
        with pytest.raises(InvalidArgumentError):
            evaluator.similarity_matrix(["t1"])


def test_tag_coverage_counts_distinct_tags(store):
    tracks = [store.get_track_by_id("t1"), store.get_track_by_id("t2")]
    assert tag_coverage(tracks) == 4
