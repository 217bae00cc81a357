"""Tests for SoftTreeBooster."""

import io

import numpy as np
import pytest

from jaxgbm import BoosterConfig, BoostLearner, DMatrix, LearnerConfig, SoftTreeBooster


def small_config(**kwargs):
    return BoosterConfig(max_depth=2, num_steps=5, **kwargs)


def boosted(num_rounds=2, num_row=32, num_col=4, **kwargs):
    rng = np.random.RandomState(0)
    X = rng.normal(size=(num_row, num_col)).astype(np.float32)
    y = (X[:, 0] - 0.5 * X[:, 1]).astype(np.float32)
    booster = SoftTreeBooster(small_config(**kwargs))
    booster.configure(num_col, num_row)
    booster.init_trainer()
    booster.init_model()
    preds = np.zeros(num_row, dtype=np.float32)
    for _ in range(num_rounds):
        booster.boost_round(preds - y, np.ones(num_row, dtype=np.float32), X)
        preds = booster.raw_output(X, np.arange(num_row))
    return booster, X, y


class TestSetParam:
    def test_prefixed_and_plain_names(self):
        booster = SoftTreeBooster()
        booster.set_param("bst:max_depth", "5")
        booster.set_param("eta", "0.1")
        booster.set_param("bst:lambda", "2.0")
        booster.set_param("bst:split", "axis_aligned")
        assert booster.config.max_depth == 5
        assert booster.config.eta == 0.1
        assert booster.config.reg_lambda == 2.0
        assert booster.config.split == "axis_aligned"

    def test_num_pbuffer_sizes_cache(self):
        booster = SoftTreeBooster()
        booster.set_param("num_pbuffer", "12")
        assert booster.pred_buffer.shape == (12,)
        assert booster.pred_counter.shape == (12,)

    def test_unknown_names_ignored(self):
        booster = SoftTreeBooster()
        booster.set_param("loss_type", "2")
        booster.set_param("silent", "1")
        assert booster.config == BoosterConfig()

    def test_unknown_split_fails(self):
        booster = SoftTreeBooster()
        booster.set_param("split", "oblique")
        with pytest.raises(ValueError, match="unknown split"):
            booster.init_trainer()


class TestBoostRound:
    def test_adds_one_tree_per_round(self):
        booster, _, _ = boosted(num_rounds=3)
        assert booster.num_trees == 3

    def test_reduces_squared_error(self):
        booster, X, y = boosted(num_rounds=3)
        preds = booster.raw_output(X, np.full(X.shape[0], -1))
        assert np.mean((preds - y) ** 2) < np.mean(y**2)

    def test_root_index_not_supported(self):
        booster = SoftTreeBooster(small_config())
        X = np.zeros((4, 2), dtype=np.float32)
        with pytest.raises(ValueError):
            booster.boost_round(np.zeros(4), np.ones(4), X, root_index=[0, 0, 0, 0])

    def test_length_mismatch_fails(self):
        booster = SoftTreeBooster(small_config())
        X = np.zeros((4, 2), dtype=np.float32)
        with pytest.raises(ValueError):
            booster.boost_round(np.zeros(3), np.ones(3), X)

    def test_axis_aligned_split(self):
        booster, X, _ = boosted(num_rounds=1, split="axis_aligned")
        assert booster.trees[0].split_params[0].feature_logits.shape == (X.shape[1],)


class TestPredictionBuffer:
    def test_cached_matches_fresh(self):
        booster, X, _ = boosted(num_rounds=2)
        fresh = booster.raw_output(X, np.full(X.shape[0], -1))
        cached = booster.raw_output(X, np.arange(X.shape[0]))
        np.testing.assert_allclose(cached, fresh, rtol=1e-6, atol=1e-6)

    def test_counter_tracks_trees(self):
        booster, X, _ = boosted(num_rounds=2)
        assert np.all(booster.pred_counter == 2)
        booster.boost_round(np.ones(X.shape[0]), np.ones(X.shape[0]), X)
        booster.raw_output(X[:4], np.arange(4))
        assert np.all(booster.pred_counter[:4] == 3)
        assert np.all(booster.pred_counter[4:] == 2)

    def test_fresh_rows_leave_cache_alone(self):
        booster, X, _ = boosted(num_rounds=1)
        before = booster.pred_buffer.copy()
        booster.raw_output(X, np.full(X.shape[0], -1))
        np.testing.assert_array_equal(booster.pred_buffer, before)

    def test_out_of_range_index_fails(self):
        booster, X, _ = boosted(num_rounds=1)
        with pytest.raises(ValueError, match="out of range"):
            booster.raw_output(X[:1], np.array([X.shape[0]]))

    def test_narrow_rows_are_padded(self):
        booster, X, _ = boosted(num_rounds=1)
        narrow = booster.raw_output(X[:, :2], np.full(X.shape[0], -1))
        padded = np.concatenate([X[:, :2], np.zeros_like(X[:, 2:])], axis=1)
        wide = booster.raw_output(padded, np.full(X.shape[0], -1))
        np.testing.assert_allclose(narrow, wide, rtol=1e-6)


class TestSaveLoad:
    def test_roundtrip(self):
        booster, X, _ = boosted(num_rounds=2, split="axis_aligned")
        stream = io.BytesIO()
        booster.save(stream)
        stream.write(b"tail")
        stream.seek(0)

        restored = SoftTreeBooster()
        restored.load(stream)
        assert stream.read() == b"tail"
        assert restored.num_trees == 2
        assert restored.config.split == "axis_aligned"
        np.testing.assert_array_equal(restored.pred_buffer, booster.pred_buffer)
        np.testing.assert_array_equal(restored.pred_counter, booster.pred_counter)
        np.testing.assert_allclose(
            restored.raw_output(X, np.full(X.shape[0], -1)),
            booster.raw_output(X, np.full(X.shape[0], -1)),
            rtol=1e-6,
        )


class TestWithLearner:
    def test_learner_roundtrip_predictions(self):
        rng = np.random.RandomState(1)
        X = rng.normal(size=(40, 3))
        y = (X[:, 0] > 0).astype(np.float32)
        dtrain = DMatrix(X, y)

        learner = BoostLearner(SoftTreeBooster(small_config()), LearnerConfig(silent=True))
        learner.set_param("loss_type", "1")
        learner.set_data(dtrain, [dtrain], ["train"])
        learner.init_trainer()
        learner.init_model()
        first = float(learner.eval_one_iter(0).split(":")[1])
        for i in range(3):
            learner.update_one_iter(i)
        last = float(learner.eval_one_iter(3).split(":")[1])
        assert last < first

        stream = io.BytesIO()
        learner.save_model(stream)
        stream.seek(0)
        restored = BoostLearner(SoftTreeBooster(), LearnerConfig(silent=True))
        restored.load_model(stream)

        assert restored.mparam.to_bytes() == learner.mparam.to_bytes()
        np.testing.assert_array_equal(
            restored.predict(dtrain, 0), learner.predict(dtrain, 0)
        )
        np.testing.assert_allclose(
            restored.predict(dtrain), learner.predict(dtrain), rtol=1e-6
        )

    @pytest.mark.parametrize("num_row", [40, 60])
    def test_load_while_attached_scores_attached_rows(self, num_row):
        rng = np.random.RandomState(2)
        X = rng.normal(size=(40, 3))
        y = (X[:, 0] > 0).astype(np.float32)
        learner = BoostLearner(SoftTreeBooster(small_config()), LearnerConfig(silent=True))
        learner.set_param("loss_type", "1")
        learner.set_data(DMatrix(X, y))
        learner.init_trainer()
        learner.init_model()
        for i in range(3):
            learner.update_one_iter(i)
        stream = io.BytesIO()
        learner.save_model(stream)
        stream.seek(0)

        X_other = rng.normal(size=(num_row, 3))
        dother = DMatrix(X_other, (X_other[:, 1] > 0).astype(np.float32))
        restored = BoostLearner(SoftTreeBooster(), LearnerConfig(silent=True))
        restored.set_data(dother)
        restored.load_model(stream)

        assert restored.booster.pred_buffer.shape == (num_row,)
        np.testing.assert_allclose(
            restored.predict_buffer(dother, 0), learner.predict(dother), rtol=1e-5, atol=1e-6
        )


class TestProtocols:
    def test_default_collaborators_satisfy_protocols(self):
        import jaxgbm.core as core

        assert sorted(core.__all__) == ["Booster", "DataMatrix", "SplitFn"]
        assert isinstance(SoftTreeBooster(), core.Booster)
        assert isinstance(DMatrix(np.zeros((2, 3)), [0.0, 1.0]), core.DataMatrix)
