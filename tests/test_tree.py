"""Tests for oblivious tree and split functions."""

import jax
import jax.numpy as jnp
import numpy as np
import pytest

from jaxgbm import (
    AxisAlignedSplit,
    HyperplaneSplit,
    ObliviousTree,
    soft_routing,
)


class TestAxisAlignedSplit:
    def test_init_params(self):
        """Test axis-aligned split initialization."""
        key = jax.random.PRNGKey(0)
        params = AxisAlignedSplit().init_params(key, num_features=5)

        assert params.feature_logits.shape == (5,)
        assert params.threshold.shape == ()

    def test_centered_init_scores_zero(self):
        """A split centered on a point puts that point on the boundary."""
        key = jax.random.PRNGKey(0)
        split_fn = AxisAlignedSplit()
        center = jnp.array([1.0, -2.0, 0.5])
        params = split_fn.init_params(key, num_features=3, center=center)

        assert jnp.isclose(split_fn.compute_score(params, center), 0.0, atol=1e-5)

    def test_compute_score_batch(self):
        key = jax.random.PRNGKey(0)
        split_fn = AxisAlignedSplit()
        params = split_fn.init_params(key, num_features=3)

        scores = split_fn.compute_score(params, jnp.ones((10, 3)))

        assert scores.shape == (10,)


class TestHyperplaneSplit:
    def test_init_params(self):
        """Test hyperplane split initialization."""
        key = jax.random.PRNGKey(0)
        params = HyperplaneSplit().init_params(key, num_features=5)

        assert params.weights.shape == (5,)
        assert params.threshold.shape == ()
        # Weights should be normalized
        assert jnp.isclose(jnp.linalg.norm(params.weights), 1.0, atol=0.01)

    def test_centered_init_scores_zero(self):
        key = jax.random.PRNGKey(1)
        split_fn = HyperplaneSplit()
        center = jnp.array([3.0, 1.0, -1.0, 2.0])
        params = split_fn.init_params(key, num_features=4, center=center)

        assert jnp.isclose(split_fn.compute_score(params, center), 0.0, atol=1e-5)

    def test_compute_score_batch(self):
        key = jax.random.PRNGKey(0)
        split_fn = HyperplaneSplit()
        params = split_fn.init_params(key, num_features=3)

        scores = split_fn.compute_score(params, jnp.ones((10, 3)))

        assert scores.shape == (10,)


class TestObliviousTree:
    def test_init_params(self):
        """Test tree parameter initialization."""
        key = jax.random.PRNGKey(0)
        tree = ObliviousTree()

        params = tree.init_params(key, depth=3, num_features=5, split_fn=AxisAlignedSplit())

        assert len(params.split_params) == 3
        assert params.leaf_values.shape == (8,)  # 2^3
        assert jnp.all(params.leaf_values == 0)

    def test_zero_depth_fails(self):
        with pytest.raises(ValueError):
            ObliviousTree().init_params(
                jax.random.PRNGKey(0), depth=0, num_features=2, split_fn=HyperplaneSplit()
            )

    def test_forward_single_sample(self):
        key = jax.random.PRNGKey(0)
        split_fn = AxisAlignedSplit()
        tree = ObliviousTree()

        params = tree.init_params(key, depth=2, num_features=4, split_fn=split_fn)
        output = tree.forward(params, jnp.array([1.0, 2.0, 3.0, 4.0]), split_fn, soft_routing)

        assert output.shape == ()  # scalar

    def test_leaf_probs_sum_to_one(self):
        key = jax.random.PRNGKey(0)
        split_fn = HyperplaneSplit()
        tree = ObliviousTree()
        X = jax.random.normal(key, (16, 3))

        params = tree.init_params(key, depth=3, num_features=3, split_fn=split_fn, x=X)
        probs = tree.leaf_probs(params.split_params, X, split_fn, soft_routing)

        assert probs.shape == (16, 8)
        np.testing.assert_allclose(np.asarray(probs.sum(axis=1)), 1.0, rtol=1e-5)

    def test_newton_leaf_values_with_hard_routing(self):
        """With near-hard routing, leaves approach -G / (H + lambda)."""
        split_fn = HyperplaneSplit()
        tree = ObliviousTree()
        params = split_fn.params_cls(weights=jnp.array([1.0]), threshold=jnp.array(0.0))
        X = jnp.array([[-1.0], [-1.0], [1.0], [1.0]])
        grad = jnp.array([1.0, 3.0, -2.0, -2.0])
        hess = jnp.ones(4)

        def routing_fn(score):
            return soft_routing(score, 100.0)

        leaves = tree.newton_leaf_values([params], X, grad, hess, split_fn, routing_fn, 1.0)

        np.testing.assert_allclose(np.asarray(leaves), [-4.0 / 3.0, 4.0 / 3.0], rtol=1e-4)

    def test_structure_score_gradients_flow(self):
        """Split parameters get gradients from the second order objective."""
        key = jax.random.PRNGKey(0)
        split_fn = HyperplaneSplit()
        tree = ObliviousTree()
        X = jax.random.normal(key, (20, 4))
        grad = X[:, 0] - 0.3
        hess = jnp.ones(20)

        params = tree.init_params(key, depth=2, num_features=4, split_fn=split_fn, x=X)

        def score_fn(split_params):
            return tree.structure_score(
                split_params, X, grad, hess, split_fn, soft_routing, 1.0
            )

        assert score_fn(params.split_params) <= 0.0
        grads = jax.grad(score_fn)(params.split_params)
        assert not jnp.allclose(grads[0].weights, 0)
