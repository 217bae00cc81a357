"""Oblivious tree structure fitted to gradient statistics.

An oblivious tree uses the same split at each depth level, so a depth D
tree has exactly 2^D leaves and a row's leaf membership is a product of
D routing probabilities.

For one boosting round with per-row gradients g and hessians h, leaf l
collects G_l = sum_i P_il g_i and H_l = sum_i P_il h_i, where P_il is the
probability that row i reaches leaf l. The second order objective is
minimized by the leaf values -G_l / (H_l + lambda) and its minimum,

    -1/2 * sum_l G_l^2 / (H_l + lambda),

scores the split parameters.
"""

from __future__ import annotations

from typing import Any, Callable, NamedTuple

import jax
import jax.numpy as jnp
from jax import Array

from jaxgbm.core.protocols import SplitFn


class ObliviousTreeParams(NamedTuple):
    """Parameters for an oblivious tree.

    Attributes:
        split_params: Split parameters, one per depth level.
        leaf_values: Prediction values at leaves, shape (2^depth,).
    """

    split_params: list[Any]  # length = depth
    leaf_values: Array  # (2^depth,)


class ObliviousTree:
    """Oblivious (symmetric) tree structure."""

    def init_params(
        self,
        key: Array,
        depth: int,
        num_features: int,
        split_fn: SplitFn[Any],
        x: Array | None = None,
    ) -> ObliviousTreeParams:
        """Initialize tree parameters with zero leaves.

        Args:
            key: JAX PRNG key.
            depth: Tree depth (number of split levels).
            num_features: Number of input features.
            split_fn: Split function to use.
            x: Optional training rows, shape (batch, num_features). Each
                level's split is then centered on a randomly drawn row.

        Returns:
            Initialized tree parameters.
        """
        if depth < 1:
            raise ValueError(f"depth must be at least 1, got {depth}")
        keys = jax.random.split(key, 2 * depth)

        split_params = []
        for d in range(depth):
            center = None
            if x is not None and x.shape[0] > 0:
                row = jax.random.randint(keys[depth + d], (), 0, x.shape[0])
                center = x[row]
            split_params.append(split_fn.init_params(keys[d], num_features, center=center))
        leaf_values = jnp.zeros((2**depth,), dtype=jnp.float32)

        return ObliviousTreeParams(split_params=split_params, leaf_values=leaf_values)

    def leaf_probs(
        self,
        split_params: list[Any],
        x: Array,
        split_fn: SplitFn[Any],
        routing_fn: Callable[[Array], Array],
    ) -> Array:
        """Probability of each row reaching each leaf, shape (batch, 2^depth)."""
        depth = len(split_params)
        p_rights = jnp.stack(
            [routing_fn(split_fn.compute_score(split_params[d], x)) for d in range(depth)],
            axis=0,
        )  # (depth, batch)
        return self._compute_leaf_probs(p_rights, depth)

    def forward(
        self,
        params: ObliviousTreeParams,
        x: Array,
        split_fn: SplitFn[Any],
        routing_fn: Callable[[Array], Array],
    ) -> Array:
        """Tree output for a batch of rows.

        Args:
            params: Tree parameters.
            x: Input features, shape (batch, num_features) or (num_features,).
            split_fn: Split function.
            routing_fn: Routing function.

        Returns:
            Predictions, shape (batch,) or scalar.
        """
        single_sample = x.ndim == 1
        if single_sample:
            x = x[None, :]

        leaf_probs = self.leaf_probs(params.split_params, x, split_fn, routing_fn)
        output = jnp.sum(leaf_probs * params.leaf_values, axis=-1)

        return output[0] if single_sample else output

    def leaf_statistics(
        self,
        leaf_probs: Array,
        grad: Array,
        hess: Array,
    ) -> tuple[Array, Array]:
        """Routing-weighted gradient and hessian sums per leaf."""
        return leaf_probs.T @ grad, leaf_probs.T @ hess

    def structure_score(
        self,
        split_params: list[Any],
        x: Array,
        grad: Array,
        hess: Array,
        split_fn: SplitFn[Any],
        routing_fn: Callable[[Array], Array],
        reg_lambda: float,
    ) -> Array:
        """Minimum of the second order objective for these splits (lower is better)."""
        probs = self.leaf_probs(split_params, x, split_fn, routing_fn)
        g_sum, h_sum = self.leaf_statistics(probs, grad, hess)
        return -0.5 * jnp.sum(g_sum**2 / (h_sum + reg_lambda))

    def newton_leaf_values(
        self,
        split_params: list[Any],
        x: Array,
        grad: Array,
        hess: Array,
        split_fn: SplitFn[Any],
        routing_fn: Callable[[Array], Array],
        reg_lambda: float,
    ) -> Array:
        """Leaf values minimizing the second order objective, -G / (H + lambda)."""
        probs = self.leaf_probs(split_params, x, split_fn, routing_fn)
        g_sum, h_sum = self.leaf_statistics(probs, grad, hess)
        return -g_sum / (h_sum + reg_lambda)

    def _compute_leaf_probs(self, p_rights: Array, depth: int) -> Array:
        """Compute probability of reaching each leaf (fully vectorized).

        Each leaf index's binary representation encodes the path:
        bit d = 0 means go left, bit d = 1 means go right at depth d.
        """
        num_leaves = 2**depth

        leaf_indices = jnp.arange(num_leaves)
        depth_indices = jnp.arange(depth)

        bit_mask = (leaf_indices[:, None] >> depth_indices) & 1  # (num_leaves, depth)

        p_rights_expanded = p_rights.T[:, None, :]  # (batch, 1, depth)
        bit_mask_expanded = bit_mask[None, :, :]  # (1, num_leaves, depth)

        routing_probs = (
            bit_mask_expanded * p_rights_expanded
            + (1 - bit_mask_expanded) * (1 - p_rights_expanded)
        )  # (batch, num_leaves, depth)

        return jnp.prod(routing_probs, axis=-1)  # (batch, num_leaves)
