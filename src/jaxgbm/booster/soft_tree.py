"""Soft oblivious tree booster.

Each boosting round adds one soft oblivious tree. Its splits are fitted
with optax Adam on the second order structure score of the round's
gradients, then its leaves are set to the shrunken Newton step.

The booster keeps a prediction buffer: a cached raw score and the number of
trees already summed into it, per buffer slot. A lookup only evaluates the
trees added since the slot was last read.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import IO, Sequence

import jax
import jax.numpy as jnp
import numpy as np
import optax
from jax import Array

from jaxgbm.routing import make_routing_fn
from jaxgbm.splits import SPLITS
from jaxgbm.structures import ObliviousTree, ObliviousTreeParams


@dataclass
class BoosterConfig:
    """Configuration for the soft tree booster.

    Attributes:
        eta: Shrinkage applied to each tree's Newton leaf values.
        max_depth: Depth of each oblivious tree.
        reg_lambda: L2 regularization on leaf values.
        num_steps: Adam steps spent fitting the splits of one tree.
        learning_rate: Adam learning rate for split fitting.
        temperature: Routing sharpness, shared by training and prediction.
        split: Split kind, ``"hyperplane"`` or ``"axis_aligned"``.
        seed: Seed for split initialization.
    """
    eta: float = 0.3
    max_depth: int = 3
    reg_lambda: float = 1.0
    num_steps: int = 50
    learning_rate: float = 0.05
    temperature: float = 5.0
    split: str = "hyperplane"
    seed: int = 0


_FLOAT_PARAMS = {
    "eta": "eta",
    "lambda": "reg_lambda",
    "learning_rate": "learning_rate",
    "temperature": "temperature",
}
_INT_PARAMS = {
    "max_depth": "max_depth",
    "num_steps": "num_steps",
    "seed": "seed",
}


class SoftTreeBooster:
    """Additive ensemble of soft oblivious trees.

    Example:
        >>> booster = SoftTreeBooster(BoosterConfig(max_depth=2))
        >>> booster.configure(num_feature=5, num_pbuffer=200)
        >>> booster.init_trainer()
        >>> booster.init_model()
        >>> booster.boost_round(grad, hess, X)
    """

    def __init__(self, config: BoosterConfig | None = None):
        self.config = config or BoosterConfig()
        self.tree = ObliviousTree()
        self.trees: list[ObliviousTreeParams] = []
        self.num_feature = 0
        self.pred_buffer = np.zeros(0, dtype=np.float32)
        self.pred_counter = np.zeros(0, dtype=np.int64)
        self._key: Array | None = None
        self._optimizer: optax.GradientTransformation | None = None
        self._step = None

    @property
    def split_fn(self):
        try:
            return SPLITS[self.config.split]()
        except KeyError:
            raise ValueError(f"unknown split kind: {self.config.split}") from None

    def set_param(self, name: str, value: str) -> None:
        """Set a parameter; the ``bst:`` prefix is optional."""
        if name.startswith("bst:"):
            name = name[len("bst:"):]
        if name in _FLOAT_PARAMS:
            setattr(self.config, _FLOAT_PARAMS[name], float(value))
        elif name in _INT_PARAMS:
            setattr(self.config, _INT_PARAMS[name], int(value))
        elif name == "split":
            self.config.split = value
        elif name == "num_feature":
            self.num_feature = int(value)
        elif name == "num_pbuffer":
            self._reset_buffer(int(value))
        else:
            return
        self._step = None

    def configure(self, num_feature: int, num_pbuffer: int) -> None:
        self.num_feature = num_feature
        self._reset_buffer(num_pbuffer)

    def init_trainer(self) -> None:
        if self.config.max_depth < 1:
            raise ValueError(f"max_depth must be at least 1, got {self.config.max_depth}")
        if self.config.split not in SPLITS:
            raise ValueError(f"unknown split kind: {self.config.split}")
        self._key = jax.random.PRNGKey(self.config.seed)
        self._step = None

    def init_model(self) -> None:
        self.trees = []
        self.pred_counter[:] = 0
        self.pred_buffer[:] = 0.0

    @property
    def num_trees(self) -> int:
        return len(self.trees)

    def raw_output(self, features: np.ndarray, buffer_index: np.ndarray) -> np.ndarray:
        """Raw ensemble output for a batch of rows.

        Rows with a non-negative ``buffer_index`` read and refresh their
        cache slot; the others are summed from scratch.
        """
        x = np.asarray(features, dtype=np.float32)
        index = np.asarray(buffer_index, dtype=np.int64)
        if index.shape != (x.shape[0],):
            raise ValueError(f"got {index.shape[0]} buffer indices for {x.shape[0]} rows")
        out = np.zeros(x.shape[0], dtype=np.float32)

        fresh = np.flatnonzero(index < 0)
        if fresh.size:
            out[fresh] = self._accumulate(x[fresh], np.zeros(fresh.size, np.float32), 0)

        rows = np.flatnonzero(index >= 0)
        if rows.size == 0:
            return out
        slots = index[rows]
        if slots.max() >= self.pred_buffer.shape[0]:
            raise ValueError(
                f"buffer index {slots.max()} out of range for "
                f"num_pbuffer={self.pred_buffer.shape[0]}"
            )
        counters = self.pred_counter[slots]
        for start in np.unique(counters):
            sel = counters == start
            total = self._accumulate(
                x[rows[sel]], self.pred_buffer[slots[sel]], int(start)
            )
            self.pred_buffer[slots[sel]] = total
            self.pred_counter[slots[sel]] = self.num_trees
            out[rows[sel]] = total
        return out

    def boost_round(
        self,
        grad: np.ndarray,
        hess: np.ndarray,
        features: np.ndarray,
        root_index: Sequence[int] | None = None,
    ) -> None:
        """Fit one tree to the gradients and append it to the ensemble."""
        if root_index:
            raise ValueError("SoftTreeBooster supports a single root only")
        x = np.asarray(features, dtype=np.float32)
        grad = np.asarray(grad, dtype=np.float32)
        hess = np.asarray(hess, dtype=np.float32)
        if grad.shape != hess.shape or grad.shape != (x.shape[0],):
            raise ValueError(
                f"grad {grad.shape} and hess {hess.shape} must both match "
                f"{x.shape[0]} feature rows"
            )
        if self._key is None:
            self.init_trainer()

        num_feature = max(self.num_feature, x.shape[1])
        x = jnp.asarray(_fit_width(x, num_feature))
        grad, hess = jnp.asarray(grad), jnp.asarray(hess)
        split_fn = self.split_fn
        routing_fn = make_routing_fn(self.config.temperature)

        self._key, subkey = jax.random.split(self._key)
        params = self.tree.init_params(
            subkey, self.config.max_depth, num_feature, split_fn, x=x
        )
        split_params = self._fit_splits(params.split_params, x, grad, hess)
        leaf_values = self.tree.newton_leaf_values(
            split_params, x, grad, hess, split_fn, routing_fn, self.config.reg_lambda
        )
        self.trees.append(
            ObliviousTreeParams(
                split_params=split_params,
                leaf_values=self.config.eta * leaf_values,
            )
        )

    def save(self, stream: IO[bytes]) -> None:
        """Write trees and prediction buffer as consecutive ``.npy`` records."""
        depth = len(self.trees[0].split_params) if self.trees else self.config.max_depth
        kinds = list(SPLITS)
        header = np.array(
            [
                kinds.index(self.config.split),
                self.num_trees,
                depth,
                self.num_feature,
                self.pred_buffer.shape[0],
            ],
            dtype=np.int64,
        )
        np.save(stream, header, allow_pickle=False)
        np.save(stream, np.array([self.config.temperature], dtype=np.float32), allow_pickle=False)
        for params in self.trees:
            vectors = np.stack([np.asarray(p[0]) for p in params.split_params])
            thresholds = np.stack([np.asarray(p[1]) for p in params.split_params])
            np.save(stream, vectors.astype(np.float32), allow_pickle=False)
            np.save(stream, thresholds.astype(np.float32), allow_pickle=False)
            np.save(stream, np.asarray(params.leaf_values, dtype=np.float32), allow_pickle=False)
        np.save(stream, self.pred_buffer, allow_pickle=False)
        np.save(stream, self.pred_counter, allow_pickle=False)

    def load(self, stream: IO[bytes]) -> None:
        """Read a booster written by ``save``."""
        header = np.load(stream, allow_pickle=False)
        if header.shape != (5,):
            raise ValueError(f"corrupt booster header of shape {header.shape}")
        split_code, num_trees, depth, num_feature, _ = (int(v) for v in header)
        self.config.split = list(SPLITS)[split_code]
        self.config.max_depth = depth
        self.config.temperature = float(np.load(stream, allow_pickle=False)[0])
        self.num_feature = num_feature
        params_cls = self.split_fn.params_cls

        trees = []
        for _ in range(num_trees):
            vectors = np.load(stream, allow_pickle=False)
            thresholds = np.load(stream, allow_pickle=False)
            leaf_values = np.load(stream, allow_pickle=False)
            split_params = [
                params_cls(jnp.asarray(v), jnp.asarray(t))
                for v, t in zip(vectors, thresholds)
            ]
            trees.append(ObliviousTreeParams(split_params, jnp.asarray(leaf_values)))
        self.trees = trees
        self.pred_buffer = np.load(stream, allow_pickle=False)
        self.pred_counter = np.load(stream, allow_pickle=False)
        self._step = None

    def _accumulate(self, x: np.ndarray, start_value: np.ndarray, start: int) -> np.ndarray:
        """Add the outputs of trees ``start:`` to ``start_value``, in tree order."""
        total = np.array(start_value, dtype=np.float32)
        if x.shape[0] == 0:
            return total
        split_fn = self.split_fn
        routing_fn = make_routing_fn(self.config.temperature)
        for params in self.trees[start:]:
            width = params.split_params[0][0].shape[0]
            tree_x = jnp.asarray(_fit_width(x, width))
            total = total + np.asarray(
                self.tree.forward(params, tree_x, split_fn, routing_fn), dtype=np.float32
            )
        return total

    def _fit_splits(self, split_params: list, x: Array, grad: Array, hess: Array) -> list:
        if self._step is None:
            self._optimizer = optax.adam(self.config.learning_rate)
            self._step = self._make_step(self._optimizer)
        opt_state = self._optimizer.init(split_params)
        for _ in range(self.config.num_steps):
            split_params, opt_state, _ = self._step(split_params, opt_state, x, grad, hess)
        return split_params

    def _make_step(self, optimizer: optax.GradientTransformation):
        split_fn = self.split_fn
        routing_fn = make_routing_fn(self.config.temperature)
        reg_lambda = self.config.reg_lambda

        def score_fn(split_params, x, grad, hess):
            return self.tree.structure_score(
                split_params, x, grad, hess, split_fn, routing_fn, reg_lambda
            )

        @jax.jit
        def step(split_params, opt_state, x, grad, hess):
            score, grads = jax.value_and_grad(score_fn)(split_params, x, grad, hess)
            updates, opt_state = optimizer.update(grads, opt_state, split_params)
            split_params = optax.apply_updates(split_params, updates)
            return split_params, opt_state, score

        return step

    def _reset_buffer(self, num_pbuffer: int) -> None:
        if num_pbuffer < 0:
            raise ValueError(f"num_pbuffer must be non-negative, got {num_pbuffer}")
        self.pred_buffer = np.zeros(num_pbuffer, dtype=np.float32)
        self.pred_counter = np.zeros(num_pbuffer, dtype=np.int64)


def _fit_width(x: np.ndarray, width: int) -> np.ndarray:
    """Zero-pad or truncate feature columns to ``width``."""
    if x.shape[1] == width:
        return x
    if x.shape[1] > width:
        return x[:, :width]
    return np.pad(x, ((0, 0), (0, width - x.shape[1])))
