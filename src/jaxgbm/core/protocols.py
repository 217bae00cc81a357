"""
Core protocols (interfaces) for jaxgbm.

All collaborators of the learner are defined as Protocols, enabling:
- Duck typing (no inheritance required)
- Swapping the default soft-tree booster for another ensemble
- Type safety with mypy/pyright
"""

from __future__ import annotations

from typing import IO, Any, Protocol, Sequence, TypeVar, runtime_checkable

import numpy as np
from jax import Array

# Generic type for parameters (must be a valid JAX PyTree)
P = TypeVar("P")


@runtime_checkable
class SplitFn(Protocol[P]):
    """Protocol for split functions.

    A split function computes a scalar "split score" for each sample,
    which is then passed to a routing function to determine left/right.
    """

    def init_params(self, key: Array, num_features: int, **kwargs: Any) -> P:
        """Initialize split parameters."""
        ...

    def compute_score(self, params: P, x: Array) -> Array:
        """Compute split score. Positive → right, Negative → left."""
        ...


@runtime_checkable
class DataMatrix(Protocol):
    """Protocol for datasets consumed by the learner.

    Rows are examples; ``labels`` is aligned with the rows of ``features``.
    """

    @property
    def num_row(self) -> int: ...

    @property
    def num_col(self) -> int: ...

    @property
    def features(self) -> np.ndarray: ...

    @property
    def labels(self) -> np.ndarray: ...

    def row(self, index: int) -> np.ndarray: ...


@runtime_checkable
class Booster(Protocol):
    """Protocol for the ensemble that consumes gradients.

    The booster owns the tree structure and the per-example score cache
    addressed by prediction buffer offsets. The learner never looks inside.
    """

    def set_param(self, name: str, value: str) -> None:
        """Set a named string parameter. Unknown names are ignored."""
        ...

    def configure(self, num_feature: int, num_pbuffer: int) -> None:
        """Size internal caches for the feature bound and buffer size."""
        ...

    def init_trainer(self) -> None:
        """Prepare for training, called once before the first round."""
        ...

    def init_model(self) -> None:
        """Start a fresh, empty ensemble."""
        ...

    def raw_output(self, features: np.ndarray, buffer_index: np.ndarray) -> np.ndarray:
        """Raw additive output for a batch of rows.

        Args:
            features: Feature rows, shape (batch, num_features).
            buffer_index: Prediction buffer offset per row, shape (batch,).
                Negative entries bypass the cache.

        Returns:
            Raw scores, shape (batch,), without the global bias.
        """
        ...

    def boost_round(
        self,
        grad: np.ndarray,
        hess: np.ndarray,
        features: np.ndarray,
        root_index: Sequence[int] | None = None,
    ) -> None:
        """Add one member to the ensemble from per-example grad/hess."""
        ...

    def save(self, stream: IO[bytes]) -> None: ...

    def load(self, stream: IO[bytes]) -> None: ...
