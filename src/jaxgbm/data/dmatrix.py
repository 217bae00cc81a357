"""In-memory dataset: a dense feature matrix with aligned labels."""

from __future__ import annotations

import numpy as np
from jax import Array


class DMatrix:
    """Dense float32 feature matrix and label vector.

    Example:
        >>> dtrain = DMatrix(X_train, y_train)
        >>> dtrain.num_row, dtrain.num_col
        (200, 5)
    """

    def __init__(
        self,
        features: np.ndarray | Array,
        labels: np.ndarray | Array | None = None,
    ) -> None:
        """Copy features and labels into float32 arrays.

        Args:
            features: Shape (num_row, num_col).
            labels: Shape (num_row,). Defaults to zeros for unlabeled data.
        """
        features = np.array(features, dtype=np.float32)
        if features.ndim != 2:
            raise ValueError(f"features must be 2-D, got shape {features.shape}")
        if labels is None:
            labels = np.zeros(features.shape[0], dtype=np.float32)
        else:
            labels = np.array(labels, dtype=np.float32).reshape(-1)
        if labels.shape[0] != features.shape[0]:
            raise ValueError(
                f"got {labels.shape[0]} labels for {features.shape[0]} rows"
            )
        self._features = features
        self._labels = labels

    @property
    def num_row(self) -> int:
        return self._features.shape[0]

    @property
    def num_col(self) -> int:
        return self._features.shape[1]

    @property
    def features(self) -> np.ndarray:
        return self._features

    @property
    def labels(self) -> np.ndarray:
        return self._labels

    def row(self, index: int) -> np.ndarray:
        return self._features[index]
