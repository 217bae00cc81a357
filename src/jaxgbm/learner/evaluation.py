"""Evaluation metrics reported after each boosting round."""

from __future__ import annotations

from typing import Callable

import jax.numpy as jnp
import numpy as np

from jaxgbm.losses import binary_logloss, mse_loss


def rmse(preds: np.ndarray, labels: np.ndarray) -> float:
    """Root mean squared error."""
    return float(jnp.sqrt(mse_loss(jnp.asarray(preds), jnp.asarray(labels))))


def error(preds: np.ndarray, labels: np.ndarray) -> float:
    """Binary classification error rate at threshold 0.5."""
    predicted = np.asarray(preds) > 0.5
    return float(np.mean(predicted != (np.asarray(labels) > 0.5)))


def logloss(preds: np.ndarray, labels: np.ndarray) -> float:
    """Negative log-likelihood of binary labels."""
    return float(binary_logloss(jnp.asarray(preds), jnp.asarray(labels)))


METRICS: dict[str, Callable[[np.ndarray, np.ndarray], float]] = {
    "rmse": rmse,
    "error": error,
    "logloss": logloss,
}


class EvalSet:
    """Ordered set of metric names to report."""

    def __init__(self) -> None:
        self.names: list[str] = []
        self._metrics: list[Callable[[np.ndarray, np.ndarray], float]] = []

    def add_eval(self, name: str) -> None:
        if name not in self.names:
            self.names.append(name)

    def init(self) -> None:
        """Resolve metric names.

        Raises:
            ValueError: If a name is not a known metric.
        """
        unknown = [name for name in self.names if name not in METRICS]
        if unknown:
            raise ValueError(f"unknown eval_metric: {', '.join(unknown)}")
        self._metrics = [METRICS[name] for name in self.names]

    def eval(self, preds: np.ndarray, labels: np.ndarray) -> list[tuple[str, float]]:
        if len(preds) != len(labels):
            raise ValueError(
                f"got {len(preds)} predictions for {len(labels)} labels"
            )
        return [(name, fn(preds, labels)) for name, fn in zip(self.names, self._metrics)]
