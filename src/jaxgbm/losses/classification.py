"""Logistic losses: sigmoid link, residual gradient, Bernoulli curvature."""

from __future__ import annotations

import jax
import jax.numpy as jnp
from jax import Array


def sigmoid_transform(raw: Array) -> Array:
    """Map raw margins to probabilities, 1 / (1 + exp(-raw)).

    ``jax.nn.sigmoid`` does not overflow for large negative margins.
    """
    return jax.nn.sigmoid(jnp.asarray(raw, dtype=jnp.float32))


def logistic_gradient(predictions: Array, labels: Array) -> Array:
    """First order gradient of the log-likelihood w.r.t. the margin.

    Args:
        predictions: Probabilities after the sigmoid link, shape (batch,).
        labels: Binary targets (0 or 1), shape (batch,).
    """
    return predictions - labels


def logistic_hessian(predictions: Array, labels: Array) -> Array:
    """Second order gradient, the Bernoulli variance p * (1 - p)."""
    return predictions * (1.0 - predictions)


def binary_logloss(probabilities: Array, targets: Array, eps: float = 1e-7) -> Array:
    """Mean negative log-likelihood of binary targets.

    Args:
        probabilities: Predicted probabilities, shape (batch,).
        targets: Binary targets (0 or 1), shape (batch,).
        eps: Probabilities are clipped to [eps, 1 - eps].

    Returns:
        Scalar log loss.
    """
    p = jnp.clip(probabilities, eps, 1.0 - eps)
    loss = -targets * jnp.log(p) - (1.0 - targets) * jnp.log1p(-p)
    return jnp.mean(loss)
