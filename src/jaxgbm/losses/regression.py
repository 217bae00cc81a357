"""Squared-error loss: identity link, residual gradient, unit curvature."""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array


def identity_transform(raw: Array) -> Array:
    """Raw ensemble output is already the prediction."""
    return jnp.asarray(raw, dtype=jnp.float32)


def squared_error_gradient(predictions: Array, labels: Array) -> Array:
    """First order gradient of 1/2 (p - y)^2 with respect to the raw score."""
    return predictions - labels


def squared_error_hessian(predictions: Array, labels: Array) -> Array:
    """Second order gradient of 1/2 (p - y)^2, constant one."""
    return jnp.ones_like(predictions)


def mse_loss(predictions: Array, targets: Array) -> Array:
    """Mean squared error loss.

    Args:
        predictions: Model predictions, shape (batch,).
        targets: Ground truth targets, shape (batch,).

    Returns:
        Scalar mean squared error.
    """
    return jnp.mean((predictions - targets) ** 2)
