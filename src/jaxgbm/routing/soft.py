"""Soft (sigmoid) routing.

A row goes right at a split with probability sigmoid(temperature * score).
Soft routing keeps the tree output differentiable in the split parameters,
so splits can be fitted by gradient descent on the boosting objective.
"""

from __future__ import annotations

from typing import Callable

import jax
from jax import Array


def soft_routing(score: Array, temperature: float = 1.0) -> Array:
    """Soft routing using sigmoid function.

    Args:
        score: Split scores, any shape.
        temperature: Sharpness. Higher values approach a hard split.

    Returns:
        Probability of going right, same shape as score, values in [0, 1].
    """
    return jax.nn.sigmoid(score * temperature)


def make_routing_fn(temperature: float) -> Callable[[Array], Array]:
    """Bind a fixed temperature, for use as a tree's routing function."""

    def routing_fn(score: Array) -> Array:
        return soft_routing(score, temperature)

    return routing_fn
