"""Loss policy: a closed selector over the supported losses.

The selector decides three functions of the learner:

- the link transform applied to ``base_score + raw ensemble output``
- the first order gradient of the loss at the transformed prediction
- the second order gradient at the transformed prediction

Both logistic variants share the same gradient and curvature; they differ
only in the default evaluation metric.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Callable, NamedTuple

from jax import Array

from jaxgbm.losses.classification import (
    logistic_gradient,
    logistic_hessian,
    sigmoid_transform,
)
from jaxgbm.losses.regression import (
    identity_transform,
    squared_error_gradient,
    squared_error_hessian,
)


class LossType(IntEnum):
    """Loss selector, stored as an int32 in the model parameter block."""

    LINEAR_SQUARE = 0
    LOGISTIC_NEGLIK = 1
    LOGISTIC_CLASSIFY = 2

    @property
    def is_logistic(self) -> bool:
        return self is not LossType.LINEAR_SQUARE


class LossFunctions(NamedTuple):
    """Link transform and derivatives for one loss."""

    transform: Callable[[Array], Array]
    gradient: Callable[[Array, Array], Array]
    hessian: Callable[[Array, Array], Array]


_SQUARE = LossFunctions(identity_transform, squared_error_gradient, squared_error_hessian)
_LOGISTIC = LossFunctions(sigmoid_transform, logistic_gradient, logistic_hessian)

_LOSSES = {
    LossType.LINEAR_SQUARE: _SQUARE,
    LossType.LOGISTIC_NEGLIK: _LOGISTIC,
    LossType.LOGISTIC_CLASSIFY: _LOGISTIC,
}


def check_loss_type(loss_type: int) -> LossType:
    """Validate a raw selector value.

    Raises:
        ValueError: If ``loss_type`` is not one of the known selectors.
    """
    try:
        return LossType(int(loss_type))
    except ValueError:
        raise ValueError(f"unknown loss_type: {loss_type}") from None


def get_loss(loss_type: int) -> LossFunctions:
    """Look up the functions for a selector, failing on unknown values."""
    return _LOSSES[check_loss_type(loss_type)]


def pred_transform(loss_type: int, raw: Array) -> Array:
    """Transform the linear sum of the ensemble into a prediction."""
    return get_loss(loss_type).transform(raw)


def first_order_gradient(loss_type: int, predictions: Array, labels: Array) -> Array:
    """First order gradient of the loss, given transformed predictions."""
    return get_loss(loss_type).gradient(predictions, labels)


def second_order_gradient(loss_type: int, predictions: Array, labels: Array) -> Array:
    """Second order gradient of the loss, given transformed predictions."""
    return get_loss(loss_type).hessian(predictions, labels)
