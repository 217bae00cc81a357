"""Loss functions for jaxgbm."""

from jaxgbm.losses.classification import binary_logloss, sigmoid_transform
from jaxgbm.losses.policy import (
    LossFunctions,
    LossType,
    check_loss_type,
    first_order_gradient,
    get_loss,
    pred_transform,
    second_order_gradient,
)
from jaxgbm.losses.regression import identity_transform, mse_loss

__all__ = [
    "LossType",
    "LossFunctions",
    "check_loss_type",
    "get_loss",
    "pred_transform",
    "first_order_gradient",
    "second_order_gradient",
    "identity_transform",
    "sigmoid_transform",
    "mse_loss",
    "binary_logloss",
]
