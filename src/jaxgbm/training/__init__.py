"""Training utilities for jaxgbm."""

from jaxgbm.training.trainer import (
    GBMTrainer,
    TrainedGBM,
    TrainerConfig,
)

__all__ = [
    "GBMTrainer",
    "TrainedGBM",
    "TrainerConfig",
]
