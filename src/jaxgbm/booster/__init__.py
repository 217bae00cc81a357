"""Boosters: ensembles that grow from per-example gradients."""

from jaxgbm.booster.soft_tree import BoosterConfig, SoftTreeBooster

__all__ = [
    "BoosterConfig",
    "SoftTreeBooster",
]
