"""Datasets for jaxgbm."""

from jaxgbm.data.dmatrix import DMatrix

__all__ = [
    "DMatrix",
]
