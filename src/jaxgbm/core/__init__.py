"""Core abstractions and protocols for jaxgbm."""

from jaxgbm.core.protocols import Booster, DataMatrix, SplitFn

__all__ = [
    "Booster",
    "DataMatrix",
    "SplitFn",
]
