"""Split functions for jaxgbm."""

from jaxgbm.splits.axis_aligned import AxisAlignedSplit, AxisAlignedSplitParams
from jaxgbm.splits.hyperplane import HyperplaneSplit, HyperplaneSplitParams

# Split kinds by name, in the order of their code in saved models.
SPLITS = {
    HyperplaneSplit.name: HyperplaneSplit,
    AxisAlignedSplit.name: AxisAlignedSplit,
}

__all__ = [
    "SPLITS",
    "AxisAlignedSplit",
    "AxisAlignedSplitParams",
    "HyperplaneSplit",
    "HyperplaneSplitParams",
]
