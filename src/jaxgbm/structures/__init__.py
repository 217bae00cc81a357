"""Tree structures for jaxgbm."""

from jaxgbm.structures.oblivious import ObliviousTree, ObliviousTreeParams

__all__ = [
    "ObliviousTree",
    "ObliviousTreeParams",
]
