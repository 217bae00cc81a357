"""Routing functions for jaxgbm."""

from jaxgbm.routing.soft import make_routing_fn, soft_routing

__all__ = [
    "soft_routing",
    "make_routing_fn",
]
