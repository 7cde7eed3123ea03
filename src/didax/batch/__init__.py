"""Batched forward-mode evaluation and Jacobians."""

from .batch_eval import batch_apply, batch_gradient, evaluate_range, range_points, vmap
from .jacobian import jacobian

__all__ = [
    "vmap",
    "batch_apply",
    "batch_gradient",
    "evaluate_range",
    "range_points",
    "jacobian",
]
