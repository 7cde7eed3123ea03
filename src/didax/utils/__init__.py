"""Utility functions for the didax package."""

from .numerics import central_difference, relative_error

__all__ = [
    "central_difference",
    "relative_error",
]
