"""Validation utilities for the checked operations."""

from __future__ import annotations

from typing import Any, Sequence

import numpy as np

from didax.utils.types import Array

__all__ = [
    "is_finite",
    "validate_points",
    "check_output_length",
]


def is_finite(*values: float) -> bool:
    """Returns True if every value is finite (neither NaN nor infinite)."""
    return bool(np.isfinite(np.asarray(values, dtype=float)).all())


def validate_points(xs: Any) -> Array:
    """Checks that ``xs`` is a non-empty 1D sequence of numbers.

    Finiteness is not checked here; see :func:`is_finite`.

    Args:
        xs: 1D array-like of floats.

    Returns:
        The points as a 1D float array.

    Raises:
        ValueError: If ``xs`` is ragged, not one-dimensional or empty.
    """
    arr = np.asarray(xs, dtype=float)
    if arr.ndim != 1:
        raise ValueError(f"xs must be 1D; got shape {arr.shape}.")
    if arr.size == 0:
        raise ValueError("xs must be non-empty.")
    return arr


def check_output_length(outputs: Sequence[Any], expected: int, where: str) -> None:
    """Checks that a vector function returned ``expected`` outputs.

    Args:
        outputs: Output sequence to check.
        expected: Required length.
        where: Context string for error messages.

    Raises:
        ValueError: If the length differs.
    """
    if len(outputs) != expected:
        raise ValueError(f"{where}: expected {expected} outputs; got {len(outputs)}.")
