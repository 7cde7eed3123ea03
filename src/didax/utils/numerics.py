"""Numerical utilities."""

from __future__ import annotations

from functools import wraps
from typing import Callable, TypeVar

import numpy as np

from didax.logger import didax_logger

__all__ = [
    "ieee",
    "to_float",
    "sign",
    "central_difference",
    "relative_error",
]

T = TypeVar("T")

# Division by zero, invalid operations and overflow produce inf/nan silently.
_IEEE_ERRSTATE = {"divide": "ignore", "invalid": "ignore", "over": "ignore", "under": "ignore"}


def ieee(func: Callable[..., T]) -> Callable[..., T]:
    """Runs ``func`` with numpy floating-point warnings suppressed.

    The differentiation engines report domain violations as IEEE NaN or
    infinity. Wrapping a rule body with this decorator keeps numpy from
    emitting ``RuntimeWarning`` for those cases. A fresh ``np.errstate`` is
    entered on every call, so decorated functions may recurse.

    Args:
        func: Function whose body performs float64 arithmetic.

    Returns:
        The wrapped function.
    """

    @wraps(func)
    def wrapped(*args, **kwargs):
        with np.errstate(**_IEEE_ERRSTATE):
            return func(*args, **kwargs)

    return wrapped


def to_float(value) -> float:
    """Converts a numpy scalar or Python number to a built-in ``float``."""
    return float(np.float64(value))


def sign(value: float) -> float:
    """Returns the sign of ``value`` with ``sign(0) == 0``."""
    return float(np.sign(np.float64(value)))


@ieee
def central_difference(
    function: Callable[[float], float],
    x: float,
    h: float = 1e-5,
) -> float:
    """Estimates f'(x) with the symmetric two-point stencil.

    Args:
        function: Scalar function ``f: R -> R``.
        x: Point at which to estimate the derivative.
        h: Step size.

    Returns:
        ``(f(x + h) - f(x - h)) / (2 h)``.

    Raises:
        ValueError: If ``h`` is not strictly positive.
    """
    if h <= 0:
        raise ValueError("h must be strictly positive.")
    if h < 1e-8:
        didax_logger.warning(
            "central_difference called with h=%g; round-off error will dominate.", h
        )
    f_plus = np.float64(function(x + h))
    f_minus = np.float64(function(x - h))
    return float((f_plus - f_minus) / (2.0 * h))


def relative_error(a, b) -> float:
    """Computes the relative error metric between a and b.

    This metric is defined as the maximum over all components of a and b of
    the absolute difference divided by the maximum of 1.0 and the absolute values of
    a and b.

    Args:
        a: First array-like input.
        b: Second array-like input.

    Returns:
        The relative error metric as a float.
    """
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    denom = np.maximum(1.0, np.maximum(np.abs(a), np.abs(b)))
    return float(np.max(np.abs(a - b) / denom))
