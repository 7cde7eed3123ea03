"""Checked operations that raise instead of returning NaN or infinity.

The differentiation engines report domain problems through IEEE values.
This module is the place where such conditions become exceptions: each
wrapper validates its inputs (or the engine's results) and raises one of
the errors below, logging a warning on ``didax_logger`` first. On valid
inputs the wrappers return exactly what the engines return.

Error taxonomy:

- :class:`DomainError`: the input lies outside the function's domain
  (logarithm of a non-positive value, square root of a negative value,
  a NaN or infinite evaluation point).
- :class:`NumericalError`: a computation is numerically meaningless
  (division by a zero or near-zero denominator, non-finite results).
- :class:`ShapeMismatch`: inconsistent batch or vector lengths, or an
  evaluation point that is empty or not one-dimensional.

All three derive from :class:`DidaxError`, and from the built-in exception
closest in meaning, so ``except ValueError`` keeps working for callers that
do not know about this module.
"""

from __future__ import annotations

from typing import Callable, Sequence

import numpy as np

from didax.batch.jacobian import jacobian
from didax.forward import rules
from didax.forward.dual import DualNumber, lift
from didax.forward.transforms import value_and_grad
from didax.logger import didax_logger
from didax.utils.types import Array
from didax.utils.validate import check_output_length, is_finite, validate_points

__all__ = [
    "DidaxError",
    "DomainError",
    "NumericalError",
    "ShapeMismatch",
    "safe_log",
    "safe_sqrt",
    "safe_div",
    "checked_grad",
    "checked_jacobian",
]


class DidaxError(Exception):
    """Base class for errors raised by checked operations."""


class DomainError(DidaxError, ValueError):
    """Raises when an input lies outside a function's domain."""


class NumericalError(DidaxError, FloatingPointError):
    """Raises when a computation produces or would produce non-finite values."""


class ShapeMismatch(DidaxError, ValueError):
    """Raises when batch or vector lengths are inconsistent."""


def _fail(error: type[DidaxError], message: str) -> DidaxError:
    didax_logger.warning(message)
    return error(message)


def safe_log(x) -> DualNumber:
    """Natural logarithm that rejects non-positive inputs.

    Raises:
        DomainError: If ``x.primal <= 0``.
    """
    x = lift(x)
    if not x.primal > 0.0:
        raise _fail(DomainError, f"safe_log: logarithm of non-positive value {x.primal!r}.")
    return rules.log(x)


def safe_sqrt(x) -> DualNumber:
    """Square root that rejects negative inputs.

    Raises:
        DomainError: If ``x.primal < 0``.
    """
    x = lift(x)
    if not x.primal >= 0.0:
        raise _fail(DomainError, f"safe_sqrt: square root of negative value {x.primal!r}.")
    return rules.sqrt(x)


def safe_div(x, y, eps: float = 1e-12) -> DualNumber:
    """Division that rejects zero or near-zero denominators.

    Args:
        x: Numerator.
        y: Denominator.
        eps: Smallest accepted ``|y.primal|``.

    Raises:
        NumericalError: If ``|y.primal| <= eps``.
    """
    y = lift(y)
    if not abs(y.primal) > eps:
        raise _fail(NumericalError, f"safe_div: denominator {y.primal!r} is within {eps:g} of zero.")
    return rules.div(x, y)


def checked_grad(
    function: Callable[[DualNumber], DualNumber],
    x: float,
) -> tuple[float, float]:
    """Forward-mode ``(value, derivative)`` that rejects non-finite results.

    Raises:
        NumericalError: If the value or the derivative is NaN or infinite.
    """
    value, slope = value_and_grad(function, x)
    if not is_finite(value, slope):
        raise _fail(
            NumericalError,
            f"checked_grad: non-finite result at x={x!r} (value={value!r}, derivative={slope!r}).",
        )
    return value, slope


def checked_jacobian(
    function: Callable[[list[DualNumber]], Sequence[DualNumber]],
    xs: Sequence[float],
    n_workers: int | None = 1,
) -> Array:
    """Forward-mode Jacobian with shape and finiteness checks.

    Args:
        function: Maps a list of dual numbers to a sequence of dual numbers.
        xs: Point at which the Jacobian is evaluated.
        n_workers: Number of threads used across columns.

    Returns:
        The ``(m, n)`` Jacobian.

    Raises:
        ShapeMismatch: If ``xs`` is not a non-empty 1D sequence, or if
            ``function`` returns a different number of outputs on
            different passes.
        DomainError: If ``xs`` contains NaN or infinite values.
        NumericalError: If the Jacobian contains non-finite entries.
    """
    try:
        point = validate_points(xs)
    except ValueError as exc:
        raise _fail(ShapeMismatch, f"checked_jacobian: {exc}") from exc
    if not is_finite(*point):
        raise _fail(DomainError, f"checked_jacobian: non-finite input point {point.tolist()!r}.")

    expected: list[int] = []

    def guarded(inputs: list[DualNumber]) -> Sequence[DualNumber]:
        outputs = function(inputs)
        if not expected:
            expected.append(len(outputs))
        try:
            check_output_length(outputs, expected[0], "checked_jacobian")
        except ValueError as exc:
            raise _fail(ShapeMismatch, str(exc)) from exc
        return outputs

    jac = jacobian(guarded, point.tolist(), n_workers=n_workers)
    if not np.isfinite(jac).all():
        raise _fail(NumericalError, "checked_jacobian: non-finite entries in the Jacobian.")
    return jac
