"""Forward-mode transformations of scalar functions.

The functions here take a Python callable built from
:mod:`didax.forward.rules` (or the operators on
:class:`~didax.forward.dual.DualNumber`) and evaluate it on a seeded dual
number.

Examples:
    >>> from didax.forward import rules
    >>> from didax.forward.transforms import grad, value_and_grad
    >>> grad(rules.sin, 0.0)
    1.0
    >>> value_and_grad(lambda x: x * x + 2.0 * x + 1.0, 3.0)
    (16.0, 8.0)
"""

from __future__ import annotations

from typing import Callable

from didax.forward.dual import DualNumber, constant, lift, seed
from didax.utils.numerics import central_difference

__all__ = [
    "grad",
    "value_and_grad",
    "jvp",
    "derivative",
    "check_grad",
]

DualFunction = Callable[[DualNumber], DualNumber]


def jvp(function: DualFunction, primal: float, tangent: float) -> tuple[float, float]:
    """Computes the Jacobian-vector product of a scalar function.

    Args:
        function: Function of one dual number.
        primal: Point at which to evaluate ``function``.
        tangent: Input tangent (need not be 1).

    Returns:
        ``(f(primal), f'(primal) * tangent)``.
    """
    out = lift(function(DualNumber(primal, tangent)))
    return out.primal, out.tangent


def value_and_grad(function: DualFunction, x: float) -> tuple[float, float]:
    """Returns ``(f(x), f'(x))`` from a single forward pass."""
    return jvp(function, x, 1.0)


def grad(function: DualFunction, x: float) -> float:
    """Returns ``f'(x)``, the tangent of ``function(seed(x))``."""
    return lift(function(seed(x))).tangent


def derivative(function: DualFunction) -> Callable[[float], float]:
    """Returns the derivative of ``function`` as a float-to-float callable."""

    def df(x: float) -> float:
        return grad(function, x)

    return df


def check_grad(
    function: DualFunction,
    x: float,
    h: float = 1e-5,
    atol: float = 1e-4,
) -> bool:
    """Compares the forward-mode derivative with a central-difference estimate.

    Args:
        function: Function of one dual number.
        x: Point at which to compare the derivatives.
        h: Step size of the central difference.
        atol: Absolute tolerance.

    Returns:
        True if ``|f'(x) - (f(x+h) - f(x-h)) / 2h| < atol``.
    """
    analytic = grad(function, x)
    numeric = central_difference(lambda t: lift(function(constant(t))).primal, x, h)
    return abs(analytic - numeric) < atol
