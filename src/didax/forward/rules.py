"""Forward-mode derivative rules over :class:`~didax.forward.dual.DualNumber`.

Every rule maps dual numbers to a new dual number whose primal is the
function value at the input primals and whose tangent is the analytic
derivative at those primals times the input tangent(s). Rules only look at
their immediate inputs, so composing them by ordinary function calls
applies the chain rule.

Domain violations are not signalled: ``log`` of a non-positive value,
``sqrt`` of a negative value or division by zero produce IEEE NaN or
infinity in the result.

Shape conventions:

- unary rules: ``op(x) -> DualNumber``
- binary rules: ``op(x, y) -> DualNumber``
- ``pow(x, n)`` takes a plain float exponent ``n``

Bare ``int``/``float`` arguments are accepted and treated as constants.
"""

from __future__ import annotations

import numpy as np

from didax.forward.dual import DualNumber, lift
from didax.utils.numerics import ieee, sign

__all__ = [
    "add",
    "sub",
    "mul",
    "div",
    "neg",
    "pow",
    "sqrt",
    "sin",
    "cos",
    "tan",
    "sinh",
    "cosh",
    "tanh",
    "log",
    "exp",
    "absolute",
    "abs",
    "relu",
    "sigmoid",
]


def _chain(x: DualNumber, value, slope) -> DualNumber:
    """Builds ``DualNumber(value, slope * x.tangent)``."""
    return DualNumber(value, slope * x.tangent)


def add(x, y) -> DualNumber:
    """d(x + y) = dx + dy."""
    return lift(x) + lift(y)


def sub(x, y) -> DualNumber:
    """d(x - y) = dx - dy."""
    return lift(x) - lift(y)


def mul(x, y) -> DualNumber:
    """d(x * y) = dx * y + x * dy."""
    return lift(x) * lift(y)


def div(x, y) -> DualNumber:
    """d(x / y) = (dx * y - x * dy) / y**2."""
    return lift(x) / lift(y)


def neg(x) -> DualNumber:
    """d(-x) = -dx."""
    return -lift(x)


def pow(x, n: float) -> DualNumber:  # noqa: A001
    """d(x**n) = n * x**(n - 1) * dx for a constant exponent ``n``.

    A negative base with a non-integer exponent yields NaN.
    """
    return lift(x) ** float(n)


@ieee
def sqrt(x) -> DualNumber:
    """d(sqrt(x)) = 0.5 / sqrt(x) * dx."""
    x = lift(x)
    root = np.sqrt(np.float64(x.primal))
    return _chain(x, root, 0.5 / root)


@ieee
def sin(x) -> DualNumber:
    """d(sin(x)) = cos(x) * dx."""
    x = lift(x)
    return _chain(x, np.sin(x.primal), np.cos(x.primal))


@ieee
def cos(x) -> DualNumber:
    """d(cos(x)) = -sin(x) * dx."""
    x = lift(x)
    return _chain(x, np.cos(x.primal), -np.sin(x.primal))


@ieee
def tan(x) -> DualNumber:
    """d(tan(x)) = (1 + tan(x)**2) * dx."""
    x = lift(x)
    t = np.tan(x.primal)
    return _chain(x, t, 1.0 / np.cos(x.primal) ** 2)


@ieee
def sinh(x) -> DualNumber:
    """d(sinh(x)) = cosh(x) * dx."""
    x = lift(x)
    return _chain(x, np.sinh(x.primal), np.cosh(x.primal))


@ieee
def cosh(x) -> DualNumber:
    """d(cosh(x)) = sinh(x) * dx."""
    x = lift(x)
    return _chain(x, np.cosh(x.primal), np.sinh(x.primal))


@ieee
def tanh(x) -> DualNumber:
    """d(tanh(x)) = (1 - tanh(x)**2) * dx."""
    x = lift(x)
    t = np.tanh(x.primal)
    return _chain(x, t, 1.0 - t * t)


@ieee
def log(x) -> DualNumber:
    """d(log(x)) = dx / x."""
    x = lift(x)
    p = np.float64(x.primal)
    return _chain(x, np.log(p), 1.0 / p)


@ieee
def exp(x) -> DualNumber:
    """d(exp(x)) = exp(x) * dx."""
    x = lift(x)
    e = np.exp(x.primal)
    return _chain(x, e, e)


def absolute(x) -> DualNumber:
    """d|x| = sign(x) * dx, with the derivative at 0 taken as 0."""
    x = lift(x)
    return _chain(x, np.abs(x.primal), sign(x.primal))


abs = absolute  # noqa: A001


def relu(x) -> DualNumber:
    """max(0, x); the derivative is 1 for x > 0 and 0 otherwise (including at 0)."""
    x = lift(x)
    if x.primal > 0.0:
        return DualNumber(x.primal, x.tangent)
    return DualNumber(0.0, 0.0)


@ieee
def sigmoid(x) -> DualNumber:
    """s = 1 / (1 + exp(-x)); ds = s * (1 - s) * dx."""
    x = lift(x)
    s = 1.0 / (1.0 + np.exp(-np.float64(x.primal)))
    return _chain(x, s, s * (1.0 - s))
