"""Dual numbers for forward-mode automatic differentiation.

A dual number is ``primal + tangent * eps`` with ``eps**2 == 0``. Pushing
dual numbers through arithmetic propagates derivatives by the chain rule,
one operation at a time.

Arithmetic operators are defined on the class itself; the elementary
functions live in :mod:`didax.forward.rules`.

Examples:
    >>> from didax.forward.dual import seed
    >>> x = seed(3.0)
    >>> y = x * x + 2.0 * x + 1.0
    >>> (y.primal, y.tangent)
    (16.0, 8.0)
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import wraps
from numbers import Real

import numpy as np

from didax.utils.numerics import ieee, sign

__all__ = [
    "DualNumber",
    "constant",
    "seed",
    "lift",
]


def _binop(method):
    """Lifts a bare real operand with :func:`constant`; defers on anything else."""

    @wraps(method)
    def wrapped(self, other):
        if isinstance(other, DualNumber):
            return method(self, other)
        if isinstance(other, Real):
            return method(self, constant(other))
        return NotImplemented

    return wrapped


@dataclass(frozen=True)
class DualNumber:
    """Immutable primal/tangent pair.

    Bare ``int``/``float`` operands of the arithmetic operators are treated as
    constants. Every operation returns a new instance.

    Attributes:
        primal: Value of the function.
        tangent: Directional derivative carried alongside ``primal``.
    """

    primal: float
    tangent: float = 0.0

    # numpy scalars on the left-hand side defer to the reflected operators.
    __array_ufunc__ = None

    def __post_init__(self):
        object.__setattr__(self, "primal", float(self.primal))
        object.__setattr__(self, "tangent", float(self.tangent))

    @_binop
    def __add__(self, other):
        return DualNumber(self.primal + other.primal, self.tangent + other.tangent)

    @_binop
    def __radd__(self, other):
        return other + self

    @_binop
    def __sub__(self, other):
        return DualNumber(self.primal - other.primal, self.tangent - other.tangent)

    @_binop
    def __rsub__(self, other):
        return other - self

    @_binop
    def __mul__(self, other):
        return DualNumber(
            self.primal * other.primal,
            self.tangent * other.primal + self.primal * other.tangent,
        )

    @_binop
    def __rmul__(self, other):
        return other * self

    @_binop
    @ieee
    def __truediv__(self, other):
        x, y = np.float64(self.primal), np.float64(other.primal)
        return DualNumber(
            x / y,
            (self.tangent * y - x * other.tangent) / (y * y),
        )

    @_binop
    def __rtruediv__(self, other):
        return other / self

    def __neg__(self):
        return DualNumber(-self.primal, -self.tangent)

    def __pos__(self):
        return self

    @ieee
    def __pow__(self, n):
        if not isinstance(n, Real):
            return NotImplemented
        n = float(n)
        x = np.float64(self.primal)
        return DualNumber(np.power(x, n), n * np.power(x, n - 1.0) * self.tangent)

    def __abs__(self):
        return DualNumber(abs(self.primal), sign(self.primal) * self.tangent)


def constant(x: float) -> DualNumber:
    """Returns a dual number with zero tangent."""
    return DualNumber(x, 0.0)


def seed(x: float) -> DualNumber:
    """Returns a dual number marking the differentiation variable (tangent 1.0)."""
    return DualNumber(x, 1.0)


def lift(x) -> DualNumber:
    """Returns ``x`` as a dual number, wrapping bare numbers with :func:`constant`.

    Args:
        x: A dual number or a real number.

    Returns:
        ``x`` itself if it is already a dual number, else ``constant(x)``.

    Raises:
        TypeError: If ``x`` is neither a dual number nor a real number.
    """
    if isinstance(x, DualNumber):
        return x
    if isinstance(x, Real):
        return constant(x)
    raise TypeError(f"Cannot use {type(x).__name__} as a dual number.")
