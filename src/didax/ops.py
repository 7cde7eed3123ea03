"""Elementary functions that work with either differentiation engine.

Each function dispatches on the type of its argument:

- a real number is evaluated directly and a float is returned;
- a :class:`~didax.forward.dual.DualNumber` goes through the forward rules;
- a :class:`~didax.reverse.graph.Node` builds an expression tree.

The same function body runs under both engines:

    >>> from didax import ops
    >>> from didax.forward import grad as fgrad
    >>> from didax.reverse import grad as rgrad
    >>> f = lambda x: ops.sin(x) * ops.exp(x)
    >>> abs(fgrad(f, 0.7) - rgrad(f, 0.7)) < 1e-12
    True

Expression trees only have ``sin``, ``cos``, ``log`` and ``exp`` nodes, and
the other functions are written in terms of those and of arithmetic nodes.
``tan``, ``tanh`` and ``pow`` with a nonzero integer exponent need no
constants. ``sinh``, ``cosh`` and ``sqrt`` add ``Leaf(0.5)``, ``sigmoid``
adds two ``Leaf(1.0)``, ``pow(x, 0)`` is ``Leaf(1.0)`` and non-integer
``pow(x, n)`` adds ``Leaf(n)``. Reverse mode keys
cotangents by leaf value, so at an input equal to one of those constants
the reverse gradient of these forms is wrong; use forward mode there.
``absolute`` and ``relu`` have no tree form and raise ``TypeError`` for
nodes.
"""

from __future__ import annotations

from functools import singledispatch
from numbers import Real

import numpy as np

from didax.forward import rules
from didax.forward.dual import DualNumber
from didax.reverse.graph import Cos, Div, Exp, Leaf, Log, Mul, Neg, Node, Sin, Sub, power
from didax.utils.numerics import ieee

__all__ = [
    "sin",
    "cos",
    "tan",
    "sinh",
    "cosh",
    "tanh",
    "exp",
    "log",
    "sqrt",
    "pow",
    "absolute",
    "abs",
    "relu",
    "sigmoid",
]


def _unsupported(name: str, x):
    raise TypeError(f"{name}() is not defined for {type(x).__name__}.")


def _real(np_fn):
    """Float implementation of a unary function via numpy."""

    @ieee
    def impl(x: Real) -> float:
        return float(np_fn(np.float64(x)))

    return impl


@singledispatch
def sin(x):
    """Sine."""
    _unsupported("sin", x)


sin.register(Real, _real(np.sin))
sin.register(DualNumber, rules.sin)
sin.register(Node, Sin)


@singledispatch
def cos(x):
    """Cosine."""
    _unsupported("cos", x)


cos.register(Real, _real(np.cos))
cos.register(DualNumber, rules.cos)
cos.register(Node, Cos)


@singledispatch
def exp(x):
    """Exponential."""
    _unsupported("exp", x)


exp.register(Real, _real(np.exp))
exp.register(DualNumber, rules.exp)
exp.register(Node, Exp)


@singledispatch
def log(x):
    """Natural logarithm."""
    _unsupported("log", x)


log.register(Real, _real(np.log))
log.register(DualNumber, rules.log)
log.register(Node, Log)


@singledispatch
def tan(x):
    """Tangent; on trees, ``sin(x) / cos(x)``."""
    _unsupported("tan", x)


tan.register(Real, _real(np.tan))
tan.register(DualNumber, rules.tan)


@tan.register
def _(x: Node) -> Node:
    return Div(Sin(x), Cos(x))


@singledispatch
def sinh(x):
    """Hyperbolic sine; on trees, ``0.5 * (exp(x) - exp(-x))``."""
    _unsupported("sinh", x)


sinh.register(Real, _real(np.sinh))
sinh.register(DualNumber, rules.sinh)


@sinh.register
def _(x: Node) -> Node:
    return Mul(Leaf(0.5), Sub(Exp(x), Exp(Neg(x))))


@singledispatch
def cosh(x):
    """Hyperbolic cosine; on trees, ``0.5 * (exp(x) + exp(-x))``."""
    _unsupported("cosh", x)


cosh.register(Real, _real(np.cosh))
cosh.register(DualNumber, rules.cosh)


@cosh.register
def _(x: Node) -> Node:
    return Mul(Leaf(0.5), Exp(x) + Exp(Neg(x)))


@singledispatch
def tanh(x):
    """Hyperbolic tangent; on trees, ``(e^x - e^-x) / (e^x + e^-x)``."""
    _unsupported("tanh", x)


tanh.register(Real, _real(np.tanh))
tanh.register(DualNumber, rules.tanh)


@tanh.register
def _(x: Node) -> Node:
    return Div(Sub(Exp(x), Exp(Neg(x))), Exp(x) + Exp(Neg(x)))


@singledispatch
def sqrt(x):
    """Square root; on trees, ``exp(0.5 * log(x))``."""
    _unsupported("sqrt", x)


sqrt.register(Real, _real(np.sqrt))
sqrt.register(DualNumber, rules.sqrt)


@sqrt.register
def _(x: Node) -> Node:
    return power(x, 0.5)


@singledispatch
def pow(x, n: float):  # noqa: A001
    """``x ** n`` for a constant exponent ``n``."""
    _unsupported("pow", x)


@ieee
def _pow_real(x, n: float) -> float:
    return float(np.power(np.float64(x), float(n)))


pow.register(Real, _pow_real)
pow.register(DualNumber, rules.pow)
pow.register(Node, power)


@singledispatch
def sigmoid(x):
    """Logistic function; on trees, ``1 / (1 + exp(-x))``."""
    _unsupported("sigmoid", x)


sigmoid.register(Real, _real(lambda v: 1.0 / (1.0 + np.exp(-v))))
sigmoid.register(DualNumber, rules.sigmoid)


@sigmoid.register
def _(x: Node) -> Node:
    return Div(Leaf(1.0), Leaf(1.0) + Exp(Neg(x)))


@singledispatch
def absolute(x):
    """Absolute value with derivative ``sign(x)`` and 0 at 0. Not available on trees."""
    _unsupported("absolute", x)


absolute.register(Real, _real(np.abs))
absolute.register(DualNumber, rules.absolute)

abs = absolute  # noqa: A001


@singledispatch
def relu(x):
    """``max(0, x)`` with derivative 0 at 0. Not available on trees."""
    _unsupported("relu", x)


relu.register(Real, _real(lambda v: np.maximum(v, 0.0)))
relu.register(DualNumber, rules.relu)
