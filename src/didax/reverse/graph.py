"""Expression graphs for reverse-mode differentiation.

An expression graph is an immutable tree of :class:`Node` objects. The node
types form a closed set: a :class:`Leaf` holding a constant and one class
per primitive operator. Every node owns its children; a value used in two
places appears as two separate leaves, so there is no sharing and no cycle.

Trees can be built from the constructors directly or with the arithmetic
operators, which lift bare numbers into leaves:

    >>> from didax.reverse.graph import Leaf
    >>> x = Leaf(3.0)
    >>> g = x * x + 2.0 * x + 1.0
    >>> print(g)
    (((3.0 * 3.0) + (2.0 * 3.0)) + 1.0)
"""

from __future__ import annotations

from dataclasses import dataclass
from numbers import Integral, Real

__all__ = [
    "Node",
    "Leaf",
    "Add",
    "Sub",
    "Mul",
    "Div",
    "Neg",
    "Sin",
    "Cos",
    "Log",
    "Exp",
    "BINARY_NODES",
    "UNARY_NODES",
    "as_node",
    "power",
    "leaves",
]


def as_node(x) -> Node:
    """Returns ``x`` as a node, wrapping bare numbers in :class:`Leaf`.

    Raises:
        TypeError: If ``x`` is neither a node nor a real number.
    """
    if isinstance(x, Node):
        return x
    if isinstance(x, Real):
        return Leaf(x)
    raise TypeError(f"Cannot use {type(x).__name__} as an expression node.")


@dataclass(frozen=True)
class Node:
    """Base class of all expression graph nodes."""

    # numpy scalars on the left-hand side defer to the reflected operators.
    __array_ufunc__ = None

    def __add__(self, other):
        if not isinstance(other, (Node, Real)):
            return NotImplemented
        return Add(self, as_node(other))

    def __radd__(self, other):
        if not isinstance(other, Real):
            return NotImplemented
        return Add(Leaf(other), self)

    def __sub__(self, other):
        if not isinstance(other, (Node, Real)):
            return NotImplemented
        return Sub(self, as_node(other))

    def __rsub__(self, other):
        if not isinstance(other, Real):
            return NotImplemented
        return Sub(Leaf(other), self)

    def __mul__(self, other):
        if not isinstance(other, (Node, Real)):
            return NotImplemented
        return Mul(self, as_node(other))

    def __rmul__(self, other):
        if not isinstance(other, Real):
            return NotImplemented
        return Mul(Leaf(other), self)

    def __truediv__(self, other):
        if not isinstance(other, (Node, Real)):
            return NotImplemented
        return Div(self, as_node(other))

    def __rtruediv__(self, other):
        if not isinstance(other, Real):
            return NotImplemented
        return Div(Leaf(other), self)

    def __neg__(self):
        return Neg(self)

    def __pow__(self, n):
        if not isinstance(n, Real):
            return NotImplemented
        return power(self, n)


@dataclass(frozen=True)
class Leaf(Node):
    """A constant input value."""

    value: float

    def __post_init__(self):
        object.__setattr__(self, "value", float(self.value))

    def __str__(self) -> str:
        return repr(self.value)


@dataclass(frozen=True)
class _Binary(Node):
    left: Node
    right: Node

    symbol = "?"

    def __str__(self) -> str:
        return f"({self.left} {self.symbol} {self.right})"


@dataclass(frozen=True)
class _Unary(Node):
    operand: Node

    symbol = "?"

    def __str__(self) -> str:
        return f"{self.symbol}({self.operand})"


@dataclass(frozen=True)
class Add(_Binary):
    symbol = "+"


@dataclass(frozen=True)
class Sub(_Binary):
    symbol = "-"


@dataclass(frozen=True)
class Mul(_Binary):
    symbol = "*"


@dataclass(frozen=True)
class Div(_Binary):
    symbol = "/"


@dataclass(frozen=True)
class Neg(_Unary):
    symbol = "-"


@dataclass(frozen=True)
class Sin(_Unary):
    symbol = "sin"


@dataclass(frozen=True)
class Cos(_Unary):
    symbol = "cos"


@dataclass(frozen=True)
class Log(_Unary):
    symbol = "log"


@dataclass(frozen=True)
class Exp(_Unary):
    symbol = "exp"


BINARY_NODES = (Add, Sub, Mul, Div)
UNARY_NODES = (Neg, Sin, Cos, Log, Exp)


def power(base, n: float) -> Node:
    """Builds ``base ** n`` from the primitive node types.

    Integer exponents expand into repeated products. ``x**-k`` is built as
    ``x / x**(k + 1)`` so that no constant leaf enters the tree; at ``x = 0``
    it evaluates to NaN rather than infinity. ``x**0`` is ``Leaf(1.0)``. Any
    other exponent uses ``exp(n * log(base))``, which is only real for a
    positive base and adds the constant leaf ``n``. Each factor is the same
    ``base`` object.

    Args:
        base: Node (or number) to raise.
        n: Constant exponent.

    Returns:
        The expression tree for ``base ** n``.
    """
    base = as_node(base)
    if isinstance(n, Integral) or float(n).is_integer():
        k = int(n)
        if k == 0:
            return Leaf(1.0)
        factors = k if k > 0 else 1 - k
        node = base
        for _ in range(factors - 1):
            node = Mul(node, base)
        return node if k > 0 else Div(base, node)
    return Exp(Mul(Leaf(float(n)), Log(base)))


def leaves(node: Node) -> list[float]:
    """Returns the leaf values of ``node`` in left-to-right order."""
    out: list[float] = []
    stack = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, Leaf):
            out.append(current.value)
        elif isinstance(current, _Binary):
            stack += [current.right, current.left]
        elif isinstance(current, _Unary):
            stack.append(current.operand)
        else:
            raise TypeError(f"Unknown node type {type(current).__name__}.")
    return out
