"""Evaluation and backward traversal of expression graphs.

``evaluate`` computes the value of a tree bottom-up. ``backward`` walks the
tree depth-first from the root, transforming the incoming cotangent with
each node's local derivative, and emits one ``(leaf_value, cotangent)``
pair per leaf. Binary nodes visit the left child before the right child,
so the output order is stable.

Both traversals use an explicit stack, so tree depth is limited only by
memory. ``backward`` starts with one post-order pass that records the value
of every node; no values are kept between calls.

Cotangents are keyed by leaf *value*, not by leaf identity. Two leaves
holding the same number (for instance a constant ``3.0`` and the input
``x = 3.0``) cannot be told apart by :func:`accumulate` or :func:`grad`.

Domain violations propagate as IEEE NaN/infinity; nothing here raises for
numeric reasons.
"""

from __future__ import annotations

from typing import Callable

import numpy as np

from didax.reverse.graph import (
    BINARY_NODES,
    UNARY_NODES,
    Add,
    Cos,
    Div,
    Exp,
    Leaf,
    Log,
    Mul,
    Neg,
    Node,
    Sin,
    Sub,
)
from didax.utils.numerics import ieee

__all__ = [
    "evaluate",
    "backward",
    "accumulate",
    "lookup_cotangent",
    "grad",
    "value_and_grad",
]

Cotangents = list[tuple[float, float]]


def _children(node: Node) -> tuple[Node, ...]:
    if isinstance(node, Leaf):
        return ()
    if isinstance(node, BINARY_NODES):
        return node.left, node.right
    if isinstance(node, UNARY_NODES):
        return (node.operand,)
    raise TypeError(f"Unknown node type {type(node).__name__}.")


def _combine(node: Node, args: list[np.float64]) -> np.float64:
    """Value of ``node`` given the values of its children."""
    match node:
        case Add():
            return args[0] + args[1]
        case Sub():
            return args[0] - args[1]
        case Mul():
            return args[0] * args[1]
        case Div():
            return args[0] / args[1]
        case Neg():
            return -args[0]
        case Sin():
            return np.sin(args[0])
        case Cos():
            return np.cos(args[0])
        case Log():
            return np.log(args[0])
        case Exp():
            return np.exp(args[0])
        case _:
            raise TypeError(f"Unknown node type {type(node).__name__}.")


def _values(root: Node) -> dict[int, np.float64]:
    """Post-order pass returning the value of every node, keyed by ``id``.

    A node object reachable along several paths is computed once.
    """
    values: dict[int, np.float64] = {}
    stack: list[tuple[Node, bool]] = [(root, False)]
    while stack:
        node, ready = stack.pop()
        if id(node) in values:
            continue
        if isinstance(node, Leaf):
            values[id(node)] = np.float64(node.value)
            continue
        children = _children(node)
        if ready:
            values[id(node)] = _combine(node, [values[id(c)] for c in children])
        else:
            stack.append((node, True))
            stack.extend((c, False) for c in children)
    return values


@ieee
def evaluate(node: Node) -> float:
    """Evaluates an expression tree.

    Args:
        node: Root of the tree.

    Returns:
        The value of the expression as a float.

    Raises:
        TypeError: If the tree contains an unknown node type.
    """
    return float(_values(node)[id(node)])


@ieee
def backward(node: Node, seed_cotangent: float = 1.0) -> Cotangents:
    """Distributes ``seed_cotangent`` from the root down to every leaf.

    Args:
        node: Root of the tree.
        seed_cotangent: Cotangent of the output (1.0 for a gradient).

    Returns:
        One ``(leaf_value, cotangent)`` pair per leaf, left-child-first.
        Pairs are not merged; a value may occur more than once.

    Raises:
        TypeError: If the tree contains an unknown node type.
    """
    values = _values(node)

    def val(n: Node) -> np.float64:
        return values[id(n)]

    out: Cotangents = []
    # Right child is pushed first so the left child is popped first.
    stack: list[tuple[Node, np.float64]] = [(node, np.float64(seed_cotangent))]
    while stack:
        current, c = stack.pop()
        match current:
            case Leaf(value=v):
                out.append((v, float(c)))
            case Add(left=lhs, right=rhs):
                stack += [(rhs, c), (lhs, c)]
            case Sub(left=lhs, right=rhs):
                stack += [(rhs, -c), (lhs, c)]
            case Mul(left=lhs, right=rhs):
                stack += [(rhs, c * val(lhs)), (lhs, c * val(rhs))]
            case Div(left=lhs, right=rhs):
                vl, vr = val(lhs), val(rhs)
                stack += [(rhs, -c * vl / (vr * vr)), (lhs, c / vr)]
            case Neg(operand=x):
                stack.append((x, -c))
            case Sin(operand=x):
                stack.append((x, c * np.cos(val(x))))
            case Cos(operand=x):
                stack.append((x, -c * np.sin(val(x))))
            case Log(operand=x):
                stack.append((x, c / val(x)))
            case Exp(operand=x):
                stack.append((x, c * np.exp(val(x))))
            case _:
                raise TypeError(f"Unknown node type {type(current).__name__}.")
    return out


def accumulate(pairs: Cotangents) -> Cotangents:
    """Sums cotangents per distinct leaf value.

    Args:
        pairs: Output of :func:`backward`.

    Returns:
        One ``(leaf_value, total_cotangent)`` pair per distinct value, in order
        of first appearance.
    """
    totals: dict[float, float] = {}
    for value, cotangent in pairs:
        totals[value] = totals.get(value, 0.0) + cotangent
    return list(totals.items())


def lookup_cotangent(pairs: Cotangents, value: float) -> float:
    """Returns the cotangent of the first pair whose leaf value equals ``value``.

    The scan is linear and compares floats exactly. Returns 0.0 when no
    leaf holds ``value``.
    """
    for leaf_value, cotangent in pairs:
        if leaf_value == value:
            return cotangent
    return 0.0


def grad(build_graph: Callable[[Leaf], Node], x: float) -> float:
    """Reverse-mode derivative of a graph-building function at ``x``.

    Builds ``build_graph(Leaf(x))``, back-propagates a unit cotangent and
    sums the cotangents of every leaf whose value equals ``x``. Returns 0.0 if
    no leaf holds ``x`` (for instance when ``build_graph`` ignores its input).

    Constant leaves that happen to equal ``x`` are counted as if they were
    the input.

    Args:
        build_graph: Function from the input leaf to the output node.
        x: Point at which to differentiate.

    Returns:
        The derivative as a float.
    """
    return value_and_grad(build_graph, x)[1]


def value_and_grad(build_graph: Callable[[Leaf], Node], x: float) -> tuple[float, float]:
    """Returns ``(value, derivative)`` of a graph-building function at ``x``.

    A function that returns a bare number is constant in ``x``; its
    derivative is 0.0.
    """
    graph = build_graph(Leaf(x))
    if not isinstance(graph, Node):
        return float(graph), 0.0
    return evaluate(graph), lookup_cotangent(accumulate(backward(graph, 1.0)), float(x))
