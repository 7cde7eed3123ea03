"""Reverse-mode automatic differentiation over explicit expression trees."""

from .engine import accumulate, backward, evaluate, grad, lookup_cotangent, value_and_grad
from .graph import (
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
    as_node,
    leaves,
    power,
)

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
    "as_node",
    "power",
    "leaves",
    "evaluate",
    "backward",
    "accumulate",
    "lookup_cotangent",
    "grad",
    "value_and_grad",
]
