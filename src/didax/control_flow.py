"""Differentiable control flow.

Branch and loop conditions are decided on primal values only; the
derivative flows through whichever operations actually run. The helpers
accept a :class:`~didax.forward.dual.DualNumber`, a
:class:`~didax.reverse.graph.Node` (conditions see its evaluated value) or
a plain float.

Examples:
    >>> from didax.control_flow import cond
    >>> from didax.forward import grad
    >>> f = lambda x: cond(lambda v: v > 0.0, lambda t: t * t, lambda t: -t, x)
    >>> grad(f, 3.0), grad(f, -3.0)
    (6.0, -1.0)
"""

from __future__ import annotations

from typing import Callable, TypeVar

from didax.forward.dual import DualNumber
from didax.reverse.engine import evaluate
from didax.reverse.graph import Node

__all__ = [
    "primal_value",
    "cond",
    "while_loop",
    "fori_loop",
]

T = TypeVar("T")


def primal_value(x) -> float:
    """Returns the value a branch condition sees for ``x``."""
    if isinstance(x, DualNumber):
        return x.primal
    if isinstance(x, Node):
        return evaluate(x)
    return float(x)


def cond(
    pred: Callable[[float], bool],
    true_fn: Callable[[T], T],
    false_fn: Callable[[T], T],
    operand: T,
) -> T:
    """Applies ``true_fn`` or ``false_fn`` depending on ``pred(primal)``.

    Only the selected branch is evaluated, so its derivative is the one
    propagated. At a switching point the derivative is that of the branch
    that is taken.

    Args:
        pred: Predicate on the primal value of ``operand``.
        true_fn: Branch taken when ``pred`` is true.
        false_fn: Branch taken otherwise.
        operand: Dual number, expression node or float.

    Returns:
        The output of the selected branch.
    """
    if pred(primal_value(operand)):
        return true_fn(operand)
    return false_fn(operand)


def while_loop(
    cond_fn: Callable[[float], bool],
    body_fn: Callable[[T], T],
    init: T,
    max_iterations: int | None = None,
) -> T:
    """Repeats ``body_fn`` while ``cond_fn(primal)`` holds.

    Tangents (or tree structure) are carried through every iteration, so the
    result is differentiated with respect to ``init`` through the whole
    unrolled loop.

    Args:
        cond_fn: Loop condition evaluated on the primal value of the state.
        body_fn: Loop body mapping state to state.
        init: Initial state.
        max_iterations: Optional bound on the number of iterations.

    Returns:
        The final state.

    Raises:
        RuntimeError: If the loop is still running after ``max_iterations``.
    """
    state = init
    count = 0
    while cond_fn(primal_value(state)):
        if max_iterations is not None and count >= max_iterations:
            raise RuntimeError(f"while_loop did not terminate within {max_iterations} iterations.")
        state = body_fn(state)
        count += 1
    return state


def fori_loop(
    lower: int,
    upper: int,
    body_fn: Callable[[int, T], T],
    init: T,
) -> T:
    """Applies ``state = body_fn(i, state)`` for ``i`` in ``range(lower, upper)``."""
    state = init
    for i in range(lower, upper):
        state = body_fn(i, state)
    return state
