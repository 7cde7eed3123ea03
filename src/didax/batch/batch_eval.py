"""Batched forward-mode evaluation.

Each function here seeds every input independently (tangent 1.0) and runs
one forward pass per input. Elements never interact, so the passes may be
spread over a thread pool with ``n_workers``; results keep the input order.
"""

from __future__ import annotations

from typing import Callable, Sequence

import numpy as np

from didax.forward.dual import DualNumber, lift, seed
from didax.utils.concurrency import parallel_execute

__all__ = [
    "vmap",
    "batch_apply",
    "batch_gradient",
    "evaluate_range",
    "range_points",
]

DualFunction = Callable[[DualNumber], DualNumber]


def _seeded_pass(function: DualFunction, x: float) -> DualNumber:
    """Evaluates ``function`` at ``seed(x)``."""
    return lift(function(seed(x)))


def vmap(
    function: DualFunction,
    xs: Sequence[float],
    n_workers: int | None = 1,
) -> list[DualNumber]:
    """Maps a forward pass over a sequence of inputs.

    Args:
        function: Function of one dual number.
        xs: Input points.
        n_workers: Number of threads. ``None`` or 1 runs serially.

    Returns:
        ``function(seed(x))`` for every ``x`` in ``xs``, in order.
    """
    points = [float(x) for x in xs]
    if not points:
        return []
    return parallel_execute(
        _seeded_pass,
        arg_tuples=[(function, x) for x in points],
        n_workers=n_workers,
    )


def batch_apply(
    function: DualFunction,
    xs: Sequence[float],
    n_workers: int | None = 1,
) -> np.ndarray:
    """Returns the values ``f(x)`` for every ``x`` in ``xs`` as a 1D array."""
    return np.asarray([out.primal for out in vmap(function, xs, n_workers)], dtype=float)


def batch_gradient(
    function: DualFunction,
    xs: Sequence[float],
    n_workers: int | None = 1,
) -> list[tuple[float, float]]:
    """Returns ``(f(x), f'(x))`` for every ``x`` in ``xs``."""
    return [(out.primal, out.tangent) for out in vmap(function, xs, n_workers)]


def range_points(start: float, end: float, steps: int) -> list[float]:
    """Returns ``steps + 1`` evenly spaced points covering ``[start, end]``.

    Point ``i`` is ``start + i * (end - start) / steps``. A non-positive
    ``steps`` gives an empty list.
    """
    if steps <= 0:
        return []
    step = (end - start) / steps
    return [start + i * step for i in range(steps + 1)]


def evaluate_range(
    function: DualFunction,
    start: float,
    end: float,
    steps: int,
    n_workers: int | None = 1,
) -> list[tuple[float, float, float]]:
    """Evaluates value and derivative on an evenly spaced grid.

    Args:
        function: Function of one dual number.
        start: First grid point.
        end: Last grid point.
        steps: Number of intervals; ``steps == 0`` returns an empty list.
        n_workers: Number of threads.

    Returns:
        ``(x, f(x), f'(x))`` for each of the ``steps + 1`` grid points.
    """
    points = range_points(start, end, steps)
    pairs = batch_gradient(function, points, n_workers)
    return [(x, value, slope) for x, (value, slope) in zip(points, pairs)]
