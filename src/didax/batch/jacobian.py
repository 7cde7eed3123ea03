"""Contains functions used to construct the Jacobian matrix with forward mode."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from functools import partial

import numpy as np

from didax.forward.dual import DualNumber, constant, lift, seed
from didax.logger import didax_logger
from didax.utils.concurrency import parallel_execute
from didax.utils.types import Array, ArrayLike1D

__all__ = ["jacobian", "output_size"]

VectorFunction = Callable[[list[DualNumber]], Sequence[DualNumber]]


def output_size(function: VectorFunction, xs: Sequence[float]) -> int:
    """Returns the number of outputs of ``function`` at ``xs``.

    Runs one calibration pass with every input held constant.
    """
    return len(function([constant(x) for x in xs]))


def jacobian(
    function: VectorFunction,
    xs: ArrayLike1D,
    n_workers: int | None = 1,
) -> Array:
    """Computes the Jacobian of a vector-valued function with forward mode.

    Column ``j`` is obtained from one forward pass in which input ``j`` is
    seeded (tangent 1.0) and all other inputs are constants (tangent 0.0).
    An ``n``-input function therefore costs ``n`` passes, plus one
    calibration pass that determines the number of outputs ``m``.

    Args:
        function: Maps a list of ``n`` dual numbers to a sequence of ``m``
            dual numbers (bare numbers in the output count as constants).
        xs: Point at which the Jacobian is evaluated.
        n_workers: Number of threads used across columns. ``None`` or 1
            runs serially.

    Returns:
        A 2D array of shape ``(m, n)`` with ``J[i, j] = d f_i / d x_j``.
    """
    point = [float(x) for x in xs]
    m = output_size(function, point)
    n = len(point)
    didax_logger.debug("jacobian: %d output(s), %d input(s)", m, n)
    if n == 0:
        return np.zeros((m, 0), dtype=float)

    worker = partial(_column, function, point)
    cols = parallel_execute(worker, arg_tuples=[(j,) for j in range(n)], n_workers=n_workers)

    # Stack columns -> (m, n)
    return np.column_stack([np.asarray(c, dtype=float).reshape(m) for c in cols])


def _column(function: VectorFunction, point: list[float], j: int) -> list[float]:
    """Tangents of every output with only input ``j`` seeded.

    Args:
        function: The vector-valued function to be differentiated.
        point: Point at which the Jacobian is evaluated.
        j: Index of the seeded input.

    Returns:
        Column ``j`` of the Jacobian as a list of length ``m``.
    """
    inputs = [seed(x) if i == j else constant(x) for i, x in enumerate(point)]
    return [lift(y).tangent for y in function(inputs)]
