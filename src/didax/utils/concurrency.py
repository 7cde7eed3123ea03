"""Concurrency management for batched forward-mode evaluations."""

from __future__ import annotations

import contextvars
import os
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Sequence, Tuple

from didax.logger import didax_logger

__all__ = [
    "set_default_workers",
    "set_workers",
    "normalize_workers",
    "resolve_workers",
    "parallel_execute",
]


# Context-var and default
_workers_var: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "didax_workers", default=None
)
_DEFAULT_WORKERS: int | None = None


def set_default_workers(n: int | None) -> None:
    """Sets the module-wide default number of batch workers.

    Args:
        n: Number of workers, or None to fall back to the per-call argument.

    Returns:
        None
    """
    global _DEFAULT_WORKERS
    _DEFAULT_WORKERS = None if n is None else normalize_workers(n)


@contextmanager
def set_workers(n: int | None) -> Iterator[int | None]:
    """Temporarily sets the number of batch workers.

    Args:
        n: Number of workers, or ``None`` to fall back to the per-call argument.

    Yields:
        int | None: The previous worker setting (restored on exit).
    """
    prev = _workers_var.get()
    token = _workers_var.set(None if n is None else normalize_workers(n))
    try:
        yield prev
    finally:
        _workers_var.reset(token)


def _int_env(name: str) -> int | None:
    """Reads a positive integer from an environment variable, or None if unset/invalid.

    Args:
        name: Environment variable name.

    Returns:
        Positive integer value, or None.
    """
    v = os.getenv(name)
    if not v:
        return None
    try:
        i = int(v)
        return i if i > 0 else None
    except ValueError:
        return None


def _detect_hw_threads() -> int:
    """Detects the number of hardware threads, capped by relevant environment variables.

    Returns:
        Number of hardware threads (at least 1).
    """
    hints = [
        _int_env("DIDAX_NUM_WORKERS"),
        _int_env("OMP_NUM_THREADS"),
    ]
    env_cap = min([h for h in hints if h is not None], default=None)
    hw = os.cpu_count() or 1
    return max(1, min(hw, env_cap) if env_cap else hw)


def normalize_workers(
    n_workers: Any
) -> int:
    """Ensures n_workers is a positive integer, defaulting to 1.

    Args:
        n_workers: Input number of workers (can be None, float, negative, etc.)

    Returns:
        int: A positive integer number of workers (at least 1).

    Raises:
        None: Invalid inputs are coerced to 1.
    """
    try:
        n = int(n_workers)
    except (TypeError, ValueError):
        n = 1
    return 1 if n < 1 else n


def resolve_workers(n_workers: Any, n_tasks: int) -> int:
    """Decides how many threads a batch of ``n_tasks`` independent evaluations uses.

    Precedence: the ``set_workers`` context, then ``set_default_workers``, then
    the per-call ``n_workers``. The result is capped by the hardware thread
    count and by the number of tasks.

    Args:
        n_workers: Per-call worker request. ``None`` means 1.
        n_tasks: Number of independent tasks.

    Returns:
        Number of workers to use (at least 1).
    """
    requested = _workers_var.get()
    if requested is None:
        requested = _DEFAULT_WORKERS
    if requested is None:
        requested = normalize_workers(n_workers)
    if requested <= 1 or n_tasks <= 1:
        return 1
    return max(1, min(requested, n_tasks, _detect_hw_threads()))


def parallel_execute(
    worker: Callable[..., Any],
    arg_tuples: Sequence[Tuple[Any, ...]],
    *,
    n_workers: int = 1,
) -> list[Any]:
    """Runs ``worker(*args)`` for each tuple in arg_tuples, preserving order.

    Args:
        worker: Pure function evaluated once per argument tuple.
        arg_tuples: Argument tuples, one per task.
        n_workers: Requested number of threads; see :func:`resolve_workers`.

    Returns:
        List of results in the order of ``arg_tuples``.
    """
    workers = resolve_workers(n_workers, len(arg_tuples))
    didax_logger.debug("parallel_execute: %d task(s) on %d worker(s)", len(arg_tuples), workers)
    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as ex:
            futures = []
            for args in arg_tuples:
                # Each task gets its own copy of the current context
                ctx = contextvars.copy_context()
                futures.append(ex.submit(ctx.run, worker, *args))
            return [f.result() for f in futures]
    return [worker(*args) for args in arg_tuples]
