"""Lock wrapper used by the jit compilation cache."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any, TypeVar

__all__ = ["wrap_with_lock"]

T = TypeVar("T")


def wrap_with_lock(
    fn: Callable[..., T] | None,
    lock: Any = None,
) -> Callable[..., T] | None:
    """Returns ``fn`` guarded so that one thread at a time can run it.

    :func:`didax.staging.jit` wraps its trace-and-store step with this, so
    two threads calling a jitted function for the first time trace it once.

    Args:
        fn: Callable to guard. ``None`` is passed through, which lets optional
            hooks be wrapped without a check at the call site.
        lock: Any context-manager lock shared with other guarded callables.
            Defaults to a fresh ``threading.RLock``, so a guarded function may
            re-enter itself on the same thread.

    Returns:
        A callable with the same arguments and result as ``fn``, or ``None``.
    """
    if fn is None:
        return None
    guard = threading.RLock() if lock is None else lock

    def guarded(*args: Any, **kwargs: Any) -> T:
        with guard:
            return fn(*args, **kwargs)

    return guarded
