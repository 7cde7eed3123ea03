"""Pytest configuration file with fixtures for thread-pool tests."""

from concurrent.futures import ThreadPoolExecutor, TimeoutError

import pytest

import didax.utils.concurrency as conc

__all__ = ["extra_threads_ok"]


@pytest.fixture(scope="session")
def threads_ok():
    """Return a callable that checks thread-spawning capability.

    The returned function has signature `check(n=2, timeout=1.0) -> bool` and
    returns True if at least `n` threads can be started and joined within `timeout`.
    """
    def _can_spawn(n: int = 2, timeout: float = 1.0) -> bool:
        try:
            with ThreadPoolExecutor(max_workers=n) as ex:
                futs = [ex.submit(lambda: None) for _ in range(n)]
                for f in futs:
                    f.result(timeout=timeout)
            return True
        except (RuntimeError, MemoryError, OSError, TimeoutError):
            return False
    return _can_spawn


@pytest.fixture(scope="session")
def extra_threads_ok(threads_ok):
    """Convenience: True iff we can start >= 2 threads (common case)."""
    return threads_ok(2)


@pytest.fixture(autouse=True)
def _reset_worker_defaults(monkeypatch):
    """Clear module-wide worker overrides so every test starts from the per-call argument."""
    monkeypatch.setattr(conc, "_DEFAULT_WORKERS", None, raising=True)
    token = conc._workers_var.set(None)
    yield
    conc._workers_var.reset(token)
