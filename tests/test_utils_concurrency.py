"""Tests for didax.utils.concurrency."""

from __future__ import annotations

import threading

import pytest

from didax.utils import concurrency as conc


def test_set_default_workers_overrides_argument(monkeypatch):
    """set_default_workers should take precedence over the per-call argument."""
    monkeypatch.setattr(conc, "_detect_hw_threads", lambda: 16)

    conc.set_default_workers(3)
    assert conc._DEFAULT_WORKERS == 3
    assert conc.resolve_workers(n_workers=1, n_tasks=10) == 3
    assert conc.resolve_workers(n_workers=8, n_tasks=10) == 3


def test_set_workers_context_manager_restores_previous():
    """Context manager should temporarily set the value and restore it on exit."""
    prev = conc._workers_var.get()

    with conc.set_workers(5) as returned_prev:
        assert returned_prev == prev
        assert conc._workers_var.get() == 5

    assert conc._workers_var.get() == prev


def test_resolve_workers_prefers_context_then_default(monkeypatch):
    """Precedence: contextvar > default > per-call argument."""
    monkeypatch.setattr(conc, "_detect_hw_threads", lambda: 16)

    with conc.set_workers(7):
        conc.set_default_workers(5)
        assert conc.resolve_workers(n_workers=2, n_tasks=10) == 7

    assert conc.resolve_workers(n_workers=2, n_tasks=10) == 5


@pytest.mark.parametrize(
    "n_workers, n_tasks, hw, expected",
    [
        (None, 10, 8, 1),
        (1, 10, 8, 1),
        (4, 10, 8, 4),
        (4, 1, 8, 1),
        (4, 3, 8, 3),
        (16, 100, 8, 8),
    ],
)
def test_resolve_workers_caps(monkeypatch, n_workers, n_tasks, hw, expected):
    """resolve_workers should be capped by the task count and hardware threads."""
    monkeypatch.setattr(conc, "_detect_hw_threads", lambda: hw)
    assert conc.resolve_workers(n_workers, n_tasks) == expected


@pytest.mark.parametrize("value, expected", [(None, 1), (0, 1), (-3, 1), (2.7, 2), ("4", 4), ("x", 1)])
def test_normalize_workers(value, expected):
    """normalize_workers should coerce invalid inputs to 1."""
    assert conc.normalize_workers(value) == expected


def test_detect_hw_threads_respects_env(monkeypatch):
    """Environment hints should cap the detected thread count."""
    monkeypatch.setenv("DIDAX_NUM_WORKERS", "2")
    monkeypatch.delenv("OMP_NUM_THREADS", raising=False)
    assert conc._detect_hw_threads() <= 2
    monkeypatch.setenv("DIDAX_NUM_WORKERS", "not-a-number")
    assert conc._detect_hw_threads() >= 1


def test_parallel_execute_sequential_preserves_order():
    """parallel_execute should run in the calling thread when one worker is used."""
    main = threading.get_ident()

    def worker(x):
        return x * x, threading.get_ident() == main

    assert conc.parallel_execute(worker, [(1,), (2,), (3,)], n_workers=1) == [
        (1, True),
        (4, True),
        (9, True),
    ]


@pytest.mark.parallel
def test_parallel_execute_threaded_preserves_order_and_context(monkeypatch, extra_threads_ok):
    """parallel_execute should keep order and copy the caller's context into workers."""
    if not extra_threads_ok:
        pytest.skip("cannot spawn threads")
    monkeypatch.setattr(conc, "_detect_hw_threads", lambda: 4)

    def worker(x):
        return x, conc._workers_var.get()

    with conc.set_workers(2):
        results = conc.parallel_execute(worker, [(10,), (20,), (30,)], n_workers=2)

    assert results == [(10, 2), (20, 2), (30, 2)]


def test_parallel_execute_propagates_worker_exceptions():
    """Exceptions raised by a worker reach the caller."""
    def worker(x):
        raise RuntimeError(f"boom {x}")

    with pytest.raises(RuntimeError, match="boom 1"):
        conc.parallel_execute(worker, [(1,), (2,)], n_workers=1)


def test_detect_hw_threads_ignores_blas_variables(monkeypatch):
    """Only DIDAX_NUM_WORKERS and OMP_NUM_THREADS cap the detected thread count."""
    monkeypatch.setattr(conc.os, "cpu_count", lambda: 8)
    monkeypatch.delenv("DIDAX_NUM_WORKERS", raising=False)
    monkeypatch.delenv("OMP_NUM_THREADS", raising=False)
    monkeypatch.setenv("OPENBLAS_NUM_THREADS", "1")
    monkeypatch.setenv("MKL_NUM_THREADS", "1")
    assert conc._detect_hw_threads() == 8
    monkeypatch.setenv("OMP_NUM_THREADS", "3")
    assert conc._detect_hw_threads() == 3
