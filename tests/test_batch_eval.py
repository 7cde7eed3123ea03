"""Tests for vmap, batch_apply, batch_gradient and evaluate_range."""

from __future__ import annotations

import math

import numpy as np
import pytest

from didax.batch.batch_eval import (
    batch_apply,
    batch_gradient,
    evaluate_range,
    range_points,
    vmap,
)
from didax.forward import rules
from didax.forward.dual import DualNumber
from didax.forward.transforms import value_and_grad


def square(x):
    """f(x) = x^2."""
    return x * x


def wavy(x):
    """f(x) = sin(x) * exp(-x / 2)."""
    return rules.sin(x) * rules.exp(-x / 2.0)


def test_batch_apply_returns_values_in_order():
    """Tests that batch_apply returns f(x) for each input as a float array."""
    out = batch_apply(square, [1.0, 2.0, 3.0])
    assert isinstance(out, np.ndarray)
    assert out.dtype == float
    np.testing.assert_array_equal(out, [1.0, 4.0, 9.0])


def test_batch_gradient_returns_value_and_derivative_pairs():
    """Tests that batch_gradient gives (x^2, 2x) for each input."""
    assert batch_gradient(square, [1.0, 2.0, 3.0]) == [(1.0, 2.0), (4.0, 4.0), (9.0, 6.0)]


@pytest.mark.parametrize("xs", [[-1.5, 0.0, 0.5, 2.0], np.linspace(-3.0, 3.0, 7)])
def test_batch_gradient_matches_pointwise_value_and_grad(xs):
    """Tests that each batched element equals a single forward pass."""
    batched = batch_gradient(wavy, xs)
    assert batched == [value_and_grad(wavy, x) for x in xs]


def test_vmap_returns_dual_numbers():
    """Tests that vmap returns the raw dual outputs and lifts bare numbers."""
    out = vmap(square, [2.0, -1.0])
    assert out == [DualNumber(4.0, 4.0), DualNumber(1.0, -2.0)]
    assert vmap(lambda x: 5.0, [1.0]) == [DualNumber(5.0, 0.0)]


def test_empty_batch_returns_empty():
    """Tests that empty inputs produce empty outputs."""
    assert vmap(square, []) == []
    assert batch_gradient(square, []) == []
    assert batch_apply(square, []).shape == (0,)


def test_batch_propagates_nan_per_element():
    """Tests that a domain violation in one element does not affect the others."""
    out = batch_gradient(rules.log, [-1.0, 1.0])
    assert math.isnan(out[0][0])
    assert out[1] == (0.0, 1.0)


def test_range_points_are_evenly_spaced():
    """Tests the grid used by evaluate_range."""
    assert range_points(0.0, 1.0, 4) == [0.0, 0.25, 0.5, 0.75, 1.0]
    assert range_points(2.0, 0.0, 2) == [2.0, 1.0, 0.0]


@pytest.mark.parametrize("steps", [0, -3])
def test_range_points_with_non_positive_steps_is_empty(steps):
    """Tests that a non-positive number of steps gives no points."""
    assert range_points(0.0, 1.0, steps) == []
    assert evaluate_range(square, 0.0, 1.0, steps) == []


def test_evaluate_range_returns_triples():
    """Tests that evaluate_range returns (x, f(x), f'(x)) over the grid."""
    out = evaluate_range(square, 0.0, 2.0, 2)
    assert out == [(0.0, 0.0, 0.0), (1.0, 1.0, 2.0), (2.0, 4.0, 4.0)]


def test_evaluate_range_endpoints():
    """Tests that the grid starts at start, ends at end and has steps + 1 points."""
    out = evaluate_range(wavy, -1.0, 3.0, 8)
    assert len(out) == 9
    assert out[0][0] == -1.0
    assert out[-1][0] == pytest.approx(3.0)
    for x, value, slope in out:
        assert (value, slope) == value_and_grad(wavy, x)


@pytest.mark.parallel
def test_parallel_batch_equals_serial(extra_threads_ok):
    """Tests that threaded evaluation returns the same ordered results as serial."""
    if not extra_threads_ok:
        pytest.skip("cannot spawn threads")
    xs = np.linspace(-2.0, 2.0, 25)
    serial = batch_gradient(wavy, xs, n_workers=1)
    threaded = batch_gradient(wavy, xs, n_workers=4)
    assert threaded == serial


def test_n_workers_none_runs_serially():
    """Tests that n_workers=None is accepted."""
    assert batch_apply(square, [3.0], n_workers=None).tolist() == [9.0]
