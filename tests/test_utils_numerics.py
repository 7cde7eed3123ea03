"""Tests for didax.utils.numerics."""

import logging
import math
import warnings

import numpy as np
import pytest
from numpy.testing import assert_allclose

from didax.utils.numerics import (
    central_difference,
    ieee,
    relative_error,
    sign,
    to_float,
)


@pytest.mark.parametrize(
    "f, df, x",
    [
        (math.sin, math.cos, 0.4),
        (math.exp, math.exp, -1.2),
        (lambda t: t**3, lambda t: 3 * t**2, 2.0),
    ],
)
def test_central_difference_matches_analytic(f, df, x):
    """Tests that the two-point stencil is accurate for smooth functions."""
    assert abs(central_difference(f, x) - df(x)) < 1e-8


def test_central_difference_is_exact_for_lines():
    """Tests that the stencil has no truncation error on affine functions."""
    assert central_difference(lambda t: 3.0 * t - 1.0, 10.0, h=0.5) == pytest.approx(3.0)


@pytest.mark.parametrize("h", [0.0, -1e-3])
def test_central_difference_rejects_non_positive_step(h):
    """Tests that non-positive step sizes raise a ValueError."""
    with pytest.raises(ValueError):
        central_difference(math.sin, 0.0, h=h)


def test_central_difference_warns_on_tiny_step(caplog):
    """Tests that a step below 1e-8 logs a round-off warning."""
    with caplog.at_level(logging.WARNING, logger="didax"):
        central_difference(math.sin, 0.0, h=1e-10)
    assert any("round-off" in r.getMessage() for r in caplog.records)


def test_central_difference_propagates_nan():
    """Tests that a function returning NaN gives a NaN estimate."""
    assert math.isnan(central_difference(lambda t: math.nan, 1.0))


def test_ieee_suppresses_numpy_warnings():
    """Tests that decorated functions return inf/nan silently."""
    @ieee
    def divide(a, b):
        return np.float64(a) / np.float64(b)

    with warnings.catch_warnings():
        warnings.simplefilter("error")
        assert divide(1.0, 0.0) == np.inf
        assert np.isnan(divide(0.0, 0.0))


def test_ieee_restores_error_state():
    """Tests that the numpy error state is restored after the call."""
    before = np.geterr()

    @ieee
    def noop():
        return np.geterr()

    inside = noop()
    assert inside["divide"] == "ignore"
    assert np.geterr() == before


def test_sign_and_to_float():
    """Tests the scalar helpers."""
    assert [sign(v) for v in (-2.0, 0.0, 3.5)] == [-1.0, 0.0, 1.0]
    out = to_float(np.float32(1.5))
    assert type(out) is float
    assert out == 1.5


def test_relative_error_basic():
    """Tests relative_error on simple inputs."""
    a = np.array([1.0, 2.0, 3.0])
    b = np.array([1.0, 2.1, 2.9])
    expected = max(
        abs(1.0 - 1.0) / max(1.0, abs(1.0), abs(1.0)),
        abs(2.0 - 2.1) / max(1.0, abs(2.0), abs(2.1)),
        abs(3.0 - 2.9) / max(1.0, abs(3.0), abs(2.9)),
    )
    assert_allclose(relative_error(a, b), expected)


def test_relative_error_scalar_input():
    """Tests relative_error on scalar inputs below the unit floor."""
    assert_allclose(relative_error(0.0, 0.5), 0.5)
