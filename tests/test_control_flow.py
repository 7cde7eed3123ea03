"""Tests for differentiable cond, while_loop and fori_loop."""

from __future__ import annotations

import pytest

from didax import ops
from didax.control_flow import cond, fori_loop, primal_value, while_loop
from didax.forward.dual import DualNumber, seed
from didax.forward.transforms import grad as forward_grad
from didax.reverse.engine import grad as reverse_grad
from didax.reverse.graph import Leaf


def piecewise(x):
    """x^2 for x > 0, -x otherwise."""
    return cond(lambda v: v > 0.0, lambda t: t * t, lambda t: -t, x)


@pytest.mark.parametrize("grad", [forward_grad, reverse_grad])
def test_cond_differentiates_the_taken_branch(grad):
    """Tests that only the selected branch contributes to the derivative."""
    assert grad(piecewise, 3.0) == 6.0
    assert grad(piecewise, -3.0) == -1.0


def test_cond_at_the_switching_point_uses_false_branch():
    """Tests the derivative exactly at the boundary of the predicate."""
    assert forward_grad(piecewise, 0.0) == -1.0


def test_cond_evaluates_only_one_branch():
    """Tests that the branch not taken is never called."""
    calls = []

    def true_fn(t):
        calls.append("true")
        return t

    def false_fn(t):
        calls.append("false")
        return t

    cond(lambda v: v < 1.0, true_fn, false_fn, seed(0.5))
    assert calls == ["true"]


def test_primal_value_of_each_operand_kind():
    """Tests the value seen by predicates for duals, trees and floats."""
    assert primal_value(DualNumber(2.0, 9.0)) == 2.0
    assert primal_value(Leaf(2.0) * 3.0) == 6.0
    assert primal_value(4) == 4.0


def test_while_loop_differentiates_through_iterations():
    """Tests that repeated squaring until the value exceeds a bound is differentiated."""
    # 1.5 -> 2.25 -> 5.0625 -> 25.6289...; three squarings give x**8
    def f(x):
        return while_loop(lambda v: v < 10.0, lambda t: t * t, x)

    x = 1.5
    assert forward_grad(f, x) == pytest.approx(8.0 * x**7, rel=1e-12)


def test_while_loop_that_never_runs_is_identity():
    """Tests that a false initial condition returns the initial state."""
    assert forward_grad(lambda x: while_loop(lambda v: False, lambda t: 2.0 * t, x), 1.0) == 1.0


def test_while_loop_max_iterations():
    """Tests that a non-terminating loop raises once the bound is reached."""
    with pytest.raises(RuntimeError):
        while_loop(lambda v: True, lambda t: t + 1.0, seed(0.0), max_iterations=5)

    out = while_loop(lambda v: v < 3.0, lambda t: t + 1.0, seed(0.0), max_iterations=3)
    assert out == DualNumber(3.0, 1.0)


@pytest.mark.parametrize("grad", [forward_grad, reverse_grad])
def test_fori_loop_horner_polynomial(grad):
    """Tests a polynomial evaluated by Horner's scheme inside fori_loop."""
    coeffs = [2.0, -1.0, 0.5]  # 2x^2 - x + 0.5

    def p(x):
        return fori_loop(1, len(coeffs), lambda i, acc: acc * x + coeffs[i], x * 0.0 + coeffs[0])

    x = 1.25
    assert grad(p, x) == pytest.approx(4.0 * x - 1.0, abs=1e-12)


def test_fori_loop_with_empty_range_returns_init():
    """Tests that fori_loop with lower >= upper does nothing."""
    x = seed(1.0)
    assert fori_loop(3, 3, lambda i, t: t * 2.0, x) is x


def test_loop_over_ops_in_both_modes():
    """Tests that control flow composes with engine-polymorphic ops."""
    def f(x):
        return fori_loop(0, 3, lambda i, t: ops.sin(t), x)

    assert forward_grad(f, 0.4) == pytest.approx(reverse_grad(f, 0.4), abs=1e-12)
