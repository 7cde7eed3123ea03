"""Unit tests for public API."""

from __future__ import annotations

import didax
from didax import AutodiffKit, DualNumber, Leaf, ops


def test_engines_importable_from_top_level():
    """Test that the main entry points can be imported from the top level."""
    assert AutodiffKit is not None
    assert DualNumber is not None
    assert Leaf is not None
    assert ops.sin is not None


def test_public_all_names_resolve():
    """Test that every name in __all__ is an attribute of the package."""
    for name in didax.__all__:
        assert hasattr(didax, name), name


def test_top_level_grad_is_forward_mode():
    """Test that didax.grad differentiates functions of dual numbers."""
    assert didax.grad(lambda x: x * x + 2.0 * x + 1.0, 3.0) == 8.0
    assert didax.value_and_grad(ops.exp, 0.0) == (1.0, 1.0)
