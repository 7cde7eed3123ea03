"""Choosing a derivative engine by name.

:class:`AutodiffKit` holds a function and a point ``x0`` and hands both to
the engine named in :meth:`AutodiffKit.differentiate`. Three engines ship
with didax:

- ``"forward"`` evaluates the function on ``seed(x0)`` and reads the tangent.
- ``"reverse"`` builds an expression tree from ``Leaf(x0)`` and runs
  :func:`didax.reverse.engine.backward` over it.
- ``"finite"`` takes a central difference on plain floats and serves as a
  reference for the exact engines.

A function written with the arithmetic operators and :mod:`didax.ops` runs
under all three, since each of those dispatches on the argument type.

Engine names are matched after lower-casing and dropping everything but
letters and digits, so ``"Forward-Mode"``, ``"forward mode"`` and
``"forwardmode"`` name the same engine. :func:`register_method` adds an
engine (with optional extra spellings) at runtime, and
:func:`available_methods` lists what is currently known.

Examples:
    Forward and reverse mode agree on a function built from ``ops``:

        >>> from didax import ops
        >>> from didax.autodiff_kit import AutodiffKit
        >>> kit = AutodiffKit(lambda x: x * ops.sin(x), x0=1.0)
        >>> round(kit.differentiate(method="forward"), 12) == round(
        ...     kit.differentiate(method="reverse"), 12
        ... )
        True

    Any class taking ``(function, x0)`` and offering ``differentiate`` can
    be plugged in:

        >>> from didax.autodiff_kit import register_method
        >>> class ZeroDerivative:
        ...     def __init__(self, function, x0):
        ...         pass
        ...     def differentiate(self, **kwargs):
        ...         return 0.0
        >>> register_method(name="zero", cls=ZeroDerivative, aliases=("nil",))
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Any, Callable, Iterable, Mapping, Protocol, Type

from didax.forward.transforms import value_and_grad as forward_value_and_grad
from didax.reverse.engine import value_and_grad as reverse_value_and_grad
from didax.utils.numerics import central_difference


class DerivativeEngine(Protocol):
    """Shape of a class that :class:`AutodiffKit` can dispatch to.

    The kit builds one instance per call from the stored function and point,
    then returns whatever ``differentiate`` returns. Keyword arguments given
    to :meth:`AutodiffKit.differentiate` (other than ``method``) are passed
    on unchanged.
    """
    def __init__(self, function: Callable[[Any], Any], x0: float):
        ...
    def differentiate(self, *args: Any, **kwargs: Any) -> Any:
        ...


class ForwardDerivative:
    """Forward mode: evaluates the function on a seeded dual number."""

    def __init__(self, function: Callable[[Any], Any], x0: float):
        self.function = function
        self.x0 = float(x0)

    def differentiate(self, *, return_value: bool = False, **_: Any) -> float | tuple[float, float]:
        """Returns ``f'(x0)``, or ``(f(x0), f'(x0))`` if ``return_value`` is set."""
        value, slope = forward_value_and_grad(self.function, self.x0)
        return (value, slope) if return_value else slope


class ReverseDerivative:
    """Reverse mode: builds an expression tree from ``Leaf(x0)`` and runs a backward pass."""

    def __init__(self, function: Callable[[Any], Any], x0: float):
        self.function = function
        self.x0 = float(x0)

    def differentiate(self, *, return_value: bool = False, **_: Any) -> float | tuple[float, float]:
        """Returns ``f'(x0)``, or ``(f(x0), f'(x0))`` if ``return_value`` is set."""
        value, slope = reverse_value_and_grad(self.function, self.x0)
        return (value, slope) if return_value else slope


class FiniteDifferenceDerivative:
    """Central difference on plain floats; a reference for the exact engines."""

    def __init__(self, function: Callable[[float], Any], x0: float):
        self.function = function
        self.x0 = float(x0)

    def differentiate(self, *, h: float = 1e-5, return_value: bool = False, **_: Any):
        """Returns the central-difference estimate of ``f'(x0)`` with step ``h``."""
        slope = central_difference(lambda t: float(self.function(t)), self.x0, h)
        return (float(self.function(self.x0)), slope) if return_value else slope


# name, engine class, extra spellings
_METHOD_SPECS: list[tuple[str, Type[DerivativeEngine], list[str]]] = [
    ("forward", ForwardDerivative, ["fwd", "jvp", "forward-mode"]),
    ("reverse", ReverseDerivative, ["rev", "vjp", "backward", "reverse-mode"]),
    ("finite", FiniteDifferenceDerivative, ["finite-difference", "finite_difference", "fd"]),
]


def _norm(s: str) -> str:
    """Reduces an engine name to lower-case letters and digits."""
    return re.sub(r"[^a-z0-9]+", "", s.lower())


@lru_cache(maxsize=1)
def _method_maps() -> tuple[Mapping[str, Type[DerivativeEngine]], tuple[str, ...]]:
    """Indexes ``_METHOD_SPECS`` by normalized spelling.

    Rebuilt only after :func:`register_method` clears the cache.

    Returns:
        ``(lookup, names)``: ``lookup`` sends every normalized name and alias
        to its engine class, ``names`` holds the normalized primary names in
        sorted order.
    """
    lookup: dict[str, Type[DerivativeEngine]] = {}
    for name, cls, aliases in _METHOD_SPECS:
        lookup.update({_norm(spelling): cls for spelling in (name, *aliases)})
    names = tuple(sorted({_norm(name) for name, _, _ in _METHOD_SPECS}))
    return lookup, names


def register_method(
    name: str,
    cls: Type[DerivativeEngine],
    *,
    aliases: Iterable[str] = (),
) -> None:
    """Makes ``cls`` available to :class:`AutodiffKit` under ``name``.

    A spelling that is already taken now points at ``cls``; later
    registrations win.

    Args:
        name: Name listed by :func:`available_methods`.
        cls: Class following :class:`DerivativeEngine`.
        aliases: Other names that select the same engine.
    """
    _METHOD_SPECS.append((name, cls, list(aliases)))
    _method_maps.cache_clear()


def _resolve(method: str) -> Type[DerivativeEngine]:
    """Looks up the engine class registered for ``method``.

    Raises:
        ValueError: If no engine answers to ``method``; the message lists the
            known names.
    """
    lookup, names = _method_maps()
    cls = lookup.get(_norm(method))
    if cls is None:
        raise ValueError(
            f"No derivative engine is registered as {method!r}; "
            f"known engines: {', '.join(names)}."
        )
    return cls


class AutodiffKit:
    """Differentiates one scalar function at one point with a named engine.

    Attributes:
        function: The callable to differentiate.
        x0: The point at which the derivative is evaluated.
        default_method: Engine used when ``differentiate`` gets no ``method``.
    """

    def __init__(self, function: Callable[[Any], Any], x0: float):
        self.function = function
        self.x0 = x0
        self.default_method = "forward"

    def differentiate(self,
                      *,
                      method: str | None = None,
                      **kwargs: Any) -> Any:
        """Runs the selected engine at ``x0``.

        Args:
            method: Engine name or alias, e.g. ``"reverse"``, ``"rev"`` or
                ``"fd"``. Falls back to ``default_method``.
            **kwargs: Engine options such as ``return_value`` or, for
                ``"finite"``, the step ``h``.

        Returns:
            What the engine returns: the derivative, or ``(value, derivative)``
            when ``return_value=True``.

        Raises:
            ValueError: If ``method`` names no registered engine.
        """
        engine_cls = _resolve(method or self.default_method)
        return engine_cls(self.function, self.x0).differentiate(**kwargs)


def available_methods() -> list[str]:
    """Returns the normalized primary names of all registered engines, sorted."""
    return list(_method_maps()[1])
