"""Provides a registry of user-defined derivative rules.

A :class:`CustomRule` pairs a primal function with its derivative. Applying
a rule to a dual number uses the forward-mode chain rule with the supplied
derivative in place of one derived from the engine's built-in rules:

    primal  = rule.primal_fn(x.primal)
    tangent = rule.derivative_fn(x.primal) * x.tangent

Registries are immutable: ``register`` returns a new registry and leaves the
original untouched. Re-registering a name replaces the previous rule in the
returned registry.

Examples:
    >>> from didax.custom_rules.registry import CustomRule, RuleRegistry, apply_named
    >>> from didax.forward.dual import seed
    >>> reg = RuleRegistry().register(
    ...     "square", CustomRule(lambda x: x * x, lambda x: 2.0 * x)
    ... )
    >>> apply_named(reg, "square", seed(5.0))
    DualNumber(primal=25.0, tangent=10.0)

Notes:
    - Looking up an unknown name returns ``None``; :func:`apply_named` falls
      back to the identity and returns its input unchanged.
    - For the rules shipped with the package, call :func:`default_registry`.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import wraps
from typing import Callable, Iterator, Mapping

import numpy as np

from didax.forward.dual import DualNumber, lift
from didax.logger import didax_logger
from didax.utils.numerics import ieee
from didax.utils.types import ScalarFunction

__all__ = [
    "CustomRule",
    "RuleRegistry",
    "register",
    "lookup",
    "apply_rule",
    "apply_named",
    "custom_derivative",
    "default_registry",
]


@dataclass(frozen=True)
class CustomRule:
    """A primal function together with its derivative.

    Attributes:
        primal_fn: ``f: R -> R``.
        derivative_fn: ``f': R -> R``.
    """

    primal_fn: ScalarFunction
    derivative_fn: ScalarFunction

    def __call__(self, x) -> DualNumber:
        return apply_rule(self, x)


class RuleRegistry:
    """Immutable name-to-rule table."""

    def __init__(self, rules: Mapping[str, CustomRule] | None = None):
        """Initializes the registry.

        Args:
            rules: Initial name-to-rule mapping. It is copied.
        """
        self._rules: dict[str, CustomRule] = dict(rules or {})

    def register(self, name: str, rule: CustomRule) -> RuleRegistry:
        """Returns a new registry in which ``name`` maps to ``rule``.

        Args:
            name: Key of the rule. An existing entry with the same key is replaced.
            rule: The rule to store.

        Returns:
            The updated registry. ``self`` is not modified.

        Raises:
            TypeError: If ``rule`` is not a :class:`CustomRule`.
        """
        if not isinstance(rule, CustomRule):
            raise TypeError(f"rule must be a CustomRule; got {type(rule).__name__}.")
        rules = dict(self._rules)
        rules[name] = rule
        return RuleRegistry(rules)

    def lookup(self, name: str) -> CustomRule | None:
        """Returns the rule stored under ``name``, or None."""
        return self._rules.get(name)

    def names(self) -> list[str]:
        """Lists the registered names in registration order."""
        return list(self._rules)

    def __contains__(self, name: object) -> bool:
        return name in self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[str]:
        return iter(self._rules)

    def __repr__(self) -> str:
        return f"RuleRegistry({self.names()!r})"


def register(registry: RuleRegistry, name: str, rule: CustomRule) -> RuleRegistry:
    """Functional form of :meth:`RuleRegistry.register`."""
    return registry.register(name, rule)


def lookup(registry: RuleRegistry, name: str) -> CustomRule | None:
    """Functional form of :meth:`RuleRegistry.lookup`."""
    return registry.lookup(name)


@ieee
def apply_rule(rule: CustomRule, x) -> DualNumber:
    """Applies ``rule`` to a dual number with the forward-mode chain rule.

    Args:
        rule: Rule providing the primal function and its derivative.
        x: Dual number (a bare number is treated as a constant).

    Returns:
        ``DualNumber(primal_fn(x.primal), derivative_fn(x.primal) * x.tangent)``.
    """
    x = lift(x)
    return DualNumber(
        rule.primal_fn(x.primal),
        rule.derivative_fn(x.primal) * x.tangent,
    )


def apply_named(registry: RuleRegistry, name: str, x) -> DualNumber:
    """Applies the rule registered under ``name``.

    If no such rule exists the input is returned unchanged.

    Args:
        registry: Registry to search.
        name: Key of the rule.
        x: Dual number.

    Returns:
        The rule's output, or ``x`` itself when ``name`` is not registered.
    """
    rule = registry.lookup(name)
    if rule is None:
        didax_logger.debug("apply_named: no rule named %r; returning input unchanged", name)
        return x
    return apply_rule(rule, x)


def custom_derivative(
    derivative_fn: ScalarFunction,
) -> Callable[[ScalarFunction], Callable[[DualNumber], DualNumber]]:
    """Decorator that gives a float function a hand-written derivative.

    Example:
        >>> @custom_derivative(lambda x: 3.0 * x * x)
        ... def cube(x):
        ...     return x ** 3
        >>> from didax.forward.dual import seed
        >>> cube(seed(2.0))
        DualNumber(primal=8.0, tangent=12.0)

    Args:
        derivative_fn: Derivative of the decorated function.

    Returns:
        A decorator producing a function of one dual number.
    """

    def decorator(primal_fn: ScalarFunction) -> Callable[[DualNumber], DualNumber]:
        rule = CustomRule(primal_fn, derivative_fn)

        @wraps(primal_fn)
        def wrapped(x) -> DualNumber:
            return apply_rule(rule, x)

        wrapped.rule = rule
        return wrapped

    return decorator


def _sigmoid(x: float) -> float:
    return 1.0 / (1.0 + np.exp(-np.float64(x)))


def _swish_derivative(x: float) -> float:
    s = _sigmoid(x)
    return s + x * s * (1.0 - s)


# These are the built-in rules shipped with the package.
_BUILTIN_RULES: list[tuple[str, CustomRule]] = [
    ("square", CustomRule(lambda x: x * x, lambda x: 2.0 * x)),
    ("cube", CustomRule(lambda x: x * x * x, lambda x: 3.0 * x * x)),
    ("softplus", CustomRule(lambda x: np.logaddexp(0.0, x), _sigmoid)),
    ("swish", CustomRule(lambda x: x * _sigmoid(x), _swish_derivative)),
]


def default_registry() -> RuleRegistry:
    """Returns a registry holding the built-in rules."""
    return RuleRegistry(dict(_BUILTIN_RULES))
