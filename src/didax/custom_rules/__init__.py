"""User-defined derivative rules."""

from .registry import (
    CustomRule,
    RuleRegistry,
    apply_named,
    apply_rule,
    custom_derivative,
    default_registry,
    lookup,
    register,
)

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
