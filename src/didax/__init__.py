"""Provides the didax forward- and reverse-mode differentiation engines."""

from importlib.metadata import PackageNotFoundError, version

from didax import ops
from didax.autodiff_kit import AutodiffKit, available_methods, register_method
from didax.batch import batch_apply, batch_gradient, evaluate_range, jacobian, vmap
from didax.control_flow import cond, fori_loop, while_loop
from didax.custom_rules import CustomRule, RuleRegistry, custom_derivative, default_registry
from didax.forward import DualNumber, constant, grad, jvp, seed, value_and_grad
from didax.reverse import Leaf, Node, backward, evaluate
from didax.staging import jit, trace

try:
    __version__ = version("didax")
except PackageNotFoundError:
    pass

__all__ = [
    "AutodiffKit",
    "CustomRule",
    "DualNumber",
    "Leaf",
    "Node",
    "RuleRegistry",
    "available_methods",
    "backward",
    "batch_apply",
    "batch_gradient",
    "cond",
    "constant",
    "custom_derivative",
    "default_registry",
    "evaluate",
    "evaluate_range",
    "fori_loop",
    "grad",
    "jacobian",
    "jit",
    "jvp",
    "ops",
    "register_method",
    "seed",
    "trace",
    "value_and_grad",
    "vmap",
    "while_loop",
]
