"""Forward-mode automatic differentiation.

Provides the dual number type, the derivative rule set and the
``grad``/``value_and_grad``/``jvp`` transformations.
"""

from . import rules
from .dual import DualNumber, constant, lift, seed
from .transforms import check_grad, derivative, grad, jvp, value_and_grad

__all__ = [
    "DualNumber",
    "constant",
    "seed",
    "lift",
    "rules",
    "grad",
    "value_and_grad",
    "jvp",
    "derivative",
    "check_grad",
]
