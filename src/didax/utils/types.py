"""Shared typing aliases for didax."""

from __future__ import annotations

from typing import Callable, Sequence, TypeAlias

import numpy as np
from numpy.typing import NDArray

Array: TypeAlias = NDArray[np.floating]

ArrayLike1D: TypeAlias = Sequence[float] | NDArray[np.floating]

ScalarFunction: TypeAlias = Callable[[float], float]
