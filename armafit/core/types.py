# armafit/core/types.py

"""
Core type annotations for armafit.

Vectors and matrices are plain NumPy arrays; the aliases below only document
intent at function signatures. The protocol classes describe the callables the
optimizer and the line search accept.
"""

from typing import Callable, Protocol, Sequence, Tuple, Union, runtime_checkable

import numpy as np
import pandas as pd

# NumPy array type aliases
Vector = np.ndarray  # 1D array
Matrix = np.ndarray  # 2D square array
PackedSymmetric = np.ndarray  # Upper triangle of a symmetric matrix, row by row

# Inputs accepted wherever a coefficient vector or series is expected
ArrayLike = Union[np.ndarray, Sequence[float]]
SeriesLike = Union[np.ndarray, pd.Series, Sequence[float]]

# Objective functions
ScalarFunction = Callable[[float], float]
ObjectiveFunction = Callable[[np.ndarray], float]
GradientFunction = Callable[[np.ndarray], np.ndarray]

# (x_min, f_min, evaluation count)
MinimizeOutput = Tuple[np.ndarray, float, int]


@runtime_checkable
class DifferentiableLine(Protocol):
    """A one dimensional function that can also report its slope."""

    def __call__(self, alpha: float) -> float:
        ...

    def slope(self, alpha: float) -> float:
        ...
