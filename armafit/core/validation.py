"""
Input validation helpers for armafit.

Every public entry point funnels its array arguments through these functions,
so precondition failures surface as ``InvalidArgumentError`` subclasses at the
call that violated them. The validators return float64 copies; callers can
work on the result without touching the caller's data.
"""

import logging
from typing import Any, Optional, Tuple

import numpy as np
import pandas as pd

from .exceptions import (
    raise_data_error, raise_dimension_error, raise_invalid_argument,
    raise_parameter_error
)
from .types import ArrayLike, SeriesLike

logger = logging.getLogger("armafit.core.validation")


def validate_vector(
    vector: ArrayLike,
    expected_length: Optional[int] = None,
    vector_name: str = "vector",
    allow_none: bool = False,
    allow_empty: bool = True
) -> Optional[np.ndarray]:
    """Validate that an input is a vector with the expected length.

    Args:
        vector: Vector to validate; lists and tuples are converted
        expected_length: Expected length, or None for any
        vector_name: Name of the vector for error messages
        allow_none: Whether to allow None as a valid input
        allow_empty: Whether a zero-length vector is acceptable

    Returns:
        np.ndarray: The validated vector as a float64 copy

    Raises:
        InvalidArgumentError: If vector is None and ``allow_none`` is False
        DimensionError: If vector is not 1-dimensional or has wrong length
    """
    if vector is None:
        if allow_none:
            return None
        raise_invalid_argument(f"{vector_name} cannot be None", argument=vector_name)

    vector = np.array(vector, dtype=np.float64)

    # Handle both 1D arrays and column/row vectors
    if vector.ndim == 2 and 1 in vector.shape:
        vector = vector.ravel()
    elif vector.ndim != 1:
        raise_dimension_error(
            f"{vector_name} must be 1-dimensional, got shape {vector.shape}",
            array_name=vector_name,
            expected_shape="1D vector",
            actual_shape=vector.shape
        )

    if expected_length is not None and len(vector) != expected_length:
        raise_dimension_error(
            f"{vector_name} has length {len(vector)}, expected {expected_length}",
            array_name=vector_name,
            expected_shape=f"vector of length {expected_length}",
            actual_shape=vector.shape
        )

    if not allow_empty and len(vector) == 0:
        raise_dimension_error(
            f"{vector_name} must not be empty",
            array_name=vector_name,
            expected_shape="non-empty vector",
            actual_shape=vector.shape
        )

    return vector


def validate_square_matrix(
    matrix: ArrayLike,
    expected_size: Optional[int] = None,
    matrix_name: str = "matrix"
) -> np.ndarray:
    """Validate that an input is a square matrix.

    Args:
        matrix: Matrix to validate
        expected_size: Required number of rows and columns, or None for any
        matrix_name: Name of the matrix for error messages

    Returns:
        np.ndarray: The validated matrix as a float64 copy

    Raises:
        DimensionError: If the matrix is not square or has the wrong size
    """
    matrix = np.array(matrix, dtype=np.float64)
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise_dimension_error(
            f"{matrix_name} must be a square matrix, got shape {matrix.shape}",
            array_name=matrix_name,
            expected_shape="square matrix",
            actual_shape=matrix.shape
        )
    if expected_size is not None and matrix.shape[0] != expected_size:
        raise_dimension_error(
            f"{matrix_name} must be {expected_size}x{expected_size}, got shape {matrix.shape}",
            array_name=matrix_name,
            expected_shape=(expected_size, expected_size),
            actual_shape=matrix.shape
        )
    return matrix


def validate_finite(array: np.ndarray, array_name: str = "array") -> np.ndarray:
    """Raise ``InvalidArgumentError`` if ``array`` holds NaN or infinite values."""
    if not np.all(np.isfinite(array)):
        raise_invalid_argument(
            f"{array_name} contains NaN or infinite values",
            argument=array_name,
            value=array,
            constraint="finite"
        )
    return array


def validate_time_series(
    data: SeriesLike,
    min_length: int = 1,
    data_name: str = "series"
) -> np.ndarray:
    """Validate an observation series for the Kalman filter.

    Args:
        data: Observations; a pandas Series is reduced to its values
        min_length: Minimum number of observations
        data_name: Name of the series for error messages

    Returns:
        np.ndarray: The observations as a 1D float64 array

    Raises:
        DimensionError: If the series is not one dimensional
        DataError: If the series is too short or contains NaN/Inf
    """
    if isinstance(data, pd.Series):
        data = data.to_numpy()
    series = validate_vector(data, vector_name=data_name)

    if len(series) < min_length:
        raise_data_error(
            f"{data_name} must contain at least {min_length} observations, got {len(series)}",
            data_name=data_name,
            issue="too short"
        )

    bad = np.flatnonzero(~np.isfinite(series))
    if bad.size:
        raise_data_error(
            f"{data_name} contains NaN or infinite values",
            data_name=data_name,
            issue="non-finite observations",
            index=int(bad[0])
        )

    return series


def validate_positive(value: float, name: str, allow_zero: bool = False) -> float:
    """Validate that a scalar is positive (or non-negative).

    Raises:
        ParameterError: If the value is not a positive finite number
    """
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise_parameter_error(f"{name} must be a number", param_name=name, param_value=value)
    ok = value >= 0 if allow_zero else value > 0
    if not ok or not np.isfinite(value):
        raise_parameter_error(
            f"{name} must be {'non-negative' if allow_zero else 'positive'}, got {value}",
            param_name=name,
            param_value=value,
            constraint=">= 0" if allow_zero else "> 0"
        )
    return value


def validate_parameter_bounds(
    value: float,
    name: str,
    bounds: Tuple[Optional[float], Optional[float]],
    inclusive: Tuple[bool, bool] = (True, True)
) -> float:
    """Validate that a scalar lies within bounds.

    Args:
        value: Value to check
        name: Parameter name for error messages
        bounds: (lower, upper); None means unbounded on that side
        inclusive: Whether each bound is inclusive

    Raises:
        ParameterError: If the value lies outside the bounds
    """
    lower, upper = bounds
    lower_ok = lower is None or (value >= lower if inclusive[0] else value > lower)
    upper_ok = upper is None or (value <= upper if inclusive[1] else value < upper)
    if not (lower_ok and upper_ok):
        left = "[" if inclusive[0] else "("
        right = "]" if inclusive[1] else ")"
        raise_parameter_error(
            f"{name} must lie in {left}{lower}, {upper}{right}, got {value}",
            param_name=name,
            param_value=value,
            constraint=f"{left}{lower}, {upper}{right}"
        )
    return value


def validate_non_negative_int(value: Any, name: str) -> int:
    """Validate a model order or count.

    Raises:
        ParameterError: If the value is not a non-negative integer
    """
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value < 0:
        raise_parameter_error(
            f"{name} must be a non-negative integer, got {value!r}",
            param_name=name,
            param_value=value,
            constraint="integer >= 0"
        )
    return int(value)
