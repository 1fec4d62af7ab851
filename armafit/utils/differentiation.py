"""
Numerical Differentiation Module

Finite-difference slopes of scalar functions and gradients of multivariate
functions. The optimizer falls back on these whenever the objective has no
analytic gradient, which is always the case for the Kalman filter likelihood.

The step ``h`` is always supplied by the caller; no step size selection is
attempted. Exceptions raised by the function being differentiated propagate
unchanged so that callers such as the likelihood adapter can decide how to
handle them.

Functions:
    central_difference_slope: (f(x+h/2) - f(x-h/2)) / h
    forward_difference_slope: (f(x) - f(x-h)) / h, reusing f(x) when known
    central_difference_gradient: Central differences, 2n evaluations
    forward_difference_gradient: One-sided differences, n evaluations plus f(x)
"""

import logging
from typing import Callable, Optional

import numpy as np

from armafit.core.exceptions import raise_dimension_error, raise_invalid_argument, warn_numeric
from armafit.core.types import ObjectiveFunction, ScalarFunction, Vector
from armafit.core.validation import validate_positive

# Set up module-level logger
logger = logging.getLogger("armafit.utils.differentiation")


def _as_point(x: Vector) -> np.ndarray:
    x = np.array(x, dtype=np.float64)
    if x.ndim != 1:
        raise_dimension_error(
            "Input must be a 1D vector",
            array_name="x",
            expected_shape="(n,)",
            actual_shape=x.shape
        )
    return x


def _check_partials(grad: np.ndarray, operation: str) -> np.ndarray:
    if not np.all(np.isfinite(grad)):
        warn_numeric(
            "Finite difference produced non-finite partial derivatives",
            operation=operation,
            issue="non-finite gradient",
            value=grad
        )
    return grad


def central_difference_slope(f: ScalarFunction, x: float, h: float) -> float:
    """
    Central difference approximation of ``f'(x)``.

    Args:
        f: Scalar function of one variable
        x: Point at which to differentiate
        h: Total width of the difference stencil

    Returns:
        ``(f(x + h/2) - f(x - h/2)) / h``

    Examples:
        >>> from armafit.utils.differentiation import central_difference_slope
        >>> round(central_difference_slope(lambda x: x ** 3, 4.0, 1e-4), 6)
        48.0
    """
    h = validate_positive(h, "h")
    half = 0.5 * h
    return (f(x + half) - f(x - half)) / h


def forward_difference_slope(f: ScalarFunction,
                             x: float,
                             h: float,
                             fx: Optional[float] = None) -> float:
    """
    One-sided difference approximation of ``f'(x)``.

    The stencil looks back from ``x``: ``(f(x) - f(x - h)) / h``. Passing the
    already known value ``fx = f(x)`` saves one evaluation.
    """
    h = validate_positive(h, "h")
    if fx is None:
        fx = f(x)
    return (fx - f(x - h)) / h


def central_difference_gradient(f: ObjectiveFunction, x: Vector, h: float) -> Vector:
    """
    Central difference gradient of a multivariate function.

    Each coordinate is perturbed by ``+h/2`` and ``-h/2`` while the others are
    held fixed, costing ``2n`` evaluations for dimension ``n``.

    Args:
        f: Scalar objective of a vector
        x: Point at which to compute the gradient
        h: Total width of the difference stencil per coordinate

    Returns:
        Gradient vector of the same length as ``x``

    Raises:
        DimensionError: If x is not a 1D array
        ParameterError: If h is not positive

    Examples:
        >>> import numpy as np
        >>> from armafit.utils.differentiation import central_difference_gradient
        >>> g = central_difference_gradient(lambda v: v[0]**2 + v[1]**2, np.array([3.0, 4.0]), 1e-4)
        >>> np.round(g, 6)
        array([6., 8.])
    """
    x = _as_point(x)
    h = validate_positive(h, "h")
    half = 0.5 * h

    n = x.shape[0]
    grad = np.zeros(n, dtype=np.float64)
    x_step = x.copy()

    for i in range(n):
        x_step[i] = x[i] + half
        f_plus = f(x_step)
        x_step[i] = x[i] - half
        f_minus = f(x_step)
        x_step[i] = x[i]
        grad[i] = (f_plus - f_minus) / h

    return _check_partials(grad, "central_difference_gradient")


def forward_difference_gradient(f: ObjectiveFunction,
                                x: Vector,
                                h: float,
                                fx: Optional[float] = None) -> Vector:
    """
    Forward difference gradient of a multivariate function.

    Uses ``(f(x + h e_i) - f(x)) / h``. The error is ``O(h)`` rather than the
    ``O(h^2)`` of the central scheme, in exchange for half the evaluations.

    Args:
        f: Scalar objective of a vector
        x: Point at which to compute the gradient
        h: Step per coordinate
        fx: Known value of ``f(x)``; evaluated when omitted

    Returns:
        Gradient vector of the same length as ``x``
    """
    x = _as_point(x)
    h = validate_positive(h, "h")
    if fx is None:
        fx = f(x)

    n = x.shape[0]
    grad = np.zeros(n, dtype=np.float64)
    x_step = x.copy()

    for i in range(n):
        x_step[i] = x[i] + h
        grad[i] = (f(x_step) - fx) / h
        x_step[i] = x[i]

    return _check_partials(grad, "forward_difference_gradient")


def gradient_function(f: ObjectiveFunction, h: float, method: str = "central") -> Callable[[Vector], Vector]:
    """
    Bind ``f`` and ``h`` into a gradient callable of ``x`` alone.

    Args:
        f: Scalar objective of a vector
        h: Difference step
        method: ``"central"`` or ``"forward"``
    """
    h = validate_positive(h, "h")
    if method == "central":
        return lambda x: central_difference_gradient(f, x, h)
    if method == "forward":
        return lambda x: forward_difference_gradient(f, x, h)
    raise_invalid_argument(f"Unknown difference method: {method!r}", argument="method",
                           value=method, constraint="'central' or 'forward'")
