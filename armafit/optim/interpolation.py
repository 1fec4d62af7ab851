"""
Polynomial interpolation of step lengths.

Closed-form minimizers of low order polynomials fitted to function values and
slopes at trial step lengths. The strong Wolfe line search uses them to pick
its next trial point. All functions are pure.

Points may be passed in either order; they are sorted by abscissa before the
polynomial is fitted, and slopes travel with their points.
"""

import math

from armafit.core.exceptions import raise_invalid_argument, raise_numeric_degeneracy


def _require_distinct(x1: float, x2: float, operation: str) -> None:
    if x1 == x2:
        raise_invalid_argument(
            f"{operation} requires two distinct abscissae",
            argument="x1, x2",
            value=(x1, x2),
            constraint="x1 != x2"
        )


def quadratic_minimum(x1: float, x2: float, y1: float, y2: float, dydx1: float) -> float:
    """
    Minimizer of the quadratic through two points with a known slope.

    The quadratic matches ``y1`` and ``y2`` and has slope ``dydx1`` at the
    lower of the two abscissae.

    Args:
        x1, x2: Abscissae
        y1, y2: Function values at ``x1`` and ``x2``
        dydx1: Slope at ``min(x1, x2)``

    Returns:
        The stationary point ``-b / (2a)``

    Raises:
        InvalidArgumentError: If ``x1 == x2``

    Examples:
        >>> round(quadratic_minimum(1.0, 3.0, -1/3, -3/11, -1/9), 6)
        1.785714
    """
    _require_distinct(x1, x2, "quadratic_minimum")
    if x1 > x2:
        x1, x2 = x2, x1
        y1, y2 = y2, y1

    dx = x1 - x2
    a = -(y1 - y2 - dydx1 * dx) / (dx * dx)
    b = dydx1 - 2.0 * x1 * a
    return -b / (2.0 * a)


def cubic_is_defined(x1: float, x2: float, dydx1: float, dydx2: float) -> bool:
    """
    True when ``cubic_minimum`` accepts the arguments: distinct abscissae, a
    negative slope at the lower point and a positive slope at the upper one.
    """
    if x1 == x2:
        return False
    if x1 > x2:
        dydx1, dydx2 = dydx2, dydx1
    return dydx1 < 0.0 < dydx2


def cubic_minimum(x1: float, x2: float, y1: float, y2: float,
                  dydx1: float, dydx2: float) -> float:
    """
    Minimizer of the cubic Hermite interpolant through two points.

    With the points ordered so that ``x1 < x2``::

        s = 3 (y2 - y1) / (x2 - x1)
        z = s - dydx1 - dydx2
        w = sqrt(z^2 - dydx1 dydx2)
        x = x1 + (x2 - x1) (w - dydx1 - z) / (dydx2 - dydx1 + 2w)

    Raises:
        InvalidArgumentError: If ``x1 == x2``, if the slope at the lower point
            is not negative, or if the slope at the upper point is not positive

    Examples:
        >>> round(cubic_minimum(1.0, 3.0, -1/3, -3/11, -1/9, 0.057851), 4)
        1.5288
    """
    _require_distinct(x1, x2, "cubic_minimum")
    if x1 > x2:
        x1, x2 = x2, x1
        y1, y2 = y2, y1
        dydx1, dydx2 = dydx2, dydx1

    if dydx1 >= 0.0:
        raise_invalid_argument(
            "cubic_minimum requires a descent slope at the lower point",
            argument="dydx1",
            value=dydx1,
            constraint="< 0"
        )
    if dydx2 <= 0.0:
        raise_invalid_argument(
            "cubic_minimum requires an ascent slope at the upper point",
            argument="dydx2",
            value=dydx2,
            constraint="> 0"
        )

    s = 3.0 * (y2 - y1) / (x2 - x1)
    z = s - dydx1 - dydx2
    # dydx1 * dydx2 < 0 here, so the radicand is positive
    w = math.sqrt(z * z - dydx1 * dydx2)
    return x1 + (x2 - x1) * (w - dydx1 - z) / (dydx2 - dydx1 + 2.0 * w)


def secant_minimum(x1: float, x2: float, dydx1: float, dydx2: float) -> float:
    """
    Root of the secant line through two slopes.

    Raises:
        InvalidArgumentError: If the slopes are equal (the secant is flat)
    """
    if dydx1 == dydx2:
        raise_invalid_argument(
            "secant_minimum requires two different slopes",
            argument="dydx1, dydx2",
            value=(dydx1, dydx2),
            constraint="dydx1 != dydx2"
        )
    if x1 <= x2:
        return x1 - dydx1 * (x1 - x2) / (dydx1 - dydx2)
    return x2 - dydx2 * (x2 - x1) / (dydx2 - dydx1)


def three_point_minimum(x1: float, x2: float, x3: float,
                        y1: float, y2: float, y3: float) -> float:
    """
    Vertex of the parabola through three points.

    Raises:
        InvalidArgumentError: If any two abscissae coincide
        NumericDegeneracyError: If the parabola opens downward or is flat,
            so that it has no minimum
    """
    if x1 == x2 or x2 == x3 or x1 == x3:
        raise_invalid_argument(
            "three_point_minimum requires three distinct abscissae",
            argument="x1, x2, x3",
            value=(x1, x2, x3),
            constraint="pairwise distinct"
        )

    # Divided differences give the leading coefficient directly
    d12 = (y2 - y1) / (x2 - x1)
    d23 = (y3 - y2) / (x3 - x2)
    a = (d23 - d12) / (x3 - x1)
    if not a > 0.0:
        raise_numeric_degeneracy(
            "Parabola through the three points has no minimum",
            operation="three_point_minimum",
            values=(x1, x2, x3, y1, y2, y3)
        )

    b = d12 - a * (x1 + x2)
    return -b / (2.0 * a)
