"""
Strong Wolfe line search.

Given ``phi(alpha) = f(x + alpha p)`` along a descent direction ``p``, find a
step length satisfying

    sufficient decrease:  phi(alpha) <= phi(0) + c1 alpha phi'(0)
    curvature:            |phi'(alpha)| <= c2 |phi'(0)|

The search runs in two phases. The bracketing phase walks outward from
``alpha0`` until it either accepts a trial or traps an interval known to
contain an acceptable step. The zoom phase then narrows that interval with
cubic, quadratic and secant interpolation, bisecting whenever interpolation
fails to shrink the interval fast enough.

Both phases share one iteration cap. Hitting it is a soft failure: the best
trial seen is returned with ``converged=False``.
"""

import logging
import math
from typing import Dict, Optional, Tuple, Union

import numpy as np

from armafit.core.config import get_optimizer_config
from armafit.core.exceptions import raise_invalid_argument, warn_convergence
from armafit.core.results import LineSearchResult
from armafit.core.types import DifferentiableLine, GradientFunction, ObjectiveFunction, ScalarFunction, Vector
from armafit.core.validation import validate_finite, validate_parameter_bounds, validate_vector
from armafit.optim.interpolation import (
    cubic_is_defined, cubic_minimum, quadratic_minimum, secant_minimum
)
from armafit.utils.differentiation import central_difference_gradient, central_difference_slope

logger = logging.getLogger("armafit.optim.line_search")

# Extrapolation factor of the bracketing phase
DELTA_MAX = 4.0
# Interpolated trials are kept this fraction of the interval away from its ends
SAFEGUARD_MARGIN = 0.1
# A trial counts as progress only if the interval shrinks to this fraction
SHRINK_FACTOR = 2.0 / 3.0
# Trials allowed without progress before falling back to bisection
SHRINK_TRIALS = 3


class LineFunction:
    """
    Restriction of a multivariate objective to the ray ``x + alpha p``.

    Function values and gradients are cached by ``alpha``, so the optimizer
    can reuse the gradient at the accepted step without evaluating it again.

    Args:
        f: Objective function of a vector
        x: Base point
        p: Search direction
        gradient: Analytic gradient of ``f``; central differences when None
        h: Difference step used when ``gradient`` is None
    """

    def __init__(self,
                 f: ObjectiveFunction,
                 x: Vector,
                 p: Vector,
                 gradient: Optional[GradientFunction] = None,
                 h: Optional[float] = None) -> None:
        self.f = f
        self.x = validate_vector(x, vector_name="x")
        self.p = validate_vector(p, expected_length=len(self.x), vector_name="p")
        self.gradient = gradient
        self.h = get_optimizer_config().gradient_step if h is None else h
        self.function_evaluations = 0
        self.gradient_evaluations = 0
        self._values: Dict[float, float] = {}
        self._gradients: Dict[float, np.ndarray] = {}

    def point(self, alpha: float) -> np.ndarray:
        return self.x + alpha * self.p

    def _objective(self, x: np.ndarray) -> float:
        self.function_evaluations += 1
        return float(self.f(x))

    def __call__(self, alpha: float) -> float:
        alpha = float(alpha)
        if alpha not in self._values:
            self._values[alpha] = self._objective(self.point(alpha))
        return self._values[alpha]

    def gradient_at(self, alpha: float) -> np.ndarray:
        """Gradient of ``f`` at ``x + alpha p``."""
        alpha = float(alpha)
        if alpha not in self._gradients:
            self.gradient_evaluations += 1
            point = self.point(alpha)
            if self.gradient is not None:
                g = np.asarray(self.gradient(point), dtype=np.float64)
            else:
                g = central_difference_gradient(self._objective, point, self.h)
            self._gradients[alpha] = g
        return self._gradients[alpha]

    def slope(self, alpha: float) -> float:
        """Directional derivative ``grad f(x + alpha p) . p``."""
        return float(self.gradient_at(alpha) @ self.p)

    def seed(self, alpha: float, value: float, gradient: Optional[np.ndarray] = None) -> None:
        """Record already known data at ``alpha`` (typically ``alpha = 0``)."""
        self._values[float(alpha)] = float(value)
        if gradient is not None:
            self._gradients[float(alpha)] = np.asarray(gradient, dtype=np.float64)


class _ScalarLine:
    """Adapter giving a plain scalar function a finite difference slope."""

    def __init__(self, phi: ScalarFunction, h: float) -> None:
        self.phi = phi
        self.h = h

    def __call__(self, alpha: float) -> float:
        return float(self.phi(alpha))

    def slope(self, alpha: float) -> float:
        return central_difference_slope(self.phi, alpha, self.h)


def _quadratic_through(x_known: float, x_other: float,
                       f_known: float, f_other: float, d_known: float) -> float:
    # quadratic_minimum wants the slope at the lower abscissa; reflect when
    # the slope belongs to the upper one.
    if x_known < x_other:
        return quadratic_minimum(x_known, x_other, f_known, f_other, d_known)
    return -quadratic_minimum(-x_known, -x_other, f_known, f_other, -d_known)


class StrongWolfeLineSearch:
    """
    Strong Wolfe line search on a one dimensional function.

    Args:
        phi: Line function. Objects with a ``slope(alpha)`` method (such as
            ``LineFunction``) supply their own derivative; plain callables are
            differentiated with central differences.
        f0: ``phi(0)``
        slope0: ``phi'(0)``, which must be negative
        c1: Sufficient decrease constant
        c2: Curvature constant, ``c1 < c2 < 1``
        alpha0: First trial step
        alpha_max: Largest step that may be tried
        max_iter: Cap on trial evaluations across both phases

    Raises:
        InvalidArgumentError: If any precondition on the arguments fails
    """

    def __init__(self,
                 phi: Union[DifferentiableLine, ScalarFunction],
                 f0: float,
                 slope0: float,
                 c1: Optional[float] = None,
                 c2: Optional[float] = None,
                 alpha0: Optional[float] = None,
                 alpha_max: Optional[float] = None,
                 max_iter: Optional[int] = None) -> None:
        cfg = get_optimizer_config()
        self.c1 = cfg.c1 if c1 is None else float(c1)
        self.c2 = cfg.c2 if c2 is None else float(c2)
        self.alpha0 = cfg.alpha0 if alpha0 is None else float(alpha0)
        self.alpha_max = cfg.alpha_max if alpha_max is None else float(alpha_max)
        self.max_iter = cfg.line_search_max_iter if max_iter is None else int(max_iter)
        self.f0 = float(f0)
        self.slope0 = float(slope0)

        validate_finite(np.array([self.f0, self.slope0]), "f0, slope0")
        if not self.slope0 < 0.0:
            raise_invalid_argument(
                "Line search requires a descent direction",
                argument="slope0",
                value=self.slope0,
                constraint="< 0"
            )
        validate_parameter_bounds(self.c1, "c1", (0.0, 1.0), (False, False))
        validate_parameter_bounds(self.c2, "c2", (self.c1, 1.0), (False, False))
        validate_parameter_bounds(self.alpha0, "alpha0", (0.0, self.alpha_max), (False, True))
        if self.max_iter < 1:
            raise_invalid_argument("max_iter must be at least 1", argument="max_iter",
                                   value=self.max_iter, constraint=">= 1")

        if isinstance(phi, DifferentiableLine):
            self.phi = phi
        else:
            self.phi = _ScalarLine(phi, cfg.gradient_step)

        self.iterations = 0
        self.function_evaluations = 0
        self.slope_evaluations = 0
        self._best: Optional[Tuple[float, float, float]] = None

    def _sufficient_decrease(self, alpha: float, value: float) -> bool:
        return value <= self.f0 + self.c1 * alpha * self.slope0

    def _curvature(self, slope: float) -> bool:
        return abs(slope) <= -self.c2 * self.slope0

    def _evaluate(self, alpha: float) -> Tuple[float, float]:
        self.iterations += 1
        self.function_evaluations += 1
        value = float(self.phi(alpha))
        if not math.isfinite(value):
            # Treated as a failed decrease; the slope is meaningless here
            logger.debug(f"Non-finite line function value at alpha={alpha:.6g}")
            return math.inf, math.nan

        self.slope_evaluations += 1
        slope = float(self.phi.slope(alpha))
        if self._best is None or value < self._best[1]:
            self._best = (alpha, value, slope)
        return value, slope

    def _result(self, alpha: float, value: float, slope: float,
                converged: bool, status: str) -> LineSearchResult:
        logger.debug(f"Line search {status}: alpha={alpha:.6g}, phi={value:.10g}, "
                     f"iterations={self.iterations}")
        return LineSearchResult(
            alpha=float(alpha),
            phi=float(value),
            slope=float(slope),
            converged=converged,
            status=status,
            iterations=self.iterations,
            function_evaluations=self.function_evaluations,
            slope_evaluations=self.slope_evaluations
        )

    def _give_up(self) -> LineSearchResult:
        if self._best is None or self._best[1] >= self.f0:
            alpha, value, slope = 0.0, self.f0, self.slope0
        else:
            alpha, value, slope = self._best
        warn_convergence(
            "Line search reached its iteration cap; returning the best trial",
            iterations=self.iterations,
            context={"alpha": alpha, "phi": value}
        )
        return self._result(alpha, value, slope, False, "max_iterations")

    def search(self) -> LineSearchResult:
        """
        Run the search.

        Returns:
            LineSearchResult: The accepted step, or the best trial on a soft
            failure
        """
        alpha_prev, f_prev, d_prev = 0.0, self.f0, self.slope0
        alpha = self.alpha0

        while self.iterations < self.max_iter:
            value, slope = self._evaluate(alpha)

            if (not self._sufficient_decrease(alpha, value)
                    or (alpha_prev > 0.0 and value >= f_prev)):
                return self._zoom(alpha_prev, alpha, f_prev, value, d_prev, slope)

            if self._curvature(slope):
                return self._result(alpha, value, slope, True, "converged")

            if slope >= 0.0:
                # The minimum lies behind the trial
                return self._zoom(alpha, alpha_prev, value, f_prev, slope, d_prev)

            if alpha >= self.alpha_max:
                return self._result(alpha, value, slope, False, "alpha_max")

            step = DELTA_MAX * (alpha - alpha_prev)
            alpha_prev, f_prev, d_prev = alpha, value, slope
            alpha = min(alpha + step, self.alpha_max)

        return self._give_up()

    def _zoom(self, lo: float, hi: float, f_lo: float, f_hi: float,
              d_lo: float, d_hi: float) -> LineSearchResult:
        # Invariants: lo is the best trial satisfying sufficient decrease and
        # d_lo * (hi - lo) < 0, so an acceptable step lies between lo and hi.
        width_ref = abs(hi - lo)
        stalled = 0
        bisect = False

        while self.iterations < self.max_iter:
            if abs(hi - lo) <= 4.0 * np.finfo(float).eps * max(1.0, abs(lo)):
                converged = lo > 0.0 and self._curvature(d_lo)
                return self._result(lo, f_lo, d_lo, converged, "degenerate_interval")

            if bisect or not (math.isfinite(f_hi) and math.isfinite(d_hi)):
                trial = 0.5 * (lo + hi)
                bisect = False
            else:
                trial = self._interpolate(lo, hi, f_lo, f_hi, d_lo, d_hi)

            value, slope = self._evaluate(trial)

            if not self._sufficient_decrease(trial, value) or value >= f_lo:
                hi, f_hi, d_hi = trial, value, slope
            else:
                if self._curvature(slope):
                    return self._result(trial, value, slope, True, "converged")
                if slope * (hi - lo) >= 0.0:
                    hi, f_hi, d_hi = lo, f_lo, d_lo
                lo, f_lo, d_lo = trial, value, slope

            width = abs(hi - lo)
            if width <= SHRINK_FACTOR * width_ref:
                width_ref = width
                stalled = 0
            else:
                stalled += 1
                if stalled >= SHRINK_TRIALS:
                    logger.debug("Interpolation stalled; bisecting")
                    bisect = True
                    stalled = 0
                    width_ref = width

        return self._give_up()

    def _interpolate(self, lo: float, hi: float, f_lo: float, f_hi: float,
                     d_lo: float, d_hi: float) -> float:
        try:
            if f_hi > f_lo:
                q = _quadratic_through(lo, hi, f_lo, f_hi, d_lo)
                if cubic_is_defined(lo, hi, d_lo, d_hi):
                    c = cubic_minimum(lo, hi, f_lo, f_hi, d_lo, d_hi)
                    trial = c if abs(c - lo) < abs(q - lo) else 0.5 * (q + c)
                else:
                    trial = q
            elif d_lo * d_hi < 0.0:
                s = secant_minimum(lo, hi, d_lo, d_hi)
                if cubic_is_defined(lo, hi, d_lo, d_hi):
                    c = cubic_minimum(lo, hi, f_lo, f_hi, d_lo, d_hi)
                    trial = c if abs(c - hi) >= abs(s - hi) else s
                else:
                    trial = s
            elif d_lo != d_hi:
                trial = secant_minimum(lo, hi, d_lo, d_hi)
            else:
                trial = 0.5 * (lo + hi)
        except ArithmeticError as e:
            logger.debug(f"Interpolation failed ({e.__class__.__name__}); bisecting")
            trial = 0.5 * (lo + hi)

        return self._safeguard(trial, lo, hi)

    @staticmethod
    def _safeguard(trial: float, lo: float, hi: float) -> float:
        a, b = min(lo, hi), max(lo, hi)
        if not math.isfinite(trial):
            return 0.5 * (a + b)
        margin = SAFEGUARD_MARGIN * (b - a)
        return min(max(trial, a + margin), b - margin)


def strong_wolfe_search(f: Union[DifferentiableLine, ScalarFunction],
                        f0: float,
                        slope0: float,
                        c1: Optional[float] = None,
                        c2: Optional[float] = None,
                        alpha0: Optional[float] = None,
                        alpha_max: Optional[float] = None) -> float:
    """
    Return a step length satisfying the strong Wolfe conditions for ``f``.

    Thin functional wrapper over ``StrongWolfeLineSearch``; use the class
    directly to inspect convergence status and evaluation counts.

    Examples:
        >>> f = lambda x: -x / (x * x + 2.0)
        >>> alpha = strong_wolfe_search(f, 0.0, -0.5, c1=1e-4, c2=0.9, alpha0=1.0, alpha_max=10.0)
        >>> f(alpha) <= -1e-4 * 0.5 * alpha
        True
    """
    return StrongWolfeLineSearch(f, f0, slope0, c1=c1, c2=c2, alpha0=alpha0,
                                 alpha_max=alpha_max).search().alpha
