"""
BFGS quasi-Newton minimization.

The optimizer keeps an approximation ``H`` of the inverse Hessian and, at
each iterate, searches along ``p = -H g``. Steps come from a unit-step quick
accept or, failing that, the strong Wolfe line search; ``H`` then receives
the rank-2 update

    H+ = (I - rho s y') H (I - rho y s') + rho s s',    rho = 1 / (y' s)

The update is skipped whenever ``y' s`` is not safely positive relative to
``|y| |s|``; applying it there would destroy positive definiteness or divide
by a number close to zero.

Iteration stops when the gradient norm falls to ``tol`` (converged) or on one
of the soft failures: iteration cap, stalled line search, non-finite
gradient, or an optional relative change criterion on the function value.
"""

import logging
import math
from typing import Any, List, Optional, Tuple

import numpy as np

from armafit.core.config import get_optimizer_config
from armafit.core.exceptions import raise_invalid_argument, warn_convergence
from armafit.core.results import Iterate, OptimizationResult
from armafit.core.types import GradientFunction, Matrix, MinimizeOutput, ObjectiveFunction, Vector
from armafit.core.validation import (
    validate_finite, validate_parameter_bounds, validate_positive,
    validate_square_matrix, validate_vector
)
from armafit.optim.line_search import LineFunction, StrongWolfeLineSearch
from armafit.utils.differentiation import central_difference_gradient
from armafit.utils.matrix_ops import identity, outer

logger = logging.getLogger("armafit.optim.bfgs")


class _CountedObjective:
    """Wrap an objective and count its calls."""

    def __init__(self, f: ObjectiveFunction) -> None:
        self.f = f
        self.calls = 0

    def __call__(self, x: np.ndarray) -> float:
        self.calls += 1
        return float(self.f(x))


class BFGS:
    """
    BFGS minimizer of a scalar function of a vector.

    Any option left as None is read from the ``optimizer`` configuration
    section.

    Args:
        f: Objective function to minimize
        x0: Starting point
        gradient: Analytic gradient of ``f``; central differences when None
        tol: Gradient norm at which the iteration has converged
        initial_hessian: Initial inverse Hessian approximation, identity when None
        c1: Sufficient decrease constant for the line search
        c2: Curvature constant for the line search
        max_iter: Maximum number of iterations
        line_search_max_iter: Iteration cap of each line search
        gradient_step: Difference step for numerical gradients
        curvature_eps: Relative threshold of the curvature guard
        relative_change_tol: Stop when the relative function change of an
            iteration drops to this value; disabled when None
        record_trajectory: Whether to keep every iterate in the result

    Raises:
        InvalidArgumentError: If tolerances or constants are out of range
        DimensionError: If ``x0`` or ``initial_hessian`` have the wrong shape

    Examples:
        >>> import numpy as np
        >>> from armafit.optim.bfgs import BFGS
        >>> result = BFGS(lambda x: (x[0] - 1.0) ** 2 + (x[1] + 2.0) ** 2, np.zeros(2)).minimize()
        >>> np.round(result.x, 4)
        array([ 1., -2.])
    """

    def __init__(self,
                 f: ObjectiveFunction,
                 x0: Vector,
                 gradient: Optional[GradientFunction] = None,
                 tol: Optional[float] = None,
                 initial_hessian: Optional[Matrix] = None,
                 c1: Optional[float] = None,
                 c2: Optional[float] = None,
                 max_iter: Optional[int] = None,
                 line_search_max_iter: Optional[int] = None,
                 gradient_step: Optional[float] = None,
                 curvature_eps: Optional[float] = None,
                 relative_change_tol: Optional[float] = None,
                 record_trajectory: bool = True) -> None:
        cfg = get_optimizer_config()

        self.x0 = validate_vector(x0, vector_name="x0", allow_empty=False)
        validate_finite(self.x0, "x0")
        n = len(self.x0)

        self.tol = validate_positive(cfg.tol if tol is None else tol, "tol")
        self.c1 = cfg.c1 if c1 is None else float(c1)
        self.c2 = cfg.c2 if c2 is None else float(c2)
        validate_parameter_bounds(self.c1, "c1", (0.0, 1.0), (False, False))
        validate_parameter_bounds(self.c2, "c2", (self.c1, 1.0), (False, False))
        self.max_iter = int(validate_positive(cfg.max_iter if max_iter is None else max_iter, "max_iter"))
        self.line_search_max_iter = int(validate_positive(
            cfg.line_search_max_iter if line_search_max_iter is None else line_search_max_iter,
            "line_search_max_iter"))
        self.alpha_max = cfg.alpha_max
        self.gradient_step = validate_positive(
            cfg.gradient_step if gradient_step is None else gradient_step, "gradient_step")
        self.curvature_eps = validate_positive(
            cfg.curvature_eps if curvature_eps is None else curvature_eps, "curvature_eps",
            allow_zero=True)
        self.relative_change_tol = (None if relative_change_tol is None
                                    else validate_positive(relative_change_tol, "relative_change_tol"))
        self.record_trajectory = record_trajectory

        if initial_hessian is None:
            self.initial_hessian = identity(n)
        else:
            self.initial_hessian = validate_square_matrix(initial_hessian, n, "initial_hessian")
            validate_finite(self.initial_hessian, "initial_hessian")

        self._f = _CountedObjective(f)
        self._gradient = gradient
        self._gradient_calls = 0

    def _gradient_at(self, x: np.ndarray) -> np.ndarray:
        self._gradient_calls += 1
        if self._gradient is not None:
            return np.asarray(self._gradient(x), dtype=np.float64)
        return central_difference_gradient(self._f, x, self.gradient_step)

    def _step_length(self, line: LineFunction, fx: float, slope0: float) -> Tuple[float, float, bool]:
        # Quick accept of the Newton-like unit step
        f1 = line(1.0)
        if math.isfinite(f1) and f1 <= fx + self.c1 * slope0:
            if abs(line.slope(1.0)) <= self.c2 * abs(slope0):
                logger.debug("Unit step accepted")
                return 1.0, f1, True

        search = StrongWolfeLineSearch(line, fx, slope0, c1=self.c1, c2=self.c2, alpha0=1.0,
                                       alpha_max=self.alpha_max, max_iter=self.line_search_max_iter)
        result = search.search()
        return result.alpha, result.phi, result.converged

    @staticmethod
    def _update_inverse_hessian(H: np.ndarray, s: np.ndarray, y: np.ndarray, rho: float) -> np.ndarray:
        I = identity(len(s))
        A = I - rho * outer(s, y)
        B = I - rho * outer(y, s)
        return A @ H @ B + rho * outer(s, s)

    def minimize(self) -> OptimizationResult:
        """
        Run the iteration from ``x0``.

        Returns:
            OptimizationResult: Final iterate, diagnostics and trajectory
        """
        x = self.x0.copy()
        H = self.initial_hessian.copy()
        fx = self._f(x)
        if not math.isfinite(fx):
            raise_invalid_argument(
                "Objective is not finite at the starting point",
                argument="x0",
                value=x,
                constraint="f(x0) finite"
            )
        g = self._gradient_at(x)

        trajectory: List[Iterate] = []
        skipped = 0
        k = 0

        while True:
            gnorm = float(np.linalg.norm(g))
            if gnorm <= self.tol:
                status = "converged"
                break
            if not math.isfinite(gnorm):
                status = "non_finite_gradient"
                break
            if k >= self.max_iter:
                status = "max_iterations"
                break

            p = -(H @ g)
            slope0 = float(p @ g)
            if not slope0 < 0.0:
                logger.debug(f"Iteration {k}: not a descent direction, resetting H to identity")
                H = identity(len(x))
                p = -g
                slope0 = float(p @ g)

            line = LineFunction(self._f, x, p, gradient=self._gradient, h=self.gradient_step)
            line.seed(0.0, fx, g)
            alpha, f_new, wolfe = self._step_length(line, fx, slope0)

            if not (alpha > 0.0 and f_new < fx):
                self._gradient_calls += line.gradient_evaluations
                logger.debug(f"Iteration {k}: line search made no progress (wolfe={wolfe})")
                status = "line_search_failed"
                break

            x_new = line.point(alpha)
            g_new = line.gradient_at(alpha)
            self._gradient_calls += line.gradient_evaluations
            s = x_new - x
            y = g_new - g

            if self.record_trajectory:
                trajectory.append(Iterate(k=k, x=x, f=fx, gradient=g, inverse_hessian=H,
                                          direction=p, alpha=alpha, step=s))

            ys = float(y @ s)
            if ys > self.curvature_eps * np.linalg.norm(y) * np.linalg.norm(s):
                H = self._update_inverse_hessian(H, s, y, 1.0 / ys)
            else:
                skipped += 1
                logger.debug(f"Iteration {k}: curvature y's={ys:.3e} too small, update skipped")

            relative_change = abs(fx - f_new) / max(abs(fx), float(np.linalg.norm(x_new)), 1e-300)
            x, fx, g = x_new, f_new, g_new
            k += 1
            logger.debug(f"Iteration {k}: f={fx:.10g}, |g|={np.linalg.norm(g):.3e}, alpha={alpha:.4g}")

            if (self.relative_change_tol is not None and relative_change <= self.relative_change_tol
                    and np.linalg.norm(g) > self.tol):
                status = "relative_change"
                break

        if self.record_trajectory:
            trajectory.append(Iterate(k=k, x=x, f=fx, gradient=g, inverse_hessian=H))

        gnorm = float(np.linalg.norm(g))
        converged = status == "converged"
        if converged:
            logger.info(f"BFGS converged in {k} iterations: f={fx:.10g}, |g|={gnorm:.3e}")
        elif status != "relative_change":
            logger.warning(f"BFGS stopped without convergence ({status}) after {k} iterations")
            warn_convergence(
                f"BFGS stopped without convergence ({status})",
                iterations=k,
                tolerance=self.tol,
                gradient_norm=gnorm
            )

        return OptimizationResult(
            x=x,
            fun=fx,
            gradient=g,
            gradient_norm=gnorm,
            inverse_hessian=H,
            iterations=k,
            function_evaluations=self._f.calls,
            gradient_evaluations=self._gradient_calls,
            converged=converged,
            status=status,
            tolerance=self.tol,
            skipped_updates=skipped,
            trajectory=trajectory
        )


def bfgs_minimize(f: ObjectiveFunction,
                  x0: Vector,
                  tol: float,
                  initial_hessian: Optional[Matrix] = None,
                  **options: Any) -> MinimizeOutput:
    """
    Minimize ``f`` from ``x0`` with BFGS.

    Args:
        f: Objective function
        x0: Starting point
        tol: Gradient norm tolerance
        initial_hessian: Initial inverse Hessian, identity when None
        **options: Further ``BFGS`` keyword arguments

    Returns:
        Tuple of (x_min, f_min, number of objective evaluations)
    """
    result = BFGS(f, x0, tol=tol, initial_hessian=initial_hessian, **options).minimize()
    return result.x, result.fun, result.function_evaluations
