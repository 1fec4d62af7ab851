'''
Standardized result containers for armafit.

Dataclasses returned by the line search, the BFGS optimizer, the Kalman
filter and the maximum likelihood driver. They share ``to_dict`` for JSON
friendly export and offer pandas views where a tabular form is natural.
'''

import json
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import numpy as np
import pandas as pd
from scipy import stats

from armafit.core.exceptions import NotConvergedError


def _jsonable(value: Any) -> Any:
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


class _ResultMixin:
    """Shared serialization for result dataclasses."""

    def to_dict(self) -> Dict[str, Any]:
        """Convert the result object to a dictionary of plain Python values."""
        return _jsonable(asdict(self))

    def to_json(self, path: Optional[Union[str, Path]] = None, **kwargs: Any) -> Optional[str]:
        """Convert the result object to JSON.

        Args:
            path: Path to save the JSON file (if None, returns the JSON string)
            **kwargs: Additional keyword arguments for json.dump/dumps
        """
        result_dict = self.to_dict()

        if path is None:
            return json.dumps(result_dict, **kwargs)

        with open(path, 'w') as f:
            json.dump(result_dict, f, **kwargs)

        return None


@dataclass(frozen=True)
class LineSearchResult(_ResultMixin):
    """Outcome of one strong Wolfe line search.

    Attributes:
        alpha: Accepted step length (best trial when not converged)
        phi: Function value at ``alpha``
        slope: Directional derivative at ``alpha``
        converged: Whether both strong Wolfe conditions hold at ``alpha``
        status: ``"converged"``, ``"max_iterations"``, ``"alpha_max"`` or
            ``"degenerate_interval"``
        iterations: Number of trial points evaluated
        function_evaluations: Number of calls of the line function
        slope_evaluations: Number of slope evaluations
    """
    alpha: float
    phi: float
    slope: float
    converged: bool
    status: str
    iterations: int
    function_evaluations: int
    slope_evaluations: int


@dataclass(frozen=True)
class Iterate(_ResultMixin):
    """One entry of a BFGS trajectory.

    ``direction``, ``step`` and ``alpha`` describe the move *out of* this
    iterate, so they are None on the final one.
    """
    k: int
    x: np.ndarray
    f: float
    gradient: np.ndarray
    inverse_hessian: np.ndarray
    direction: Optional[np.ndarray] = None
    alpha: Optional[float] = None
    step: Optional[np.ndarray] = None


@dataclass
class OptimizationResult(_ResultMixin):
    """Result of a BFGS minimization.

    Attributes:
        x: Final iterate
        fun: Objective value at ``x``
        gradient: Gradient at ``x``
        gradient_norm: Euclidean norm of ``gradient``
        inverse_hessian: Final inverse Hessian approximation
        iterations: Number of completed BFGS iterations
        function_evaluations: Objective calls, including those spent on
            finite difference gradients
        gradient_evaluations: Gradient computations
        converged: Whether the gradient norm reached the tolerance
        status: Reason for stopping
        skipped_updates: Iterations where the curvature guard skipped the
            inverse Hessian update
        trajectory: Recorded iterates, oldest first
    """
    x: np.ndarray
    fun: float
    gradient: np.ndarray
    gradient_norm: float
    inverse_hessian: np.ndarray
    iterations: int
    function_evaluations: int
    gradient_evaluations: int
    converged: bool
    status: str
    tolerance: float
    skipped_updates: int = 0
    trajectory: List[Iterate] = field(default_factory=list)

    @property
    def evaluation_count(self) -> int:
        return self.function_evaluations

    def raise_if_not_converged(self) -> "OptimizationResult":
        """Return self, or raise ``NotConvergedError`` after a soft failure."""
        if not self.converged:
            raise NotConvergedError(
                f"BFGS stopped without convergence ({self.status})",
                iterations=self.iterations,
                tolerance=self.tolerance,
                final_value=self.fun,
                gradient_norm=self.gradient_norm
            )
        return self

    def to_dataframe(self) -> pd.DataFrame:
        """One row per recorded iterate with position, value and step data."""
        rows = []
        for it in self.trajectory:
            row: Dict[str, Any] = {"k": it.k, "f": it.f,
                                   "gradient_norm": float(np.linalg.norm(it.gradient)),
                                   "alpha": it.alpha}
            for i, xi in enumerate(it.x):
                row[f"x{i}"] = xi
            rows.append(row)
        return pd.DataFrame(rows).set_index("k") if rows else pd.DataFrame()

    def summary(self) -> str:
        """Generate a text summary of the optimization."""
        lines = [
            "BFGS Optimization Result",
            "=" * 40,
            f"Status: {self.status}",
            f"Converged: {'Yes' if self.converged else 'No'}",
            f"Iterations: {self.iterations}",
            f"Function evaluations: {self.function_evaluations}",
            f"Gradient evaluations: {self.gradient_evaluations}",
            f"Skipped Hessian updates: {self.skipped_updates}",
            f"Final value: {self.fun:.10g}",
            f"Gradient norm: {self.gradient_norm:.3e} (tol {self.tolerance:.1e})",
            "x: " + np.array2string(self.x, precision=8),
        ]
        return "\n".join(lines) + "\n"

    def __str__(self) -> str:
        return self.summary()


@dataclass(frozen=True)
class KalmanOutput(_ResultMixin):
    """Aggregates of one Kalman filter pass over a series.

    Attributes:
        n: Number of observations
        ssq: Sum of squared standardized innovations, ``sum v_t^2 / F_t``
        sum_log_f: ``sum log F_t``
        innovations: One step prediction errors ``v_t``
        innovation_variances: ``F_t`` in units of the innovation variance
    """
    n: int
    ssq: float
    sum_log_f: float
    innovations: np.ndarray
    innovation_variances: np.ndarray

    @property
    def sigma2(self) -> float:
        """Profiled innovation variance ``ssq / n``."""
        return self.ssq / self.n

    @property
    def log_likelihood(self) -> float:
        """Concentrated Gaussian log-likelihood with the variance profiled out."""
        n = self.n
        with np.errstate(divide="ignore"):
            return float(-0.5 * (n * np.log(2.0 * np.pi) + self.sum_log_f
                                 + n * np.log(self.ssq / n) + n))

    @property
    def standardized_residuals(self) -> np.ndarray:
        return self.innovations / np.sqrt(self.innovation_variances)

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame({
            "innovation": self.innovations,
            "variance": self.innovation_variances,
            "standardized": self.standardized_residuals,
        })


@dataclass
class ArmaFitResult(_ResultMixin):
    """Maximum likelihood estimates of an ARMA model.

    Attributes:
        parameter_names: Names matching ``parameters``
        parameters: Estimates in natural units (the mean is unscaled)
        std_errors: Approximate standard errors from the BFGS inverse Hessian
        ar: Expanded autoregressive coefficients (seasonal terms multiplied out)
        ma: Expanded moving average coefficients
        mean: Estimated mean of the differenced series (0 when not fitted)
        sigma2: Innovation variance
        log_likelihood: Log-likelihood at the estimates
        nobs: Number of observations after differencing
        optimization: The underlying optimizer result
    """
    parameter_names: List[str]
    parameters: np.ndarray
    std_errors: np.ndarray
    ar: np.ndarray
    ma: np.ndarray
    mean: float
    sigma2: float
    log_likelihood: float
    nobs: int
    optimization: OptimizationResult

    @property
    def converged(self) -> bool:
        return self.optimization.converged

    @property
    def aic(self) -> float:
        # sigma2 counts as an estimated parameter
        k = len(self.parameters) + 1
        return -2.0 * self.log_likelihood + 2.0 * k

    @property
    def bic(self) -> float:
        k = len(self.parameters) + 1
        return -2.0 * self.log_likelihood + np.log(self.nobs) * k

    @property
    def t_stats(self) -> np.ndarray:
        with np.errstate(divide="ignore", invalid="ignore"):
            return self.parameters / self.std_errors

    @property
    def p_values(self) -> np.ndarray:
        return 2.0 * stats.norm.sf(np.abs(self.t_stats))

    def to_dataframe(self) -> pd.DataFrame:
        """Convert parameter estimates to a pandas DataFrame."""
        return pd.DataFrame({
            "Estimate": self.parameters,
            "Std. Error": self.std_errors,
            "t-Stat": self.t_stats,
            "p-Value": self.p_values,
        }, index=pd.Index(self.parameter_names, name="Parameter"))

    def summary(self) -> str:
        """Generate a text summary of the estimation results."""
        out = "ARMA Maximum Likelihood Estimates\n"
        out += "=" * 80 + "\n"
        out += f"Observations: {self.nobs}\n"
        out += f"Convergence: {'Yes' if self.converged else 'No'} ({self.optimization.status})\n"
        out += f"Iterations: {self.optimization.iterations}\n"
        out += f"Log-Likelihood: {self.log_likelihood:.6f}\n"
        out += f"AIC: {self.aic:.6f}\n"
        out += f"BIC: {self.bic:.6f}\n"
        out += f"sigma2: {self.sigma2:.6f}\n\n"

        out += "-" * 80 + "\n"
        out += f"{'Parameter':<20} {'Estimate':<12} {'Std. Error':<12} {'t-Stat':<12} {'p-Value':<12}\n"
        out += "-" * 80 + "\n"
        for name, est, se, t, p in zip(self.parameter_names, self.parameters, self.std_errors,
                                       self.t_stats, self.p_values):
            out += f"{name:<20} {est:<12.6f} "
            out += f"{se:<12.6f} {t:<12.6f} {p:<12.6f}" if np.isfinite(se) else f"{'N/A':<12} " * 3
            out += "\n"
        out += "-" * 80 + "\n"
        return out

    def __str__(self) -> str:
        return self.summary()
