"""
ARMA likelihood as an objective for BFGS.

``ArmaLikelihood`` turns a parameter vector into the negative concentrated
log-likelihood of a (differenced) series. The parameter vector is laid out as

    [ar_1..ar_p, ma_1..ma_q, sar_1..sar_P, sma_1..sma_Q, mean / mean_scale]

with seasonal polynomials multiplied into the non-seasonal ones before the
Kalman filter runs. Regions where the filter breaks down, or where the
coefficients are non-stationary or non-invertible, map to a large finite
penalty so the line search can back away from them instead of crashing.

``fit_maximum_likelihood`` is a thin driver that hands the objective to BFGS
and packages the estimates.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
from scipy import linalg

from armafit.core.config import get_likelihood_config
from armafit.core.exceptions import NumericDegeneracyError, raise_parameter_error
from armafit.core.results import ArmaFitResult, KalmanOutput
from armafit.core.types import ArrayLike, Matrix, SeriesLike, Vector
from armafit.core.validation import validate_non_negative_int, validate_time_series, validate_vector
from armafit.models.arma._numba_core import difference
from armafit.models.arma.kalman import KalmanFilter
from armafit.models.arma.state_space import ARMAStateSpace
from armafit.optim.bfgs import BFGS

logger = logging.getLogger("armafit.models.arma.likelihood")


@dataclass(frozen=True)
class ModelOrder:
    """
    Immutable ARIMA order specification.

    Attributes:
        p: Non-seasonal autoregressive order
        d: Non-seasonal differencing order
        q: Non-seasonal moving average order
        P: Seasonal autoregressive order
        D: Seasonal differencing order
        Q: Seasonal moving average order
        period: Seasonal period (observations per cycle)
        include_mean: Whether to estimate a mean for the differenced series
    """
    p: int
    d: int
    q: int
    P: int = 0
    D: int = 0
    Q: int = 0
    period: int = 1
    include_mean: bool = False

    def __post_init__(self) -> None:
        for name in ("p", "d", "q", "P", "D", "Q"):
            validate_non_negative_int(getattr(self, name), name)
        validate_non_negative_int(self.period, "period")
        if self.period < 1:
            raise_parameter_error("period must be at least 1", param_name="period",
                                  param_value=self.period, constraint=">= 1")
        if self.is_seasonal and self.period < 2:
            raise_parameter_error(
                "Seasonal terms require a period of at least 2",
                param_name="period",
                param_value=self.period,
                constraint=">= 2 when P, D or Q is positive"
            )

    @property
    def is_seasonal(self) -> bool:
        return self.P > 0 or self.D > 0 or self.Q > 0

    @property
    def n_params(self) -> int:
        return self.p + self.q + self.P + self.Q + int(self.include_mean)

    @property
    def parameter_names(self) -> List[str]:
        names = [f"ar.L{i}" for i in range(1, self.p + 1)]
        names += [f"ma.L{i}" for i in range(1, self.q + 1)]
        names += [f"ar.S.L{i * self.period}" for i in range(1, self.P + 1)]
        names += [f"ma.S.L{i * self.period}" for i in range(1, self.Q + 1)]
        if self.include_mean:
            names.append("mean")
        return names

    @property
    def lost_observations(self) -> int:
        """Observations consumed by differencing."""
        return self.d + self.D * self.period


def expand_ar_coefficients(ar: ArrayLike, sar: ArrayLike, period: int) -> Vector:
    """
    Multiply ``(1 - sum ar_i B^i)(1 - sum sar_j B^{j s})`` into one AR polynomial.

    Returns:
        Coefficients ``c`` of ``1 - sum c_k B^k``, of length ``p + P s``

    Examples:
        >>> expand_ar_coefficients([0.5], [0.2], 4)
        array([ 0.5,  0. ,  0. ,  0.2, -0.1])
    """
    ar = validate_vector(ar, vector_name="ar")
    sar = validate_vector(sar, vector_name="sar")
    p, P = len(ar), len(sar)
    if P == 0:
        return ar

    out = np.zeros(p + P * period)
    out[:p] = ar
    for i in range(P):
        out[(i + 1) * period - 1] += sar[i]
        for j in range(p):
            out[(i + 1) * period + j] -= sar[i] * ar[j]
    return out


def expand_ma_coefficients(ma: ArrayLike, sma: ArrayLike, period: int) -> Vector:
    """
    Multiply ``(1 + sum ma_i B^i)(1 + sum sma_j B^{j s})`` into one MA polynomial.

    Examples:
        >>> expand_ma_coefficients([0.5], [0.2], 4)
        array([0.5, 0. , 0. , 0.2, 0.1])
    """
    ma = validate_vector(ma, vector_name="ma")
    sma = validate_vector(sma, vector_name="sma")
    q, Q = len(ma), len(sma)
    if Q == 0:
        return ma

    out = np.zeros(q + Q * period)
    out[:q] = ma
    for i in range(Q):
        out[(i + 1) * period - 1] += sma[i]
        for j in range(q):
            out[(i + 1) * period + j] += sma[i] * ma[j]
    return out


def _companion_roots_inside(coefs: np.ndarray) -> bool:
    nonzero = np.flatnonzero(coefs)
    if nonzero.size == 0:
        return True
    coefs = coefs[:nonzero[-1] + 1]
    m = len(coefs)
    companion = np.zeros((m, m))
    companion[0, :] = coefs
    if m > 1:
        companion[1:, :-1] = np.eye(m - 1)
    return bool(np.all(np.abs(linalg.eigvals(companion)) < 1.0))


def is_stationary(ar: ArrayLike) -> bool:
    """True when all roots of ``1 - sum ar_i z^i`` lie outside the unit circle."""
    return _companion_roots_inside(validate_vector(ar, vector_name="ar"))


def is_invertible(ma: ArrayLike) -> bool:
    """True when all roots of ``1 + sum ma_i z^i`` lie outside the unit circle."""
    return _companion_roots_inside(-validate_vector(ma, vector_name="ma"))


def difference_series(series: SeriesLike, order: ModelOrder) -> np.ndarray:
    """Apply the ``d`` ordinary and ``D`` seasonal differences of ``order``."""
    y = validate_time_series(series, min_length=order.lost_observations + 1)
    if order.d:
        y = difference(y, 1, order.d)
    if order.D:
        y = difference(y, order.period, order.D)
    return y


class ArmaLikelihood:
    """
    Negative concentrated log-likelihood of ARMA coefficients.

    Args:
        series: Observed series before differencing
        order: Model order
        check_stationarity: Penalize non-stationary or non-invertible
            coefficients; configuration default when None
        penalty: Value returned for inadmissible parameters; configuration
            default when None
        mean_scale: Scale of the mean parameter; ``10 * std / sqrt(n)`` of
            the differenced series when None

    Attributes:
        evaluations: Number of objective calls
        penalty_count: Number of calls that returned the penalty
    """

    def __init__(self,
                 series: SeriesLike,
                 order: ModelOrder,
                 check_stationarity: Optional[bool] = None,
                 penalty: Optional[float] = None,
                 mean_scale: Optional[float] = None) -> None:
        cfg = get_likelihood_config()
        self.order = order
        self.series = difference_series(series, order)
        self.nobs = len(self.series)
        self.check_stationarity = cfg.check_stationarity if check_stationarity is None else check_stationarity
        self.penalty = float(cfg.penalty if penalty is None else penalty)

        if mean_scale is None:
            std = float(np.std(self.series))
            mean_scale = 10.0 * std / np.sqrt(self.nobs) if std > 0.0 else 1.0
        self.mean_scale = float(mean_scale)

        self.evaluations = 0
        self.penalty_count = 0

    @property
    def n_params(self) -> int:
        return self.order.n_params

    def split(self, params: ArrayLike) -> Dict[str, Any]:
        """Split a parameter vector into its named blocks (mean unscaled)."""
        order = self.order
        params = validate_vector(params, expected_length=order.n_params, vector_name="params")
        bounds = np.cumsum([0, order.p, order.q, order.P, order.Q])
        return {
            "ar": params[bounds[0]:bounds[1]],
            "ma": params[bounds[1]:bounds[2]],
            "sar": params[bounds[2]:bounds[3]],
            "sma": params[bounds[3]:bounds[4]],
            "mean": float(params[-1]) * self.mean_scale if order.include_mean else 0.0,
        }

    def coefficients(self, params: ArrayLike) -> Tuple[np.ndarray, np.ndarray, float]:
        """Expanded ``(ar, ma, mean)`` implied by a parameter vector."""
        parts = self.split(params)
        ar = expand_ar_coefficients(parts["ar"], parts["sar"], self.order.period)
        ma = expand_ma_coefficients(parts["ma"], parts["sma"], self.order.period)
        return ar, ma, parts["mean"]

    def initial_parameters(self) -> np.ndarray:
        """Zero coefficients, with the sample mean in the mean slot."""
        x0 = np.zeros(self.n_params)
        if self.order.include_mean:
            x0[-1] = float(np.mean(self.series)) / self.mean_scale
        return x0

    def is_admissible(self, params: ArrayLike) -> bool:
        """Stationarity of the AR part and invertibility of the MA part."""
        ar, ma, _ = self.coefficients(params)
        return is_stationary(ar) and is_invertible(ma)

    def filter(self, params: ArrayLike) -> KalmanOutput:
        """
        Run the Kalman filter at ``params``.

        Raises:
            NumericDegeneracyError: If the filter cannot proceed
        """
        ar, ma, mean = self.coefficients(params)
        return KalmanFilter(ARMAStateSpace(ar, ma)).filter(self.series - mean)

    def log_likelihood(self, params: ArrayLike) -> float:
        """Concentrated log-likelihood; raises instead of penalizing."""
        return self.filter(params).log_likelihood

    def _penalize(self, reason: str) -> float:
        self.penalty_count += 1
        logger.debug(f"Likelihood penalty returned: {reason}")
        return self.penalty

    def __call__(self, params: ArrayLike) -> float:
        self.evaluations += 1
        params = validate_vector(params, expected_length=self.n_params, vector_name="params")

        if not np.all(np.isfinite(params)):
            return self._penalize("non-finite parameters")

        if self.check_stationarity and not self.is_admissible(params):
            return self._penalize("non-stationary or non-invertible coefficients")

        try:
            value = -self.log_likelihood(params)
        except NumericDegeneracyError as e:
            return self._penalize(e.message)

        if not np.isfinite(value):
            return self._penalize("non-finite log-likelihood")
        return float(value)


def fit_maximum_likelihood(series: SeriesLike,
                           order: ModelOrder,
                           x0: Optional[ArrayLike] = None,
                           initial_hessian: Optional[Matrix] = None,
                           check_stationarity: Optional[bool] = None,
                           **optimizer_options: Any) -> ArmaFitResult:
    """
    Maximum likelihood estimates of an ARIMA model.

    Args:
        series: Observed series before differencing
        order: Model order
        x0: Starting parameters; zeros (and the sample mean) when None
        initial_hessian: Initial inverse Hessian for BFGS
        check_stationarity: Passed to ``ArmaLikelihood``
        **optimizer_options: Further ``BFGS`` keyword arguments

    Returns:
        ArmaFitResult: Estimates, standard errors and optimizer diagnostics
    """
    if order.n_params == 0:
        raise_parameter_error(
            "Model has no parameters to estimate",
            param_name="order",
            param_value=order,
            constraint="p + q + P + Q + include_mean > 0"
        )

    objective = ArmaLikelihood(series, order, check_stationarity=check_stationarity)
    start = objective.initial_parameters() if x0 is None else validate_vector(
        x0, expected_length=objective.n_params, vector_name="x0")

    logger.info(f"Fitting ARIMA({order.p},{order.d},{order.q})x({order.P},{order.D},{order.Q})"
                f"[{order.period}] on {objective.nobs} observations")

    optimization = BFGS(objective, start, initial_hessian=initial_hessian, **optimizer_options).minimize()
    params = optimization.x

    ar, ma, mean = objective.coefficients(params)
    output = objective.filter(params)

    # The objective is the total negative log-likelihood, so its inverse
    # Hessian approximates the covariance of the estimates
    estimates = params.copy()
    with np.errstate(invalid="ignore"):
        std_errors = np.sqrt(np.diag(optimization.inverse_hessian))
    if order.include_mean:
        estimates[-1] *= objective.mean_scale
        std_errors[-1] *= objective.mean_scale

    logger.info(f"Fit finished: loglik={output.log_likelihood:.6f}, sigma2={output.sigma2:.6g}, "
                f"penalties={objective.penalty_count}")

    return ArmaFitResult(
        parameter_names=order.parameter_names,
        parameters=estimates,
        std_errors=std_errors,
        ar=ar,
        ma=ma,
        mean=mean,
        sigma2=output.sigma2,
        log_likelihood=output.log_likelihood,
        nobs=objective.nobs,
        optimization=optimization
    )
