"""
Exact Gaussian likelihood of ARMA coefficients via the Kalman filter.

``KalmanFilter`` runs the prediction-error decomposition of an observed
series under an ``ARMAStateSpace``. The innovation variance is profiled out,
so a pass reduces to two sums, ``sum v_t^2 / F_t`` and ``sum log F_t``, from
which the concentrated log-likelihood

    -0.5 * (n log(2 pi) + sum log F_t + n log(sum(v_t^2 / F_t) / n) + n)

follows. Each call runs a fresh filter; nothing is cached between calls.
"""

import logging

import numpy as np

from armafit.core.exceptions import raise_numeric_degeneracy
from armafit.core.results import KalmanOutput
from armafit.core.types import ArrayLike, SeriesLike
from armafit.core.validation import validate_time_series
from armafit.models.arma._numba_core import kalman_filter_core
from armafit.models.arma.state_space import ARMAStateSpace

logger = logging.getLogger("armafit.models.arma.kalman")


class KalmanFilter:
    """
    Kalman filter for a fixed ARMA state space model.

    Args:
        state_space: Model to filter under
    """

    def __init__(self, state_space: ARMAStateSpace) -> None:
        self.state_space = state_space

    def filter(self, series: SeriesLike) -> KalmanOutput:
        """
        Filter ``series`` and collect innovations.

        Returns:
            KalmanOutput: Sums, innovations and their variances

        Raises:
            DataError: If the series is empty or holds NaN/Inf
            NumericDegeneracyError: If an innovation variance is not positive,
                or the initial covariance cannot be computed
        """
        y = validate_time_series(series, min_length=1)
        ss = self.state_space

        P0 = np.ascontiguousarray(ss.initial_covariance())
        innovations = np.zeros(len(y))
        variances = np.zeros(len(y))
        ssq, sum_log_f, failed_at = kalman_filter_core(
            y, ss.transition, ss.disturbance, P0, innovations, variances
        )

        if failed_at >= 0:
            raise_numeric_degeneracy(
                f"Innovation variance is not positive at t={failed_at}",
                operation="kalman_filter",
                values=float(variances[failed_at]),
                index=int(failed_at)
            )

        return KalmanOutput(
            n=len(y),
            ssq=float(ssq),
            sum_log_f=float(sum_log_f),
            innovations=innovations,
            innovation_variances=variances
        )


def kalman_filter(ar: ArrayLike, ma: ArrayLike, series: SeriesLike) -> KalmanOutput:
    """Filter ``series`` under the ARMA model with coefficients ``ar`` and ``ma``."""
    return KalmanFilter(ARMAStateSpace(ar, ma)).filter(series)


def kalman_log_likelihood(ar: ArrayLike, ma: ArrayLike, series: SeriesLike) -> float:
    """
    Concentrated Gaussian log-likelihood of ``series`` under ARMA(p, q).

    The value is ``+inf`` for an exactly zero series, whose sum of squares
    vanishes.

    Raises:
        NumericDegeneracyError: If the filter cannot proceed
    """
    return kalman_filter(ar, ma, series).log_likelihood
