"""
Numba-accelerated kernels for ARMA likelihood evaluation.

The likelihood is evaluated many times per BFGS iteration (twice per
coordinate for each finite difference gradient), so the per-observation
Kalman recursion, the assembly of the Lyapunov system for the initial state
covariance, and series differencing are compiled with Numba.

All kernels work on plain float64 arrays and report failures through return
values; the Python wrappers in ``state_space`` and ``kalman`` turn those into
exceptions.
"""

import logging
from typing import Tuple

import numpy as np
from numba import jit

from armafit.utils.matrix_ops import packed_index

# Set up module-level logger
logger = logging.getLogger("armafit.models.arma._numba_core")


@jit(nopython=True, cache=True)
def lyapunov_system(T: np.ndarray, Q: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Assemble the linear system for ``P = T P T' + Q`` over packed unknowns.

    Unknown ``k`` is ``P[i, j]`` with ``i <= j`` in upper-triangular row-wise
    order. Row ``k`` of the system states
    ``P[i, j] - sum_{a, b} T[i, a] T[j, b] P[a, b] = Q[i, j]``.

    Args:
        T: Transition matrix (r x r)
        Q: Symmetric disturbance covariance (r x r)

    Returns:
        Tuple[np.ndarray, np.ndarray]: Coefficient matrix and right hand side
    """
    r = T.shape[0]
    m = r * (r + 1) // 2
    A = np.zeros((m, m))
    b = np.zeros(m)

    for i in range(r):
        for j in range(i, r):
            row = packed_index(i, j, r)
            A[row, row] += 1.0
            b[row] = Q[i, j]
            for a in range(r):
                tia = T[i, a]
                if tia == 0.0:
                    continue
                for c in range(r):
                    tjc = T[j, c]
                    if tjc == 0.0:
                        continue
                    A[row, packed_index(a, c, r)] -= tia * tjc

    return A, b


@jit(nopython=True, cache=True)
def kalman_filter_core(y: np.ndarray,
                       T: np.ndarray,
                       R: np.ndarray,
                       P0: np.ndarray,
                       innovations: np.ndarray,
                       variances: np.ndarray) -> Tuple[float, float, int]:
    """
    Run the ARMA Kalman filter over ``y``.

    The observation picks the first state element, so the innovation variance
    is ``P[0, 0]`` of the predicted covariance. The filter starts from a zero
    state with predicted covariance ``P0``.

    Args:
        y: Observations
        T: Transition matrix (r x r)
        R: Disturbance loading (r)
        P0: Initial predicted state covariance (r x r)
        innovations: Output array for ``v_t``
        variances: Output array for ``F_t``

    Returns:
        Tuple[float, float, int]: ``sum v_t^2 / F_t``, ``sum log F_t`` and the
        index of the first observation with a non-positive or non-finite
        ``F_t`` (-1 when the pass completed)
    """
    n = len(y)
    r = len(R)
    a = np.zeros(r)
    P = P0.copy()
    a_upd = np.zeros(r)
    P_upd = np.zeros((r, r))
    TP = np.zeros((r, r))

    ssq = 0.0
    sum_log_f = 0.0

    for t in range(n):
        F = P[0, 0]
        v = y[t] - a[0]
        variances[t] = F
        innovations[t] = v
        if not (F > 0.0) or not np.isfinite(F):
            return ssq, sum_log_f, t

        ssq += v * v / F
        sum_log_f += np.log(F)

        # Measurement update
        for i in range(r):
            a_upd[i] = a[i] + P[i, 0] * v / F
        for i in range(r):
            for j in range(r):
                P_upd[i, j] = P[i, j] - P[i, 0] * P[0, j] / F

        # Time update: a = T a_upd, P = T P_upd T' + R R'
        for i in range(r):
            acc = 0.0
            for k in range(r):
                acc += T[i, k] * a_upd[k]
            a[i] = acc
        for i in range(r):
            for j in range(r):
                acc = 0.0
                for k in range(r):
                    acc += T[i, k] * P_upd[k, j]
                TP[i, j] = acc
        for i in range(r):
            for j in range(r):
                acc = 0.0
                for k in range(r):
                    acc += TP[i, k] * T[j, k]
                P[i, j] = acc + R[i] * R[j]

    return ssq, sum_log_f, -1


@jit(nopython=True, cache=True)
def difference(x: np.ndarray, lag: int = 1, times: int = 1) -> np.ndarray:
    """
    Apply the lag-``lag`` difference operator ``times`` times.

    Args:
        x: Input time series
        lag: Differencing lag (1 for ordinary, the period for seasonal)
        times: Order of differencing

    Returns:
        np.ndarray: Differenced series, ``lag * times`` observations shorter
    """
    result = x.copy()

    for _ in range(times):
        temp = np.zeros(max(len(result) - lag, 0))
        for i in range(len(temp)):
            temp[i] = result[i + lag] - result[i]
        result = temp

    return result
