"""
State space form of an ARMA(p, q) process.

For AR coefficients ``phi_1..phi_p`` and MA coefficients ``theta_1..theta_q``
the state has dimension ``r = max(p, q + 1)`` and evolves as

    alpha_{t+1} = T alpha_t + R eps_{t+1},    y_t = Z alpha_t

where ``T`` carries ``phi`` in its first column and ones on its
superdiagonal, ``R = (1, theta_1, ..., theta_q, 0, ...)`` and ``Z = e_1``.
Innovation variances are expressed in units of ``var(eps)``.
"""

import logging
from dataclasses import dataclass

import numpy as np
from scipy import linalg

from armafit.core.exceptions import raise_numeric_degeneracy
from armafit.core.types import ArrayLike, Matrix, PackedSymmetric, Vector
from armafit.core.validation import validate_finite, validate_vector
from armafit.models.arma._numba_core import lyapunov_system
from armafit.utils.matrix_ops import ensure_symmetric, unpack_symmetric

logger = logging.getLogger("armafit.models.arma.state_space")


@dataclass(frozen=True, eq=False)
class ARMAStateSpace:
    """
    Immutable state space representation of ARMA coefficients.

    Args:
        ar: Autoregressive coefficients ``phi_1..phi_p``
        ma: Moving average coefficients ``theta_1..theta_q``

    Examples:
        >>> ss = ARMAStateSpace([0.5], [0.3])
        >>> ss.transition
        array([[0.5, 1. ],
               [0. , 0. ]])
    """
    ar: np.ndarray
    ma: np.ndarray

    def __post_init__(self) -> None:
        ar = validate_vector(self.ar, vector_name="ar")
        ma = validate_vector(self.ma, vector_name="ma")
        validate_finite(ar, "ar")
        validate_finite(ma, "ma")
        ar.setflags(write=False)
        ma.setflags(write=False)
        object.__setattr__(self, "ar", ar)
        object.__setattr__(self, "ma", ma)

    @property
    def p(self) -> int:
        return len(self.ar)

    @property
    def q(self) -> int:
        return len(self.ma)

    @property
    def r(self) -> int:
        """State dimension ``max(p, q + 1)``."""
        return max(self.p, self.q + 1)

    @property
    def transition(self) -> Matrix:
        r = self.r
        T = np.zeros((r, r))
        T[:self.p, 0] = self.ar
        T[np.arange(r - 1), np.arange(1, r)] = 1.0
        return T

    @property
    def disturbance(self) -> Vector:
        R = np.zeros(self.r)
        R[0] = 1.0
        R[1:self.q + 1] = self.ma
        return R

    @property
    def observation(self) -> Vector:
        Z = np.zeros(self.r)
        Z[0] = 1.0
        return Z

    def packed_initial_covariance(self) -> PackedSymmetric:
        """
        Stationary state covariance in packed form.

        Solves the discrete Lyapunov equation ``P = T P T' + R R'`` as a
        linear system in the ``r(r+1)/2`` free entries of the symmetric
        ``P``.

        Raises:
            NumericDegeneracyError: If the system is singular, which happens
                when the AR polynomial has a root on the unit circle
        """
        T = self.transition
        R = self.disturbance
        A, b = lyapunov_system(T, np.outer(R, R))

        try:
            packed = linalg.solve(A, b)
        except linalg.LinAlgError as e:
            raise_numeric_degeneracy(
                "Initial state covariance is undefined: Lyapunov system is singular",
                operation="packed_initial_covariance",
                values=self.ar,
                details=str(e)
            )

        if not np.all(np.isfinite(packed)):
            raise_numeric_degeneracy(
                "Initial state covariance is not finite",
                operation="packed_initial_covariance",
                values=self.ar
            )
        return packed

    def initial_covariance(self) -> Matrix:
        """Stationary state covariance as a full symmetric matrix."""
        return ensure_symmetric(unpack_symmetric(self.packed_initial_covariance()))


def kalman_initial_covariance(ar: ArrayLike, ma: ArrayLike) -> PackedSymmetric:
    """
    Packed stationary covariance of the ARMA state.

    Examples:
        >>> np.round(kalman_initial_covariance([0.3], []), 6)
        array([1.098901])
        >>> np.round(kalman_initial_covariance([], [0.3]), 6)
        array([1.09, 0.3 , 0.09])
    """
    return ARMAStateSpace(ar, ma).packed_initial_covariance()
