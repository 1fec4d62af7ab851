# armafit/utils/matrix_ops.py
"""
Matrix Operations Module

Small matrix helpers used by the optimizer and the state space model. The
only non-trivial pieces are the packed symmetric storage functions: a
symmetric ``r x r`` matrix is stored as its upper triangle read row by row,

    [P[0,0], P[0,1], ..., P[0,r-1], P[1,1], P[1,2], ..., P[r-1,r-1]]

which is the layout the initial Kalman covariance is reported in.

Functions:
    identity: Identity matrix of a given order
    outer: Outer product of two vectors
    packed_index: Position of element (i, j) in packed storage
    pack_symmetric: Symmetric matrix to packed upper triangle
    unpack_symmetric: Packed upper triangle to symmetric matrix
    ensure_symmetric: Average a matrix with its transpose
    is_positive_definite: Cholesky-based definiteness test
"""

import logging

import numpy as np
from numba import jit
from scipy import linalg

from armafit.core.types import Matrix, PackedSymmetric, Vector
from armafit.core.exceptions import raise_dimension_error, warn_numeric

# Set up module-level logger
logger = logging.getLogger("armafit.utils.matrix_ops")


def identity(n: int) -> Matrix:
    """Return the ``n x n`` identity matrix."""
    return np.eye(n, dtype=np.float64)


def outer(a: Vector, b: Vector) -> Matrix:
    """Return the outer product ``a b'``."""
    return np.outer(a, b)


@jit(nopython=True, cache=True)
def packed_index(i: int, j: int, n: int) -> int:
    """
    Index of element ``(i, j)`` of an ``n x n`` symmetric matrix in packed
    upper-triangular row-wise storage.
    """
    if i > j:
        i, j = j, i
    return i * n - i * (i - 1) // 2 + (j - i)


@jit(nopython=True, cache=True)
def _pack_numba(matrix: np.ndarray) -> np.ndarray:
    n = matrix.shape[0]
    result = np.zeros(n * (n + 1) // 2)

    idx = 0
    for i in range(n):
        for j in range(i, n):
            result[idx] = matrix[i, j]
            idx += 1

    return result


@jit(nopython=True, cache=True)
def _unpack_numba(vector: np.ndarray, n: int) -> np.ndarray:
    result = np.zeros((n, n))

    idx = 0
    for i in range(n):
        for j in range(i, n):
            result[i, j] = vector[idx]
            result[j, i] = vector[idx]
            idx += 1

    return result


def pack_symmetric(matrix: Matrix) -> PackedSymmetric:
    """
    Pack the upper triangle of a symmetric matrix row by row.

    Args:
        matrix: Square symmetric matrix

    Returns:
        Vector of length n(n+1)/2

    Raises:
        DimensionError: If the input matrix is not square

    Examples:
        >>> import numpy as np
        >>> from armafit.utils.matrix_ops import pack_symmetric
        >>> pack_symmetric(np.array([[1.09, 0.3], [0.3, 0.09]]))
        array([1.09, 0.3 , 0.09])
    """
    matrix = np.asarray(matrix, dtype=np.float64)

    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise_dimension_error(
            "Input must be a square matrix",
            array_name="matrix",
            expected_shape="(n, n)",
            actual_shape=matrix.shape
        )

    return _pack_numba(np.ascontiguousarray(matrix))


def unpack_symmetric(vector: PackedSymmetric) -> Matrix:
    """
    Rebuild a symmetric matrix from its packed upper triangle.

    Args:
        vector: Packed vector of length n(n+1)/2

    Returns:
        Symmetric ``n x n`` matrix

    Raises:
        DimensionError: If the length is not a triangular number
    """
    vector = np.asarray(vector, dtype=np.float64)

    if vector.ndim != 1:
        raise_dimension_error(
            "Packed input must be 1-dimensional",
            array_name="vector",
            expected_shape="1D vector",
            actual_shape=vector.shape
        )

    # Solve n(n+1)/2 = m for n
    m = len(vector)
    n = int(round((np.sqrt(8 * m + 1) - 1) / 2))
    if n * (n + 1) // 2 != m:
        raise_dimension_error(
            f"Packed length {m} is not a triangular number",
            array_name="vector",
            expected_shape="length n(n+1)/2",
            actual_shape=vector.shape
        )

    return _unpack_numba(vector, n)


def ensure_symmetric(matrix: Matrix, tol: float = 1e-8) -> Matrix:
    """
    Return ``(M + M') / 2``.

    A ``NumericWarning`` is issued when the input is asymmetric beyond ``tol``
    relative to its largest entry.
    """
    matrix = np.asarray(matrix, dtype=np.float64)
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise_dimension_error(
            "Input must be a square matrix",
            array_name="matrix",
            expected_shape="(n, n)",
            actual_shape=matrix.shape
        )

    scale = max(1.0, float(np.max(np.abs(matrix)))) if matrix.size else 1.0
    asymmetry = float(np.max(np.abs(matrix - matrix.T))) if matrix.size else 0.0
    if asymmetry > tol * scale:
        warn_numeric(
            "Matrix is not symmetric; symmetrizing",
            operation="ensure_symmetric",
            issue="asymmetry",
            value=asymmetry
        )

    return 0.5 * (matrix + matrix.T)


def is_positive_definite(matrix: Matrix) -> bool:
    """Return True if ``matrix`` is symmetric positive definite."""
    matrix = np.asarray(matrix, dtype=np.float64)
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        return False
    if not np.allclose(matrix, matrix.T):
        return False
    try:
        linalg.cholesky(matrix, lower=True)
    except linalg.LinAlgError:
        return False
    return True
