"""
armafit Utilities Module

Numerical helpers used by the optimizer and the state space model.

Key components:
- Matrix operations (packed symmetric storage, symmetry and definiteness checks)
- Numerical differentiation (finite difference slopes and gradients)
"""

import logging

# Set up module-level logger
logger = logging.getLogger("armafit.utils")

from .matrix_ops import (
    identity,
    outer,
    packed_index,
    pack_symmetric,
    unpack_symmetric,
    ensure_symmetric,
    is_positive_definite,
)

from .differentiation import (
    central_difference_slope,
    forward_difference_slope,
    central_difference_gradient,
    forward_difference_gradient,
    gradient_function,
)

__all__ = [
    # Matrix operations
    'identity', 'outer', 'packed_index', 'pack_symmetric', 'unpack_symmetric',
    'ensure_symmetric', 'is_positive_definite',

    # Numerical differentiation
    'central_difference_slope', 'forward_difference_slope', 'central_difference_gradient',
    'forward_difference_gradient', 'gradient_function',
]
