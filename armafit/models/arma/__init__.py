"""
ARMA models in state space form.

- ``state_space``: state space matrices and the stationary initial covariance
- ``kalman``: Kalman filter and concentrated Gaussian log-likelihood
- ``likelihood``: seasonal ARIMA objective for BFGS and the ML driver
"""

import logging

# Set up module-level logger
logger = logging.getLogger("armafit.models.arma")

from .state_space import ARMAStateSpace, kalman_initial_covariance
from .kalman import KalmanFilter, kalman_filter, kalman_log_likelihood
from .likelihood import (
    ModelOrder,
    ArmaLikelihood,
    expand_ar_coefficients,
    expand_ma_coefficients,
    difference_series,
    is_stationary,
    is_invertible,
    fit_maximum_likelihood,
)

__all__ = [
    'ARMAStateSpace', 'kalman_initial_covariance',
    'KalmanFilter', 'kalman_filter', 'kalman_log_likelihood',
    'ModelOrder', 'ArmaLikelihood', 'expand_ar_coefficients', 'expand_ma_coefficients',
    'difference_series', 'is_stationary', 'is_invertible', 'fit_maximum_likelihood',
]
