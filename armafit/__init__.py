# armafit/__init__.py
"""
armafit - Maximum likelihood ARMA estimation for Python

armafit fits (seasonal) ARIMA models by maximizing the exact Gaussian
likelihood. The likelihood is computed by a Kalman filter with a stationary
initial state covariance and minimized with a BFGS quasi-Newton method driven
by a strong Wolfe line search.

The package provides:
- Safeguarded one dimensional interpolation (quadratic, cubic, secant)
- Finite difference slopes and gradients
- A strong Wolfe line search and a BFGS minimizer
- The ARMA state space form, its Kalman filter and concentrated likelihood
- A likelihood objective adapter and a maximum likelihood driver

This module serves as the main entry point for the armafit package.
"""

import logging
from typing import Union

from .version import __version__, __title__, __description__, __license__

# Set up package-wide logger; handlers come from the logging configuration
logger = logging.getLogger("armafit")

from . import core
from . import utils
from . import optim
from . import models

from .core.config import get_config_manager
from .core.exceptions import (
    ArmaFitError,
    InvalidArgumentError,
    NumericDegeneracyError,
    ConvergenceWarning,
)
from .core.results import ArmaFitResult, KalmanOutput, OptimizationResult
from .optim import BFGS, StrongWolfeLineSearch, bfgs_minimize, strong_wolfe_search
from .models.arma import (
    ArmaLikelihood,
    ModelOrder,
    fit_maximum_likelihood,
    kalman_filter,
    kalman_log_likelihood,
)

# Initialize configuration (file, environment overrides and logging)
get_config_manager().initialize()


def get_version() -> str:
    """
    Return the version of armafit.

    Returns:
        str: Version string in format MAJOR.MINOR.PATCH
    """
    return __version__


def set_log_level(level: Union[str, int]) -> None:
    """
    Set the logging level for armafit.

    Args:
        level: Logging level, either as string ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
              or as an integer constant from the logging module
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())
    logger.setLevel(level)
    logger.info(f"Log level set to {logging.getLevelName(level)}")


# Define what's available when using "from armafit import *"
__all__ = [
    # Subpackages
    'core',
    'utils',
    'optim',
    'models',

    # Estimation
    'ModelOrder',
    'ArmaLikelihood',
    'fit_maximum_likelihood',
    'kalman_filter',
    'kalman_log_likelihood',

    # Optimization
    'BFGS',
    'bfgs_minimize',
    'StrongWolfeLineSearch',
    'strong_wolfe_search',

    # Results and errors
    'ArmaFitResult',
    'KalmanOutput',
    'OptimizationResult',
    'ArmaFitError',
    'InvalidArgumentError',
    'NumericDegeneracyError',
    'ConvergenceWarning',

    # Public functions
    'get_version',
    'set_log_level',

    # Version info
    '__version__',
]

logger.debug(f"armafit v{__version__} initialized")
