"""
armafit Core Module

Foundation shared by the optimizer and the ARMA model: the exception
hierarchy, configuration management, type aliases, input validation and
result containers.

Key components:
- Exception and warning hierarchy for error handling
- Configuration management with file and environment overrides
- Type aliases and protocols
- Validation utilities for input checking
- Result objects for line searches, optimization runs and model fits
"""

import logging

# Set up module-level logger
logger = logging.getLogger("armafit.core")

from .exceptions import (
    ArmaFitError,
    InvalidArgumentError,
    ParameterError,
    DimensionError,
    DataError,
    NumericDegeneracyError,
    NotConvergedError,
    ArmaFitWarning,
    ConvergenceWarning,
    NumericWarning,
)

from .config import (
    ConfigManager,
    OptimizerConfig,
    LikelihoodConfig,
    LoggingConfig,
    get_config_manager,
    get_config,
    set_config,
    reset_config,
    get_optimizer_config,
    get_likelihood_config,
    get_logging_config,
)

from .types import (
    Vector,
    Matrix,
    PackedSymmetric,
    ArrayLike,
    SeriesLike,
    DifferentiableLine,
)

from .validation import (
    validate_vector,
    validate_square_matrix,
    validate_finite,
    validate_time_series,
    validate_positive,
    validate_parameter_bounds,
    validate_non_negative_int,
)

from .results import (
    LineSearchResult,
    Iterate,
    OptimizationResult,
    KalmanOutput,
    ArmaFitResult,
)

__all__ = [
    # Exceptions
    'ArmaFitError', 'InvalidArgumentError', 'ParameterError', 'DimensionError',
    'DataError', 'NumericDegeneracyError', 'NotConvergedError',
    'ArmaFitWarning', 'ConvergenceWarning', 'NumericWarning',

    # Configuration
    'ConfigManager', 'OptimizerConfig', 'LikelihoodConfig', 'LoggingConfig',
    'get_config_manager', 'get_config', 'set_config', 'reset_config',
    'get_optimizer_config', 'get_likelihood_config', 'get_logging_config',

    # Types
    'Vector', 'Matrix', 'PackedSymmetric', 'ArrayLike', 'SeriesLike', 'DifferentiableLine',

    # Validation
    'validate_vector', 'validate_square_matrix', 'validate_finite', 'validate_time_series',
    'validate_positive', 'validate_parameter_bounds', 'validate_non_negative_int',

    # Results
    'LineSearchResult', 'Iterate', 'OptimizationResult', 'KalmanOutput', 'ArmaFitResult',
]
