'''
Custom exception classes for armafit.

This module defines the closed set of error and warning types raised by the
optimizer, the line search and the Kalman filter likelihood. Each exception
carries an optional free-form ``details`` string and a ``context`` dictionary
that is rendered into the final message, so that failures deep inside an
iterative routine still report the values that triggered them.

The hierarchy has three branches:

- ``InvalidArgumentError`` for precondition violations at an API boundary
  (bad interpolation points, mismatched dimensions, non-positive tolerances).
  It also derives from ``ValueError`` so callers can catch it generically.
- ``NumericDegeneracyError`` for conditions where a computation cannot
  proceed, such as a non-positive innovation variance in the Kalman filter.
- ``NotConvergedError`` for callers that want to escalate a soft
  non-convergence into a hard failure.
'''

from typing import Any, Dict, Optional, Tuple, Union
import inspect
import warnings
import numpy as np
from pathlib import Path


def _format_message(message: str,
                    details: Optional[str],
                    context: Optional[Dict[str, Any]]) -> str:
    full_message = message
    if details:
        full_message += f"\n\nDetails: {details}"

    if context:
        context_str = "\n".join(f"  {k}: {v}" for k, v in context.items())
        full_message += f"\n\nContext:\n{context_str}"

    # Add caller information: the first frame outside this module
    frame = inspect.currentframe()
    try:
        while frame is not None and frame.f_code.co_filename == __file__:
            frame = frame.f_back
        if frame is not None:
            caller_info = inspect.getframeinfo(frame)
            full_message += f"\n\nLocation: {Path(caller_info.filename).name}:{caller_info.lineno}"
    finally:
        del frame  # Avoid reference cycles

    return full_message


def _describe_value(value: Any) -> Any:
    if isinstance(value, np.ndarray) and value.size > 10:
        # Truncate large arrays for readability
        return f"Array with shape {value.shape}"
    return value


class ArmaFitError(Exception):
    """Base exception class for all armafit errors.

    Attributes:
        message: The error message
        details: Additional details about the error
        context: Dictionary containing contextual information about the error
    """

    def __init__(self,
                 message: str,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details
        self.context = context or {}
        super().__init__(_format_message(message, details, context))


class InvalidArgumentError(ArmaFitError, ValueError):
    """Exception raised when a caller violates a documented precondition.

    Attributes:
        argument: Name of the offending argument
        value: The rejected value
        constraint: Description of the violated constraint
    """

    def __init__(self,
                 message: str,
                 argument: Optional[str] = None,
                 value: Optional[Any] = None,
                 constraint: Optional[str] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.argument = argument
        self.value = value
        self.constraint = constraint

        context_dict = dict(context or {})
        if argument:
            context_dict["Argument"] = argument
        if value is not None:
            context_dict["Value"] = _describe_value(value)
        if constraint:
            context_dict["Constraint"] = constraint

        super().__init__(message, details, context_dict)


class ParameterError(InvalidArgumentError):
    """Exception raised for model or optimizer parameters outside their domain.

    Attributes:
        param_name: The name of the parameter that caused the error
        param_value: The invalid parameter value
        constraint: Description of the constraint that was violated
    """

    def __init__(self,
                 message: str,
                 param_name: Optional[str] = None,
                 param_value: Optional[Any] = None,
                 constraint: Optional[str] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.param_name = param_name
        self.param_value = param_value
        super().__init__(message, param_name, param_value, constraint, details, context)


class DimensionError(InvalidArgumentError):
    """Exception raised when vector or matrix dimensions do not agree.

    Attributes:
        array_name: The name of the array that caused the error
        expected_shape: The expected shape of the array
        actual_shape: The actual shape of the array
    """

    def __init__(self,
                 message: str,
                 array_name: Optional[str] = None,
                 expected_shape: Optional[Union[Tuple[int, ...], str]] = None,
                 actual_shape: Optional[Tuple[int, ...]] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.array_name = array_name
        self.expected_shape = expected_shape
        self.actual_shape = actual_shape

        context_dict = dict(context or {})
        if expected_shape is not None:
            context_dict["Expected Shape"] = expected_shape
        if actual_shape is not None:
            context_dict["Actual Shape"] = actual_shape

        super().__init__(message, array_name, None, None, details, context_dict)


class DataError(InvalidArgumentError):
    """Exception raised for unusable observation data.

    Attributes:
        data_name: The name of the data that caused the error
        issue: Description of the issue with the data
        index: The index or location where the issue was detected
    """

    def __init__(self,
                 message: str,
                 data_name: Optional[str] = None,
                 issue: Optional[str] = None,
                 index: Optional[Union[int, Tuple[int, ...], str]] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.data_name = data_name
        self.issue = issue
        self.index = index

        context_dict = dict(context or {})
        if issue:
            context_dict["Issue"] = issue
        if index is not None:
            context_dict["Index"] = index

        super().__init__(message, data_name, None, None, details, context_dict)


class NumericDegeneracyError(ArmaFitError, ArithmeticError):
    """Exception raised when a computation reaches a numerically undefined state.

    The Kalman filter raises it for a non-positive innovation variance and the
    initial covariance solver for a singular Lyapunov system. The likelihood
    adapter converts it into a finite penalty.

    Attributes:
        operation: The operation that failed
        values: The values that caused the failure
        index: Time index or iteration at which the failure happened
    """

    def __init__(self,
                 message: str,
                 operation: Optional[str] = None,
                 values: Optional[Any] = None,
                 index: Optional[int] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.operation = operation
        self.values = values
        self.index = index

        context_dict = dict(context or {})
        if operation:
            context_dict["Operation"] = operation
        if values is not None:
            context_dict["Values"] = _describe_value(values)
        if index is not None:
            context_dict["Index"] = index

        super().__init__(message, details, context_dict)


class NotConvergedError(ArmaFitError):
    """Exception raised when a caller requires convergence that was not reached.

    Attributes:
        iterations: The number of iterations performed before failure
        tolerance: The convergence tolerance that was used
        final_value: The final objective function value
        gradient_norm: The norm of the final gradient
    """

    def __init__(self,
                 message: str,
                 iterations: Optional[int] = None,
                 tolerance: Optional[float] = None,
                 final_value: Optional[float] = None,
                 gradient_norm: Optional[float] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.iterations = iterations
        self.tolerance = tolerance
        self.final_value = final_value
        self.gradient_norm = gradient_norm

        context_dict = dict(context or {})
        if iterations is not None:
            context_dict["Iterations"] = iterations
        if tolerance is not None:
            context_dict["Tolerance"] = tolerance
        if final_value is not None:
            context_dict["Final Value"] = final_value
        if gradient_norm is not None:
            context_dict["Gradient Norm"] = gradient_norm

        super().__init__(message, details, context_dict)


class ArmaFitWarning(UserWarning):
    """Base warning class for all armafit warnings."""

    def __init__(self,
                 message: str,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details
        self.context = context or {}
        super().__init__(_format_message(message, details, context))


class ConvergenceWarning(ArmaFitWarning):
    """Warning for soft failures of an iterative routine.

    Issued when the line search or BFGS stops at its iteration cap and returns
    the best point found so far.
    """

    def __init__(self,
                 message: str,
                 iterations: Optional[int] = None,
                 tolerance: Optional[float] = None,
                 gradient_norm: Optional[float] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.iterations = iterations
        self.tolerance = tolerance
        self.gradient_norm = gradient_norm

        context_dict = dict(context or {})
        if iterations is not None:
            context_dict["Iterations"] = iterations
        if tolerance is not None:
            context_dict["Tolerance"] = tolerance
        if gradient_norm is not None:
            context_dict["Gradient Norm"] = gradient_norm

        super().__init__(message, details, context_dict)


class NumericWarning(ArmaFitWarning):
    """Warning for numerical issues that do not stop the computation."""

    def __init__(self,
                 message: str,
                 operation: Optional[str] = None,
                 issue: Optional[str] = None,
                 value: Optional[Any] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.operation = operation
        self.issue = issue
        self.value = value

        context_dict = dict(context or {})
        if operation:
            context_dict["Operation"] = operation
        if issue:
            context_dict["Issue"] = issue
        if value is not None:
            context_dict["Value"] = _describe_value(value)

        super().__init__(message, details, context_dict)


def raise_invalid_argument(message: str,
                           argument: Optional[str] = None,
                           value: Optional[Any] = None,
                           constraint: Optional[str] = None,
                           details: Optional[str] = None,
                           context: Optional[Dict[str, Any]] = None) -> None:
    """Raise an InvalidArgumentError with consistent formatting.

    Raises:
        InvalidArgumentError: The formatted error
    """
    raise InvalidArgumentError(message, argument, value, constraint, details, context)


def raise_parameter_error(message: str,
                          param_name: Optional[str] = None,
                          param_value: Optional[Any] = None,
                          constraint: Optional[str] = None,
                          details: Optional[str] = None,
                          context: Optional[Dict[str, Any]] = None) -> None:
    """Raise a ParameterError with consistent formatting.

    Raises:
        ParameterError: The formatted parameter error
    """
    raise ParameterError(message, param_name, param_value, constraint, details, context)


def raise_dimension_error(message: str,
                          array_name: Optional[str] = None,
                          expected_shape: Optional[Union[Tuple[int, ...], str]] = None,
                          actual_shape: Optional[Tuple[int, ...]] = None,
                          details: Optional[str] = None,
                          context: Optional[Dict[str, Any]] = None) -> None:
    """Raise a DimensionError with consistent formatting.

    Raises:
        DimensionError: The formatted dimension error
    """
    raise DimensionError(message, array_name, expected_shape, actual_shape, details, context)


def raise_data_error(message: str,
                     data_name: Optional[str] = None,
                     issue: Optional[str] = None,
                     index: Optional[Union[int, Tuple[int, ...], str]] = None,
                     details: Optional[str] = None,
                     context: Optional[Dict[str, Any]] = None) -> None:
    """Raise a DataError with consistent formatting.

    Raises:
        DataError: The formatted data error
    """
    raise DataError(message, data_name, issue, index, details, context)


def raise_numeric_degeneracy(message: str,
                             operation: Optional[str] = None,
                             values: Optional[Any] = None,
                             index: Optional[int] = None,
                             details: Optional[str] = None,
                             context: Optional[Dict[str, Any]] = None) -> None:
    """Raise a NumericDegeneracyError with consistent formatting.

    Raises:
        NumericDegeneracyError: The formatted degeneracy error
    """
    raise NumericDegeneracyError(message, operation, values, index, details, context)


def warn_convergence(message: str,
                     iterations: Optional[int] = None,
                     tolerance: Optional[float] = None,
                     gradient_norm: Optional[float] = None,
                     details: Optional[str] = None,
                     context: Optional[Dict[str, Any]] = None) -> None:
    """Issue a ConvergenceWarning with consistent formatting."""
    warnings.warn(
        ConvergenceWarning(message, iterations, tolerance, gradient_norm, details, context),
        stacklevel=3
    )


def warn_numeric(message: str,
                 operation: Optional[str] = None,
                 issue: Optional[str] = None,
                 value: Optional[Any] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
    """Issue a NumericWarning with consistent formatting."""
    warnings.warn(
        NumericWarning(message, operation, issue, value, details, context),
        stacklevel=3
    )
