'''
Pytest configuration and fixtures for the armafit test suite.

This module provides common fixtures used across the test suite: seeded
random number generators, simulated ARMA series, classic optimization test
functions and a configuration reset so that tests changing settings do not
leak into each other.
'''

from typing import Callable, Tuple

import numpy as np
import pytest

from armafit.core.config import get_config_manager, reset_config


# ---- Configuration ----

@pytest.fixture(autouse=True)
def clean_config():
    """Restore default configuration after every test."""
    get_config_manager().initialize()
    yield
    reset_config()


# ---- Basic Data Generation Fixtures ----

@pytest.fixture
def rng() -> np.random.Generator:
    """Provide a seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


def simulate_arma(rng: np.random.Generator,
                  ar: Tuple[float, ...],
                  ma: Tuple[float, ...],
                  n: int,
                  sigma: float = 1.0,
                  burn: int = 200) -> np.ndarray:
    """Simulate an ARMA(p, q) series with Gaussian innovations."""
    p, q = len(ar), len(ma)
    eps = sigma * rng.standard_normal(n + burn)
    y = np.zeros(n + burn)
    for t in range(n + burn):
        acc = eps[t]
        for i in range(p):
            if t - i - 1 >= 0:
                acc += ar[i] * y[t - i - 1]
        for j in range(q):
            if t - j - 1 >= 0:
                acc += ma[j] * eps[t - j - 1]
        y[t] = acc
    return y[burn:]


@pytest.fixture
def ar1_series(rng: np.random.Generator) -> np.ndarray:
    """AR(1) series with phi = 0.6 and unit innovation variance."""
    return simulate_arma(rng, (0.6,), (), 500)


@pytest.fixture
def arma11_series(rng: np.random.Generator) -> np.ndarray:
    """ARMA(1, 1) series with phi = 0.5 and theta = 0.3."""
    return simulate_arma(rng, (0.5,), (0.3,), 400)


@pytest.fixture
def short_series() -> np.ndarray:
    """Short deterministic series used for exact likelihood comparisons."""
    return np.array([0.42, -0.13, 0.88, 1.21, 0.35, -0.47, -0.92, 0.11, 0.64, 0.27])


# ---- Optimization Test Functions ----

def rosenbrock(x: np.ndarray) -> float:
    return 100.0 * (x[1] - x[0] ** 2) ** 2 + (1.0 - x[0]) ** 2


def rosenbrock_gradient(x: np.ndarray) -> np.ndarray:
    return np.array([
        -400.0 * x[0] * (x[1] - x[0] ** 2) - 2.0 * (1.0 - x[0]),
        200.0 * (x[1] - x[0] ** 2),
    ])


@pytest.fixture
def rosenbrock_problem() -> Tuple[Callable, Callable, np.ndarray]:
    """Rosenbrock function, its gradient and a starting point."""
    return rosenbrock, rosenbrock_gradient, np.array([-1.2, 1.0])


@pytest.fixture
def quadratic_problem() -> Tuple[Callable, Callable, np.ndarray, np.ndarray]:
    """Convex quadratic ``0.5 (x - x*)'A(x - x*)`` with its gradient and minimizer."""
    A = np.array([[4.0, 1.0, 0.0],
                  [1.0, 3.0, 0.5],
                  [0.0, 0.5, 2.0]])
    x_star = np.array([0.5, -1.0, 0.25])

    def f(x: np.ndarray) -> float:
        d = x - x_star
        return 0.5 * d @ A @ d

    def grad(x: np.ndarray) -> np.ndarray:
        return A @ (x - x_star)

    return f, grad, np.zeros(3), x_star
