# tests/test_differentiation.py
"""
Tests for finite difference slopes and gradients.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from armafit.core.exceptions import DimensionError, InvalidArgumentError, NumericWarning
from armafit.utils.differentiation import (
    central_difference_slope, forward_difference_slope,
    central_difference_gradient, forward_difference_gradient, gradient_function
)


class TestSlopes:
    """Tests for one dimensional difference quotients."""

    def test_central_slope_cubic(self):
        """d/dx x^3 at 4 is 48."""
        assert_allclose(central_difference_slope(lambda x: x ** 3, 4.0, 1e-4), 48.0, rtol=1e-8)

    def test_central_slope_exact_for_quadratics(self):
        f = lambda x: 3.0 * x ** 2 - 2.0 * x + 1.0
        assert_allclose(central_difference_slope(f, 1.5, 0.5), 7.0, rtol=1e-12)

    def test_one_sided_slope(self):
        """The one-sided quotient has O(h) error."""
        result = forward_difference_slope(lambda x: x ** 3, 4.0, 1e-4)
        assert_allclose(result, 48.0, rtol=1e-4)
        assert result < 48.0  # looks back from x on an increasing convex function

    def test_one_sided_slope_reuses_value(self):
        calls = []

        def f(x):
            calls.append(x)
            return x ** 2

        forward_difference_slope(f, 2.0, 1e-3, fx=4.0)
        assert calls == [2.0 - 1e-3]

    def test_invalid_step(self):
        with pytest.raises(InvalidArgumentError):
            central_difference_slope(lambda x: x, 0.0, 0.0)
        with pytest.raises(InvalidArgumentError):
            forward_difference_slope(lambda x: x, 0.0, -1e-4)


class TestGradients:
    """Tests for multivariate difference gradients."""

    def test_central_gradient(self):
        """Gradient of x^2 + y^2 at (3, 4) is (6, 8)."""
        f = lambda v: v[0] ** 2 + v[1] ** 2
        assert_allclose(central_difference_gradient(f, np.array([3.0, 4.0]), 1e-4), [6.0, 8.0],
                        rtol=1e-8)

    def test_forward_gradient(self):
        f = lambda v: v[0] ** 2 + v[1] ** 2
        assert_allclose(forward_difference_gradient(f, np.array([3.0, 4.0]), 1e-6), [6.0, 8.0],
                        rtol=1e-5)

    def test_gradient_accepts_lists(self):
        f = lambda v: np.sum(np.sin(v))
        x = [0.1, 0.2, 0.3]
        assert_allclose(central_difference_gradient(f, x, 1e-5), np.cos(x), rtol=1e-8)

    def test_input_not_modified(self):
        x = np.array([1.0, 2.0])
        central_difference_gradient(lambda v: v @ v, x, 1e-4)
        forward_difference_gradient(lambda v: v @ v, x, 1e-4)
        assert_allclose(x, [1.0, 2.0])

    def test_matrix_input_rejected(self):
        with pytest.raises(DimensionError):
            central_difference_gradient(lambda v: 0.0, np.ones((2, 2)), 1e-4)

    def test_non_finite_partials_warn(self):
        f = lambda v: np.inf if v[0] > 0 else 0.0
        with pytest.warns(NumericWarning):
            g = central_difference_gradient(f, np.array([0.0]), 1e-4)
        assert not np.isfinite(g[0])

    def test_gradient_function(self):
        f = lambda v: v[0] * v[1]
        grad = gradient_function(f, 1e-5)
        assert_allclose(grad(np.array([2.0, 3.0])), [3.0, 2.0], rtol=1e-8)
        grad_fwd = gradient_function(f, 1e-7, method="forward")
        assert_allclose(grad_fwd(np.array([2.0, 3.0])), [3.0, 2.0], rtol=1e-5)
        with pytest.raises(InvalidArgumentError):
            gradient_function(f, 1e-5, method="complex")
