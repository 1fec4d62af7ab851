# tests/test_likelihood.py
"""
Tests for the ARMA likelihood objective and the maximum likelihood driver.
"""

import numpy as np
import pandas as pd
import pytest
from numpy.testing import assert_allclose
from hypothesis import given, settings, strategies as st

from armafit.core.config import set_config
from armafit.core.exceptions import DataError, DimensionError, ParameterError
from armafit.models.arma.kalman import kalman_log_likelihood
from armafit.models.arma.likelihood import (
    ModelOrder, ArmaLikelihood, expand_ar_coefficients, expand_ma_coefficients,
    difference_series, is_stationary, is_invertible, fit_maximum_likelihood
)


def lag_polynomial(coefs, sign):
    """Coefficients of ``1 + sign * sum c_k B^k`` in increasing powers of B."""
    return np.concatenate([[1.0], sign * np.asarray(coefs, dtype=float)])


class TestModelOrder:
    """Tests for the order specification."""

    def test_defaults(self):
        order = ModelOrder(1, 0, 1)
        assert order.n_params == 2
        assert not order.is_seasonal
        assert order.parameter_names == ["ar.L1", "ma.L1"]
        assert order.lost_observations == 0

    def test_seasonal(self):
        order = ModelOrder(1, 1, 1, P=1, D=1, Q=1, period=12, include_mean=True)
        assert order.is_seasonal
        assert order.n_params == 5
        assert order.parameter_names == ["ar.L1", "ma.L1", "ar.S.L12", "ma.S.L12", "mean"]
        assert order.lost_observations == 13

    def test_frozen(self):
        order = ModelOrder(1, 0, 0)
        with pytest.raises(AttributeError):
            order.p = 2

    @pytest.mark.parametrize("kwargs", [
        {"p": -1, "d": 0, "q": 0},
        {"p": 1.5, "d": 0, "q": 0},
        {"p": True, "d": 0, "q": 0},
        {"p": 1, "d": 0, "q": 0, "period": 0},
        {"p": 1, "d": 0, "q": 0, "P": 1},
        {"p": 1, "d": 0, "q": 0, "D": 1, "period": 1},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ParameterError):
            ModelOrder(**kwargs)


class TestPolynomials:
    """Tests for seasonal expansion, stationarity and invertibility."""

    def test_expand_ar(self):
        assert_allclose(expand_ar_coefficients([0.5], [0.2], 4), [0.5, 0.0, 0.0, 0.2, -0.1])

    def test_expand_ma(self):
        assert_allclose(expand_ma_coefficients([0.5], [0.2], 4), [0.5, 0.0, 0.0, 0.2, 0.1])

    def test_no_seasonal_terms(self):
        assert_allclose(expand_ar_coefficients([0.5, 0.1], [], 12), [0.5, 0.1])
        assert_allclose(expand_ma_coefficients([], [], 12), [])

    @given(
        ar=st.lists(st.floats(min_value=-1.0, max_value=1.0), min_size=0, max_size=3),
        sar=st.lists(st.floats(min_value=-1.0, max_value=1.0), min_size=0, max_size=2),
        period=st.integers(min_value=2, max_value=12),
    )
    @settings(max_examples=50, deadline=None)
    def test_expansion_is_polynomial_product(self, ar, sar, period):
        seasonal = np.zeros(len(sar) * period)
        seasonal[period - 1::period] = sar
        expected = np.polynomial.polynomial.polymul(lag_polynomial(ar, -1.0),
                                                    lag_polynomial(seasonal, -1.0))
        result = lag_polynomial(expand_ar_coefficients(ar, sar, period), -1.0)
        assert_allclose(result, np.pad(expected, (0, len(result) - len(expected))), atol=1e-12)

        expected = np.polynomial.polynomial.polymul(lag_polynomial(ar, 1.0),
                                                    lag_polynomial(seasonal, 1.0))
        result = lag_polynomial(expand_ma_coefficients(ar, sar, period), 1.0)
        assert_allclose(result, np.pad(expected, (0, len(result) - len(expected))), atol=1e-12)

    def test_stationarity(self):
        assert is_stationary([])
        assert is_stationary([0.5])
        assert is_stationary([-0.9])
        assert is_stationary([0.5, 0.2])
        assert not is_stationary([1.0])
        assert not is_stationary([1.2])
        assert not is_stationary([0.5, 0.6])
        assert is_stationary([0.5, 0.0, 0.0])

    def test_invertibility(self):
        assert is_invertible([])
        assert is_invertible([0.3])
        assert is_invertible([-0.9, 0.2])
        assert not is_invertible([1.5])
        assert not is_invertible([-1.5])


class TestDifferencing:
    """Tests for series preparation."""

    def test_ordinary(self):
        y = np.cumsum(np.arange(10, dtype=float))
        assert_allclose(difference_series(y, ModelOrder(0, 1, 0)), np.arange(1, 10))
        assert_allclose(difference_series(y, ModelOrder(0, 2, 0)), np.ones(8))

    def test_seasonal(self):
        y = np.arange(20, dtype=float) ** 2
        result = difference_series(y, ModelOrder(0, 1, 0, D=1, period=4))
        step = y[1:] - y[:-1]
        assert_allclose(result, step[4:] - step[:-4])

    def test_pandas_input(self):
        y = pd.Series(np.arange(6, dtype=float) ** 2)
        assert_allclose(difference_series(y, ModelOrder(0, 1, 0)), [1.0, 3.0, 5.0, 7.0, 9.0])

    def test_too_short(self):
        with pytest.raises(DataError):
            difference_series(np.ones(4), ModelOrder(0, 0, 0, D=1, period=4))


class TestArmaLikelihood:
    """Tests for the objective adapter."""

    def test_negative_log_likelihood(self, short_series):
        objective = ArmaLikelihood(short_series, ModelOrder(1, 0, 1))
        value = objective(np.array([0.5, 0.3]))
        assert value == pytest.approx(-kalman_log_likelihood([0.5], [0.3], short_series))
        assert objective.evaluations == 1
        assert objective.penalty_count == 0

    def test_seasonal_coefficients(self, ar1_series):
        order = ModelOrder(1, 0, 0, P=1, period=4)
        objective = ArmaLikelihood(ar1_series, order)
        ar, ma, mean = objective.coefficients([0.5, 0.2])
        assert_allclose(ar, [0.5, 0.0, 0.0, 0.2, -0.1])
        assert len(ma) == 0
        assert mean == 0.0
        assert objective([0.5, 0.2]) == pytest.approx(
            -kalman_log_likelihood(ar, [], ar1_series))

    def test_split(self):
        order = ModelOrder(2, 0, 1, P=1, Q=1, period=4, include_mean=True)
        objective = ArmaLikelihood(np.arange(30, dtype=float) % 7, order, mean_scale=2.0)
        parts = objective.split([0.1, 0.2, 0.3, 0.4, 0.5, 1.5])
        assert_allclose(parts["ar"], [0.1, 0.2])
        assert_allclose(parts["ma"], [0.3])
        assert_allclose(parts["sar"], [0.4])
        assert_allclose(parts["sma"], [0.5])
        assert parts["mean"] == pytest.approx(3.0)

    def test_mean_removed(self, ar1_series):
        y = ar1_series + 5.0
        objective = ArmaLikelihood(y, ModelOrder(1, 0, 0, include_mean=True))
        x0 = objective.initial_parameters()
        assert objective.split(x0)["mean"] == pytest.approx(np.mean(y))
        params = np.array([0.6, 5.0 / objective.mean_scale])
        assert objective.log_likelihood(params) == pytest.approx(
            kalman_log_likelihood([0.6], [], y - 5.0))

    def test_mean_scale(self, ar1_series):
        objective = ArmaLikelihood(ar1_series, ModelOrder(1, 0, 0, include_mean=True))
        expected = 10.0 * np.std(ar1_series) / np.sqrt(len(ar1_series))
        assert objective.mean_scale == pytest.approx(expected)
        constant = ArmaLikelihood(np.ones(10), ModelOrder(0, 0, 0, include_mean=True))
        assert constant.mean_scale == 1.0

    def test_non_stationary_penalized(self, short_series):
        objective = ArmaLikelihood(short_series, ModelOrder(1, 0, 1))
        assert objective([1.5, 0.3]) == 1e10
        assert objective([0.5, -2.0]) == 1e10
        assert objective.penalty_count == 2
        assert objective.evaluations == 2

    def test_degenerate_filter_penalized(self, short_series):
        """Without the admissibility check, filter breakdowns still map to the penalty."""
        objective = ArmaLikelihood(short_series, ModelOrder(1, 0, 0), check_stationarity=False)
        assert objective([1.0]) == 1e10
        assert objective([1.5]) == 1e10
        assert objective.penalty_count == 2
        assert np.isfinite(objective([0.5]))

    @pytest.mark.parametrize("check_stationarity", [True, False])
    def test_non_finite_parameters_penalized(self, short_series, check_stationarity):
        objective = ArmaLikelihood(short_series, ModelOrder(1, 0, 1),
                                   check_stationarity=check_stationarity)
        assert objective([np.nan, 0.3]) == 1e10
        assert objective([0.5, np.inf]) == 1e10
        assert objective.penalty_count == 2

    def test_zero_series_penalized(self):
        objective = ArmaLikelihood(np.zeros(10), ModelOrder(0, 0, 1))
        assert objective([0.3]) == 1e10
        assert objective.penalty_count == 1

    def test_penalty_from_configuration(self, short_series):
        set_config("likelihood", "penalty", 1e6)
        objective = ArmaLikelihood(short_series, ModelOrder(1, 0, 0))
        assert objective([2.0]) == 1e6

    def test_wrong_parameter_count(self, short_series):
        objective = ArmaLikelihood(short_series, ModelOrder(1, 0, 1))
        with pytest.raises(DimensionError):
            objective([0.5])

    def test_invalid_series(self):
        with pytest.raises(DataError):
            ArmaLikelihood(np.array([0.1, np.inf, 0.3]), ModelOrder(1, 0, 0))


class TestFitMaximumLikelihood:
    """End to end estimation."""

    def test_ar1(self, ar1_series):
        result = fit_maximum_likelihood(ar1_series, ModelOrder(1, 0, 0), tol=1e-4)
        assert result.converged
        assert result.parameter_names == ["ar.L1"]
        assert result.parameters[0] == pytest.approx(0.6, abs=0.1)
        assert result.sigma2 == pytest.approx(1.0, abs=0.15)
        assert result.nobs == len(ar1_series)
        assert 0.01 < result.std_errors[0] < 0.1
        assert result.log_likelihood >= kalman_log_likelihood([0.6], [], ar1_series)
        for shift in (-0.01, 0.01):
            assert result.log_likelihood >= kalman_log_likelihood(
                [result.parameters[0] + shift], [], ar1_series)

    def test_matches_statsmodels(self, arma11_series):
        sm = pytest.importorskip("statsmodels.api")
        result = fit_maximum_likelihood(arma11_series, ModelOrder(1, 0, 1), tol=1e-4)
        reference = sm.tsa.SARIMAX(arma11_series, order=(1, 0, 1), trend="n").fit(disp=False)
        assert_allclose(result.parameters, reference.params[:2], atol=2e-3)
        assert result.log_likelihood == pytest.approx(reference.llf, abs=1e-3)

    def test_with_mean(self, ar1_series):
        result = fit_maximum_likelihood(ar1_series + 5.0, ModelOrder(1, 0, 0, include_mean=True),
                                        tol=1e-4)
        assert result.parameter_names == ["ar.L1", "mean"]
        assert result.mean == pytest.approx(5.0, abs=0.5)
        assert result.parameters[1] == pytest.approx(result.mean)
        assert np.all(result.std_errors > 0.0)

    def test_integrated(self, ar1_series):
        """ARIMA(1, 1, 0) on the cumulated series recovers the AR coefficient."""
        result = fit_maximum_likelihood(np.cumsum(ar1_series), ModelOrder(1, 1, 0), tol=1e-4)
        assert result.nobs == len(ar1_series) - 1
        assert result.parameters[0] == pytest.approx(0.6, abs=0.1)

    def test_reporting(self, ar1_series):
        result = fit_maximum_likelihood(ar1_series, ModelOrder(1, 0, 0), tol=1e-4)
        frame = result.to_dataframe()
        assert list(frame.index) == ["ar.L1"]
        assert frame.loc["ar.L1", "p-Value"] < 1e-6
        assert result.aic == pytest.approx(-2.0 * result.log_likelihood + 4.0)
        assert "ar.L1" in result.summary()
        assert result.to_dict()["parameter_names"] == ["ar.L1"]

    def test_no_parameters_rejected(self, ar1_series):
        with pytest.raises(ParameterError):
            fit_maximum_likelihood(ar1_series, ModelOrder(0, 0, 0))
