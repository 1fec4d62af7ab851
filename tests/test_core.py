# tests/test_core.py
"""
Tests for the core infrastructure: configuration, exceptions, validation
and matrix helpers.
"""

import json
import logging
import warnings

import numpy as np
import pandas as pd
import pytest
from numpy.testing import assert_allclose, assert_array_equal
from hypothesis import given, settings, strategies as st
from hypothesis.extra.numpy import arrays

import armafit
from armafit.core.config import (
    ConfigManager, get_config, set_config, reset_config, get_config_manager,
    get_optimizer_config, get_likelihood_config, get_logging_config
)
from armafit.core.exceptions import (
    ArmaFitError, InvalidArgumentError, ParameterError, DimensionError, DataError,
    NumericDegeneracyError, NotConvergedError, ConvergenceWarning, NumericWarning,
    raise_numeric_degeneracy, warn_convergence
)
from armafit.core.validation import (
    validate_vector, validate_square_matrix, validate_finite, validate_time_series,
    validate_positive, validate_parameter_bounds, validate_non_negative_int
)
from armafit.utils.matrix_ops import (
    packed_index, pack_symmetric, unpack_symmetric, ensure_symmetric, is_positive_definite
)


# ---- Configuration Tests ----

class TestConfiguration:
    """Tests for the configuration manager."""

    def test_defaults(self):
        cfg = get_optimizer_config()
        assert cfg.tol == 1e-8
        assert cfg.c1 == 1e-4
        assert cfg.c2 == 0.9
        assert cfg.line_search_max_iter == 100
        assert get_likelihood_config().penalty == 1e10
        assert get_likelihood_config().check_stationarity is True
        assert get_logging_config().log_level == "WARNING"

    def test_set_and_reset(self):
        set_config("optimizer", "max_iter", 50)
        assert get_config("optimizer", "max_iter") == 50
        assert get_config_manager().is_modified("optimizer", "max_iter")
        reset_config("optimizer", "max_iter")
        assert get_config("optimizer", "max_iter") == 200
        assert not get_config_manager().is_modified("optimizer", "max_iter")

    def test_reset_section(self):
        set_config("optimizer", "c1", 1e-3)
        set_config("likelihood", "penalty", 5.0)
        reset_config("optimizer")
        assert get_config("optimizer", "c1") == 1e-4
        assert get_config("likelihood", "penalty") == 5.0

    @pytest.mark.parametrize("section, option, value", [
        ("optimizer", "c1", 1.5),
        ("optimizer", "tol", -1.0),
        ("optimizer", "max_iter", 0),
        ("likelihood", "penalty", 0.0),
        ("logging", "log_level", "VERBOSE"),
        ("optimizer", "unknown", 1.0),
        ("nosuchsection", "tol", 1.0),
    ])
    def test_invalid_values(self, section, option, value):
        with pytest.raises(ParameterError):
            set_config(section, option, value)

    def test_get_default_for_missing(self):
        assert get_config("optimizer", "unknown", "fallback") == "fallback"
        assert get_config("nosuchsection", "tol") is None

    def test_sections(self):
        manager = get_config_manager()
        assert manager.get_sections() == ["optimizer", "likelihood", "logging"]
        assert manager.has_option("likelihood", "penalty")
        assert not manager.has_option("likelihood", "tol")
        assert set(manager.to_dict()) == {"optimizer", "likelihood", "logging"}

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("ARMAFIT_OPTIMIZER_MAX_ITER", "17")
        monkeypatch.setenv("ARMAFIT_LIKELIHOOD_CHECK_STATIONARITY", "false")
        monkeypatch.setenv("ARMAFIT_OPTIMIZER_TOL", "not-a-number")
        manager = ConfigManager()
        manager.initialize()
        assert manager.get("optimizer", "max_iter") == 17
        assert manager.get("likelihood", "check_stationarity") is False
        assert manager.get("optimizer", "tol") == 1e-8

    def test_config_file_round_trip(self, tmp_path, monkeypatch):
        path = tmp_path / "armafit.json"
        path.write_text(json.dumps({"optimizer": {"c2": 0.5}, "bogus": {"x": 1}}))
        monkeypatch.setenv("ARMAFIT_CONFIG_FILE", str(path))
        manager = ConfigManager()
        manager.initialize()
        assert manager.get("optimizer", "c2") == 0.5

        manager.set("likelihood", "penalty", 123.0)
        manager.save_user_config()
        saved = json.loads(path.read_text())
        assert saved["likelihood"]["penalty"] == 123.0
        assert saved["optimizer"]["c2"] == 0.5

    def test_invalid_config_file_rejected(self, tmp_path, monkeypatch):
        path = tmp_path / "armafit.json"
        path.write_text(json.dumps({"optimizer": {"c2": 2.0}}))
        monkeypatch.setenv("ARMAFIT_CONFIG_FILE", str(path))
        with pytest.raises(ParameterError):
            ConfigManager().initialize()

    def test_save_without_path(self):
        with pytest.raises(ParameterError):
            ConfigManager().save_user_config()

    def test_logging_level(self):
        set_config("logging", "log_level", "DEBUG")
        assert logging.getLogger("armafit").level == logging.DEBUG
        armafit.set_log_level("ERROR")
        assert logging.getLogger("armafit").level == logging.ERROR
        reset_config("logging")
        assert logging.getLogger("armafit").level == logging.WARNING

    def test_package_metadata(self):
        assert armafit.get_version() == armafit.__version__
        assert armafit.version.get_version_info()["dependencies"]["numba"]
        assert armafit.version.get_version_tuple() == (1, 0, 0)
        with pytest.raises(KeyError):
            armafit.version.get_release_notes("0.0.1")


# ---- Exception Tests ----

class TestExceptions:
    """Tests for the exception hierarchy."""

    def test_hierarchy(self):
        assert issubclass(InvalidArgumentError, ArmaFitError)
        assert issubclass(InvalidArgumentError, ValueError)
        for cls in (ParameterError, DimensionError, DataError):
            assert issubclass(cls, InvalidArgumentError)
        assert issubclass(NumericDegeneracyError, ArithmeticError)
        assert issubclass(NotConvergedError, ArmaFitError)
        assert issubclass(ConvergenceWarning, UserWarning)
        assert issubclass(NumericWarning, UserWarning)

    def test_message_includes_context(self):
        with pytest.raises(NumericDegeneracyError) as excinfo:
            raise_numeric_degeneracy("Variance vanished", operation="kalman_filter",
                                     values=-0.5, index=3, details="F_t <= 0")
        err = excinfo.value
        assert err.index == 3
        assert err.operation == "kalman_filter"
        text = str(err)
        assert "Variance vanished" in text
        assert "Details: F_t <= 0" in text
        assert "Index: 3" in text
        assert "Location: test_core.py:" in text

    def test_large_arrays_summarized(self):
        err = NumericDegeneracyError("bad", values=np.zeros(100))
        assert "Array with shape (100,)" in str(err)

    def test_dimension_error_fields(self):
        err = DimensionError("wrong shape", array_name="x", expected_shape=(3,), actual_shape=(2,))
        assert err.array_name == "x"
        assert err.expected_shape == (3,)
        assert err.actual_shape == (2,)

    def test_convergence_warning(self):
        with pytest.warns(ConvergenceWarning) as record:
            warn_convergence("stopped", iterations=5, tolerance=1e-8, gradient_norm=1e-3)
        warning = record[0].message
        assert warning.iterations == 5
        assert "Gradient Norm" in str(warning)


# ---- Validation Tests ----

class TestValidation:
    """Tests for input validation helpers."""

    def test_vector(self):
        assert_array_equal(validate_vector([1, 2, 3]), [1.0, 2.0, 3.0])
        assert validate_vector([1, 2]).dtype == np.float64
        assert_array_equal(validate_vector(np.ones((3, 1))), np.ones(3))
        assert validate_vector(None, allow_none=True) is None
        assert len(validate_vector([])) == 0

        with pytest.raises(InvalidArgumentError):
            validate_vector(None)
        with pytest.raises(DimensionError):
            validate_vector(np.ones((2, 2)))
        with pytest.raises(DimensionError):
            validate_vector([1.0, 2.0], expected_length=3)
        with pytest.raises(DimensionError):
            validate_vector([], allow_empty=False)

    def test_vector_is_copy(self):
        x = np.array([1.0, 2.0])
        y = validate_vector(x)
        y[0] = 5.0
        assert x[0] == 1.0

    def test_square_matrix(self):
        assert validate_square_matrix(np.eye(2), 2).shape == (2, 2)
        with pytest.raises(DimensionError):
            validate_square_matrix(np.ones((2, 3)))
        with pytest.raises(DimensionError):
            validate_square_matrix(np.eye(3), 2)

    def test_finite(self):
        validate_finite(np.ones(3))
        with pytest.raises(InvalidArgumentError):
            validate_finite(np.array([1.0, np.inf]))

    def test_time_series(self):
        series = pd.Series([1.0, 2.0, 3.0])
        assert_array_equal(validate_time_series(series), [1.0, 2.0, 3.0])
        with pytest.raises(DataError):
            validate_time_series([1.0], min_length=2)
        with pytest.raises(DataError) as excinfo:
            validate_time_series([1.0, np.nan, np.inf])
        assert excinfo.value.index == 1

    def test_scalars(self):
        assert validate_positive(1.0, "x") == 1.0
        assert validate_positive(0.0, "x", allow_zero=True) == 0.0
        with pytest.raises(ParameterError):
            validate_positive(0.0, "x")
        with pytest.raises(ParameterError):
            validate_positive(np.nan, "x")
        assert validate_parameter_bounds(0.5, "c", (0.0, 1.0), (False, False)) == 0.5
        with pytest.raises(ParameterError):
            validate_parameter_bounds(1.0, "c", (0.0, 1.0), (False, False))
        assert validate_parameter_bounds(1.0, "c", (0.0, None)) == 1.0
        assert validate_non_negative_int(np.int64(3), "p") == 3
        with pytest.raises(ParameterError):
            validate_non_negative_int(-1, "p")


# ---- Matrix Operations Tests ----

class TestMatrixOperations:
    """Tests for packed symmetric storage and matrix checks."""

    def test_packed_index(self):
        # 3x3: (0,0) (0,1) (0,2) (1,1) (1,2) (2,2)
        assert [packed_index(i, j, 3) for i, j in
                [(0, 0), (0, 1), (0, 2), (1, 1), (1, 2), (2, 2)]] == list(range(6))
        assert packed_index(2, 1, 3) == packed_index(1, 2, 3)

    def test_pack_unpack(self):
        A = np.array([[1.0, 2.0, 3.0], [2.0, 4.0, 5.0], [3.0, 5.0, 6.0]])
        assert_array_equal(pack_symmetric(A), [1.0, 2.0, 3.0, 4.0, 5.0, 6.0])
        assert_array_equal(unpack_symmetric([1.0, 2.0, 3.0, 4.0, 5.0, 6.0]), A)

    @given(arrays(np.float64, st.integers(min_value=1, max_value=6).map(lambda n: (n, n)),
                  elements=st.floats(min_value=-100, max_value=100)))
    @settings(max_examples=30, deadline=None)
    def test_unpack_inverts_pack(self, M):
        S = M + M.T
        assert_array_equal(unpack_symmetric(pack_symmetric(S)), S)

    def test_invalid_shapes(self):
        with pytest.raises(DimensionError):
            pack_symmetric(np.ones((2, 3)))
        with pytest.raises(DimensionError):
            unpack_symmetric(np.ones(4))
        with pytest.raises(DimensionError):
            unpack_symmetric(np.ones((2, 2)))

    def test_ensure_symmetric(self):
        A = np.array([[1.0, 2.0], [2.0 + 1e-14, 1.0]])
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            assert_allclose(ensure_symmetric(A), [[1.0, 2.0], [2.0, 1.0]])
        with pytest.warns(NumericWarning):
            ensure_symmetric(np.array([[1.0, 2.0], [0.0, 1.0]]))

    def test_positive_definite(self):
        assert is_positive_definite(np.eye(3))
        assert not is_positive_definite(np.array([[1.0, 2.0], [2.0, 1.0]]))
        assert not is_positive_definite(np.array([[1.0, 0.5], [0.0, 1.0]]))
        assert not is_positive_definite(np.ones((2, 3)))
