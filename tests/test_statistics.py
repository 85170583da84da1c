"""Tests for moments and time-series diagnostics."""

import numpy as np
import pandas as pd
import pytest

from inflation_risk.statistics import (
    adf_test,
    autocorrelation,
    compute_correlation_matrix,
    partial_autocorrelation,
    predictor_moments,
    residual_summary,
)


def test_predictor_moments_use_sample_sd():
    panel = pd.DataFrame({"a": [1.0, 2.0, 3.0, np.nan], "b": [2.0, 2.0, 2.0, 2.0]})
    moments = predictor_moments(panel, ["a", "b"])

    assert moments["a"] == pytest.approx((2.0, 1.0))
    assert moments["b"] == pytest.approx((2.0, 0.0))


def test_predictor_moments_need_two_values():
    panel = pd.DataFrame({"a": [1.0, np.nan]})
    with pytest.raises(ValueError):
        predictor_moments(panel, ["a"])


def test_correlation_matrix(linear_panel):
    corr = compute_correlation_matrix(linear_panel, ["y", "x1", "x2"])
    np.testing.assert_allclose(np.diag(corr.values), 1.0)
    assert corr.loc["y", "x1"] > 0
    assert corr.loc["y", "x2"] < 0


def test_autocorrelation_shape():
    x = np.random.default_rng(1).normal(size=200)
    values = autocorrelation(x, nlags=24)
    assert len(values) == 25
    assert values[0] == pytest.approx(1.0)


def test_autocorrelation_lags_clipped_to_sample():
    assert len(autocorrelation([1.0, 3.0, 2.0, 5.0, 4.0], nlags=24)) == 5


def test_partial_autocorrelation_shape():
    x = np.random.default_rng(2).normal(size=200)
    assert len(partial_autocorrelation(x, nlags=12)) == 13


def test_adf_white_noise_is_stationary():
    x = np.random.default_rng(3).normal(size=300)
    result = adf_test(x)
    assert result["stationary"]
    assert result["p_value"] < 0.05
    assert set(result["critical_values"]) == {"1%", "5%", "10%"}


def test_residual_summary(fitted_model):
    summary = residual_summary(fitted_model.residuals)
    assert set(summary) == {
        "mean", "std", "skewness", "excess_kurtosis",
        "jarque_bera", "jarque_bera_p_value",
    }
    # OLS residuals with an intercept are centered
    assert summary["mean"] == pytest.approx(0.0, abs=1e-10)


class TestConstantSeries:

    def test_adf_constant_series_is_undefined(self):
        result = adf_test(np.full(60, 0.0))
        assert result["stationary"] is None
        assert np.isnan(result["adf_statistic"])
        assert np.isnan(result["p_value"])
        assert result["nobs"] == 60

    def test_adf_too_short_series_is_undefined(self):
        result = adf_test([1.0, 2.0, 4.0])
        assert result["stationary"] is None
        assert np.isnan(result["p_value"])

    def test_correlograms_of_constant_series(self):
        flat = np.full(50, 3.0)
        acf_values = autocorrelation(flat, nlags=10)
        pacf_values = partial_autocorrelation(flat, nlags=10)

        assert len(acf_values) == 11
        assert np.isnan(acf_values).all()
        assert len(pacf_values) == 11
        assert np.isnan(pacf_values).all()

    def test_residual_summary_of_zero_residuals(self):
        summary = residual_summary(np.zeros(30))
        assert summary["mean"] == 0.0
        assert summary["std"] == 0.0
        assert np.isnan(summary["jarque_bera_p_value"])
