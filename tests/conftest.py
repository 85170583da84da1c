"""Shared fixtures: synthetic macro series and a fitted two-predictor model."""

import numpy as np
import pandas as pd
import pytest

from inflation_risk.regression import RegressionSpec, fit


@pytest.fixture
def raw_macro_series():
    """Ten years of monthly unemployment/CPI/policy rate and quarterly GDP."""
    rng = np.random.default_rng(7)
    months = pd.date_range("2010-01-01", periods=120, freq="MS")
    quarters = pd.date_range("2010-01-01", periods=40, freq="QS")

    unemployment = 5.0 + 0.1 * np.cumsum(rng.normal(size=120))
    cpi = 200.0 * np.cumprod(1.0 + 0.002 + 0.001 * rng.normal(size=120))
    # Policy rate drifts below zero
    interest_rate = np.linspace(2.0, -0.5, 120) + 0.1 * rng.normal(size=120)
    gdp = 15000.0 * np.cumprod(1.0 + 0.005 + 0.003 * rng.normal(size=40))

    return {
        "unemployment": pd.Series(unemployment, index=months, name="unemployment"),
        "cpi": pd.Series(cpi, index=months, name="cpi"),
        "interest_rate": pd.Series(interest_rate, index=months, name="interest_rate"),
        "gdp": pd.Series(gdp, index=quarters, name="gdp"),
    }


@pytest.fixture
def linear_panel():
    """y = 1 + 0.5·x1 - 0.3·x2 + noise on 120 monthly rows."""
    rng = np.random.default_rng(0)
    n = 120
    x1 = rng.normal(5.0, 1.0, n)
    x2 = rng.normal(0.0, 2.0, n)
    y = 1.0 + 0.5 * x1 - 0.3 * x2 + rng.normal(0.0, 0.2, n)
    index = pd.period_range("2000-01", periods=n, freq="M", name="month")
    return pd.DataFrame({"y": y, "x1": x1, "x2": x2}, index=index)


@pytest.fixture
def fitted_model(linear_panel):
    return fit(linear_panel, RegressionSpec("y", ("x1", "x2"), holdout=0))
