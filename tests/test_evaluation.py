"""Tests for holdout evaluation of fitted models."""

import numpy as np
import pandas as pd
import pytest

from inflation_risk.errors import EmptyHoldout
from inflation_risk.evaluation import error_metrics, evaluate, run_holdout_evaluation
from inflation_risk.regression import RegressionSpec, fit, split_holdout


class TestErrorMetrics:

    def test_known_values(self):
        m = error_metrics([1.0, 2.0, 3.0], [1.0, 2.0, 4.0])
        assert m.mse == pytest.approx(1 / 3)
        assert m.rmse == pytest.approx(np.sqrt(1 / 3))
        assert m.mae == pytest.approx(1 / 3)
        # SS_tot around the actuals' own mean = 2
        assert m.r_squared == pytest.approx(0.5)
        assert m.n == 3

    def test_constant_actuals_have_undefined_r_squared(self):
        m = error_metrics([2.0, 2.0], [1.0, 3.0])
        assert np.isnan(m.r_squared)
        assert m.mae == pytest.approx(1.0)


class TestEvaluate:

    def test_perfect_model_on_holdout(self):
        x = np.arange(30, dtype=float)
        index = pd.period_range("2000-01", periods=30, freq="M")
        panel = pd.DataFrame({"y": 1.0 + 2.0 * x, "x": x}, index=index)
        spec = RegressionSpec("y", ("x",), holdout=6)

        model, in_sample, holdout = run_holdout_evaluation(panel, spec)

        assert holdout.n == 6
        assert holdout.mse == pytest.approx(0.0, abs=1e-12)
        assert holdout.r_squared == pytest.approx(1.0)
        assert in_sample.n == 24

    def test_holdout_metrics_on_noisy_model(self, linear_panel):
        spec = RegressionSpec("y", ("x1", "x2"), holdout=24)
        model = fit(linear_panel, spec)
        _, holdout_rows = split_holdout(linear_panel, spec.holdout)

        metrics = evaluate(model, holdout_rows)
        assert metrics.n == 24
        assert metrics.rmse == pytest.approx(np.sqrt(metrics.mse))
        # Noise sd is 0.2
        assert 0.05 < metrics.rmse < 0.5
        assert metrics.r_squared > 0.8

    def test_empty_holdout(self, fitted_model, linear_panel):
        with pytest.raises(EmptyHoldout):
            evaluate(fitted_model, linear_panel.iloc[0:0])

    def test_holdout_without_complete_rows(self, fitted_model, linear_panel):
        rows = linear_panel.iloc[-3:].copy()
        rows["x1"] = np.nan
        with pytest.raises(EmptyHoldout):
            evaluate(fitted_model, rows)
