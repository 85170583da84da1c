"""End-to-end tests: raw series in, risk summaries out."""

import json

import numpy as np
import pandas as pd
import pytest

from inflation_risk.config import PipelineConfig
from inflation_risk.errors import EmptySeries
from inflation_risk.main import main
from inflation_risk.pipeline import HISTORICAL, MC_BASELINE, MC_STRESSED, run_pipeline


@pytest.fixture
def config():
    return PipelineConfig(n_simulations=5_000)


class TestRunPipeline:

    def test_panels_and_filtering(self, raw_macro_series, config):
        result = run_pipeline(raw_macro_series, config)

        assert len(result.aligned_panel) == 120
        assert result.aligned_panel.index.name == "month"
        # First month has no rates; GDP is undefined past its last quarter
        assert result.dropped_rows == 3
        assert [str(k) for k in result.dropped_keys] == ["2010-01", "2019-11", "2019-12"]
        assert len(result.modeling_panel) == 117
        assert result.modeling_panel[list(config.predictors)].notna().all().all()

    def test_levels_kept_next_to_rates(self, raw_macro_series, config):
        panel = run_pipeline(raw_macro_series, config).modeling_panel
        for column in ("cpi", "inflation", "gdp", "gdp_growth",
                       "interest_rate", "log_interest_rate"):
            assert column in panel.columns

    def test_negative_policy_rate_shifted(self, raw_macro_series, config):
        result = run_pipeline(raw_macro_series, config)
        shift = result.log_shifts["interest_rate"]
        assert shift == pytest.approx(1.0 - raw_macro_series["interest_rate"].min())

    def test_holdout_and_model(self, raw_macro_series, config):
        result = run_pipeline(raw_macro_series, config)

        assert result.holdout_metrics.n == 12
        assert result.model.nobs == 105
        assert list(result.model.coefficients.index) == list(config.predictors)
        assert set(result.model.vif.index) == set(config.predictors)

    def test_risk_scenarios(self, raw_macro_series, config):
        result = run_pipeline(raw_macro_series, config)

        assert set(result.risk) == {HISTORICAL, MC_BASELINE, MC_STRESSED}
        assert result.risk[HISTORICAL].n == 117
        assert result.risk[MC_BASELINE].n == 5_000
        for summary in result.risk.values():
            assert summary.lower_var <= summary.upper_var
        assert "upper_var_pct_change" in result.stress_impact
        assert result.simulations[MC_STRESSED].shape == (5_000,)

    def test_diagnostics(self, raw_macro_series, config):
        diagnostics = run_pipeline(raw_macro_series, config).diagnostics

        assert set(diagnostics["adf"]) == {"inflation", *config.predictors}
        assert diagnostics["response_acf"][0] == pytest.approx(1.0)
        assert len(diagnostics["residual_series"]) == 105

    def test_reproducible(self, raw_macro_series, config):
        a = run_pipeline(raw_macro_series, config)
        b = run_pipeline(raw_macro_series, config)

        assert a.risk == b.risk
        assert np.array_equal(a.simulations[MC_BASELINE], b.simulations[MC_BASELINE])

    def test_no_holdout_no_stress(self, raw_macro_series):
        config = PipelineConfig(n_simulations=1_000, holdout=0, stress_overrides={})
        result = run_pipeline(raw_macro_series, config)

        assert result.holdout_metrics is None
        assert result.model.nobs == 117
        assert MC_STRESSED not in result.risk
        assert result.stress_impact == {}

    def test_flat_price_index_still_reports_risk(self, raw_macro_series):
        raw = dict(raw_macro_series)
        raw["cpi"] = pd.Series(250.0, index=raw["cpi"].index, name="cpi")
        result = run_pipeline(raw, PipelineConfig(n_simulations=1_000))

        # Zero inflation every month: no value lies beyond either VaR
        assert set(result.risk) == {HISTORICAL, MC_BASELINE, MC_STRESSED}
        for summary in result.risk.values():
            assert summary.lower_var == 0.0
            assert summary.lower_cvar is None
            assert summary.upper_cvar is None
        assert result.stress_impact["lower_cvar_pct_change"] is None
        assert result.diagnostics["adf"]["inflation"]["stationary"] is None
        assert result.diagnostics["adf"]["unemployment"]["stationary"] is not None

    def test_empty_series_propagates(self, raw_macro_series, config):
        raw = dict(raw_macro_series)
        raw["gdp"] = pd.Series([], index=pd.DatetimeIndex([]), dtype=float, name="gdp")
        with pytest.raises(EmptySeries):
            run_pipeline(raw, config)


class TestConfig:

    @pytest.mark.parametrize("kwargs", [
        {"frequency": "Q"},
        {"holdout": -1},
        {"alpha": 0.0},
        {"n_simulations": 0},
        {"predictors": ()},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            PipelineConfig(**kwargs)


def test_command_line(raw_macro_series, tmp_path, capsys):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    for name, series in raw_macro_series.items():
        series.rename_axis("date").to_csv(data_dir / f"{name}.csv")
    results_dir = tmp_path / "results"

    main([
        "--data-dir", str(data_dir),
        "--results-dir", str(results_dir),
        "--simulations", "2000",
    ])

    out = capsys.readouterr().out
    assert "PHASE 5" in out
    table = pd.read_csv(results_dir / "risk_metrics_comparison.csv", index_col=0)
    assert list(table.index) == [HISTORICAL, MC_BASELINE, MC_STRESSED]
    with open(results_dir / "full_results.json") as f:
        saved = json.load(f)
    assert saved["dropped_rows"] == 3


def test_command_line_missing_input(tmp_path):
    with pytest.raises(FileNotFoundError):
        main(["--data-dir", str(tmp_path)])
