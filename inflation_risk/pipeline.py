"""
Inflation Risk Pipeline
=======================
Runs every stage in causal order and returns the artifacts a reporting
layer needs.

Execution Flow:
    1. Align raw series onto the monthly panel
    2. Derive growth rates and log-shifted levels
    3. Complete-case filter (dropped rows reported)
    4. Fit OLS on the training window, evaluate on the holdout
    5. Diagnostics (correlation, ACF/PACF, ADF, residual shape)
    6. Historical VaR/CVaR of inflation
    7. Monte Carlo VaR/CVaR, baseline
    8. Monte Carlo VaR/CVaR, stressed
"""

import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from inflation_risk.alignment import align
from inflation_risk.config import PipelineConfig
from inflation_risk.evaluation import HoldoutMetrics, run_holdout_evaluation, in_sample_metrics
from inflation_risk.monte_carlo import empirical_request, run_monte_carlo_engine
from inflation_risk.regression import FittedModel, RegressionSpec, fit
from inflation_risk.risk_metrics import RiskSummary, historical_risk
from inflation_risk.statistics import (
    adf_test,
    autocorrelation,
    compute_correlation_matrix,
    partial_autocorrelation,
    residual_summary,
)
from inflation_risk.stress_testing import full_stress_analysis
from inflation_risk.transforms import add_log_shift, add_pct_change, complete_cases

logger = logging.getLogger(__name__)

HISTORICAL: str = "historical"
MC_BASELINE: str = "monte_carlo_baseline"
MC_STRESSED: str = "monte_carlo_stressed"


@dataclass(frozen=True)
class PipelineResult:
    """Everything the pipeline produces, for reporting."""

    aligned_panel: pd.DataFrame
    modeling_panel: pd.DataFrame
    dropped_rows: int
    dropped_keys: Tuple[object, ...]
    log_shifts: Dict[str, float]
    model: FittedModel
    in_sample_metrics: HoldoutMetrics
    holdout_metrics: Optional[HoldoutMetrics]
    diagnostics: Dict[str, object]
    risk: Dict[str, RiskSummary]
    stress_impact: Dict[str, Optional[float]]
    simulations: Dict[str, np.ndarray]


def build_modeling_panel(
    panel: pd.DataFrame,
    config: PipelineConfig,
) -> Tuple[pd.DataFrame, Dict[str, float]]:
    """
    Append the configured rate and log-shift fields to the aligned panel.

    Returns
    -------
    tuple[pd.DataFrame, dict]
        (panel with derived fields, shift applied per log-transformed field)
    """
    modeling = panel
    for level, name in config.pct_change_fields.items():
        modeling = add_pct_change(modeling, level, name)

    shifts: Dict[str, float] = {}
    for level, name in config.log_shift_fields.items():
        modeling, shifts[level] = add_log_shift(modeling, level, name)

    return modeling, shifts


def compute_diagnostics(
    model: FittedModel,
    config: PipelineConfig,
) -> Dict[str, object]:
    """
    Numeric pre- and post-modeling diagnostics.

    Returns
    -------
    dict
        correlation, response_acf, response_pacf, residual_acf,
        residual_pacf, adf (per field), residuals (shape summary),
        fitted_values, residual_series.
    """
    data = model.training_data
    spec = model.spec
    residuals = model.residuals

    return {
        "correlation": compute_correlation_matrix(data, spec.fields),
        "response_acf": autocorrelation(data[spec.response], config.acf_lags),
        "response_pacf": partial_autocorrelation(data[spec.response], config.acf_lags),
        "residual_acf": autocorrelation(residuals, config.acf_lags),
        "residual_pacf": partial_autocorrelation(residuals, config.acf_lags),
        "adf": {f: adf_test(data[f], config.adf_max_lag) for f in spec.fields},
        "residuals": residual_summary(residuals),
        "fitted_values": model.fitted_values,
        "residual_series": pd.Series(residuals, index=data.index, name="residual"),
    }


def run_pipeline(
    raw_series: Mapping[str, pd.Series],
    config: Optional[PipelineConfig] = None,
) -> PipelineResult:
    """
    Execute the complete alignment-to-risk pipeline.

    Parameters
    ----------
    raw_series : mapping of str -> pd.Series
        Already-fetched raw series by identifier.
    config : PipelineConfig, optional
        Pipeline configuration (defaults if omitted).

    Returns
    -------
    PipelineResult
        Aligned and modeling panels, fitted model, evaluation metrics,
        diagnostics and one RiskSummary per scenario.
    """
    config = config or PipelineConfig()

    # ── Alignment & transforms ────────────────────────────────
    frequencies = {
        name: freq for name, freq in config.series_frequencies.items()
        if name in raw_series
    }
    aligned = align(
        raw_series,
        frequencies=frequencies,
        collision=config.collision,
        offsets_days=config.interpolation_offsets,
        tail_padding=config.tail_padding,
    )
    derived, shifts = build_modeling_panel(aligned, config)

    spec = RegressionSpec(
        response=config.response,
        predictors=tuple(config.predictors),
        holdout=config.holdout,
    )
    filtered = complete_cases(derived, spec.fields)
    modeling = filtered.panel

    # ── Regression ────────────────────────────────────────────
    if spec.holdout > 0:
        model, in_sample, holdout = run_holdout_evaluation(modeling, spec)
    else:
        logger.info("Holdout window is zero; skipping out-of-sample evaluation")
        model = fit(modeling, spec)
        in_sample, holdout = in_sample_metrics(model), None

    diagnostics = compute_diagnostics(model, config)

    # ── Risk ──────────────────────────────────────────────────
    risk: Dict[str, RiskSummary] = {
        HISTORICAL: historical_risk(modeling, spec.response, config.alpha),
    }

    baseline_request = empirical_request(model, config.n_simulations, config.seed)
    base_results = run_monte_carlo_engine(model, baseline_request, config.alpha)
    risk[MC_BASELINE] = base_results["risk"]
    simulations = {MC_BASELINE: base_results["sample"]}

    impact: Dict[str, Optional[float]] = {}
    if config.stress_overrides:
        stress = full_stress_analysis(
            model,
            baseline_request,
            {MC_STRESSED: config.stress_overrides},
            config.alpha,
            base_results=base_results,
        )
        risk[MC_STRESSED] = stress[MC_STRESSED]["results"]["risk"]
        simulations[MC_STRESSED] = stress[MC_STRESSED]["results"]["sample"]
        impact = stress[MC_STRESSED]["impact"]

    return PipelineResult(
        aligned_panel=aligned,
        modeling_panel=modeling,
        dropped_rows=filtered.dropped,
        dropped_keys=filtered.dropped_keys,
        log_shifts=shifts,
        model=model,
        in_sample_metrics=in_sample,
        holdout_metrics=holdout,
        diagnostics=diagnostics,
        risk=risk,
        stress_impact=impact,
        simulations=simulations,
    )
