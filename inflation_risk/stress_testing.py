"""
Stress Testing Module
=====================
Re-runs the Monte Carlo engine with scenario parameters for selected
predictors and measures how the inflation tails move.

Stress Scenario:
    x_j ~ N(μ_j^stress, σ_j^stress)   for overridden predictors j
    x_j ~ N(μ_j, σ_j)                 (empirical) for all others

The stressed request keeps the baseline seed, so predictors that are not
overridden receive exactly the same draws as in the baseline run.
"""

import logging
from dataclasses import replace
from typing import Dict, Mapping, Optional, Tuple

from inflation_risk.monte_carlo import (
    DistributionLike,
    SimulationRequest,
    as_distribution,
    run_monte_carlo_engine,
)
from inflation_risk.regression import FittedModel
from inflation_risk.risk_metrics import RiskSummary

logger = logging.getLogger(__name__)

RISK_FIELDS: Tuple[str, ...] = ("lower_var", "upper_var", "lower_cvar", "upper_cvar")


def stressed_request(
    request: SimulationRequest,
    overrides: Mapping[str, DistributionLike],
    label: str = "stressed",
) -> SimulationRequest:
    """
    Override the sampling distribution of selected predictors.

    Parameters
    ----------
    request : SimulationRequest
        Baseline request (usually empirical).
    overrides : mapping of str -> (mean, sd)
        Scenario parameters per predictor.
    label : str
        Scenario name carried on the request.

    Returns
    -------
    SimulationRequest
        New request; the baseline is left untouched.

    Raises
    ------
    KeyError
        If an override names a predictor the baseline does not sample.
    """
    unknown = [name for name in overrides if name not in request.distributions]
    if unknown:
        raise KeyError(
            f"Stress overrides for unknown predictors {unknown}; "
            f"known: {list(request.distributions)}"
        )

    distributions = dict(request.distributions)
    for name, params in overrides.items():
        distributions[name] = as_distribution(params)
        logger.info(
            "Scenario '%s': %s ~ N(%.4f, %.4f)",
            label, name, distributions[name].mean, distributions[name].sd,
        )

    return replace(request, distributions=distributions, label=label)


def run_stress_scenario(
    model: FittedModel,
    baseline: SimulationRequest,
    overrides: Mapping[str, DistributionLike],
    alpha: float,
    label: str = "stressed",
) -> Dict[str, object]:
    """
    Run Monte Carlo under stressed predictor distributions.

    Returns
    -------
    dict
        Stressed Monte Carlo results (sample, risk, ...).
    """
    request = stressed_request(baseline, overrides, label)
    return run_monte_carlo_engine(model, request, alpha)


def compute_stress_impact(
    base: RiskSummary,
    stressed: RiskSummary,
) -> Dict[str, Optional[float]]:
    """
    Compare base and stressed risk metrics.

    Parameters
    ----------
    base : RiskSummary
        Baseline Monte Carlo summary.
    stressed : RiskSummary
        Stressed Monte Carlo summary.

    Returns
    -------
    dict
        Base value, stressed value and percentage change per metric.
        The change is None when either side is undefined or the base
        is zero.
    """
    impact: Dict[str, Optional[float]] = {}

    for m in RISK_FIELDS:
        base_val = getattr(base, m)
        stress_val = getattr(stressed, m)
        if base_val is None or stress_val is None or base_val == 0:
            pct_change = None
        else:
            pct_change = ((stress_val - base_val) / abs(base_val)) * 100
        impact[f"{m}_base"] = base_val
        impact[f"{m}_stressed"] = stress_val
        impact[f"{m}_pct_change"] = pct_change

    return impact


def full_stress_analysis(
    model: FittedModel,
    baseline: SimulationRequest,
    scenarios: Mapping[str, Mapping[str, DistributionLike]],
    alpha: float,
    base_results: Optional[Dict[str, object]] = None,
) -> Dict[str, Dict]:
    """
    Execute the complete stress testing suite.

    Parameters
    ----------
    model : FittedModel
        Fitted regression shared by every scenario.
    baseline : SimulationRequest
        Empirical request.
    scenarios : mapping of str -> overrides
        Scenario name -> predictor overrides.
    alpha : float
        Two-sided tail probability.
    base_results : dict, optional
        Baseline Monte Carlo results; computed if not supplied.

    Returns
    -------
    dict
        Scenario name -> {'results': ..., 'impact': ...}.
    """
    if base_results is None:
        base_results = run_monte_carlo_engine(model, baseline, alpha)

    analysis = {}
    for name, overrides in scenarios.items():
        results = run_stress_scenario(model, baseline, overrides, alpha, label=name)
        analysis[name] = {
            "results": results,
            "impact": compute_stress_impact(base_results["risk"], results["risk"]),
        }

    return analysis
