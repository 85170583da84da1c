"""
Risk Metrics Module
====================
Empirical two-sided Value-at-Risk and Conditional VaR of an inflation
distribution, used both on historical data and on simulation output.

Mathematical Foundation:
    VaR_p:        Q(p), the type-7 sample quantile
                  (linear interpolation between order statistics)
    Lower tail:   p = α / 2,      CVaR = E[X | X < VaR_lower]
    Upper tail:   p = 1 - α / 2,  CVaR = E[X | X > VaR_upper]

Both tails matter for inflation: the lower tail is deflation risk, the
upper tail is the overshoot a central bank worries about.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Dict, Mapping, Optional

import numpy as np
import pandas as pd

from inflation_risk.errors import UndefinedCVaR

logger = logging.getLogger(__name__)

LOWER: str = "lower"
UPPER: str = "upper"
QUANTILE_METHOD: str = "linear"


@dataclass(frozen=True)
class RiskSummary:
    """
    Two-sided VaR/CVaR at confidence level ``alpha``.

    A CVaR of ``None`` means no sample value fell strictly beyond that
    tail's VaR; :meth:`cvar` raises :class:`UndefinedCVaR` for it.
    """

    alpha: float
    lower_var: float
    upper_var: float
    lower_cvar: Optional[float]
    upper_cvar: Optional[float]
    n: int

    def var(self, tail: str) -> float:
        if tail == LOWER:
            return self.lower_var
        if tail == UPPER:
            return self.upper_var
        raise ValueError(f"tail must be '{LOWER}' or '{UPPER}', got '{tail}'")

    def cvar(self, tail: str) -> float:
        value = self.lower_cvar if tail == LOWER else self.upper_cvar
        if value is None:
            raise UndefinedCVaR(tail, self.var(tail))
        return value

    def as_dict(self) -> Dict[str, Optional[float]]:
        return asdict(self)


def _as_sample(sample) -> np.ndarray:
    values = np.asarray(sample, dtype=float).ravel()
    if values.size == 0:
        raise ValueError("Cannot estimate risk from an empty sample")
    if not np.all(np.isfinite(values)):
        raise ValueError("Sample contains undefined or infinite values")
    return values


def compute_var(sample, p: float) -> float:
    """
    Compute VaR at tail probability ``p`` as the type-7 sample quantile.

    Parameters
    ----------
    sample : array-like
        Outcome sample.
    p : float
        Tail probability in [0, 1].

    Returns
    -------
    float
        The p-quantile.
    """
    if not 0.0 <= p <= 1.0:
        raise ValueError(f"p must lie in [0, 1], got {p}")
    return float(np.quantile(_as_sample(sample), p, method=QUANTILE_METHOD))


def compute_cvar(sample, threshold: float, tail: str) -> float:
    """
    Compute CVaR as the mean of outcomes strictly beyond ``threshold``.

    Parameters
    ----------
    sample : array-like
        Outcome sample.
    threshold : float
        The tail's VaR.
    tail : {"lower", "upper"}
        Which side of the threshold to average.

    Returns
    -------
    float
        Mean of the tail outcomes.

    Raises
    ------
    UndefinedCVaR
        If no outcome lies strictly beyond the threshold.
    """
    values = _as_sample(sample)
    if tail == LOWER:
        beyond = values[values < threshold]
    elif tail == UPPER:
        beyond = values[values > threshold]
    else:
        raise ValueError(f"tail must be '{LOWER}' or '{UPPER}', got '{tail}'")

    if beyond.size == 0:
        raise UndefinedCVaR(tail, threshold)
    return float(np.mean(beyond))


def estimate(sample, alpha: float) -> RiskSummary:
    """
    Estimate two-sided VaR and CVaR from a sample.

    Parameters
    ----------
    sample : array-like
        Historical or simulated outcomes.
    alpha : float
        Total tail probability in (0, 1), split evenly across both tails.

    Returns
    -------
    RiskSummary
        VaR and CVaR per tail; an undefined CVaR is reported as None.
    """
    if not 0.0 < alpha < 1.0:
        raise ValueError(f"alpha must lie in (0, 1), got {alpha}")

    values = _as_sample(sample)
    lower_var = compute_var(values, alpha / 2)
    upper_var = compute_var(values, 1 - alpha / 2)

    cvars = {}
    for tail, threshold in ((LOWER, lower_var), (UPPER, upper_var)):
        try:
            cvars[tail] = compute_cvar(values, threshold, tail)
        except UndefinedCVaR as exc:
            logger.warning("%s", exc)
            cvars[tail] = None

    return RiskSummary(
        alpha=alpha,
        lower_var=lower_var,
        upper_var=upper_var,
        lower_cvar=cvars[LOWER],
        upper_cvar=cvars[UPPER],
        n=int(values.size),
    )


def historical_risk(
    panel: pd.DataFrame,
    field: str,
    alpha: float,
) -> RiskSummary:
    """
    Historical-simulation VaR/CVaR of one panel field.

    Undefined rows are excluded.
    """
    values = panel[field].dropna().to_numpy(dtype=float)
    return estimate(values, alpha)


def risk_table(summaries: Mapping[str, RiskSummary]) -> pd.DataFrame:
    """
    Tabulate one RiskSummary per scenario.

    Undefined CVaRs appear as missing cells.
    """
    rows = []
    for scenario, summary in summaries.items():
        row = {"scenario": scenario}
        row.update(summary.as_dict())
        rows.append(row)
    return pd.DataFrame(rows).set_index("scenario")
