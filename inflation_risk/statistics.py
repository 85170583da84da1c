"""
Statistical Estimation Module
==============================
Empirical moments, correlation structure and time-series diagnostics
of the modeling panel.

Everything here returns numbers, never figures: correlograms, residual
histograms and Q-Q plots are drawn by whatever reporting layer consumes
these arrays.

Mathematical Foundation:
    Mean:          μ = E[x]
    Std dev:       σ = sqrt(Σ (x - μ)² / (T - 1))
    ACF at lag k:  ρ_k = Cov(x_t, x_{t-k}) / Var(x_t)
    ADF:           Δx_t = α + γ x_{t-1} + Σ δ_i Δx_{t-i} + ε_t,  H0: γ = 0
"""

import logging
import warnings
from typing import Dict, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy import stats
from statsmodels.tools.sm_exceptions import InterpolationWarning
from statsmodels.tsa.stattools import acf, adfuller, pacf

logger = logging.getLogger(__name__)

# ignore out-of-range p-value interpolation warnings
warnings.filterwarnings("ignore", category=InterpolationWarning)

ADF_SIGNIFICANCE: float = 0.05


def _defined(values) -> np.ndarray:
    arr = np.asarray(values, dtype=float)
    return arr[~np.isnan(arr)]


def _is_constant(x: np.ndarray) -> bool:
    return x.size > 0 and float(np.ptp(x)) == 0.0


def predictor_moments(
    panel: pd.DataFrame,
    fields: Sequence[str],
) -> Dict[str, Tuple[float, float]]:
    """
    Compute the sample mean and standard deviation of each field.

    Uses the unbiased estimator (ddof=1) over defined values.

    Parameters
    ----------
    panel : pd.DataFrame
        Modeling panel (typically the complete-case training rows).
    fields : sequence of str
        Fields to summarize.

    Returns
    -------
    dict
        field -> (mean, sd)
    """
    moments = {}
    for field in fields:
        column = panel[field].dropna()
        if len(column) < 2:
            raise ValueError(
                f"Need at least two defined values of '{field}' to estimate its spread"
            )
        moments[field] = (float(column.mean()), float(column.std(ddof=1)))
    return moments


def compute_correlation_matrix(
    panel: pd.DataFrame,
    fields: Sequence[str],
) -> pd.DataFrame:
    """
    Compute the Pearson correlation matrix of the given fields.

    Pairwise over rows where both fields are defined.
    """
    return panel[list(fields)].corr(method="pearson")


def autocorrelation(values, nlags: int = 24) -> np.ndarray:
    """
    Sample autocorrelation function at lags 0..nlags.

    Parameters
    ----------
    values : array-like
        Series values; undefined entries are dropped.
    nlags : int
        Maximum lag (clipped to the sample length - 1).

    Returns
    -------
    np.ndarray
        ACF values, first element 1.0. All NaN for a constant series,
        whose variance is zero.
    """
    x = _defined(values)
    nlags = max(min(nlags, len(x) - 1), 0)
    if len(x) < 2 or _is_constant(x):
        logger.warning("ACF undefined for a constant or single-value series")
        return np.full(nlags + 1, np.nan)
    return acf(x, nlags=nlags, fft=False)


def partial_autocorrelation(values, nlags: int = 24) -> np.ndarray:
    """Sample partial autocorrelation at lags 0..nlags (clipped to half the sample)."""
    x = _defined(values)
    nlags = max(min(nlags, len(x) // 2 - 1), 0)
    if nlags < 1 or _is_constant(x):
        logger.warning("PACF undefined for a constant or too-short series")
        return np.full(nlags + 1, np.nan)
    return pacf(x, nlags=nlags)


def _undefined_adf(nobs: int) -> Dict[str, object]:
    return {
        "adf_statistic": float("nan"),
        "p_value": float("nan"),
        "used_lag": None,
        "nobs": int(nobs),
        "critical_values": {},
        "stationary": None,
    }


def adf_test(
    values,
    max_lag: Optional[int] = None,
    significance: float = ADF_SIGNIFICANCE,
) -> Dict[str, object]:
    """
    Augmented Dickey-Fuller unit-root test (constant, AIC lag selection).

    A pre-modeling check: a non-stationary response or predictor makes
    the OLS fit spurious.

    Parameters
    ----------
    values : array-like
        Series values; undefined entries are dropped.
    max_lag : int, optional
        Maximum lag considered by AIC selection.
    significance : float
        Level at which the unit-root null is rejected.

    Returns
    -------
    dict
        Contains: adf_statistic, p_value, used_lag, nobs,
        critical_values, stationary. For a constant series, or one too
        short for the lag search, the statistics are NaN and
        ``stationary`` is None.
    """
    x = _defined(values)
    if x.size == 0 or _is_constant(x):
        logger.warning("ADF test skipped: series is constant or empty")
        return _undefined_adf(x.size)

    try:
        stat, pvalue, used_lag, nobs, crit, _ = adfuller(x, maxlag=max_lag, autolag="AIC")
    except ValueError as exc:
        logger.warning("ADF test skipped on %d observations: %s", x.size, exc)
        return _undefined_adf(x.size)

    return {
        "adf_statistic": float(stat),
        "p_value": float(pvalue),
        "used_lag": int(used_lag),
        "nobs": int(nobs),
        "critical_values": {k: float(v) for k, v in crit.items()},
        "stationary": bool(pvalue < significance),
    }


def residual_summary(residuals) -> Dict[str, float]:
    """
    Distribution-shape summary of regression residuals.

    Skewness < 0 and excess kurtosis > 0 point to a heavier left tail
    than the Gaussian; the Jarque-Bera p-value tests both jointly.

    Parameters
    ----------
    residuals : array-like
        Residual sample.

    Returns
    -------
    dict
        mean, std, skewness, excess_kurtosis, jarque_bera, jarque_bera_p_value.
    """
    r = _defined(residuals)
    if r.size < 2 or _is_constant(r):
        # Shape moments divide by the variance
        return {
            "mean": float(np.mean(r)) if r.size else float("nan"),
            "std": float(np.std(r, ddof=1)) if r.size > 1 else float("nan"),
            "skewness": float("nan"),
            "excess_kurtosis": float("nan"),
            "jarque_bera": float("nan"),
            "jarque_bera_p_value": float("nan"),
        }

    jb = stats.jarque_bera(r)
    return {
        "mean": float(np.mean(r)),
        "std": float(np.std(r, ddof=1)),
        "skewness": float(stats.skew(r)),
        "excess_kurtosis": float(stats.kurtosis(r)),
        "jarque_bera": float(jb.statistic),
        "jarque_bera_p_value": float(jb.pvalue),
    }
