"""
Rate Transformation Module
==========================
Derives growth rates and log-shifted levels on the monthly panel, and
applies the complete-case filter that precedes regression.

Mathematical Foundation:
    Percentage change:  r_t = (L_t / L_{t-1} - 1) · 100
    Log shift:          y_t = ln(L_t + s),  s = 1 - min(L) if min(L) < 0 else 0

Design note:
    Transforms never overwrite a field. Each one returns a new panel with
    the derived field appended, so levels and rates stay side by side
    for reporting.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from inflation_risk.errors import NonPositiveAfterShift

logger = logging.getLogger(__name__)


def _append_field(panel: pd.DataFrame, name: str, values: pd.Series) -> pd.DataFrame:
    if name in panel.columns:
        raise ValueError(f"Field '{name}' already exists; derived fields are append-only")
    return panel.assign(**{name: values})


def _require_field(panel: pd.DataFrame, field: str) -> None:
    if field not in panel.columns:
        raise KeyError(f"Field '{field}' not in panel (have {list(panel.columns)})")


# ─────────────────────────────────────────────────────────────
# Growth rates
# ─────────────────────────────────────────────────────────────

def pct_change(levels: pd.Series) -> pd.Series:
    """
    Period-over-period percentage change of a level series.

    The first row is always undefined. A row is undefined whenever its
    own level or the previous row's level is undefined, or the previous
    level is zero.

    Parameters
    ----------
    levels : pd.Series
        Level series in panel order.

    Returns
    -------
    pd.Series
        Percentage changes, same index.
    """
    rates = (levels / levels.shift(1) - 1.0) * 100.0
    return rates.replace([np.inf, -np.inf], np.nan)


def add_pct_change(
    panel: pd.DataFrame,
    field: str,
    name: Optional[str] = None,
) -> pd.DataFrame:
    """
    Append the percentage change of ``field`` as a new panel field.

    Parameters
    ----------
    panel : pd.DataFrame
        Monthly panel.
    field : str
        Level field to transform.
    name : str, optional
        Name of the derived field (default: ``"<field>_pct"``).

    Returns
    -------
    pd.DataFrame
        New panel with the rate field appended.
    """
    _require_field(panel, field)
    name = name or f"{field}_pct"
    return _append_field(panel, name, pct_change(panel[field]))


# ─────────────────────────────────────────────────────────────
# Log-shift
# ─────────────────────────────────────────────────────────────

def log_shift(values: pd.Series) -> float:
    """Shift that lifts a series with negative values above zero: 1 - min, else 0."""
    minimum = values.min(skipna=True)
    if pd.isna(minimum) or minimum >= 0:
        return 0.0
    return float(1.0 - minimum)


def add_log_shift(
    panel: pd.DataFrame,
    field: str,
    name: Optional[str] = None,
) -> Tuple[pd.DataFrame, float]:
    """
    Append ``ln(field + shift)`` as a new panel field.

    The shift makes the logarithm defined for series that dip below zero
    (e.g. a policy rate at the zero lower bound and beyond).

    Parameters
    ----------
    panel : pd.DataFrame
        Monthly panel.
    field : str
        Level field to transform.
    name : str, optional
        Name of the derived field (default: ``"log_<field>"``).

    Returns
    -------
    tuple[pd.DataFrame, float]
        (new panel, shift applied)

    Raises
    ------
    NonPositiveAfterShift
        If any defined value is still <= 0 after shifting (e.g. an exact
        zero when no shift is needed).
    """
    _require_field(panel, field)
    name = name or f"log_{field}"

    levels = panel[field]
    shift = log_shift(levels)
    shifted = levels + shift

    minimum = shifted.min(skipna=True)
    if not pd.isna(minimum) and minimum <= 0:
        raise NonPositiveAfterShift(field, shift, float(minimum))

    if shift:
        logger.info("Log transform of '%s' shifted by %.6g", field, shift)

    return _append_field(panel, name, np.log(shifted)), shift


# ─────────────────────────────────────────────────────────────
# Complete-case filtering
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CompleteCaseResult:
    """Outcome of complete-case filtering."""

    panel: pd.DataFrame
    dropped: int
    dropped_keys: Tuple[object, ...]


def complete_cases(
    panel: pd.DataFrame,
    required: Sequence[str],
) -> CompleteCaseResult:
    """
    Drop rows with any undefined required field.

    Missingness is not an error: the number and keys of dropped rows are
    returned and logged so the filter can be audited.

    Parameters
    ----------
    panel : pd.DataFrame
        Panel to filter.
    required : sequence of str
        Fields that must be defined on every kept row.

    Returns
    -------
    CompleteCaseResult
        Filtered panel, dropped count and dropped keys.
    """
    required = list(required)
    for field in required:
        _require_field(panel, field)

    mask = panel[required].notna().all(axis=1)
    kept = panel.loc[mask]
    dropped_keys = tuple(panel.index[~mask.to_numpy()])

    if dropped_keys:
        logger.info(
            "Complete-case filter on %s dropped %d of %d rows",
            required, len(dropped_keys), len(panel),
        )

    return CompleteCaseResult(
        panel=kept,
        dropped=len(dropped_keys),
        dropped_keys=dropped_keys,
    )
