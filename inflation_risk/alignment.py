"""
Series Alignment Module
=======================
Builds the monthly panel from heterogeneous-frequency macro series.

Pipeline:
    1. Validate each raw series (strictly increasing dates, no duplicates)
    2. Upsample coarse (quarterly) series to monthly by linear interpolation
    3. Re-key every series by calendar month (year, month)
    4. Full outer join on the monthly key

Design note:
    Rows are matched by their (year, month) key, never by position.
    When several dates of one series fall in the same month the collision
    policy decides which reading represents the month (default: the last
    one, i.e. the end-of-month reading).
"""

import logging
from pathlib import Path
from typing import Iterable, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from inflation_risk.config import (
    DEFAULT_COLLISION_POLICY,
    DEFAULT_INTERPOLATION_OFFSETS,
    TARGET_FREQUENCY,
)
from inflation_risk.errors import EmptySeries

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────
COLLISION_POLICIES: Tuple[str, ...] = ("last", "first", "mean")
SUPPORTED_FREQUENCIES: Tuple[str, ...] = ("M", "Q")

AVG_DAYS_PER_MONTH: float = 365.25 / 12
MONTHLY_GAP_DAYS: Tuple[float, float] = (25.0, 35.0)
QUARTERLY_GAP_DAYS: Tuple[float, float] = (80.0, 100.0)

PANEL_INDEX_NAME: str = "month"


# ─────────────────────────────────────────────────────────────
# Input series
# ─────────────────────────────────────────────────────────────

def validate_series(series: pd.Series, name: Optional[str] = None) -> None:
    """
    Check the structural invariants of a raw input series.

    Raises
    ------
    ValueError
        If the index is not a DatetimeIndex, or dates are not strictly
        increasing.
    """
    label = name or series.name
    if not isinstance(series.index, pd.DatetimeIndex):
        raise ValueError(f"Series '{label}' must be indexed by dates")
    if not series.index.is_unique:
        dupes = series.index[series.index.duplicated()].unique().tolist()
        raise ValueError(f"Series '{label}' has duplicate dates: {dupes}")
    if not series.index.is_monotonic_increasing:
        raise ValueError(f"Series '{label}' dates are not strictly increasing")


def to_series(
    pairs: Iterable[Tuple[object, Optional[float]]],
    name: str,
) -> pd.Series:
    """
    Build a raw series from ordered ``(date, value)`` pairs.

    ``None`` (or NaN) marks a missing value.

    Parameters
    ----------
    pairs : iterable of (date-like, float or None)
        Observations in ascending date order.
    name : str
        Series identifier; becomes the panel field name.

    Returns
    -------
    pd.Series
        Float series indexed by a DatetimeIndex.
    """
    pairs = list(pairs)
    if not pairs:
        return pd.Series([], index=pd.DatetimeIndex([]), dtype=float, name=name)

    dates, values = zip(*pairs)
    index = pd.DatetimeIndex(pd.to_datetime(list(dates)))
    values = [np.nan if v is None else float(v) for v in values]

    series = pd.Series(values, index=index, dtype=float, name=name)
    validate_series(series)
    return series


def load_series_csv(path: Union[str, Path], name: str) -> pd.Series:
    """
    Load one already-fetched series from a two-column CSV (date, value).

    Missing values may be written as empty cells or ``.`` (FRED export
    convention).
    """
    df = pd.read_csv(path, index_col=0, parse_dates=True, na_values=["."])
    if df.shape[1] < 1:
        raise ValueError(f"{path} has no value column")

    series = df.iloc[:, 0].astype(float).rename(name)
    series.index = pd.DatetimeIndex(series.index)
    validate_series(series)
    return series


def infer_frequency(series: pd.Series) -> str:
    """
    Infer the native sampling frequency from the median date spacing.

    Returns
    -------
    str
        ``"M"`` (monthly) or ``"Q"`` (quarterly).

    Raises
    ------
    ValueError
        If the series is too short or its spacing is neither monthly nor
        quarterly.
    """
    if len(series.index) < 2:
        raise ValueError(
            f"Cannot infer frequency of '{series.name}' from fewer than two dates; "
            "pass it explicitly"
        )

    gaps = np.diff(series.index.values).astype("timedelta64[D]").astype(float)
    median_gap = float(np.median(gaps))

    if MONTHLY_GAP_DAYS[0] <= median_gap <= MONTHLY_GAP_DAYS[1]:
        return "M"
    if QUARTERLY_GAP_DAYS[0] <= median_gap <= QUARTERLY_GAP_DAYS[1]:
        return "Q"
    raise ValueError(
        f"Series '{series.name}' has a median spacing of {median_gap:.1f} days; "
        "only monthly and quarterly series are supported"
    )


# ─────────────────────────────────────────────────────────────
# Quarterly → monthly upsampling
# ─────────────────────────────────────────────────────────────

def _offset_to_months(offset_days: int) -> int:
    """Whole calendar months nearest to an offset in days (30 → 1, 61 → 2)."""
    return int(round(offset_days / AVG_DAYS_PER_MONTH))


def interpolation_targets(
    dates: pd.DatetimeIndex,
    offsets_days: Sequence[int] = DEFAULT_INTERPOLATION_OFFSETS,
) -> pd.DatetimeIndex:
    """
    Build the monthly timestamp grid for a coarse series.

    Each native date contributes itself plus one month-start timestamp per
    offset, taken from the calendar month the offset (in days) lands
    closest to. The union is deduplicated and sorted.

    Parameters
    ----------
    dates : pd.DatetimeIndex
        Native (coarse) observation dates.
    offsets_days : sequence of int
        Approximate offsets after each native date, in days.

    Returns
    -------
    pd.DatetimeIndex
        Sorted, unique target timestamps.
    """
    stamps = pd.DatetimeIndex(dates).normalize()
    periods = stamps.to_period(TARGET_FREQUENCY)

    parts = [stamps.values]
    for offset in offsets_days:
        shifted = (periods + _offset_to_months(offset)).to_timestamp()
        parts.append(shifted.values)

    return pd.DatetimeIndex(np.unique(np.concatenate(parts)))


def _day_numbers(index: pd.DatetimeIndex) -> np.ndarray:
    return index.values.astype("datetime64[D]").astype(float)


def upsample_to_monthly(
    series: pd.Series,
    offsets_days: Sequence[int] = DEFAULT_INTERPOLATION_OFFSETS,
    tail_padding: Optional[int] = None,
) -> pd.Series:
    """
    Upsample a coarse series onto monthly timestamps by linear interpolation.

    Mathematical Definition:
        For t between native dates t_a < t < t_b:
            x(t) = x_a + (x_b - x_a) · (t - t_a) / (t_b - t_a)

    No extrapolation: targets before the first or after the last native
    observation are undefined (NaN).

    Tail padding keeps the row count of the upsampled series aligned with
    its monthly siblings. With ``tail_padding=None`` the targets after the
    last native date are kept as undefined rows (one per offset). An
    explicit integer replaces them with exactly that many undefined
    monthly rows following the last native date.

    Parameters
    ----------
    series : pd.Series
        Coarse series indexed by date.
    offsets_days : sequence of int
        Offsets passed to :func:`interpolation_targets`.
    tail_padding : int, optional
        Number of trailing undefined monthly rows; None derives it from
        the offsets.

    Returns
    -------
    pd.Series
        Interpolated series on the target grid, same name.

    Raises
    ------
    EmptySeries
        If the series has no defined observation to interpolate from.
    """
    native = series.dropna()
    if native.empty:
        raise EmptySeries(str(series.name))
    if tail_padding is not None and tail_padding < 0:
        raise ValueError(f"tail_padding must be >= 0, got {tail_padding}")

    native_dates = pd.DatetimeIndex(native.index).normalize()
    grid = interpolation_targets(native_dates, offsets_days)
    last_native = native_dates[-1]

    if tail_padding is not None:
        grid = grid[grid <= last_native]
        start = (last_native.to_period(TARGET_FREQUENCY) + 1).to_timestamp()
        padding = pd.date_range(start, periods=tail_padding, freq="MS")
        grid = grid.append(padding)

    values = np.interp(
        _day_numbers(grid),
        _day_numbers(native_dates),
        native.values.astype(float),
        left=np.nan,
        right=np.nan,
    )
    result = pd.Series(values, index=grid, name=series.name)

    # Native points are reproduced exactly
    result.loc[native_dates] = native.values

    padded = int((grid > last_native).sum())
    logger.info(
        "Upsampled '%s': %d native points -> %d monthly rows (%d undefined tail rows)",
        series.name, len(native), len(result), padded,
    )
    return result


# ─────────────────────────────────────────────────────────────
# Monthly keying & join
# ─────────────────────────────────────────────────────────────

def to_monthly_key(
    series: pd.Series,
    collision: str = DEFAULT_COLLISION_POLICY,
) -> pd.Series:
    """
    Re-key a dated series by calendar month.

    Parameters
    ----------
    series : pd.Series
        Series indexed by ascending dates.
    collision : {"last", "first", "mean"}
        Which reading represents a month that holds several dates:
        the chronologically last row, the first row, or the mean of
        the defined values.

    Returns
    -------
    pd.Series
        Series indexed by a monthly PeriodIndex, one row per month.
    """
    if collision not in COLLISION_POLICIES:
        raise ValueError(
            f"collision must be one of {COLLISION_POLICIES}, got '{collision}'"
        )

    keyed = series.sort_index(kind="mergesort")
    keyed.index = pd.DatetimeIndex(keyed.index).to_period(TARGET_FREQUENCY)

    if collision == "mean":
        result = keyed.groupby(level=0).mean()
    else:
        result = keyed[~keyed.index.duplicated(keep=collision)]

    collisions = len(keyed) - len(result)
    if collisions:
        logger.info(
            "'%s': %d dates collapsed onto existing months (policy=%s)",
            series.name, collisions, collision,
        )

    result.index.name = PANEL_INDEX_NAME
    return result


def align(
    series_map: Mapping[str, pd.Series],
    frequencies: Optional[Mapping[str, str]] = None,
    collision: str = DEFAULT_COLLISION_POLICY,
    offsets_days: Sequence[int] = DEFAULT_INTERPOLATION_OFFSETS,
    tail_padding: Optional[int] = None,
) -> pd.DataFrame:
    """
    Merge raw series onto one monthly panel.

    Algorithm:
        1. Reject empty inputs
        2. Upsample quarterly series (linear interpolation + tail padding)
        3. Key each series by (year, month), resolving collisions
        4. Full outer join on the key; absent keys become NaN

    Parameters
    ----------
    series_map : mapping of str -> pd.Series
        Raw series by name. Names become panel fields.
    frequencies : mapping of str -> str, optional
        Native frequency per series (``"M"`` or ``"Q"``). Missing entries
        are inferred; a single-observation series is taken as monthly.
    collision : str
        Duplicate-key policy, see :func:`to_monthly_key`.
    offsets_days : sequence of int
        Interpolation offsets for quarterly series.
    tail_padding : int, optional
        Tail padding for quarterly series, see :func:`upsample_to_monthly`.

    Returns
    -------
    pd.DataFrame
        Panel indexed by a monthly PeriodIndex, ascending, one column per
        input series.

    Raises
    ------
    EmptySeries
        If any input series has zero length.
    """
    if not series_map:
        raise ValueError("No series supplied for alignment")

    frequencies = dict(frequencies or {})
    keyed = {}

    for name, series in series_map.items():
        if len(series) == 0:
            raise EmptySeries(name)
        validate_series(series, name)
        monthly = series.rename(name)

        freq = frequencies.get(name)
        if freq is None:
            # A lone observation has no spacing and nothing to interpolate
            freq = TARGET_FREQUENCY if len(monthly) == 1 else infer_frequency(monthly)
        if freq not in SUPPORTED_FREQUENCIES:
            raise ValueError(
                f"Unsupported frequency '{freq}' for '{name}'; "
                f"expected one of {SUPPORTED_FREQUENCIES}"
            )

        if freq == "Q":
            monthly = upsample_to_monthly(monthly, offsets_days, tail_padding)

        keyed[name] = to_monthly_key(monthly, collision)

    panel = pd.concat(keyed, axis=1, join="outer", sort=True).astype(float)
    panel = panel.sort_index()
    panel.index.name = PANEL_INDEX_NAME

    logger.info(
        "Aligned %d series onto %d months (%s → %s)",
        len(keyed), len(panel), panel.index[0], panel.index[-1],
    )
    return panel
