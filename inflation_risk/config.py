"""
Pipeline Configuration
======================
Defaults and the immutable configuration object accepted by the pipeline.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


# ─────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────
TARGET_FREQUENCY: str = "M"
DEFAULT_HOLDOUT: int = 12
DEFAULT_ALPHA: float = 0.05
DEFAULT_NUM_SIMULATIONS: int = 100_000
DEFAULT_SEED: int = 42
DEFAULT_COLLISION_POLICY: str = "last"
DEFAULT_INTERPOLATION_OFFSETS: Tuple[int, ...] = (30, 61)
DEFAULT_ACF_LAGS: int = 24

# Raw series identifiers as supplied to the aligner
UNEMPLOYMENT: str = "unemployment"
PRICE_INDEX: str = "cpi"
POLICY_RATE: str = "interest_rate"
REAL_OUTPUT: str = "gdp"

DEFAULT_SERIES_FREQUENCIES: Dict[str, str] = {
    UNEMPLOYMENT: "M",
    PRICE_INDEX: "M",
    POLICY_RATE: "M",
    REAL_OUTPUT: "Q",
}

# Level field -> derived field name
DEFAULT_PCT_CHANGE_FIELDS: Dict[str, str] = {
    PRICE_INDEX: "inflation",
    REAL_OUTPUT: "gdp_growth",
}
DEFAULT_LOG_SHIFT_FIELDS: Dict[str, str] = {
    POLICY_RATE: "log_interest_rate",
}

DEFAULT_RESPONSE: str = "inflation"
DEFAULT_PREDICTORS: Tuple[str, ...] = (
    UNEMPLOYMENT,
    "log_interest_rate",
    "gdp_growth",
)

# Recession-style shock: unemployment jumps, dispersion widens
DEFAULT_STRESS_OVERRIDES: Dict[str, Tuple[float, float]] = {
    UNEMPLOYMENT: (9.0, 2.0),
}


@dataclass(frozen=True)
class PipelineConfig:
    """Everything the pipeline needs besides the raw series."""

    frequency: str = TARGET_FREQUENCY
    holdout: int = DEFAULT_HOLDOUT
    alpha: float = DEFAULT_ALPHA
    n_simulations: int = DEFAULT_NUM_SIMULATIONS
    seed: int = DEFAULT_SEED
    response: str = DEFAULT_RESPONSE
    predictors: Tuple[str, ...] = DEFAULT_PREDICTORS
    series_frequencies: Dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_SERIES_FREQUENCIES)
    )
    pct_change_fields: Dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_PCT_CHANGE_FIELDS)
    )
    log_shift_fields: Dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_LOG_SHIFT_FIELDS)
    )
    stress_overrides: Dict[str, Tuple[float, float]] = field(
        default_factory=lambda: dict(DEFAULT_STRESS_OVERRIDES)
    )
    collision: str = DEFAULT_COLLISION_POLICY
    interpolation_offsets: Tuple[int, ...] = DEFAULT_INTERPOLATION_OFFSETS
    tail_padding: Optional[int] = None
    acf_lags: int = DEFAULT_ACF_LAGS
    adf_max_lag: Optional[int] = None

    def __post_init__(self) -> None:
        if self.frequency != TARGET_FREQUENCY:
            raise ValueError(
                f"Only monthly alignment is supported, got frequency '{self.frequency}'"
            )
        if self.holdout < 0:
            raise ValueError(f"holdout must be >= 0, got {self.holdout}")
        if not 0.0 < self.alpha < 1.0:
            raise ValueError(f"alpha must lie in (0, 1), got {self.alpha}")
        if self.n_simulations <= 0:
            raise ValueError(
                f"n_simulations must be positive, got {self.n_simulations}"
            )
        if not self.predictors:
            raise ValueError("At least one predictor is required")
