"""
Error Kinds
===========
Fatal, stage-level failures of the inflation risk pipeline.

All errors derive from ``ValueError``: each one signals an input or
configuration the caller must fix before re-running. The pipeline is
deterministic, so none of them is retried.
"""


class InflationRiskError(ValueError):
    """Base class for all pipeline errors."""


class EmptySeries(InflationRiskError):
    """Raised when alignment is given a zero-length input series."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Series '{name}' is empty; nothing to align")


class SingularDesign(InflationRiskError):
    """Raised when the regression design matrix is not full column rank."""

    def __init__(self, rank: int, columns: int):
        self.rank = rank
        self.columns = columns
        super().__init__(
            f"Design matrix is rank-deficient (rank {rank} < {columns} columns); "
            "predictors are perfectly collinear or there are too few rows"
        )


class EmptyHoldout(InflationRiskError):
    """Raised when out-of-sample evaluation has no usable holdout rows."""


class NonPositiveAfterShift(InflationRiskError):
    """Raised when a log transform still sees values <= 0 after shifting."""

    def __init__(self, field: str, shift: float, minimum: float):
        self.field = field
        self.shift = shift
        self.minimum = minimum
        super().__init__(
            f"Field '{field}' has minimum {minimum:.6g} after shift {shift:.6g}; "
            "logarithm is undefined"
        )


class UndefinedCVaR(InflationRiskError):
    """Raised when CVaR is requested for a tail with no observations beyond VaR."""

    def __init__(self, tail: str, threshold: float):
        self.tail = tail
        self.threshold = threshold
        super().__init__(
            f"No sample values fall strictly beyond the {tail} VaR "
            f"({threshold:.6g}); {tail} CVaR is undefined"
        )
