"""
Regression Engine
=================
Ordinary least squares model of inflation on macro predictors, with
collinearity diagnostics.

Mathematical Foundation:
    Model:   y = β_0 + Σ β_i x_i + ε
    OLS:     β̂ = argmin ||y - Xβ||²   (solved by QR decomposition of X)
    R²:      1 - SS_res / SS_tot
    VIF_i:   1 / (1 - R²_i),  R²_i from regressing x_i on the other predictors

Design note:
    A FittedModel is an immutable value. Baseline and stressed analyses
    each hold a reference to the same fitted model and never modify it;
    the residual array is flagged read-only.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Tuple

import numpy as np
import pandas as pd
import statsmodels.api as sm
from statsmodels.stats.outliers_influence import variance_inflation_factor

from inflation_risk.errors import SingularDesign
from inflation_risk.transforms import complete_cases

logger = logging.getLogger(__name__)

CONSTANT: str = "const"


@dataclass(frozen=True)
class RegressionSpec:
    """Response, ordered predictors and trailing holdout length."""

    response: str
    predictors: Tuple[str, ...]
    holdout: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "predictors", tuple(self.predictors))
        if not self.predictors:
            raise ValueError("RegressionSpec needs at least one predictor")
        if len(set(self.predictors)) != len(self.predictors):
            raise ValueError(f"Duplicate predictors in {self.predictors}")
        if self.response in self.predictors:
            raise ValueError(f"Response '{self.response}' is also listed as a predictor")
        if self.holdout < 0:
            raise ValueError(f"holdout must be >= 0, got {self.holdout}")

    @property
    def fields(self) -> Tuple[str, ...]:
        """Every field a modeling row must have defined."""
        return (self.response,) + self.predictors


@dataclass(frozen=True)
class FittedModel:
    """
    Read-only result of an OLS fit.

    Every field is the model's own copy, detached from the input panel
    and from the statsmodels results. The pandas fields (coefficients,
    fitted_values, vif, std_errors, p_values, training_data) are shared
    by every simulation that reads this model and must not be modified
    in place; take ``.copy()`` first.
    """

    spec: RegressionSpec
    intercept: float
    coefficients: pd.Series
    residuals: np.ndarray
    fitted_values: pd.Series
    r_squared: float
    adj_r_squared: float
    vif: pd.Series
    std_errors: pd.Series
    p_values: pd.Series
    nobs: int
    dropped_rows: int
    training_data: pd.DataFrame

    def predict(self, panel: pd.DataFrame) -> pd.Series:
        """
        Evaluate the fitted linear form on any panel holding the predictors.

        Rows with an undefined predictor yield NaN.
        """
        X = panel[list(self.spec.predictors)].to_numpy(dtype=float)
        values = self.intercept + X @ self.coefficients.to_numpy(dtype=float)
        return pd.Series(values, index=panel.index, name=f"{self.spec.response}_hat")

    def summary(self) -> Dict[str, float]:
        """Flat dictionary of coefficients and fit statistics for reporting."""
        out: Dict[str, float] = {"intercept": self.intercept}
        for name, value in self.coefficients.items():
            out[f"beta_{name}"] = float(value)
        for name, value in self.vif.items():
            out[f"vif_{name}"] = float(value)
        out["r_squared"] = self.r_squared
        out["adj_r_squared"] = self.adj_r_squared
        out["nobs"] = self.nobs
        out["dropped_rows"] = self.dropped_rows
        return out


def split_holdout(
    panel: pd.DataFrame,
    holdout: int,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Split a panel into training rows and a trailing holdout window.

    Parameters
    ----------
    panel : pd.DataFrame
        Panel in ascending key order.
    holdout : int
        Number of trailing rows reserved for out-of-sample evaluation.

    Returns
    -------
    tuple[pd.DataFrame, pd.DataFrame]
        (training rows, holdout rows)
    """
    if holdout < 0:
        raise ValueError(f"holdout must be >= 0, got {holdout}")
    if holdout >= len(panel):
        raise ValueError(
            f"holdout of {holdout} rows leaves no training rows in a panel of {len(panel)}"
        )
    cut = len(panel) - holdout
    return panel.iloc[:cut], panel.iloc[cut:]


def check_design(design: pd.DataFrame) -> int:
    """
    Verify that a design matrix has full column rank.

    Returns
    -------
    int
        Matrix rank.

    Raises
    ------
    SingularDesign
        If rank < number of columns.
    """
    rank = int(np.linalg.matrix_rank(design.to_numpy(dtype=float)))
    if rank < design.shape[1]:
        raise SingularDesign(rank, design.shape[1])
    return rank


def compute_vif(design: pd.DataFrame) -> pd.Series:
    """
    Variance inflation factor of every non-constant design column.

    Parameters
    ----------
    design : pd.DataFrame
        Design matrix including the constant column.

    Returns
    -------
    pd.Series
        VIF per predictor.
    """
    X = design.to_numpy(dtype=float)
    values = {
        col: float(variance_inflation_factor(X, i))
        for i, col in enumerate(design.columns)
        if col != CONSTANT
    }
    vif = pd.Series(values, name="VIF")
    vif.index.name = "Variable"
    return vif


def fit(panel: pd.DataFrame, spec: RegressionSpec) -> FittedModel:
    """
    Fit the OLS model on the complete-case training subset.

    Algorithm:
        1. Drop the trailing holdout window
        2. Complete-case filter on response + predictors
        3. Build design [1, x_1, ..., x_k] and check its rank
        4. Solve OLS by QR; compute R², VIF, standard errors

    Parameters
    ----------
    panel : pd.DataFrame
        Modeling panel.
    spec : RegressionSpec
        Response, predictors and holdout length.

    Returns
    -------
    FittedModel
        Immutable fitted model.

    Raises
    ------
    SingularDesign
        If the design matrix is rank-deficient.
    """
    train, _ = split_holdout(panel, spec.holdout)
    filtered = complete_cases(train, spec.fields)
    data = filtered.panel

    if data.empty:
        raise ValueError("No complete training rows left after filtering")

    y = data[spec.response].astype(float)
    design = sm.add_constant(data[list(spec.predictors)].astype(float), has_constant="add")
    check_design(design)

    if len(data) <= design.shape[1]:
        raise ValueError(
            f"{len(data)} training rows cannot support {design.shape[1]} parameters"
        )

    results = sm.OLS(y, design).fit(method="qr")

    residuals = np.array(results.resid, dtype=float)
    residuals.setflags(write=False)

    params = results.params
    model = FittedModel(
        spec=spec,
        intercept=float(params[CONSTANT]),
        coefficients=params.drop(CONSTANT).astype(float),
        residuals=residuals,
        fitted_values=results.fittedvalues.rename(f"{spec.response}_hat").copy(),
        r_squared=float(results.rsquared),
        adj_r_squared=float(results.rsquared_adj),
        vif=compute_vif(design),
        std_errors=results.bse.astype(float).copy(),
        p_values=results.pvalues.astype(float).copy(),
        nobs=int(results.nobs),
        dropped_rows=filtered.dropped,
        training_data=data.copy(),
    )

    logger.info(
        "Fitted %s ~ %s on %d rows (R²=%.4f, %d rows dropped)",
        spec.response, " + ".join(spec.predictors), model.nobs,
        model.r_squared, model.dropped_rows,
    )
    return model
