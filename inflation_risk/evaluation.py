"""
Out-of-Sample Evaluation Module
===============================
Scores a fitted model on the trailing holdout window it never saw.

Framework:
    1. Reserve the last `holdout` rows of the modeling panel
    2. Fit on the remaining rows
    3. Predict the holdout response and compare against actuals

Metrics:
    MSE  = mean((y - ŷ)²)
    RMSE = sqrt(MSE)
    MAE  = mean(|y - ŷ|)
    R²   = 1 - SS_res / SS_tot,  SS_tot around the holdout's own mean
"""

import logging
from dataclasses import asdict, dataclass
from typing import Dict, Tuple

import numpy as np
import pandas as pd

from inflation_risk.errors import EmptyHoldout
from inflation_risk.regression import FittedModel, RegressionSpec, fit, split_holdout
from inflation_risk.transforms import complete_cases

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HoldoutMetrics:
    """Prediction error statistics over a set of rows."""

    mse: float
    rmse: float
    mae: float
    r_squared: float
    n: int

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


def error_metrics(actual, predicted) -> HoldoutMetrics:
    """
    Compute MSE, RMSE, MAE and R² of predictions against actual values.

    R² is NaN when the actual values are constant (SS_tot = 0).
    """
    y = np.asarray(actual, dtype=float)
    y_hat = np.asarray(predicted, dtype=float)
    if y.size == 0:
        raise EmptyHoldout("No rows to evaluate")

    errors = y - y_hat
    mse = float(np.mean(errors ** 2))
    ss_res = float(np.sum(errors ** 2))
    ss_tot = float(np.sum((y - y.mean()) ** 2))

    if ss_tot > 0:
        r_squared = 1.0 - ss_res / ss_tot
    else:
        logger.warning("Actual values are constant; R² is undefined")
        r_squared = float("nan")

    return HoldoutMetrics(
        mse=mse,
        rmse=float(np.sqrt(mse)),
        mae=float(np.mean(np.abs(errors))),
        r_squared=float(r_squared),
        n=int(y.size),
    )


def evaluate(model: FittedModel, holdout_rows: pd.DataFrame) -> HoldoutMetrics:
    """
    Evaluate a fitted model on rows never used for fitting.

    Rows with an undefined response or predictor are excluded first
    (complete-case), and the exclusion is logged.

    Parameters
    ----------
    model : FittedModel
        Model to score.
    holdout_rows : pd.DataFrame
        Out-of-sample panel rows.

    Returns
    -------
    HoldoutMetrics
        MSE, RMSE, MAE, R² and the row count used.

    Raises
    ------
    EmptyHoldout
        If no complete holdout row remains.
    """
    if holdout_rows.empty:
        raise EmptyHoldout("Holdout window is empty")

    filtered = complete_cases(holdout_rows, model.spec.fields)
    if filtered.panel.empty:
        raise EmptyHoldout(
            f"All {len(holdout_rows)} holdout rows have undefined required fields"
        )

    data = filtered.panel
    predicted = model.predict(data)
    metrics = error_metrics(data[model.spec.response], predicted)

    logger.info(
        "Holdout evaluation on %d rows: RMSE=%.4f MAE=%.4f R²=%.4f",
        metrics.n, metrics.rmse, metrics.mae, metrics.r_squared,
    )
    return metrics


def in_sample_metrics(model: FittedModel) -> HoldoutMetrics:
    """Same metrics on the model's own training rows."""
    data = model.training_data
    return error_metrics(data[model.spec.response], model.predict(data))


def run_holdout_evaluation(
    panel: pd.DataFrame,
    spec: RegressionSpec,
) -> Tuple[FittedModel, HoldoutMetrics, HoldoutMetrics]:
    """
    Execute the complete fit-then-evaluate cycle.

    Parameters
    ----------
    panel : pd.DataFrame
        Modeling panel.
    spec : RegressionSpec
        Model specification; ``spec.holdout`` sets the window.

    Returns
    -------
    tuple
        (fitted_model, in_sample_metrics, holdout_metrics)
    """
    model = fit(panel, spec)
    _, holdout_rows = split_holdout(panel, spec.holdout)

    return model, in_sample_metrics(model), evaluate(model, holdout_rows)
