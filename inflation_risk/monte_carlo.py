"""
Monte Carlo Simulation Engine (Flagship Module)
================================================
Simulates the distribution of inflation implied by the fitted model:
synthetic predictor draws plus bootstrapped residuals, pushed through
the regression.

Mathematical Foundation:
    Predictors:  x_ij = μ_j + σ_j · Φ⁻¹(u_ij)        (normal draws)
    Residual:    ε_i  = e[⌊u_i,k · m⌋]              (bootstrap, with replacement)
    Response:    y_i  = β_0 + Σ_j β_j x_ij + ε_i

Draw order:
    A single block U of shape (n, k + 1) is taken from a locally scoped,
    seeded generator and consumed row-major. For draw i the k predictor
    uniforms come first, in the model's predictor order, followed by the
    residual uniform.
    Any implementation with the same uniform stream and normal inverse CDF
    reproduces the sample bit for bit.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from scipy import stats

from inflation_risk.config import DEFAULT_NUM_SIMULATIONS, DEFAULT_SEED
from inflation_risk.regression import FittedModel
from inflation_risk.risk_metrics import RiskSummary, estimate
from inflation_risk.statistics import predictor_moments

logger = logging.getLogger(__name__)

# Smallest uniform passed to Φ⁻¹ so a draw of exactly 0.0 stays finite
UNIFORM_FLOOR: float = np.finfo(float).tiny


@dataclass(frozen=True)
class PredictorDistribution:
    """Normal sampling distribution of one predictor."""

    mean: float
    sd: float

    def __post_init__(self) -> None:
        if not np.isfinite(self.mean) or not np.isfinite(self.sd):
            raise ValueError(f"Distribution parameters must be finite, got ({self.mean}, {self.sd})")
        if self.sd < 0:
            raise ValueError(f"Standard deviation must be >= 0, got {self.sd}")


DistributionLike = Union[PredictorDistribution, Tuple[float, float]]


def as_distribution(value: DistributionLike) -> PredictorDistribution:
    if isinstance(value, PredictorDistribution):
        return value
    mean, sd = value
    return PredictorDistribution(float(mean), float(sd))


@dataclass(frozen=True)
class SimulationRequest:
    """Sample count, per-predictor distributions and seed of one simulation."""

    n: int
    distributions: Mapping[str, PredictorDistribution]
    seed: int = DEFAULT_SEED
    label: str = field(default="baseline", compare=False)

    def __post_init__(self) -> None:
        if int(self.n) != self.n or self.n <= 0:
            raise ValueError(f"Sample count must be a positive integer, got {self.n}")
        object.__setattr__(
            self,
            "distributions",
            {name: as_distribution(d) for name, d in self.distributions.items()},
        )

    def parameters(self, predictors: Sequence[str]) -> Tuple[np.ndarray, np.ndarray]:
        """
        Mean and sd vectors in the given predictor order.

        Raises
        ------
        KeyError
            If a predictor has no configured distribution.
        """
        missing = [p for p in predictors if p not in self.distributions]
        if missing:
            raise KeyError(f"No sampling distribution configured for predictors {missing}")
        means = np.array([self.distributions[p].mean for p in predictors], dtype=float)
        sds = np.array([self.distributions[p].sd for p in predictors], dtype=float)
        return means, sds


@dataclass(frozen=True)
class SimulationResult:
    """Simulated responses together with the draws that produced them."""

    sample: np.ndarray
    predictor_draws: pd.DataFrame
    residual_draws: np.ndarray


def empirical_request(
    model: FittedModel,
    n: int = DEFAULT_NUM_SIMULATIONS,
    seed: int = DEFAULT_SEED,
) -> SimulationRequest:
    """
    Build a request whose distributions are the predictors' empirical
    mean and sd over the model's training rows.
    """
    moments = predictor_moments(model.training_data, model.spec.predictors)
    return SimulationRequest(n=n, distributions=moments, seed=seed, label="baseline")


def simulate_draws(
    model: FittedModel,
    request: SimulationRequest,
    rng: Optional[np.random.Generator] = None,
) -> SimulationResult:
    """
    Run the simulation and keep every intermediate draw.

    Parameters
    ----------
    model : FittedModel
        Fitted regression; read, never modified.
    request : SimulationRequest
        Sample count, distributions and seed.
    rng : np.random.Generator, optional
        Generator to draw from. Defaults to a fresh
        ``np.random.default_rng(request.seed)``.

    Returns
    -------
    SimulationResult
        Simulated responses (n,), predictor draws (n x k) and the
        residuals drawn for each response.
    """
    predictors = model.spec.predictors
    k = len(predictors)
    means, sds = request.parameters(predictors)

    residuals = model.residuals
    m = len(residuals)
    if m == 0:
        raise ValueError("Model has no residuals to resample")

    if rng is None:
        rng = np.random.default_rng(request.seed)

    # Step 1: one uniform block, row-major = documented draw order
    U = rng.random(size=(request.n, k + 1))

    # Step 2: predictors via the normal inverse CDF
    Z = stats.norm.ppf(np.maximum(U[:, :k], UNIFORM_FLOOR))
    X = means + sds * Z

    # Step 3: bootstrap one residual per draw
    idx = np.minimum((U[:, k] * m).astype(np.int64), m - 1)
    eps = residuals[idx]

    # Step 4: propagate through the model
    sample = model.intercept + X @ model.coefficients.to_numpy(dtype=float) + eps

    return SimulationResult(
        sample=sample,
        predictor_draws=pd.DataFrame(X, columns=list(predictors)),
        residual_draws=eps,
    )


def simulate(
    model: FittedModel,
    request: SimulationRequest,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """
    Simulate ``request.n`` inflation outcomes from the fitted model.

    Returns
    -------
    np.ndarray
        Simulated responses (n,), owned by the caller.
    """
    return simulate_draws(model, request, rng).sample


def run_monte_carlo_engine(
    model: FittedModel,
    request: SimulationRequest,
    alpha: float,
) -> Dict[str, object]:
    """
    Full Monte Carlo risk engine execution.

    Runs simulation and computes the two-sided risk summary.

    Parameters
    ----------
    model : FittedModel
        Fitted regression.
    request : SimulationRequest
        Simulation parameters.
    alpha : float
        Two-sided tail probability for VaR/CVaR.

    Returns
    -------
    dict
        Contains: sample, predictor_draws, risk (RiskSummary),
        num_simulations, seed, label.
    """
    result = simulate_draws(model, request)
    risk: RiskSummary = estimate(result.sample, alpha)

    logger.info(
        "Monte Carlo '%s': %d draws, VaR [%.4f, %.4f]",
        request.label, request.n, risk.lower_var, risk.upper_var,
    )

    return {
        "sample": result.sample,
        "predictor_draws": result.predictor_draws,
        "risk": risk,
        "num_simulations": request.n,
        "seed": request.seed,
        "label": request.label,
    }
