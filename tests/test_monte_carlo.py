"""Tests for the Monte Carlo simulator."""

import numpy as np
import pytest
from scipy import stats

from inflation_risk.monte_carlo import (
    PredictorDistribution,
    SimulationRequest,
    empirical_request,
    run_monte_carlo_engine,
    simulate,
    simulate_draws,
)


@pytest.fixture
def request_(fitted_model):
    return empirical_request(fitted_model, n=2_000, seed=11)


class TestRequest:

    def test_empirical_moments(self, fitted_model):
        req = empirical_request(fitted_model, n=10, seed=1)
        data = fitted_model.training_data
        assert req.distributions["x1"].mean == pytest.approx(data["x1"].mean())
        assert req.distributions["x2"].sd == pytest.approx(data["x2"].std(ddof=1))

    def test_tuples_become_distributions(self):
        req = SimulationRequest(n=5, distributions={"x": (1.0, 2.0)})
        assert req.distributions["x"] == PredictorDistribution(1.0, 2.0)

    @pytest.mark.parametrize("n", [0, -3, 2.5])
    def test_sample_count_positive_integer(self, n):
        with pytest.raises(ValueError):
            SimulationRequest(n=n, distributions={"x": (0.0, 1.0)})

    def test_negative_sd_rejected(self):
        with pytest.raises(ValueError):
            PredictorDistribution(0.0, -1.0)

    def test_missing_predictor_distribution(self, fitted_model):
        req = SimulationRequest(n=10, distributions={"x1": (0.0, 1.0)})
        with pytest.raises(KeyError):
            simulate(fitted_model, req)


class TestSimulate:

    def test_same_seed_same_sample(self, fitted_model, request_):
        a = simulate(fitted_model, request_)
        b = simulate(fitted_model, request_)
        assert a.shape == (2_000,)
        assert np.array_equal(a, b)

    def test_different_seed_different_sample(self, fitted_model, request_):
        other = SimulationRequest(n=request_.n, distributions=request_.distributions, seed=12)
        assert not np.array_equal(simulate(fitted_model, request_), simulate(fitted_model, other))

    def test_explicit_generator_matches_seed(self, fitted_model, request_):
        rng = np.random.default_rng(request_.seed)
        assert np.array_equal(
            simulate(fitted_model, request_, rng=rng),
            simulate(fitted_model, request_),
        )

    def test_documented_draw_order(self, fitted_model, request_):
        result = simulate_draws(fitted_model, request_)

        U = np.random.default_rng(request_.seed).random((request_.n, 3))
        means, sds = request_.parameters(("x1", "x2"))
        x = means + sds * stats.norm.ppf(U[0, :2])
        resid = fitted_model.residuals[int(U[0, 2] * len(fitted_model.residuals))]
        expected = (
            fitted_model.intercept
            + x @ fitted_model.coefficients.to_numpy()
            + resid
        )

        np.testing.assert_allclose(result.predictor_draws.iloc[0].to_numpy(), x)
        assert result.residual_draws[0] == resid
        assert result.sample[0] == pytest.approx(expected, rel=1e-12)

    def test_residuals_drawn_from_model(self, fitted_model, request_):
        result = simulate_draws(fitted_model, request_)
        assert np.isin(result.residual_draws, fitted_model.residuals).all()

    def test_zero_sd_predictor_is_fixed(self, fitted_model):
        req = SimulationRequest(n=100, distributions={"x1": (5.0, 0.0), "x2": (0.0, 1.0)})
        result = simulate_draws(fitted_model, req)
        assert (result.predictor_draws["x1"] == 5.0).all()

    def test_model_not_mutated(self, fitted_model, request_):
        before = fitted_model.residuals.copy()
        coefficients = fitted_model.coefficients.copy()
        simulate(fitted_model, request_)
        assert np.array_equal(before, fitted_model.residuals)
        assert coefficients.equals(fitted_model.coefficients)

    def test_sample_mean_matches_model(self, fitted_model):
        req = empirical_request(fitted_model, n=50_000, seed=5)
        sample = simulate(fitted_model, req)
        means, _ = req.parameters(fitted_model.spec.predictors)
        expected = (
            fitted_model.intercept
            + means @ fitted_model.coefficients.to_numpy()
            + fitted_model.residuals.mean()
        )
        assert sample.mean() == pytest.approx(expected, abs=0.03)

    def test_engine_returns_risk_summary(self, fitted_model, request_):
        results = run_monte_carlo_engine(fitted_model, request_, alpha=0.05)
        risk = results["risk"]
        assert results["num_simulations"] == 2_000
        assert risk.lower_var < risk.upper_var
        assert risk.lower_cvar <= risk.lower_var
        assert risk.upper_cvar >= risk.upper_var
