"""
Tests for weibull_aft() and the fitting pipeline.

Quick fits use short chains; the coverage test at the bottom repeats the
full scenario (n=1000, beta=(-1/6, 1), shape=1) over several simulated
trials and checks the 95% credible interval of the hazard ratio.
"""

import numpy as np
import pandas as pd
import pytest
from numpy.testing import assert_allclose, assert_array_equal
from scipy.optimize import OptimizeResult

from pyaft import weibull_aft, weibull_aft_from_file
from pyaft.aft import AFTConfig, AFTDesign, PosteriorDraw, WeibullAFTSolution, find_map
from pyaft.core.exceptions import InvalidDataError, ValidationError
from pyaft.core.protocols import PosteriorSampler
from pyaft.core.result import Result
from pyaft.mcmc import ChainParams

QUICK = dict(num_warmup=400, num_samples=400, predictive_draws=20)


class FixedChainSampler:
    """Test double: returns a constant chain at the starting point."""

    def __init__(self):
        self.calls = 0

    @property
    def name(self) -> str:
        return 'fixed'

    def sample(self, log_density, initial_theta, num_warmup, num_samples):
        self.calls += 1
        theta = np.asarray(initial_theta, dtype=np.float64)
        draws = np.tile(theta, (num_warmup + num_samples, 1))
        lp = np.full(num_warmup + num_samples, log_density(theta))
        return Result(
            params=ChainParams(draws=draws, num_warmup=num_warmup, log_density=lp),
            info={'acceptance_rate': 0.0},
            timing=None,
            backend_name=self.name,
        )


def _diverging_minimize(fun, x0, **kwargs):
    """Stand-in optimiser that stops at an infeasible alpha."""
    return OptimizeResult(
        x=np.array([0.0, 0.0, -1.0]), success=False, nit=7,
        message="ABNORMAL_TERMINATION_IN_LNSRCH",
    )


# ═══════════════════════════════════════════════════════════════════════
# Configuration
# ═══════════════════════════════════════════════════════════════════════


class TestConfig:

    def test_defaults(self):
        config = AFTConfig.build()
        assert config.prior_beta_sd == 100.0
        assert config.prior_alpha_rate == 1.0
        assert config.predictive_draws == 1000
        assert config.num_warmup == 15000
        assert config.num_samples == 5000
        assert config == AFTConfig()

    @pytest.mark.parametrize("kwargs", [
        {"prior_beta_sd": 0.0},
        {"prior_beta_sd": -1.0},
        {"prior_alpha_rate": np.inf},
        {"num_samples": 0},
        {"num_warmup": -1},
        {"predictive_draws": 2.5},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValidationError):
            AFTConfig.build(**kwargs)


# ═══════════════════════════════════════════════════════════════════════
# MAP
# ═══════════════════════════════════════════════════════════════════════


class TestFindMap:

    def test_recovers_truth_on_large_trial(self, trial_data):
        time, event, trt = trial_data
        design = AFTDesign.for_aft(time, event, trt)
        theta, _ = find_map(design)
        assert theta[0] == pytest.approx(-1.0 / 6.0, abs=0.2)
        assert theta[1] == pytest.approx(1.0, abs=0.25)
        assert theta[2] == pytest.approx(1.0, abs=0.15)

    def test_gradient_vanishes_at_mode(self, small_trial):
        from pyaft.aft import WeibullAFTModel
        design = AFTDesign.for_aft(*small_trial)
        theta, _ = find_map(design)
        grad = WeibullAFTModel(design.partition).grad_log_posterior(theta)
        assert np.max(np.abs(grad)) < 0.1


# ═══════════════════════════════════════════════════════════════════════
# Fitting
# ═══════════════════════════════════════════════════════════════════════


class TestWeibullAFT:

    def test_returns_solution_with_expected_shapes(self, small_trial):
        sol = weibull_aft(*small_trial, seed=1, **QUICK)
        assert isinstance(sol, WeibullAFTSolution)
        assert sol.beta.shape == (400, 2)
        assert sol.alpha.shape == (400,)
        assert sol.hazard_ratio.shape == (400,)
        assert sol.predictive_time_trt.shape == (400, 20)
        assert sol.predictive_time_pbo.shape == (400, 20)
        assert sol.coef_names == ("(Intercept)", "x0")
        assert sol.treatment_name == "x0"
        assert sol.n_observations == 200
        assert sol.backend_name == "cpu_metropolis"

    def test_alpha_draws_positive(self, small_trial):
        sol = weibull_aft(*small_trial, seed=2, **QUICK)
        assert np.all(sol.alpha > 0)

    def test_hazard_ratio_is_exp_beta_times_alpha(self, small_trial):
        sol = weibull_aft(*small_trial, seed=3, **QUICK)
        assert_allclose(sol.hazard_ratio, np.exp(sol.beta[:, 1] * sol.alpha), rtol=1e-12)
        assert_allclose(sol.hazard_ratio, sol.hazard_trt / sol.hazard_pbo, rtol=1e-10)

    def test_reproducible_with_seed(self, small_trial):
        a = weibull_aft(*small_trial, seed=11, **QUICK)
        b = weibull_aft(*small_trial, seed=11, **QUICK)
        assert_array_equal(a.beta, b.beta)
        assert_array_equal(a.predictive_time_trt, b.predictive_time_trt)

    def test_chain_moves(self, small_trial):
        sol = weibull_aft(*small_trial, seed=4, **QUICK)
        assert 0.05 < sol.acceptance_rate < 0.9
        assert np.unique(sol.alpha).size > 20

    def test_draw_records(self, small_trial):
        sol = weibull_aft(*small_trial, seed=5, num_warmup=50, num_samples=30,
                          predictive_draws=4)
        records = list(sol.draws())
        assert len(records) == 30
        assert all(isinstance(r, PosteriorDraw) for r in records)
        assert records[7].alpha == sol.alpha[7]
        assert_array_equal(records[7].predictive_time_pbo, sol.predictive_time_pbo[7])

    def test_named_treatment_with_extra_covariate(self, small_trial, rng):
        time, event, trt = small_trial
        age = rng.standard_normal(len(time))
        X = np.column_stack([age, trt])
        sol = weibull_aft(time, event, X, covariate_names=["age", "arm"],
                          treatment="arm", seed=6, **QUICK)
        assert sol.treatment_name == "arm"
        assert_allclose(sol.hazard_ratio, np.exp(sol.coef("arm") * sol.alpha), rtol=1e-12)

    def test_all_events_dataset_runs(self, rng):
        time = rng.weibull(1.0, 60) + 0.01
        trt = np.tile([0.0, 1.0], 30)
        sol = weibull_aft(time, np.ones(60), trt, seed=7, **QUICK)
        assert np.all(np.isfinite(sol.hazard_ratio))

    def test_all_censored_dataset_runs(self, rng):
        time = rng.uniform(0.5, 2.0, 40)
        trt = np.tile([0.0, 1.0], 20)
        sol = weibull_aft(time, np.zeros(40), trt, seed=8,
                          initial_theta=[0.5, 0.0, 1.0], **QUICK)
        assert sol.n_events == 0
        assert np.all(np.isfinite(sol.beta))

    def test_custom_sampler_instance(self, small_trial):
        sampler = FixedChainSampler()
        assert isinstance(sampler, PosteriorSampler)
        sol = weibull_aft(*small_trial, sampler=sampler, seed=0, **QUICK)
        assert sampler.calls == 1
        assert sol.backend_name == "fixed"
        assert_allclose(sol.beta[0], sol.map_theta[:-1])

    def test_invalid_data_raised_before_sampling(self):
        sampler = FixedChainSampler()
        with pytest.raises(InvalidDataError):
            weibull_aft([1.0, -2.0], [1, 0], [0, 1], sampler=sampler)
        assert sampler.calls == 0

    def test_infeasible_initial_theta(self, small_trial):
        with pytest.raises(ValidationError, match="not finite"):
            weibull_aft(*small_trial, initial_theta=[0.0, 0.0, -1.0], **QUICK)

    def test_unknown_sampler(self, small_trial):
        with pytest.raises(ValueError, match="Unknown sampler"):
            weibull_aft(*small_trial, sampler="nuts", **QUICK)


class TestRecovery:
    """Non-fatal problems are recovered and reported through warnings."""

    def test_derived_overflow_reported(self, small_survival_data):
        # intercept 400 with alpha 2: both group scales overflow exp(), the ratio does not
        sol = weibull_aft(
            *small_survival_data, sampler=FixedChainSampler(),
            initial_theta=[400.0, 0.0, 2.0], seed=0, **QUICK,
        )
        assert sol.n_overflow == 400
        assert any("400 draw(s) overflowed while deriving hazards" in w for w in sol.warnings)
        assert np.all(np.isinf(sol.hazard_trt))
        assert_allclose(sol.hazard_ratio, 1.0)
        assert np.all(np.isnan(sol.predictive_time_pbo))
        assert "Warning: 400 draw(s) overflowed" in sol.summary()

    def test_no_overflow_no_warning(self, small_trial):
        sol = weibull_aft(*small_trial, sampler=FixedChainSampler(), seed=0, **QUICK)
        assert sol.n_overflow == 0
        assert not any("overflowed" in w for w in sol.warnings)

    def test_map_falls_back_to_start_when_optimum_infeasible(self, small_trial, monkeypatch):
        monkeypatch.setattr("pyaft.aft.solvers.minimize", _diverging_minimize)
        design = AFTDesign.for_aft(*small_trial)
        with pytest.warns(RuntimeWarning, match="did not converge"):
            theta, opt = find_map(design)
        assert not opt.success
        assert_allclose(theta, [np.log(np.mean(design.time)), 0.0, 1.0])

    def test_map_failure_reported_on_solution(self, small_trial, monkeypatch):
        monkeypatch.setattr("pyaft.aft.solvers.minimize", _diverging_minimize)
        time = small_trial[0]
        with pytest.warns(RuntimeWarning, match="did not converge"):
            sol = weibull_aft(*small_trial, sampler=FixedChainSampler(), seed=0, **QUICK)
        expected = [np.log(np.mean(time)), 0.0, 1.0]
        assert sol.info["map_converged"] is False
        assert any("MAP optimizer did not converge" in w for w in sol.warnings)
        assert_allclose(sol.map_theta, expected)
        assert_allclose(sol.beta[0], expected[:-1])


class TestSolution:

    @pytest.fixture
    def solution(self, small_trial):
        return weibull_aft(*small_trial, seed=21, **QUICK)

    def test_credible_interval_ordering(self, solution):
        lo, hi = solution.credible_interval("hazard_ratio")
        assert 0 < lo < np.median(solution.hazard_ratio) < hi
        lo50, hi50 = solution.credible_interval("hazard_ratio", level=0.5)
        assert lo <= lo50 < hi50 <= hi

    def test_credible_interval_for_coefficient(self, solution):
        lo, hi = solution.credible_interval("x0")
        assert lo < hi

    def test_credible_interval_bad_level(self, solution):
        with pytest.raises(ValueError):
            solution.credible_interval("alpha", level=1.5)

    def test_unknown_coefficient(self, solution):
        with pytest.raises(KeyError):
            solution.coef("age")

    def test_predictive_survival_curve(self, solution):
        times = np.linspace(0.0, 10.0, 15)
        curve = solution.predictive_survival(times, group="treatment")
        assert curve['mean'][0] == pytest.approx(1.0)
        assert np.all(np.diff(curve['mean']) <= 0)
        assert np.all((curve['lower'] >= 0) & (curve['upper'] <= 1))
        assert np.all(curve['lower'] <= curve['upper'])

    def test_treatment_arm_survives_longer(self, solution):
        # beta_treatment = 1 > 0 stretches the time axis for treated subjects
        t = np.array([1.0])
        trt = solution.predictive_survival(t, group="treatment")['mean'][0]
        pbo = solution.predictive_survival(t, group="placebo")['mean'][0]
        assert trt > pbo

    def test_predictive_survival_bad_group(self, solution):
        with pytest.raises(ValueError, match="group"):
            solution.predictive_survival([1.0], group="control")

    def test_summary_lists_parameters(self, solution):
        text = solution.summary()
        assert "(Intercept)" in text
        assert "hazard_ratio" in text
        assert "alpha" in text
        assert "lower 95%" in text

    def test_repr(self, solution):
        assert repr(solution).startswith("WeibullAFTSolution(n=200")

    def test_timing_sections(self, solution):
        assert {'total_seconds', 'map', 'sampling', 'derived_quantities'} <= set(solution.timing)


class TestFromFile:

    def test_csv_round_trip(self, small_trial, tmp_path):
        time, event, trt = small_trial
        time = np.round(time, 6)
        path = tmp_path / "trial.csv"
        pd.DataFrame({"time": time, "status": event.astype(int), "arm": trt}).to_csv(
            path, index=False
        )
        sol = weibull_aft_from_file(
            path, time="time", event="status", covariates=["arm"], seed=31, **QUICK
        )
        direct = weibull_aft(time, event, trt, covariate_names=["arm"], seed=31, **QUICK)
        assert sol.coef_names == ("(Intercept)", "arm")
        assert_allclose(sol.beta, direct.beta)


# ═══════════════════════════════════════════════════════════════════════
# End-to-end coverage
# ═══════════════════════════════════════════════════════════════════════


@pytest.mark.slow
def test_hazard_ratio_interval_covers_truth(simulate):
    """95% CrI of exp(beta_trt * alpha) covers exp(1) across simulated trials."""
    true_hr = np.exp(1.0)
    n_trials = 10
    covered = 0
    for k in range(n_trials):
        rng = np.random.default_rng(1000 + k)
        time, event, trt = simulate(rng, n=1000)
        sol = weibull_aft(
            time, event, trt,
            num_warmup=1500, num_samples=2500, predictive_draws=5, seed=k,
        )
        lo, hi = sol.credible_interval("hazard_ratio", level=0.95)
        covered += lo <= true_hr <= hi
    assert covered >= 8
