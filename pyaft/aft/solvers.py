"""
Public API for Bayesian Weibull AFT regression.

    weibull_aft(time, event, X, treatment=...) -> WeibullAFTSolution
    weibull_aft_from_file(path, time=..., event=..., covariates=...) -> WeibullAFTSolution
    find_map(design) -> (theta, OptimizeResult)

Each fit validates inputs into an AFTDesign, builds the log-posterior,
starts the sampler at the posterior mode, discards warm-up, derives
hazards and predictive draws, and wraps the Result in a Solution.
"""

from __future__ import annotations

import warnings
from pathlib import Path
from typing import Sequence

import numpy as np
from numpy.typing import NDArray
from scipy.optimize import OptimizeResult, minimize

from pyaft.aft._common import AFTConfig, WeibullAFTParams
from pyaft.aft._derived import derive_quantities
from pyaft.aft._likelihood import WeibullAFTModel
from pyaft.aft.design import INTERCEPT_NAME, AFTDesign
from pyaft.aft.solution import WeibullAFTSolution
from pyaft.core.compute.timing import Timer
from pyaft.core.datasource import DataSource
from pyaft.core.exceptions import DimensionError, ValidationError
from pyaft.core.protocols import PosteriorSampler
from pyaft.core.result import Result
from pyaft.mcmc import SamplerChoice, get_sampler

ALPHA_LOWER_BOUND = 1e-8


def _default_start(design: AFTDesign) -> NDArray:
    """beta = 0 except the intercept at log(mean time); alpha = 1."""
    theta = np.zeros(design.p + 1)
    theta[design.intercept_index] = np.log(np.mean(design.time))
    theta[-1] = 1.0
    return theta


def find_map(
    design: AFTDesign,
    *,
    prior_beta_sd: float = 100.0,
    prior_alpha_rate: float = 1.0,
    initial_theta=None,
    max_iter: int = 500,
    tol: float = 1e-9,
) -> tuple[NDArray, OptimizeResult]:
    """Posterior mode of the Weibull AFT model.

    Minimises the negative log-posterior with L-BFGS-B and the analytic
    gradient, keeping alpha above a small positive bound.

    Returns
    -------
    theta : NDArray
        (p + 1,) coefficients followed by alpha. Falls back to the
        starting point if the optimiser ends at a non-finite density.
    opt_result : OptimizeResult
    """
    model = WeibullAFTModel(
        design.partition,
        prior_beta_sd=prior_beta_sd,
        prior_alpha_rate=prior_alpha_rate,
    )
    x0 = _default_start(design) if initial_theta is None else np.asarray(
        initial_theta, dtype=np.float64
    )

    def objective(theta):
        lp = model.log_posterior(theta)
        return -lp if np.isfinite(lp) else np.inf

    def gradient(theta):
        g = model.grad_log_posterior(theta)
        return np.where(np.isfinite(g), -g, 0.0)

    bounds = [(None, None)] * design.p + [(ALPHA_LOWER_BOUND, None)]
    opt_result = minimize(
        objective,
        x0,
        jac=gradient,
        method='L-BFGS-B',
        bounds=bounds,
        options={'maxiter': max_iter, 'ftol': tol, 'gtol': tol * 10},
    )

    if not opt_result.success:
        warnings.warn(
            f"MAP optimizer did not converge after {opt_result.nit} iterations. "
            f"Message: {opt_result.message}",
            RuntimeWarning,
            stacklevel=2,
        )

    theta = np.asarray(opt_result.x, dtype=np.float64)
    if not np.isfinite(model.log_posterior(theta)):
        theta = x0
    return theta, opt_result


def weibull_aft(
    time,
    event,
    X=None,
    *,
    treatment: str | int | None = None,
    covariate_names: Sequence[str] | None = None,
    add_intercept: bool = True,
    intercept: str | int = INTERCEPT_NAME,
    prior_beta_sd: float = 100.0,
    prior_alpha_rate: float = 1.0,
    num_warmup: int = 15000,
    num_samples: int = 5000,
    predictive_draws: int = 1000,
    sampler: SamplerChoice | PosteriorSampler = "metropolis",
    initial_theta=None,
    seed: int | None = None,
) -> WeibullAFTSolution:
    """Bayesian Weibull accelerated-failure-time regression.

    Model: log-scale alpha * x.beta, beta ~ Normal(0, prior_beta_sd),
    alpha ~ Exponential(prior_alpha_rate). The hazard ratio reported is
    exp(beta_treatment * alpha).

    Parameters
    ----------
    time : array-like
        Time to event or censoring, strictly positive.
    event : array-like
        Event indicator (1=event, 0=right-censored).
    X : array-like or None
        Covariate matrix (n, k), intercept excluded when add_intercept=True.
    treatment : str or int or None
        Name or column of the binary treatment indicator. Required when
        there is more than one non-intercept covariate.
    covariate_names : sequence of str or None
        Names for the columns of X (default x0, x1, ...).
    add_intercept : bool
        Prepend a constant "(Intercept)" column.
    intercept : str or int
        Name or column of the intercept.
    prior_beta_sd : float
        Prior standard deviation of every coefficient (default 100).
    prior_alpha_rate : float
        Exponential prior rate on the shape (default 1).
    num_warmup : int
        Warm-up draws discarded from the front of the chain.
    num_samples : int
        Posterior draws kept.
    predictive_draws : int
        Posterior-predictive survival times per draw and arm.
    sampler : str or PosteriorSampler
        "metropolis" (default), "emcee", or any PosteriorSampler instance.
    initial_theta : array-like or None
        Starting point (p + 1,). Defaults to the posterior mode.
    seed : int or None
        Root seed for the sampler and the predictive draws.

    Returns
    -------
    WeibullAFTSolution

    Raises
    ------
    InvalidDataError
        If the dataset is malformed; raised before any sampling.
    ValidationError
        If a configuration value is out of range.
    """
    design = AFTDesign.for_aft(
        time, event, X,
        covariate_names=covariate_names,
        add_intercept=add_intercept,
        intercept=intercept,
        treatment=treatment,
    )
    config = AFTConfig.build(
        prior_beta_sd=prior_beta_sd,
        prior_alpha_rate=prior_alpha_rate,
        predictive_draws=predictive_draws,
        num_warmup=num_warmup,
        num_samples=num_samples,
    )
    return fit_design(
        design, config, sampler=sampler, initial_theta=initial_theta, seed=seed
    )


def fit_design(
    design: AFTDesign,
    config: AFTConfig,
    *,
    sampler: SamplerChoice | PosteriorSampler = "metropolis",
    initial_theta=None,
    seed: int | None = None,
) -> WeibullAFTSolution:
    """Fit an already validated design with an explicit configuration."""
    sampler_seed, derived_seed = (
        int(s.generate_state(1)[0]) for s in np.random.SeedSequence(seed).spawn(2)
    )
    if isinstance(sampler, str):
        sampler = get_sampler(sampler, positive=[design.p], seed=sampler_seed)

    model = WeibullAFTModel(
        design.partition,
        prior_beta_sd=config.prior_beta_sd,
        prior_alpha_rate=config.prior_alpha_rate,
    )

    timer = Timer()
    timer.start()
    warnings_list: list[str] = []

    map_theta = None
    map_converged = None
    if initial_theta is None:
        with timer.section('map'):
            map_theta, opt_result = find_map(
                design,
                prior_beta_sd=config.prior_beta_sd,
                prior_alpha_rate=config.prior_alpha_rate,
            )
        map_converged = bool(opt_result.success)
        if not map_converged:
            warnings_list.append(
                f"MAP optimizer did not converge: {opt_result.message}"
            )
        start = map_theta
    else:
        start = np.asarray(initial_theta, dtype=np.float64).ravel()
        if start.shape != (model.n_params,):
            raise DimensionError(
                f"initial_theta: expected shape ({model.n_params},), got {start.shape}"
            )
        if not np.isfinite(model.log_posterior(start)):
            raise ValidationError(
                f"initial_theta: log-posterior is not finite at {start.tolist()}"
            )

    with timer.section('sampling'):
        chain = sampler.sample(
            model.log_posterior, start, config.num_warmup, config.num_samples
        )
    kept = chain.params.kept

    with timer.section('derived_quantities'):
        derived = derive_quantities(
            kept[:, :-1], kept[:, -1],
            intercept_index=design.intercept_index,
            treatment_index=design.treatment_index,
            predictive_draws=config.predictive_draws,
            seed=derived_seed,
        )

    timer.stop()

    warnings_list.extend(chain.warnings)
    if derived.n_overflow:
        warnings_list.append(
            f"{derived.n_overflow} draw(s) overflowed while deriving hazards"
        )

    params = WeibullAFTParams(
        beta=kept[:, :-1].copy(),
        alpha=kept[:, -1].copy(),
        derived=derived,
        coef_names=design.covariate_names,
        intercept_index=design.intercept_index,
        treatment_index=design.treatment_index,
        map_theta=map_theta,
        n_observations=design.n,
        n_events=design.n_events,
    )

    result = Result(
        params=params,
        info={
            "method": "Bayesian Weibull AFT",
            "sampler": chain.info,
            "map_converged": map_converged,
            "n_censored": design.n_censored,
        },
        timing=timer.result(),
        backend_name=chain.backend_name,
        warnings=tuple(warnings_list),
    )

    return WeibullAFTSolution(_result=result, _config=config)


def weibull_aft_from_file(
    path: str | Path,
    *,
    time: str = "time",
    event: str = "event",
    covariates: Sequence[str] = ("treatment",),
    treatment: str | None = None,
    **kwargs,
) -> WeibullAFTSolution:
    """Fit a Weibull AFT model to a CSV/TSV table.

    Parameters
    ----------
    path : str or Path
        Delimited file with a header row.
    time, event : str
        Column names of the time and 0/1 event indicator.
    covariates : sequence of str
        Covariate columns (intercept is added unless add_intercept=False).
    treatment : str or None
        Treatment column; defaults to the single covariate when there is one.
    **kwargs
        Forwarded to weibull_aft().
    """
    covariates = list(covariates)
    ds = DataSource.from_file(path, columns=[time, event] + covariates)
    return weibull_aft(
        ds[time],
        ds[event],
        ds.columns(covariates),
        covariate_names=covariates,
        treatment=treatment,
        **kwargs,
    )
