"""
Affine-invariant ensemble sampler backed by emcee.

emcee is an optional dependency and is imported when sample() runs.
Walkers start in a small ball around the initial point; walkers that
land outside the positivity constraint are reflected back inside.
Proposals with log-density -inf are rejected by emcee and counted here.

Draws are flattened step-major, so each block of n_walkers rows belongs
to one ensemble step and the warm-up rows come first.
"""

from __future__ import annotations

import warnings
from typing import Sequence

import numpy as np

from pyaft.core.compute.timing import Timer
from pyaft.core.exceptions import InfeasibleParameterWarning, ValidationError
from pyaft.core.protocols import LogDensity
from pyaft.core.result import Result
from pyaft.mcmc._common import ChainParams


class EnsembleSampler:
    """
    emcee.EnsembleSampler wrapped as a PosteriorSampler.

    Parameters
    ----------
    positive : sequence of int
        Indices of coordinates constrained to be > 0.
    n_walkers : int or None
        Ensemble size. Defaults to max(32, 4 * d).
    jitter : float
        Relative spread of the initial walker ball.
    seed : int or None
        Seed for walker initialisation and emcee's random state.
    """

    def __init__(
        self,
        positive: Sequence[int] = (),
        *,
        n_walkers: int | None = None,
        jitter: float = 1e-3,
        seed: int | None = None,
    ) -> None:
        self.positive = np.asarray(list(positive), dtype=np.intp)
        self.n_walkers = n_walkers
        self.jitter = float(jitter)
        self.seed = seed

    @property
    def name(self) -> str:
        return 'cpu_emcee'

    def sample(
        self,
        log_density: LogDensity,
        initial_theta,
        num_warmup: int,
        num_samples: int,
    ) -> Result[ChainParams]:
        """Run the ensemble; warm-up rows first, then kept rows."""
        import emcee

        timer = Timer()
        timer.start()

        theta0 = np.asarray(initial_theta, dtype=np.float64).ravel()
        d = theta0.shape[0]
        if not np.isfinite(log_density(theta0)):
            raise ValidationError(
                f"initial_theta: log-density is not finite at {theta0.tolist()}"
            )

        n_walkers = self.n_walkers or max(32, 4 * d)
        if n_walkers < 2 * d:
            raise ValueError(f"n_walkers must be >= {2 * d}, got {n_walkers}")

        rng = np.random.default_rng(self.seed)
        spread = self.jitter * np.maximum(1.0, np.abs(theta0))
        p0 = theta0 + spread * rng.standard_normal((n_walkers, d))
        if self.positive.size:
            p0[:, self.positive] = np.abs(p0[:, self.positive])

        warm_steps = -(-num_warmup // n_walkers)
        kept_steps = -(-num_samples // n_walkers)

        n_infeasible = 0

        def counted(theta):
            nonlocal n_infeasible
            lp = log_density(theta)
            if not np.isfinite(lp):
                n_infeasible += 1
            return lp

        sampler = emcee.EnsembleSampler(n_walkers, d, counted)
        sampler.random_state = np.random.RandomState(
            rng.integers(0, 2**31 - 1)
        ).get_state()

        with timer.section('sampling'):
            state = p0
            if warm_steps:
                state = sampler.run_mcmc(p0, warm_steps, progress=False)
            warmup_infeasible = n_infeasible
            if kept_steps:
                sampler.run_mcmc(state, kept_steps, progress=False)

        chain = sampler.get_chain()                  # (steps, walkers, d)
        log_prob = sampler.get_log_prob()            # (steps, walkers)
        warm = chain[:warm_steps].reshape(-1, d)[:num_warmup]
        kept = chain[warm_steps:].reshape(-1, d)[:num_samples]
        warm_lp = log_prob[:warm_steps].reshape(-1)[:num_warmup]
        kept_lp = log_prob[warm_steps:].reshape(-1)[:num_samples]

        timer.stop()

        acceptance = float(np.mean(sampler.acceptance_fraction))
        warnings_list: list[str] = []
        warm_proposals = warm_steps * n_walkers
        if warm_proposals and warmup_infeasible > 0.5 * warm_proposals:
            msg = (
                f"{warmup_infeasible} of {warm_proposals} warm-up proposals had "
                f"-inf log-density"
            )
            warnings.warn(msg, InfeasibleParameterWarning, stacklevel=2)
            warnings_list.append(msg)
        if acceptance < 0.05:
            warnings_list.append(
                f"low mean acceptance fraction {acceptance:.3f}"
            )

        return Result(
            params=ChainParams(
                draws=np.concatenate([warm, kept]),
                num_warmup=num_warmup,
                log_density=np.concatenate([warm_lp, kept_lp]),
            ),
            info={
                'method': 'emcee',
                'acceptance_rate': acceptance,
                'n_walkers': n_walkers,
                'n_infeasible': n_infeasible,
                'n_steps': warm_steps + kept_steps,
                'dim': d,
            },
            timing=timer.result(),
            backend_name=self.name,
            warnings=tuple(warnings_list),
        )
