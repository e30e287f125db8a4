"""
CPU random-walk Metropolis sampler.

Coordinates listed in ``positive`` are sampled on the log scale (with the
log-Jacobian added to the target), so every returned draw respects the
positivity constraint. The proposal is a multivariate normal whose
covariance is the inverse negative Hessian of the log-target at the
starting point (diagonal fallback if that is not positive definite),
multiplied by a scalar that is tuned from the acceptance rate during
warm-up.

Proposals with log-density -inf are rejected and counted; they never
abort the run.
"""

from __future__ import annotations

import warnings
from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from pyaft.core.compute.timing import Timer
from pyaft.core.exceptions import InfeasibleParameterWarning, ValidationError
from pyaft.core.protocols import LogDensity
from pyaft.core.result import Result
from pyaft.mcmc._common import ChainParams


def tune(scale: float, acc_rate: float) -> float:
    """
    Tune the scaling parameter for the proposal distribution.

    Uses the acceptance rate over the last tune_interval.

    Rate    Variance adaptation
    ----    -------------------
    <0.001        x 0.1
    <0.05         x 0.5
    <0.2          x 0.9
    >0.5          x 1.1
    >0.75         x 2
    >0.95         x 10
    """
    if acc_rate < 0.001:
        return scale * 0.1
    if acc_rate < 0.05:
        return scale * 0.5
    if acc_rate < 0.2:
        return scale * 0.9
    if acc_rate > 0.95:
        return scale * 10.0
    if acc_rate > 0.75:
        return scale * 2.0
    if acc_rate > 0.5:
        return scale * 1.1
    return scale


def _hessian(f, x: NDArray, step: float = 1e-4) -> NDArray:
    """Central finite-difference Hessian of a scalar function."""
    d = x.shape[0]
    h = step * np.maximum(1.0, np.abs(x))
    f0 = f(x)
    H = np.empty((d, d))
    for i in range(d):
        ei = np.zeros(d)
        ei[i] = h[i]
        H[i, i] = (f(x + ei) - 2.0 * f0 + f(x - ei)) / (h[i] * h[i])
        for j in range(i):
            ej = np.zeros(d)
            ej[j] = h[j]
            H[i, j] = H[j, i] = (
                f(x + ei + ej) - f(x + ei - ej) - f(x - ei + ej) + f(x - ei - ej)
            ) / (4.0 * h[i] * h[j])
    return H


def proposal_cholesky(H: NDArray) -> NDArray:
    """Cholesky factor of inv(-H), or a diagonal fallback.

    The fallback uses 1/sqrt(-H_jj) where the curvature is negative and
    finite, and 1 elsewhere.
    """
    d = H.shape[0]
    if np.all(np.isfinite(H)):
        try:
            cov = np.linalg.inv(-H)
            return np.linalg.cholesky(cov)
        except np.linalg.LinAlgError:
            pass
    diag = -np.diag(H)
    sd = np.ones(d)
    ok = np.isfinite(diag) & (diag > 0)
    sd[ok] = 1.0 / np.sqrt(diag[ok])
    return np.diag(sd)


class MetropolisSampler:
    """
    Adaptive random-walk Metropolis.

    Parameters
    ----------
    positive : sequence of int
        Indices of coordinates constrained to be > 0.
    scaling : float
        Initial multiplier of the proposal covariance factor. The proposal
        step is scaling * 2.38 / sqrt(d) * L @ N(0, I).
    tune_interval : int
        Warm-up steps between scale updates.
    seed : int or None
        Seed for this sampler's Generator.
    """

    def __init__(
        self,
        positive: Sequence[int] = (),
        *,
        scaling: float = 1.0,
        tune_interval: int = 100,
        seed: int | None = None,
    ) -> None:
        if scaling <= 0:
            raise ValueError(f"scaling must be > 0, got {scaling}")
        if tune_interval < 1:
            raise ValueError(f"tune_interval must be >= 1, got {tune_interval}")
        self.positive = np.asarray(list(positive), dtype=np.intp)
        self.scaling = float(scaling)
        self.tune_interval = int(tune_interval)
        self.seed = seed

    @property
    def name(self) -> str:
        return 'cpu_metropolis'

    def _to_theta(self, phi: NDArray) -> NDArray:
        theta = phi.copy()
        if self.positive.size:
            with np.errstate(over='ignore'):
                theta[self.positive] = np.exp(phi[self.positive])
        return theta

    def _to_phi(self, theta: NDArray) -> NDArray:
        phi = theta.copy()
        if self.positive.size:
            phi[self.positive] = np.log(theta[self.positive])
        return phi

    def sample(
        self,
        log_density: LogDensity,
        initial_theta,
        num_warmup: int,
        num_samples: int,
    ) -> Result[ChainParams]:
        """Run the chain and return every draw in generation order."""
        timer = Timer()
        timer.start()

        theta0 = np.asarray(initial_theta, dtype=np.float64).ravel()
        d = theta0.shape[0]
        if self.positive.size and (
            self.positive.max() >= d or np.any(theta0[self.positive] <= 0)
        ):
            raise ValidationError(
                f"initial_theta: coordinates {self.positive.tolist()} must exist and be > 0, "
                f"got {theta0.tolist()}"
            )

        def target(phi: NDArray) -> float:
            lp = log_density(self._to_theta(phi))
            if not np.isfinite(lp):
                return -np.inf
            return lp + float(np.sum(phi[self.positive]))

        rng = np.random.default_rng(self.seed)
        phi = self._to_phi(theta0)
        lp = target(phi)
        if not np.isfinite(lp):
            raise ValidationError(
                f"initial_theta: log-density is not finite at {theta0.tolist()}"
            )

        with timer.section('proposal_setup'):
            L = proposal_cholesky(_hessian(target, phi))

        n_total = num_warmup + num_samples
        draws = np.empty((n_total, d))
        log_dens = np.empty(n_total)
        scale = self.scaling * 2.38 / np.sqrt(d)
        accepted = 0
        window_accepted = 0
        warmup_infeasible = 0
        n_infeasible = 0

        with timer.section('sampling'):
            for step in range(n_total):
                proposal = phi + scale * (L @ rng.standard_normal(d))
                lp_prop = target(proposal)
                if lp_prop == -np.inf:
                    n_infeasible += 1
                    if step < num_warmup:
                        warmup_infeasible += 1
                elif np.log(rng.random()) < lp_prop - lp:
                    phi, lp = proposal, lp_prop
                    if step >= num_warmup:
                        accepted += 1
                    else:
                        window_accepted += 1

                draws[step] = self._to_theta(phi)
                log_dens[step] = lp - float(np.sum(phi[self.positive]))

                if step < num_warmup and (step + 1) % self.tune_interval == 0:
                    scale = tune(scale, window_accepted / self.tune_interval)
                    window_accepted = 0

        timer.stop()

        warnings_list: list[str] = []
        if num_warmup > 0 and warmup_infeasible > 0.5 * num_warmup:
            msg = (
                f"{warmup_infeasible} of {num_warmup} warm-up proposals had "
                f"-inf log-density"
            )
            warnings.warn(msg, InfeasibleParameterWarning, stacklevel=2)
            warnings_list.append(msg)

        acceptance_rate = accepted / num_samples if num_samples else float('nan')
        if num_samples and acceptance_rate < 0.05:
            warnings_list.append(
                f"low acceptance rate {acceptance_rate:.3f}; draws are highly autocorrelated"
            )

        return Result(
            params=ChainParams(draws=draws, num_warmup=num_warmup, log_density=log_dens),
            info={
                'method': 'metropolis',
                'acceptance_rate': acceptance_rate,
                'n_infeasible': n_infeasible,
                'final_scale': scale,
                'dim': d,
            },
            timing=timer.result(),
            backend_name=self.name,
            warnings=tuple(warnings_list),
        )
