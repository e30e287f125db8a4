"""
Weibull accelerated-failure-time log-posterior.

Model:
    beta_j ~ Normal(0, sigma_beta)             j = 0..p-1
    alpha  ~ Exponential(rate)
    T_i    ~ Weibull(shape=alpha, scale=lambda_i)
    lambda_i = exp((x_i . beta) * alpha)

Right-censored rows contribute log S(t) = -(t / lambda)^alpha; observed
events contribute the log density. Everything is evaluated in log-space:
log(lambda) = alpha * x.beta is never exponentiated inside the likelihood,
and the only exp() taken is z = (t / lambda)^alpha.

References:
    Klein, J. P., & Moeschberger, M. L. (2003). Survival Analysis:
        Techniques for Censored and Truncated Data, ch. 12.
    Stan Development Team. Stan Functions Reference, "Weibull distribution".
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from pyaft.aft.design import CensoringPartition
from pyaft.core.exceptions import DimensionError, NumericOverflowError

LOG_SQRT_2PI = 0.5 * np.log(2.0 * np.pi)


def weibull_logpdf(t, shape, scale):
    """log f(t | shape, scale) for t > 0, shape > 0, scale > 0."""
    z = np.asarray(t, dtype=np.float64) / scale
    return np.log(shape / scale) + (shape - 1.0) * np.log(z) - z ** shape


def weibull_logsf(t, shape, scale):
    """log S(t | shape, scale) = -(t / scale)^shape."""
    z = np.asarray(t, dtype=np.float64) / scale
    return -(z ** shape)


def aft_log_scale(X: NDArray, beta: NDArray, alpha: float) -> NDArray:
    """log(lambda) = (X @ beta) * alpha, one entry per row of X."""
    return (X @ beta) * alpha


def aft_scale(X: NDArray, beta: NDArray, alpha: float) -> NDArray:
    """Weibull scale lambda = exp((X @ beta) * alpha).

    Raises
    ------
    NumericOverflowError
        If exp() overflows for any row.
    """
    with np.errstate(over='raise'):
        try:
            return np.exp(aft_log_scale(X, beta, alpha))
        except FloatingPointError as e:
            raise NumericOverflowError(
                f"scale overflow at alpha={alpha}", quantity="scale"
            ) from e


def _z(log_t: NDArray, eta: NDArray, alpha: float) -> NDArray:
    """(t / lambda)^alpha = exp(alpha * log t - alpha^2 * eta)."""
    with np.errstate(over='raise'):
        try:
            return np.exp(alpha * log_t - alpha * alpha * eta)
        except FloatingPointError as e:
            raise NumericOverflowError(
                f"(t / scale)^shape overflow at alpha={alpha}", quantity="z"
            ) from e


class WeibullAFTModel:
    """Log-posterior of a Weibull AFT regression over a censoring partition.

    The model is stateless apart from read-only copies of the partition,
    so one instance can be evaluated concurrently from several threads.

    Parameters are packed as theta = [beta_0, ..., beta_{p-1}, alpha].

    Parameters
    ----------
    partition : CensoringPartition
        Event and right-censored groups.
    prior_beta_sd : float
        Standard deviation of the Normal(0, sd) prior on each coefficient.
    prior_alpha_rate : float
        Rate of the Exponential prior on alpha.
    """

    def __init__(
        self,
        partition: CensoringPartition,
        prior_beta_sd: float = 100.0,
        prior_alpha_rate: float = 1.0,
    ) -> None:
        self.p = partition.p
        self.prior_beta_sd = float(prior_beta_sd)
        self.prior_alpha_rate = float(prior_alpha_rate)

        self._X_event = partition.event.X
        self._log_t_event = np.log(partition.event.time)
        self._sum_log_t_event = float(np.sum(self._log_t_event))
        self._n_event = partition.event.n
        self._X_cens = partition.censored.X
        self._log_t_cens = np.log(partition.censored.time)

        self._prior_const = (
            -self.p * (np.log(self.prior_beta_sd) + LOG_SQRT_2PI)
            + np.log(self.prior_alpha_rate)
        )

    @property
    def n_params(self) -> int:
        return self.p + 1

    def split(self, theta) -> tuple[NDArray, float]:
        """Unpack theta into (beta, alpha)."""
        theta = np.asarray(theta, dtype=np.float64)
        if theta.shape != (self.n_params,):
            raise DimensionError(
                f"theta: expected shape ({self.n_params},), got {theta.shape}"
            )
        return theta[:-1], float(theta[-1])

    def log_prior(self, theta) -> float:
        """Normal(0, sd) on each coefficient plus Exponential(rate) on alpha."""
        beta, alpha = self.split(theta)
        if not alpha > 0:
            return -np.inf
        sd = self.prior_beta_sd
        return float(
            self._prior_const
            - 0.5 * np.dot(beta, beta) / (sd * sd)
            - self.prior_alpha_rate * alpha
        )

    def log_likelihood(self, theta) -> float:
        """Right-censored Weibull log-likelihood.

        Returns -inf instead of raising for alpha <= 0, non-finite theta or
        overflow in the intermediate exp().
        """
        beta, alpha = self.split(theta)
        if not (alpha > 0 and np.isfinite(alpha) and np.all(np.isfinite(beta))):
            return -np.inf

        try:
            eta_event = self._X_event @ beta
            z_event = _z(self._log_t_event, eta_event, alpha)
            eta_cens = self._X_cens @ beta
            z_cens = _z(self._log_t_cens, eta_cens, alpha)
        except NumericOverflowError:
            return -np.inf

        # sum of log f = n log a + (a - 1) sum log t - a^2 sum eta - sum z
        ll_event = (
            self._n_event * np.log(alpha)
            + (alpha - 1.0) * self._sum_log_t_event
            - alpha * alpha * np.sum(eta_event)
            - np.sum(z_event)
        )
        ll_cens = -np.sum(z_cens)
        ll = float(ll_event + ll_cens)
        if np.isnan(ll):
            return -np.inf
        return ll

    def log_posterior(self, theta) -> float:
        """log p(beta, alpha | data) up to an additive constant.

        Never raises for finite input of the right length; infeasible
        points (alpha <= 0, overflow) return -inf.
        """
        lp = self.log_prior(theta)
        if lp == -np.inf:
            return -np.inf
        ll = self.log_likelihood(theta)
        if ll == -np.inf:
            return -np.inf
        return lp + ll

    __call__ = log_posterior

    def grad_log_posterior(self, theta) -> NDArray:
        """Analytic gradient of log_posterior with respect to theta.

        Returns an all-NaN vector at infeasible points.
        """
        beta, alpha = self.split(theta)
        grad = np.full(self.n_params, np.nan)
        if not (alpha > 0 and np.isfinite(alpha) and np.all(np.isfinite(beta))):
            return grad

        try:
            eta_e = self._X_event @ beta
            z_e = _z(self._log_t_event, eta_e, alpha)
            eta_c = self._X_cens @ beta
            z_c = _z(self._log_t_cens, eta_c, alpha)
        except NumericOverflowError:
            return grad

        a2 = alpha * alpha
        sd2 = self.prior_beta_sd ** 2

        # d/dbeta: events a^2 x (z - 1), censored a^2 x z
        g_beta = a2 * (self._X_event.T @ (z_e - 1.0) + self._X_cens.T @ z_c)
        g_beta -= beta / sd2

        # d/dalpha: events 1/a + (log t - 2 a eta)(1 - z), censored -z (log t - 2 a eta)
        u_e = self._log_t_event - 2.0 * alpha * eta_e
        u_c = self._log_t_cens - 2.0 * alpha * eta_c
        g_alpha = (
            self._n_event / alpha
            + np.sum(u_e * (1.0 - z_e))
            - np.sum(z_c * u_c)
            - self.prior_alpha_rate
        )

        grad[:-1] = g_beta
        grad[-1] = g_alpha
        return grad
