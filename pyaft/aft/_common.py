"""
Configuration and parameter payloads for Weibull AFT fits.

Each dataclass is frozen. WeibullAFTParams is carried inside a Result[P]
envelope; PosteriorDraw is the per-draw record handed to downstream
summarisation and plotting.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from pyaft.core.validation import check_count, check_positive_scalar


@dataclass(frozen=True)
class AFTConfig:
    """Model and sampling configuration.

    Attributes
    ----------
    prior_beta_sd : float
        Standard deviation of the independent Normal(0, sd) coefficient priors.
    prior_alpha_rate : float
        Rate of the Exponential prior on the Weibull shape.
    predictive_draws : int
        Posterior-predictive survival times simulated per posterior draw (K).
    num_warmup : int
        Leading sampler draws discarded as warm-up.
    num_samples : int
        Draws kept after warm-up (M).
    """

    prior_beta_sd: float = 100.0
    prior_alpha_rate: float = 1.0
    predictive_draws: int = 1000
    num_warmup: int = 15000
    num_samples: int = 5000

    @classmethod
    def build(
        cls,
        *,
        prior_beta_sd: float = 100.0,
        prior_alpha_rate: float = 1.0,
        predictive_draws: int = 1000,
        num_warmup: int = 15000,
        num_samples: int = 5000,
    ) -> AFTConfig:
        """Create a validated configuration.

        Raises
        ------
        ValidationError
            If a scale or rate is not positive, or a count is out of range.
        """
        return cls(
            prior_beta_sd=check_positive_scalar(prior_beta_sd, "prior_beta_sd"),
            prior_alpha_rate=check_positive_scalar(prior_alpha_rate, "prior_alpha_rate"),
            predictive_draws=check_count(predictive_draws, "predictive_draws", minimum=0),
            num_warmup=check_count(num_warmup, "num_warmup", minimum=0),
            num_samples=check_count(num_samples, "num_samples", minimum=1),
        )


@dataclass(frozen=True)
class PosteriorDraw:
    """One posterior draw and the quantities derived from it."""

    beta: NDArray                   # (p,)
    alpha: float
    hazard_trt: float
    hazard_pbo: float
    hazard_ratio: float
    predictive_time_trt: NDArray    # (K,)
    predictive_time_pbo: NDArray    # (K,)


@dataclass(frozen=True)
class DerivedQuantities:
    """Derived quantities for a whole posterior sample, one row per draw."""

    hazard_trt: NDArray             # (M,)
    hazard_pbo: NDArray             # (M,)
    hazard_ratio: NDArray           # (M,)
    predictive_time_trt: NDArray    # (M, K)
    predictive_time_pbo: NDArray    # (M, K)
    n_overflow: int                 # draws with any overflowed hazard or predictive time


@dataclass(frozen=True)
class WeibullAFTParams:
    """Posterior sample of a Weibull AFT fit."""

    beta: NDArray                   # (M, p) kept coefficient draws
    alpha: NDArray                  # (M,) kept shape draws
    derived: DerivedQuantities
    coef_names: tuple[str, ...]
    intercept_index: int
    treatment_index: int
    map_theta: NDArray | None       # (p + 1,) MAP starting point, if computed
    n_observations: int
    n_events: int

    @property
    def n_draws(self) -> int:
        return self.alpha.shape[0]

    def theta(self) -> NDArray:
        """Packed (M, p + 1) draws: coefficients followed by shape."""
        return np.column_stack([self.beta, self.alpha])
