"""
Core protocols for PyAFT.

These define structural interfaces that concrete implementations must
satisfy. We use Protocol (structural typing) rather than ABC (nominal
typing) so that any third-party sampler with the right shape can be
plugged in without inheriting from PyAFT classes.

Design Principles:
    - Minimal contracts: prescribe only what the model layer needs
    - The model never knows which sampler produced its draws
"""

from __future__ import annotations

from typing import Callable, Protocol, TYPE_CHECKING, runtime_checkable

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from pyaft.core.result import Result
    from pyaft.mcmc._common import ChainParams


LogDensity = Callable[[NDArray[np.floating]], float]


@runtime_checkable
class PosteriorSampler(Protocol):
    """
    Posterior sampling oracle.

    Given a log-density (up to an additive constant) and a starting point,
    a sampler returns a chain of draws whose empirical distribution, after
    the warm-up prefix is discarded, approximates exp(log_density).

    The log-density may return -inf; samplers must treat that as a
    rejected region and never as a fatal error.

    Draws are returned in generation order so that warm-up can be
    discarded positionally.
    """

    @property
    def name(self) -> str:
        """
        Sampler identifier.

        Convention: '{device}_{algorithm}'
        Examples: 'cpu_metropolis', 'cpu_emcee'
        """
        ...

    def sample(
        self,
        log_density: LogDensity,
        initial_theta: NDArray[np.floating],
        num_warmup: int,
        num_samples: int,
    ) -> 'Result[ChainParams]':
        """
        Draw from the distribution with density proportional to
        exp(log_density(theta)).

        Args:
            log_density: theta (d,) -> float, possibly -inf
            initial_theta: Starting point (d,); must have finite log-density
            num_warmup: Number of leading draws used for tuning
            num_samples: Number of draws kept after warm-up

        Returns:
            Result whose params.draws has shape (num_warmup + num_samples, d)

        Raises:
            ValidationError: If initial_theta has non-finite log-density
        """
        ...
