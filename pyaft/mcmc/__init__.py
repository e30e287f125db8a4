"""
PyAFT posterior samplers.

Any object satisfying pyaft.core.protocols.PosteriorSampler can drive a
fit; the two shipped here are selected by name through get_sampler().

Usage:
    from pyaft.mcmc import get_sampler

    sampler = get_sampler("metropolis", positive=[2], seed=1)
    result = sampler.sample(model.log_posterior, theta0, 1000, 2000)
    kept = result.params.kept
"""

from __future__ import annotations

from typing import Literal, Sequence

from pyaft.mcmc._common import ChainParams
from pyaft.mcmc.backends import EnsembleSampler, MetropolisSampler

SamplerChoice = Literal["metropolis", "emcee"]


def get_sampler(
    choice: SamplerChoice,
    *,
    positive: Sequence[int] = (),
    seed: int | None = None,
    **options,
):
    """
    Instantiate a sampler by name.

    Args:
        choice: "metropolis" (default backend) or "emcee"
        positive: Indices of coordinates constrained to be > 0
        seed: Seed for the sampler's random stream
        **options: Passed through to the sampler constructor

    Returns:
        PosteriorSampler instance

    Raises:
        ValueError: If the sampler name is unknown
    """
    if choice in ("metropolis", "cpu_metropolis"):
        return MetropolisSampler(positive, seed=seed, **options)
    elif choice in ("emcee", "cpu_emcee"):
        return EnsembleSampler(positive, seed=seed, **options)
    raise ValueError(
        f"Unknown sampler: {choice!r}. Use 'metropolis' or 'emcee'."
    )


__all__ = [
    "ChainParams",
    "EnsembleSampler",
    "MetropolisSampler",
    "get_sampler",
]
