"""
Posterior sampler backends.

    cpu_metropolis: adaptive random-walk Metropolis (numpy only)
    cpu_emcee: affine-invariant ensemble via the optional emcee package
"""

from pyaft.mcmc.backends.metropolis import MetropolisSampler
from pyaft.mcmc.backends.ensemble import EnsembleSampler

__all__ = ["MetropolisSampler", "EnsembleSampler"]
