"""
PyAFT: Bayesian accelerated-failure-time survival models for Python.

Fits a Weibull AFT regression to right-censored two-arm trial data,
samples the posterior with a pluggable MCMC oracle, and derives hazard
ratios and posterior-predictive survival times.

Submodules:
    aft: Weibull AFT model, fitting and solution objects
    mcmc: Posterior samplers (random-walk Metropolis, emcee ensemble)
    core: Results, exceptions, validation, tabular input
"""

__version__ = "0.1.0"

from pyaft import aft
from pyaft import mcmc
from pyaft.aft import weibull_aft, weibull_aft_from_file

__all__ = [
    "__version__",
    "aft",
    "mcmc",
    "weibull_aft",
    "weibull_aft_from_file",
]
