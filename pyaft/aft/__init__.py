"""
Bayesian Weibull accelerated-failure-time regression.

Public API:
    weibull_aft(time, event, X, treatment=...) -> WeibullAFTSolution
    weibull_aft_from_file(path, ...) -> WeibullAFTSolution
    find_map(design) -> (theta, OptimizeResult)
    WeibullAFTModel(partition).log_posterior(theta) -> float
    partition_observations(observations) -> CensoringPartition
"""

from pyaft.aft._common import AFTConfig, PosteriorDraw
from pyaft.aft._derived import derive_quantities
from pyaft.aft._likelihood import (
    WeibullAFTModel,
    aft_log_scale,
    aft_scale,
    weibull_logpdf,
    weibull_logsf,
)
from pyaft.aft.design import (
    AFTDesign,
    CensoringPartition,
    Observation,
    SurvivalGroup,
    partition_arrays,
    partition_observations,
)
from pyaft.aft.solution import WeibullAFTSolution
from pyaft.aft.solvers import find_map, fit_design, weibull_aft, weibull_aft_from_file

__all__ = [
    "AFTConfig",
    "AFTDesign",
    "CensoringPartition",
    "Observation",
    "PosteriorDraw",
    "SurvivalGroup",
    "WeibullAFTModel",
    "WeibullAFTSolution",
    "aft_log_scale",
    "aft_scale",
    "derive_quantities",
    "find_map",
    "fit_design",
    "partition_arrays",
    "partition_observations",
    "weibull_aft",
    "weibull_aft_from_file",
    "weibull_logpdf",
    "weibull_logsf",
]
