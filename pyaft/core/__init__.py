"""
Core infrastructure for PyAFT.

Shared abstractions used by the model layer (aft) and the samplers (mcmc).

Key components:
    protocols: PosteriorSampler oracle protocol
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    datasource: Tabular input
    compute.timing: Timer
"""

from pyaft.core.protocols import PosteriorSampler
from pyaft.core.result import Result
from pyaft.core.datasource import DataSource
from pyaft.core.exceptions import (
    PyAFTError,
    ValidationError,
    DimensionError,
    InvalidDataError,
    NumericalError,
    NumericOverflowError,
    InfeasibleParameterWarning,
)

__all__ = [
    # Protocols
    "PosteriorSampler",
    # Containers
    "Result",
    "DataSource",
    # Exceptions
    "PyAFTError",
    "ValidationError",
    "DimensionError",
    "InvalidDataError",
    "NumericalError",
    "NumericOverflowError",
    "InfeasibleParameterWarning",
]
