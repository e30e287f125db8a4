"""
Exception hierarchy for PyAFT.

All exceptions inherit from PyAFTError to allow catching any
library-specific error. Domain-specific exceptions should inherit from
the appropriate base class here.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Numerical problems inside the sampling loop are recovered, not raised
"""


class PyAFTError(Exception):
    """Base exception for all PyAFT errors."""
    pass


class ValidationError(PyAFTError):
    """
    Input validation failed.

    Raised when user-provided inputs fail validation checks.
    """
    pass


class DimensionError(ValidationError):
    """
    Array dimensions are incorrect or inconsistent.

    Raised when array shapes don't match expected dimensions or
    when multiple arrays have inconsistent shapes.
    """
    pass


class InvalidDataError(ValidationError):
    """
    Survival dataset is malformed or inconsistent.

    Raised at setup time, before any sampling begins: non-positive or
    non-finite times, event indicators outside {0, 1}, mismatched
    covariate rows, or an empty group when both groups are required.

    Attributes:
        field: Name of the offending input ('time', 'event', 'X', ...)
    """

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class NumericalError(PyAFTError):
    """
    Numerical computation failed.

    Base class for errors arising from numerical issues during computation.
    """
    pass


class NumericOverflowError(NumericalError):
    """
    An intermediate exp() overflowed.

    Raised by the scale transform and Weibull term evaluation for
    pathological (beta, alpha). The log-posterior evaluator and the
    derived-quantity generator catch it and treat the point as
    infeasible; it never escapes a sampling run.

    Attributes:
        quantity: Name of the quantity being computed ('scale', 'z', ...)
    """

    def __init__(self, message: str, quantity: str | None = None):
        super().__init__(message)
        self.quantity = quantity


class InfeasibleParameterWarning(RuntimeWarning):
    """
    The log-posterior evaluated to -inf.

    Samplers treat -inf as a rejected region. This warning is only issued
    when infeasible proposals dominate warm-up, which usually means a poor
    initial point or badly scaled covariates.
    """
    pass
