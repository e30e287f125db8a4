"""
Generic result container for all PyAFT computations.

The Result class is the envelope shared by sampler output and model fits.
It carries timing, run metadata and non-fatal warnings next to the
domain-specific parameter payload.

Design decisions:
    - Generic over parameter payload P for type safety
    - info dict for flexible metadata (acceptance rate, MAP convergence)
    - timing is optional (don't burden unit tests)
    - Immutable (frozen=True) for reproducibility
"""

from dataclasses import dataclass, field
from typing import TypeVar, Generic, Any

P = TypeVar('P')  # Parameter payload type


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable result envelope for PyAFT computations.

    Type Parameters:
        P: The domain-specific parameter payload type

    Attributes:
        params: Domain-specific payload (chain draws, posterior quantities)
        info: Structured metadata (method, acceptance rate, diagnostics)
        timing: Execution timing breakdown, or None if not measured
        backend_name: Identifier of the backend that produced this result
        warnings: Non-fatal issues encountered during computation

    Examples:
        >>> Result(
        ...     params=ChainParams(draws=draws, num_warmup=500),
        ...     info={'method': 'metropolis', 'acceptance_rate': 0.31},
        ...     timing={'total_seconds': 0.8, 'warmup': 0.2},
        ...     backend_name='cpu_metropolis'
        ... )
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    backend_name: str
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def has_warning(self, substring: str) -> bool:
        """Check if any warning contains the given substring."""
        return any(substring in w for w in self.warnings)
