"""
Common data structures for the posterior samplers.

ChainParams is the parameter payload wrapped by Result[P] and returned by
every PosteriorSampler.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class ChainParams:
    """
    Parameter payload for a sampling run.

    - draws: every draw in generation order, warm-up first
    - num_warmup: length of the warm-up prefix
    - log_density: log-density at each draw
    """
    draws: NDArray[np.floating[Any]]           # shape (num_warmup + num_samples, d)
    num_warmup: int
    log_density: NDArray[np.floating[Any]]     # shape (num_warmup + num_samples,)

    @property
    def kept(self) -> NDArray[np.floating[Any]]:
        """Draws after the warm-up prefix, shape (num_samples, d)."""
        return self.draws[self.num_warmup:]

    @property
    def warmup(self) -> NDArray[np.floating[Any]]:
        return self.draws[:self.num_warmup]

    @property
    def num_samples(self) -> int:
        return self.draws.shape[0] - self.num_warmup
