"""
Synthetic two-arm trial generator for the Weibull AFT tests.

Event times follow the model exactly: T ~ Weibull(shape, exp(x.beta * shape))
with x = (1, treatment). Independent exponential censoring times give
roughly a quarter of the rows censored at the default settings.
"""

import numpy as np
import pytest

TRUE_BETA = np.array([-1.0 / 6.0, 1.0])
TRUE_SHAPE = 1.0


def simulate_trial(
    rng: np.random.Generator,
    n: int = 1000,
    beta=TRUE_BETA,
    shape: float = TRUE_SHAPE,
    censor_mean: float = 6.0,
):
    """Return (time, event, treatment) for a simulated two-arm trial."""
    beta = np.asarray(beta, dtype=np.float64)
    treatment = rng.integers(0, 2, size=n).astype(np.float64)
    X = np.column_stack([np.ones(n), treatment])
    scale = np.exp((X @ beta) * shape)
    event_time = scale * (-np.log(1.0 - rng.random(n))) ** (1.0 / shape)
    censor_time = rng.exponential(censor_mean, size=n)
    time = np.minimum(event_time, censor_time)
    event = (event_time <= censor_time).astype(np.float64)
    return time, event, treatment


@pytest.fixture
def simulate():
    """The trial generator itself, for tests that need several datasets."""
    return simulate_trial


@pytest.fixture
def trial_data(rng):
    """n=1000 trial with true beta (-1/6, 1) and shape 1."""
    return simulate_trial(rng)


@pytest.fixture
def small_trial(rng):
    """n=200 trial for quick fits."""
    return simulate_trial(rng, n=200)
