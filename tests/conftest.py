"""
pytest configuration and shared fixtures.
"""

import pytest
import numpy as np


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def small_survival_data():
    """Eight subjects, two arms, three of them right-censored."""
    time = np.array([2.0, 3.5, 1.2, 7.0, 4.4, 0.8, 6.1, 5.0])
    event = np.array([1, 0, 1, 1, 0, 1, 1, 0], dtype=np.float64)
    treatment = np.array([0, 0, 0, 0, 1, 1, 1, 1], dtype=np.float64)
    return time, event, treatment
