"""
Toy log-densities for the sampler tests.
"""

import numpy as np
import pytest


def standard_normal(theta):
    return -0.5 * float(theta @ theta)


def gamma_shape3(theta):
    """Gamma(3, 1) on coordinate 0, standard normal on the rest."""
    x = theta[0]
    if not x > 0:
        return -np.inf
    return 2.0 * np.log(x) - x - 0.5 * float(theta[1:] @ theta[1:])


@pytest.fixture
def normal_target():
    return standard_normal


@pytest.fixture
def gamma_target():
    return gamma_shape3
