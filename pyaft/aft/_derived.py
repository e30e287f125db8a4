"""
Derived quantities for a Weibull AFT posterior sample.

For each draw (beta, alpha):
    hazard_trt   = exp((beta_intercept + beta_treatment) * alpha)
    hazard_pbo   = exp(beta_intercept * alpha)
    hazard_ratio = exp(beta_treatment * alpha)
    predictive_time_g[k] ~ Weibull(shape=alpha, scale=hazard_g),  k = 1..K

The group "hazards" are the group-level Weibull scales under the AFT
transform, so predictive times are drawn with them as scale. Predictive
times use the inverse CDF, scale * (-log U)^(1/shape) with U in (0, 1].

An exp() or power that overflows is recovered locally: only the affected
hazard becomes inf, and only the affected arm's predictive times become
NaN. The draw is then counted in n_overflow.

Each draw gets its own Generator built from SeedSequence(seed,
spawn_key=(index,)), so results depend only on (seed, draw index) and not
on the order in which draws are processed.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from pyaft.aft._common import DerivedQuantities, PosteriorDraw
from pyaft.core.exceptions import NumericOverflowError


def draw_rng(seed: int | None, index: int) -> np.random.Generator:
    """Generator for posterior draw ``index``, a pure function of (seed, index)."""
    return np.random.default_rng(np.random.SeedSequence(seed, spawn_key=(index,)))


def weibull_inverse_cdf(u: NDArray, shape: float, scale: float) -> NDArray:
    """scale * (-log u)^(1/shape) for u in (0, 1].

    Raises
    ------
    NumericOverflowError
        If the power or the product overflows.
    """
    with np.errstate(over='raise'):
        try:
            return scale * (-np.log(u)) ** np.divide(1.0, shape)
        except FloatingPointError as e:
            raise NumericOverflowError(
                f"predictive time overflow at shape={shape}", quantity="predictive_time"
            ) from e


def weibull_variates(
    shape: float,
    scale: float,
    size: int,
    rng: np.random.Generator,
) -> NDArray:
    """Inverse-CDF Weibull draws: scale * (-log U)^(1/shape)."""
    return weibull_inverse_cdf(1.0 - rng.random(size), shape, scale)


def _checked_exp(x: float, quantity: str) -> float:
    with np.errstate(over='raise'):
        try:
            return float(np.exp(x))
        except FloatingPointError as e:
            raise NumericOverflowError(f"{quantity} overflow", quantity=quantity) from e


def _recovered_exp(x: float, quantity: str) -> tuple[float, bool]:
    try:
        return _checked_exp(x, quantity), False
    except NumericOverflowError:
        return np.inf, True


def _recovered_variates(
    u: NDArray, shape: float, scale: float
) -> tuple[NDArray, bool]:
    if not np.isfinite(scale):
        return np.full(u.shape, np.nan), True
    try:
        return weibull_inverse_cdf(u, shape, scale), False
    except NumericOverflowError:
        return np.full(u.shape, np.nan), True


def _derive(
    beta: NDArray,
    alpha: float,
    intercept_index: int,
    treatment_index: int,
    predictive_draws: int,
    rng: np.random.Generator,
) -> tuple[PosteriorDraw, bool]:
    b0 = beta[intercept_index]
    bt = beta[treatment_index]

    hazard_trt, over_trt = _recovered_exp((b0 + bt) * alpha, "hazard_trt")
    hazard_pbo, over_pbo = _recovered_exp(b0 * alpha, "hazard_pbo")
    hazard_ratio, over_ratio = _recovered_exp(bt * alpha, "hazard_ratio")

    # both arms consume the stream whether or not they overflow
    u_trt = 1.0 - rng.random(predictive_draws)
    u_pbo = 1.0 - rng.random(predictive_draws)
    pred_trt, over_pred_trt = _recovered_variates(u_trt, alpha, hazard_trt)
    pred_pbo, over_pred_pbo = _recovered_variates(u_pbo, alpha, hazard_pbo)

    draw = PosteriorDraw(
        beta=np.array(beta, dtype=np.float64),
        alpha=float(alpha),
        hazard_trt=hazard_trt,
        hazard_pbo=hazard_pbo,
        hazard_ratio=hazard_ratio,
        predictive_time_trt=pred_trt,
        predictive_time_pbo=pred_pbo,
    )
    overflowed = over_trt or over_pbo or over_ratio or over_pred_trt or over_pred_pbo
    return draw, overflowed


def derive_draw(
    beta: NDArray,
    alpha: float,
    *,
    intercept_index: int,
    treatment_index: int,
    predictive_draws: int,
    rng: np.random.Generator,
) -> PosteriorDraw:
    """Derived quantities for a single posterior draw.

    A hazard whose exp() overflows is inf; an arm whose hazard or
    predictive times overflow gets NaN predictive times.
    """
    draw, _ = _derive(
        beta, alpha, intercept_index, treatment_index, predictive_draws, rng
    )
    return draw


def derive_quantities(
    beta: NDArray,
    alpha: NDArray,
    *,
    intercept_index: int,
    treatment_index: int,
    predictive_draws: int,
    seed: int | None,
) -> DerivedQuantities:
    """Derived quantities for every posterior draw.

    Parameters
    ----------
    beta : NDArray
        (M, p) coefficient draws.
    alpha : NDArray
        (M,) shape draws.
    intercept_index, treatment_index : int
        Columns of beta holding the intercept and treatment coefficients.
    predictive_draws : int
        K, predictive survival times per draw and group.
    seed : int or None
        Root seed; draw i uses draw_rng(seed, i). None draws fresh entropy
        once and derives all per-draw streams from it.

    Returns
    -------
    DerivedQuantities
        Overflowing hazards are inf and the affected arm's predictive
        times NaN; draws with any overflow are counted in n_overflow.
    """
    m = alpha.shape[0]
    if seed is None:
        seed = int(np.random.SeedSequence().entropy)

    hazard_trt = np.empty(m)
    hazard_pbo = np.empty(m)
    hazard_ratio = np.empty(m)
    pred_trt = np.empty((m, predictive_draws))
    pred_pbo = np.empty((m, predictive_draws))
    n_overflow = 0

    for i in range(m):
        d, overflowed = _derive(
            beta[i], alpha[i], intercept_index, treatment_index,
            predictive_draws, draw_rng(seed, i),
        )
        n_overflow += overflowed
        hazard_trt[i] = d.hazard_trt
        hazard_pbo[i] = d.hazard_pbo
        hazard_ratio[i] = d.hazard_ratio
        pred_trt[i] = d.predictive_time_trt
        pred_pbo[i] = d.predictive_time_pbo

    return DerivedQuantities(
        hazard_trt=hazard_trt,
        hazard_pbo=hazard_pbo,
        hazard_ratio=hazard_ratio,
        predictive_time_trt=pred_trt,
        predictive_time_pbo=pred_pbo,
        n_overflow=n_overflow,
    )
