"""
Solution wrapper for Bayesian Weibull AFT fits.

WeibullAFTSolution wraps a Result[WeibullAFTParams] and exposes posterior
draws, derived quantities, credible intervals, posterior-predictive
survival curves and a text summary.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Literal

import numpy as np
from numpy.typing import NDArray

from pyaft.aft._common import AFTConfig, PosteriorDraw, WeibullAFTParams
from pyaft.core.result import Result

Quantity = Literal["alpha", "hazard_trt", "hazard_pbo", "hazard_ratio"]


@dataclass
class WeibullAFTSolution:
    """
    User-facing posterior sample of a Weibull AFT fit.

    Coefficient draws are indexed by name via coef(); the named scalar
    quantities via credible_interval().
    """
    _result: Result[WeibullAFTParams]
    _config: AFTConfig

    # --- Posterior draws ---

    @property
    def beta(self) -> NDArray:
        """Coefficient draws, shape (M, p)."""
        return self._result.params.beta

    @property
    def alpha(self) -> NDArray:
        """Weibull shape draws, shape (M,)."""
        return self._result.params.alpha

    @property
    def coef_names(self) -> tuple[str, ...]:
        return self._result.params.coef_names

    @property
    def treatment_name(self) -> str:
        return self.coef_names[self._result.params.treatment_index]

    @property
    def hazard_trt(self) -> NDArray:
        return self._result.params.derived.hazard_trt

    @property
    def hazard_pbo(self) -> NDArray:
        return self._result.params.derived.hazard_pbo

    @property
    def hazard_ratio(self) -> NDArray:
        """exp(beta_treatment * alpha) per draw, shape (M,)."""
        return self._result.params.derived.hazard_ratio

    @property
    def predictive_time_trt(self) -> NDArray:
        """Posterior-predictive survival times for treatment, shape (M, K)."""
        return self._result.params.derived.predictive_time_trt

    @property
    def predictive_time_pbo(self) -> NDArray:
        """Posterior-predictive survival times for placebo, shape (M, K)."""
        return self._result.params.derived.predictive_time_pbo

    @property
    def n_draws(self) -> int:
        return self._result.params.n_draws

    @property
    def map_theta(self) -> NDArray | None:
        """Posterior mode used as the chain's starting point, if computed."""
        return self._result.params.map_theta

    def coef(self, name: str) -> NDArray:
        """Draws of one coefficient by name."""
        try:
            j = self.coef_names.index(name)
        except ValueError:
            raise KeyError(
                f"no coefficient {name!r}; available: {list(self.coef_names)}"
            ) from None
        return self.beta[:, j]

    def draw(self, i: int) -> PosteriorDraw:
        """Posterior draw i as an immutable record."""
        d = self._result.params.derived
        return PosteriorDraw(
            beta=self.beta[i].copy(),
            alpha=float(self.alpha[i]),
            hazard_trt=float(d.hazard_trt[i]),
            hazard_pbo=float(d.hazard_pbo[i]),
            hazard_ratio=float(d.hazard_ratio[i]),
            predictive_time_trt=d.predictive_time_trt[i].copy(),
            predictive_time_pbo=d.predictive_time_pbo[i].copy(),
        )

    def draws(self) -> Iterator[PosteriorDraw]:
        """Iterate over every posterior draw in chain order."""
        for i in range(self.n_draws):
            yield self.draw(i)

    # --- Summaries ---

    def _quantity(self, quantity: str) -> NDArray:
        if quantity in ("alpha", "hazard_trt", "hazard_pbo", "hazard_ratio"):
            return getattr(self, quantity)
        return self.coef(quantity)

    def credible_interval(
        self, quantity: Quantity | str, level: float = 0.95
    ) -> tuple[float, float]:
        """Equal-tailed credible interval of a scalar quantity or coefficient."""
        if not 0 < level < 1:
            raise ValueError(f"level must be in (0, 1), got {level}")
        x = self._quantity(quantity)
        lo, hi = np.nanquantile(x, [(1 - level) / 2, 1 - (1 - level) / 2])
        return float(lo), float(hi)

    def predictive_survival(
        self,
        times,
        group: Literal["treatment", "placebo"] = "treatment",
        level: float = 0.95,
    ) -> dict[str, NDArray]:
        """Posterior-predictive survival curve.

        For each posterior draw, S(t) is the fraction of its predictive
        times exceeding t; the curve is summarised across draws.

        Returns
        -------
        dict with 'time', 'mean', 'lower', 'upper' arrays
        """
        if group == "treatment":
            pred = self.predictive_time_trt
        elif group == "placebo":
            pred = self.predictive_time_pbo
        else:
            raise ValueError(
                f"group must be 'treatment' or 'placebo', got {group!r}"
            )
        if pred.shape[1] == 0:
            raise ValueError("fit was run with predictive_draws=0")
        if not 0 < level < 1:
            raise ValueError(f"level must be in (0, 1), got {level}")

        times = np.atleast_1d(np.asarray(times, dtype=np.float64))
        pred = pred[~np.isnan(pred[:, 0])]
        # (M, T): per-draw empirical survival at each requested time
        surv = np.column_stack([(pred > t).mean(axis=1) for t in times])
        lower, upper = np.quantile(surv, [(1 - level) / 2, 1 - (1 - level) / 2], axis=0)
        return {
            'time': times,
            'mean': surv.mean(axis=0),
            'lower': lower,
            'upper': upper,
        }

    # --- Metadata ---

    @property
    def config(self) -> AFTConfig:
        return self._config

    @property
    def acceptance_rate(self) -> float:
        return self._result.info['sampler'].get('acceptance_rate', float('nan'))

    @property
    def n_overflow(self) -> int:
        """Draws with at least one overflowed hazard or predictive time."""
        return self._result.params.derived.n_overflow

    @property
    def n_observations(self) -> int:
        return self._result.params.n_observations

    @property
    def n_events(self) -> int:
        return self._result.params.n_events

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    # --- Display ---

    def summary(self, level: float = 0.95) -> str:
        """Posterior summary table: mean, sd, median and credible interval."""
        pct = int(round(level * 100))
        lines = []
        lines.append("Call: weibull_aft()")
        lines.append("")
        lines.append(
            f"  n= {self.n_observations}, number of events= {self.n_events}, "
            f"draws= {self.n_draws}"
        )
        lines.append(f"  sampler= {self.backend_name}, "
                     f"acceptance= {self.acceptance_rate:.3f}")
        lines.append("")
        lines.append(
            f"  {'':>14s}  {'mean':>10s}  {'sd':>10s}  {'median':>10s}  "
            f"{f'lower {pct}%':>10s}  {f'upper {pct}%':>10s}"
        )

        rows = list(self.coef_names) + ["alpha", "hazard_ratio"]
        for name in rows:
            x = self._quantity(name)
            lo, hi = self.credible_interval(name, level)
            lines.append(
                f"  {name:>14s}  {np.nanmean(x):10.4f}  {np.nanstd(x, ddof=1):10.4f}  "
                f"{np.nanmedian(x):10.4f}  {lo:10.4f}  {hi:10.4f}"
            )

        if self.warnings:
            lines.append("")
            for w in self.warnings:
                lines.append(f"  Warning: {w}")

        return "\n".join(lines)

    def __repr__(self) -> str:
        hr = np.nanmedian(self.hazard_ratio) if self.n_draws else float('nan')
        return (
            f"WeibullAFTSolution(n={self.n_observations}, "
            f"events={self.n_events}, draws={self.n_draws}, "
            f"hazard_ratio~{hr:.4g})"
        )
