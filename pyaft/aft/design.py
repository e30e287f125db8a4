"""
AFTDesign: immutable container for right-censored time-to-event data.

Wraps time, event indicator and covariates, resolves which covariate
columns are the intercept and the treatment indicator, and splits the
observations into an event group and a right-censored group.
Validates inputs at construction time; all downstream code trusts clean data.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np
from numpy.typing import NDArray

from pyaft.core.exceptions import InvalidDataError, ValidationError
from pyaft.core.validation import check_array, check_finite

INTERCEPT_NAME = "(Intercept)"


@dataclass(frozen=True)
class Observation:
    """One subject: observed (or censoring) time, censoring flag, covariates."""

    time: float
    censored: bool
    covariates: tuple[float, ...]

    @classmethod
    def from_event(cls, time, event, covariates) -> Observation:
        """Build from an event indicator (1 = event observed, 0 = censored)."""
        return cls(
            time=float(time),
            censored=not bool(event),
            covariates=tuple(float(c) for c in covariates),
        )


@dataclass(frozen=True)
class SurvivalGroup:
    """Parallel (times, covariates) arrays for one side of the partition.

    ``index`` holds each row's position in the original input so the
    alignment between ``time`` and ``X`` can be traced back.
    """

    time: NDArray       # (m,)
    X: NDArray          # (m, p)
    index: NDArray      # (m,) int, original row positions

    @property
    def n(self) -> int:
        return len(self.time)


@dataclass(frozen=True)
class CensoringPartition:
    """Event and right-censored groups. Every input row is in exactly one."""

    event: SurvivalGroup
    censored: SurvivalGroup

    @property
    def n(self) -> int:
        return self.event.n + self.censored.n

    @property
    def p(self) -> int:
        return self.event.X.shape[1]


def partition_arrays(
    time: NDArray,
    censored: NDArray,
    X: NDArray,
    *,
    require_both_groups: bool = False,
) -> CensoringPartition:
    """Split validated arrays into event and censored groups.

    Parameters
    ----------
    time : NDArray
        (n,) observed or censoring times, all > 0.
    censored : NDArray
        (n,) boolean, True for right-censored rows.
    X : NDArray
        (n, p) covariate matrix.
    require_both_groups : bool
        Raise if either group would be empty.

    Returns
    -------
    CensoringPartition

    Raises
    ------
    InvalidDataError
        If times are non-finite or not strictly positive, row counts
        mismatch, or a required group is empty.
    """
    n = len(time)
    if X.shape[0] != n or len(censored) != n:
        raise InvalidDataError(
            f"row counts must match: time={n}, censored={len(censored)}, "
            f"X={X.shape[0]}",
            field="X",
        )
    if not np.all(np.isfinite(time)):
        raise InvalidDataError("time contains non-finite values", field="time")
    if np.any(time <= 0):
        bad = np.flatnonzero(time <= 0)
        raise InvalidDataError(
            f"time must be > 0; {len(bad)} non-positive value(s), "
            f"first at row {int(bad[0])} (time={time[bad[0]]})",
            field="time",
        )

    censored = np.asarray(censored, dtype=bool)
    event_idx = np.flatnonzero(~censored)
    cens_idx = np.flatnonzero(censored)

    if require_both_groups:
        if len(event_idx) == 0:
            raise InvalidDataError(
                "no observed events; at least one uncensored observation is required",
                field="event",
            )
        if len(cens_idx) == 0:
            raise InvalidDataError(
                "no censored observations; at least one is required",
                field="event",
            )

    return CensoringPartition(
        event=SurvivalGroup(time=time[event_idx], X=X[event_idx], index=event_idx),
        censored=SurvivalGroup(time=time[cens_idx], X=X[cens_idx], index=cens_idx),
    )


def partition_observations(
    observations: Iterable[Observation],
    *,
    require_both_groups: bool = False,
) -> CensoringPartition:
    """Partition a sequence of Observations into event and censored groups.

    Raises
    ------
    InvalidDataError
        If there are no observations, covariate vectors differ in length,
        or any time is non-positive or non-finite.
    """
    observations = list(observations)
    if not observations:
        raise InvalidDataError("at least one observation is required", field="time")

    p = len(observations[0].covariates)
    for i, obs in enumerate(observations):
        if len(obs.covariates) != p:
            raise InvalidDataError(
                f"observation {i} has {len(obs.covariates)} covariates, expected {p}",
                field="X",
            )

    time = np.array([obs.time for obs in observations], dtype=np.float64)
    censored = np.array([obs.censored for obs in observations], dtype=bool)
    X = np.array([obs.covariates for obs in observations], dtype=np.float64).reshape(-1, p)

    return partition_arrays(time, censored, X, require_both_groups=require_both_groups)


def _resolve_column(key, names: Sequence[str], role: str) -> int:
    if isinstance(key, (int, np.integer)) and not isinstance(key, bool):
        if not 0 <= key < len(names):
            raise InvalidDataError(
                f"{role} index {key} out of range for {len(names)} covariates",
                field="X",
            )
        return int(key)
    try:
        return list(names).index(key)
    except ValueError:
        raise InvalidDataError(
            f"{role} column {key!r} not found; covariates are {list(names)}",
            field="X",
        ) from None


@dataclass(frozen=True)
class AFTDesign:
    """Immutable Weibull AFT data container.

    Parameters
    ----------
    time : NDArray
        (n,) time to event or censoring. Strictly positive.
    event : NDArray
        (n,) event indicator: 1 = event observed, 0 = right-censored.
    X : NDArray
        (n, p) covariate matrix, intercept column included.
    covariate_names : tuple of str
        One name per column of X.
    intercept_index : int
        Column of X holding the constant 1.0 intercept.
    treatment_index : int
        Column of X holding the binary treatment indicator.
    partition : CensoringPartition
        Event / censored split of the rows.
    """

    time: NDArray
    event: NDArray
    X: NDArray
    covariate_names: tuple[str, ...]
    intercept_index: int
    treatment_index: int
    partition: CensoringPartition

    @classmethod
    def for_aft(
        cls,
        time,
        event,
        X=None,
        *,
        covariate_names: Sequence[str] | None = None,
        add_intercept: bool = True,
        intercept: str | int = INTERCEPT_NAME,
        treatment: str | int | None = None,
        require_both_groups: bool = False,
    ) -> AFTDesign:
        """Create and validate Weibull AFT data.

        Parameters
        ----------
        time : array-like
            Time to event or censoring.
        event : array-like
            Event indicator (0/1 or bool).
        X : array-like or None
            Covariates (n, k), without the intercept when add_intercept=True.
        covariate_names : sequence of str or None
            Names for the columns of X. Defaults to x0, x1, ...
        add_intercept : bool
            Prepend a constant 1.0 column named "(Intercept)".
        intercept : str or int
            Name or column index of the intercept (after it has been added).
        treatment : str or int or None
            Name or column index of the binary treatment indicator. May be
            omitted only when exactly one non-intercept column exists.
        require_both_groups : bool
            Reject data in which every row is an event or every row is censored.

        Returns
        -------
        AFTDesign

        Raises
        ------
        InvalidDataError
            If inputs are invalid.
        """
        try:
            time = check_array(time, "time").ravel()
            event = check_array(event, "event").ravel()
        except ValidationError as e:
            raise InvalidDataError(str(e)) from e

        n = len(time)
        if n == 0:
            raise InvalidDataError("time must have at least one observation", field="time")

        if len(event) != n:
            raise InvalidDataError(
                f"time and event must have the same length: got {n} and {len(event)}",
                field="event",
            )

        try:
            check_finite(time, "time")
        except ValidationError as e:
            raise InvalidDataError(str(e), field="time") from e

        unique_events = np.unique(event)
        if not np.all(np.isin(unique_events, [0.0, 1.0])):
            raise InvalidDataError(
                f"event must contain only 0 and 1, got unique values: {unique_events}",
                field="event",
            )

        if X is None:
            X_arr = np.empty((n, 0), dtype=np.float64)
        else:
            try:
                X_arr = check_array(X, "X")
            except ValidationError as e:
                raise InvalidDataError(str(e), field="X") from e
            if X_arr.ndim == 1:
                X_arr = X_arr.reshape(-1, 1)
            if X_arr.ndim != 2:
                raise InvalidDataError(f"X must be 1D or 2D, got {X_arr.ndim}D", field="X")
            if X_arr.shape[0] != n:
                raise InvalidDataError(
                    f"X must have {n} rows to match time, got {X_arr.shape[0]}",
                    field="X",
                )
            try:
                check_finite(X_arr, "X")
            except ValidationError as e:
                raise InvalidDataError(str(e), field="X") from e

        if covariate_names is None:
            names = [f"x{j}" for j in range(X_arr.shape[1])]
        else:
            names = [str(c) for c in covariate_names]
            if len(names) != X_arr.shape[1]:
                raise InvalidDataError(
                    f"covariate_names has {len(names)} entries for {X_arr.shape[1]} columns",
                    field="X",
                )

        if add_intercept:
            if INTERCEPT_NAME in names:
                raise InvalidDataError(
                    f"X already has a column named {INTERCEPT_NAME!r}; "
                    f"pass add_intercept=False",
                    field="X",
                )
            X_arr = np.column_stack([np.ones(n), X_arr])
            names = [INTERCEPT_NAME] + names

        if len(set(names)) != len(names):
            raise InvalidDataError(f"covariate names must be unique: {names}", field="X")

        intercept_index = _resolve_column(intercept, names, "intercept")
        if not np.all(X_arr[:, intercept_index] == 1.0):
            raise InvalidDataError(
                f"intercept column {names[intercept_index]!r} must be constant 1.0",
                field="X",
            )

        if treatment is None:
            others = [j for j in range(len(names)) if j != intercept_index]
            if len(others) != 1:
                raise InvalidDataError(
                    f"treatment must be named explicitly when there are "
                    f"{len(others)} non-intercept covariates",
                    field="X",
                )
            treatment_index = others[0]
        else:
            treatment_index = _resolve_column(treatment, names, "treatment")
        if treatment_index == intercept_index:
            raise InvalidDataError(
                "treatment and intercept must be different columns", field="X"
            )
        if not np.all(np.isin(X_arr[:, treatment_index], [0.0, 1.0])):
            raise InvalidDataError(
                f"treatment column {names[treatment_index]!r} must be coded 0/1",
                field="X",
            )

        partition = partition_arrays(
            time, event == 0.0, X_arr, require_both_groups=require_both_groups
        )

        return cls(
            time=time,
            event=event,
            X=X_arr,
            covariate_names=tuple(names),
            intercept_index=intercept_index,
            treatment_index=treatment_index,
            partition=partition,
        )

    @classmethod
    def from_observations(
        cls,
        observations: Iterable[Observation],
        **kwargs,
    ) -> AFTDesign:
        """Create from Observation records; keyword arguments as for_aft()."""
        observations = list(observations)
        if not observations:
            raise InvalidDataError("at least one observation is required", field="time")
        p = len(observations[0].covariates)
        for i, obs in enumerate(observations):
            if len(obs.covariates) != p:
                raise InvalidDataError(
                    f"observation {i} has {len(obs.covariates)} covariates, expected {p}",
                    field="X",
                )
        time = [obs.time for obs in observations]
        event = [0.0 if obs.censored else 1.0 for obs in observations]
        X = np.array([obs.covariates for obs in observations], dtype=np.float64).reshape(-1, p)
        return cls.for_aft(time, event, X, **kwargs)

    @property
    def n(self) -> int:
        """Number of observations."""
        return len(self.time)

    @property
    def p(self) -> int:
        """Number of regression coefficients (intercept included)."""
        return self.X.shape[1]

    @property
    def n_events(self) -> int:
        """Number of observed events."""
        return self.partition.event.n

    @property
    def n_censored(self) -> int:
        return self.partition.censored.n

    def observations(self) -> list[Observation]:
        """Rows as Observation records, in input order."""
        return [
            Observation.from_event(t, e, row)
            for t, e, row in zip(self.time, self.event, self.X)
        ]
