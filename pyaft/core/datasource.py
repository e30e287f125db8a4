"""
Tabular DataSource for PyAFT.

DataSource is the "I have a table" abstraction. It knows nothing about
survival analysis; it just provides named float64 columns.

Usage:
    from pyaft.core.datasource import DataSource

    ds = DataSource.from_file("trial.csv")
    ds = DataSource.from_dataframe(df)

    ds.keys()          # frozenset({'time', 'event', 'treatment'})
    t = ds['time']
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from pyaft.core.exceptions import ValidationError

if TYPE_CHECKING:
    import pandas as pd


@dataclass
class DataSource:
    """
    Named-column data container. Domain-agnostic.

    Construct via factory classmethods, not directly.
    """
    _data: dict[str, NDArray]
    _n_observations: int = 0

    def keys(self) -> frozenset[str]:
        """Return the names of all available columns."""
        return frozenset(self._data.keys())

    def __getitem__(self, key: str) -> NDArray:
        """
        Access a named column.

        Raises:
            KeyError: If key not found, listing the available columns
        """
        if key not in self._data:
            raise KeyError(
                f"DataSource has no column '{key}'. Available: {sorted(self.keys())}"
            )
        return self._data[key]

    @property
    def n_observations(self) -> int:
        """Number of rows."""
        return self._n_observations

    def columns(self, names) -> NDArray:
        """Stack the named columns into an (n, len(names)) matrix."""
        names = list(names)
        if not names:
            return np.empty((self.n_observations, 0), dtype=np.float64)
        return np.column_stack([self[name] for name in names])

    # === Factory Methods ===

    @classmethod
    def from_file(cls, path: str | Path, *, columns: list[str] | None = None) -> DataSource:
        """Construct from a delimited text file (CSV, TSV)."""
        path = Path(path)
        suffix = path.suffix.lower()

        if suffix == '.csv':
            import pandas as pd
            df = pd.read_csv(path, usecols=columns)
        elif suffix == '.tsv':
            import pandas as pd
            df = pd.read_csv(path, sep='\t', usecols=columns)
        else:
            raise ValidationError(f"Unknown file format: {suffix}")
        return cls.from_dataframe(df)

    @classmethod
    def from_dataframe(cls, df: 'pd.DataFrame') -> DataSource:
        """Construct from pandas DataFrame. Every column must be numeric or boolean."""
        storage: dict[str, NDArray] = {}

        for col in df.columns:
            try:
                storage[str(col)] = df[col].to_numpy(dtype=np.float64)
            except (TypeError, ValueError) as e:
                raise ValidationError(
                    f"column '{col}' is not numeric: {e}"
                ) from e

        return cls(_data=storage, _n_observations=len(df))
