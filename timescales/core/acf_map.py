"""
ACF map: autocorrelation by window (time) and lag (time scale).

Rows are rolling windows, stamped with the time at the window end.
Columns are lags 0..lag_max. A column is the rolling autocorrelation at
one time scale; a row is the ACF of one window.
"""

from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
import polars as pl

from timescales.core._errors import InvalidArgument, check_int
from timescales.core.normalization import normalize

Index = Union[np.ndarray, list, slice]


@dataclass(frozen=True, eq=False)
class AcfMap:
    """Windows x lags autocorrelation matrix with its axes."""

    values: np.ndarray
    times: np.ndarray
    lags: np.ndarray

    def __post_init__(self):
        values = np.asarray(self.values, dtype=np.float64)
        if values.ndim != 2:
            raise InvalidArgument(f"values must be 2-D, got shape {values.shape}")
        times = np.asarray(self.times, dtype=np.float64).ravel()
        lags = np.asarray(self.lags, dtype=np.int64).ravel()
        if values.shape != (len(times), len(lags)):
            raise InvalidArgument(
                f"values shape {values.shape} does not match "
                f"{len(times)} windows x {len(lags)} lags"
            )
        object.__setattr__(self, 'values', values)
        object.__setattr__(self, 'times', times)
        object.__setattr__(self, 'lags', lags)

    @property
    def shape(self):
        return self.values.shape

    @property
    def n_windows(self) -> int:
        return self.values.shape[0]

    def subset(self, rows: Optional[Index] = None, cols: Optional[Index] = None) -> 'AcfMap':
        """Keep the selected windows and lags (boolean masks or positions)."""
        rows = slice(None) if rows is None else rows
        cols = slice(None) if cols is None else cols
        return AcfMap(
            values=self.values[rows][:, cols],
            times=self.times[rows],
            lags=self.lags[cols],
        )

    def thin(self, every_row: int = 1, every_col: int = 1) -> 'AcfMap':
        """Keep every k-th window and lag, counting from 1 (k, 2k, ...)."""
        every_row = check_int(every_row, 'every_row')
        every_col = check_int(every_col, 'every_col')
        if every_row < 1 or every_col < 1:
            raise InvalidArgument("thinning factors must be >= 1")
        rows = (np.arange(1, self.values.shape[0] + 1) % every_row) == 0
        cols = (np.arange(1, self.values.shape[1] + 1) % every_col) == 0
        return self.subset(rows, cols)

    def window(self, max_time: Optional[float] = None, max_lag: Optional[int] = None) -> 'AcfMap':
        """Zoom to windows ending at or before max_time and lags up to max_lag."""
        rows = self.times <= max_time if max_time is not None else None
        cols = self.lags <= max_lag if max_lag is not None else None
        return self.subset(rows, cols)

    def at_lag(self, lag: int) -> np.ndarray:
        """Rolling autocorrelation at one lag."""
        hits = np.flatnonzero(self.lags == lag)
        if len(hits) == 0:
            raise InvalidArgument(f"lag {lag} not in map (lags {self.lags[0]}..{self.lags[-1]})")
        return self.values[:, hits[0]].copy()

    def scaled(self, method: str = 'zscore') -> 'AcfMap':
        """Standardise each lag (column) across windows."""
        values, _ = normalize(self.values, method=method, axis=0)
        return AcfMap(values=values, times=self.times, lags=self.lags)

    def limits(self) -> tuple:
        """(min, max) over finite entries, NaN when empty."""
        finite = self.values[np.isfinite(self.values)]
        if finite.size == 0:
            return (np.nan, np.nan)
        return (float(finite.min()), float(finite.max()))

    def __sub__(self, other: 'AcfMap') -> 'AcfMap':
        if not isinstance(other, AcfMap):
            return NotImplemented
        if self.shape != other.shape or not np.array_equal(self.lags, other.lags):
            raise InvalidArgument(
                f"cannot difference ACF maps of shape {self.shape} and {other.shape}"
            )
        return AcfMap(values=self.values - other.values, times=self.times, lags=self.lags)

    def to_frame(self, lake: Optional[str] = None) -> pl.DataFrame:
        """Long format: one row per (window, lag)."""
        n_win, n_lag = self.values.shape
        df = pl.DataFrame({
            'window': np.repeat(np.arange(n_win, dtype=np.int64), n_lag),
            'doy': np.repeat(self.times, n_lag),
            'lag': np.tile(self.lags, n_win),
            'acf': self.values.ravel(),
        })
        if lake is not None:
            df = df.with_columns(pl.lit(lake).alias('lake')).select(
                ['lake', 'window', 'doy', 'lag', 'acf']
            )
        return df
