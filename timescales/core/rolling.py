"""
Generic Rolling Engine.

Applies any engine over sliding windows:

    rolling.compute(ac_engine, values, window=8064, stride=72)

plus the two rolling autocorrelation products used by the stages:

    acf_roll  - full ACF per window (windows x lags matrix, an AcfMap)
    roll_ac   - lag-1 autocorrelation per window for one series

Windows start at index 0 and advance by `stride`. Each result is stamped
with the time of the last sample in its window.
"""

import warnings
import numpy as np
import polars as pl
from typing import Dict, Any, Callable, Optional, Iterator, Tuple

from timescales.core._errors import InvalidArgument, check_int
from timescales.core.acf import acf, detrend
from timescales.core.acf import compute as ac_engine
from timescales.core.acf_map import AcfMap


def window_starts(n: int, window: int, stride: int) -> np.ndarray:
    """Start index of every complete window."""
    window = check_int(window, 'window')
    stride = check_int(stride, 'stride')
    if window < 1:
        raise InvalidArgument(f"window must be >= 1, got {window}")
    if stride < 1:
        raise InvalidArgument(f"stride must be >= 1, got {stride}")
    if n < window:
        return np.empty(0, dtype=np.int64)
    return np.arange(0, n - window + 1, stride, dtype=np.int64)


def iter_windows(
    values: np.ndarray,
    window: int,
    stride: int,
) -> Iterator[Tuple[int, np.ndarray]]:
    """Yield (start, chunk) for every complete window."""
    values = np.asarray(values).ravel()
    for start in window_starts(len(values), window, stride):
        yield int(start), values[start:start + window]


def compute(
    engine_fn: Callable[[np.ndarray], Dict[str, float]],
    values: np.ndarray,
    window: int,
    stride: int,
    engine_params: Optional[Dict[str, Any]] = None,
) -> Dict[str, np.ndarray]:
    """
    Apply any engine function over rolling windows.

    Args:
        engine_fn: Function with signature f(array) -> dict
        values: Signal values
        window: Window size
        stride: Step size between windows
        engine_params: Optional params to pass to engine_fn

    Returns:
        dict with rolling_{key} arrays (length n, NaN except at window ends)

    Example:
        from timescales.core.acf import compute as ac_engine
        out = compute(ac_engine, values, window=8064, stride=72)
        # {'rolling_ac1', 'rolling_ar_max_modulus', 'rolling_n_valid'}
    """
    values = np.asarray(values, dtype=np.float64).ravel()
    n = len(values)
    engine_params = engine_params or {}

    starts = window_starts(n, window, stride)
    if len(starts) == 0:
        # Not enough data - run engine once to get output keys
        sample = engine_fn(values, **engine_params)
        return {f'rolling_{k}': np.full(n, np.nan) for k in sample.keys()}

    results = None
    for start, chunk in iter_windows(values, window, stride):
        output = engine_fn(chunk, **engine_params)
        if results is None:
            results = {f'rolling_{k}': np.full(n, np.nan) for k in output.keys()}

        # Place results at window end
        idx = start + window - 1
        for key, val in output.items():
            results[f'rolling_{key}'][idx] = val

    return results


def acf_roll(
    x: np.ndarray,
    times: np.ndarray,
    width: int,
    by: int,
    lag_max: int,
    detrend_first: bool = True,
    min_valid: int = 2,
) -> AcfMap:
    """
    ACF of every rolling window.

    Args:
        x: Series (NaN allowed)
        times: Time of each sample, same length as x
        width: Window width in samples
        by: Samples between window starts
        lag_max: Largest lag (capped at width - 1)
        detrend_first: Remove a linear trend inside each window
        min_valid: Windows with fewer valid samples give a NaN row

    Returns:
        AcfMap with one row per window, columns lag 0..lag_max
    """
    x = np.asarray(x, dtype=np.float64).ravel()
    times = np.asarray(times, dtype=np.float64).ravel()
    if len(times) != len(x):
        raise InvalidArgument(f"x and times lengths differ ({len(x)} vs {len(times)})")

    lag_max = check_int(lag_max, 'lag_max')
    if lag_max < 0:
        raise InvalidArgument(f"lag_max must be >= 0, got {lag_max}")
    width = check_int(width, 'width')
    if lag_max > width - 1:
        warnings.warn(
            f"acf_roll: lag_max={lag_max} >= window width {width}, "
            f"capped at {max(width - 1, 0)}"
        )
        lag_max = max(width - 1, 0)

    starts = window_starts(len(x), width, by)
    values = np.full((len(starts), lag_max + 1), np.nan)

    for row, (_, chunk) in enumerate(iter_windows(x, width, by)):
        if np.isfinite(chunk).sum() < max(min_valid, 2):
            continue
        if detrend_first:
            chunk = detrend(chunk)
        values[row] = acf(chunk, lag_max=lag_max)

    return AcfMap(
        values=values,
        times=times[starts + width - 1] if len(starts) else np.empty(0),
        lags=np.arange(lag_max + 1),
    )


def roll_ac(
    x: np.ndarray,
    times: np.ndarray,
    width: int,
    by: int,
    detrend_first: bool = True,
    min_valid: int = 2,
    ar_order: int = 1,
) -> pl.DataFrame:
    """
    Lag-1 autocorrelation of every rolling window.

    Each window also gets an AR(ar_order) fit; ar_max_modulus is the
    modulus of the dominant companion eigenvalue.

    Returns:
        DataFrame with window, doy, window_start, window_end, n_valid,
        ac1, ar_max_modulus (doy is the time at the window end)
    """
    x = np.asarray(x, dtype=np.float64).ravel()
    times = np.asarray(times, dtype=np.float64).ravel()
    if len(times) != len(x):
        raise InvalidArgument(f"x and times lengths differ ({len(x)} vs {len(times)})")

    width = check_int(width, 'width')
    starts = window_starts(len(x), width, by)
    ends = starts + width - 1

    rolled = compute(
        ac_engine,
        x,
        window=width,
        stride=by,
        engine_params={
            'detrend_first': detrend_first,
            'min_valid': min_valid,
            'ar_order': ar_order,
        },
    )

    return pl.DataFrame({
        'window': np.arange(len(starts), dtype=np.int64),
        'doy': times[ends],
        'window_start': times[starts],
        'window_end': times[ends],
        'n_valid': rolled['rolling_n_valid'][ends].astype(np.int64),
        'ac1': rolled['rolling_ac1'][ends],
        'ar_max_modulus': rolled['rolling_ar_max_modulus'][ends],
    }, schema=ROLL_AC_SCHEMA)


ROLL_AC_SCHEMA = {
    'window': pl.Int64,
    'doy': pl.Float64,
    'window_start': pl.Float64,
    'window_end': pl.Float64,
    'n_valid': pl.Int64,
    'ac1': pl.Float64,
    'ar_max_modulus': pl.Float64,
}
