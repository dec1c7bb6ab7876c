"""
Aggregation Engine.

Coarsens a regularly sampled series by averaging consecutive,
non-overlapping blocks of `width` samples. Aggregating a 5-minute series
with width 12 gives an hourly series, width 288 a daily one.

Block means ignore missing values. A block with no valid values is NaN.
A trailing block shorter than `width` is dropped.
"""

import warnings
import numpy as np
from typing import Dict

from timescales.core._errors import InvalidArgument, check_int


def agg_ts(y: np.ndarray, x: np.ndarray, width: int) -> Dict[str, np.ndarray]:
    """
    Aggregate a series into blocks of `width` samples.

    Args:
        y: Measured values
        x: Time coordinate of each value (e.g. fractional day of year)
        width: Samples per block (1 = no aggregation)

    Returns:
        dict with x (block mean time), y (block mean value),
        n_valid (non-missing values per block)
    """
    width = check_int(width, 'width')
    if width < 1:
        raise InvalidArgument(f"width must be >= 1, got {width}")

    y = np.asarray(y, dtype=np.float64).ravel()
    x = np.asarray(x, dtype=np.float64).ravel()
    if len(x) != len(y):
        raise InvalidArgument(f"x and y lengths differ ({len(x)} vs {len(y)})")

    if width == 1:
        return {
            'x': x.copy(),
            'y': y.copy(),
            'n_valid': np.isfinite(y).astype(np.int64),
        }

    n_blocks = len(y) // width
    if n_blocks == 0:
        return {
            'x': np.empty(0),
            'y': np.empty(0),
            'n_valid': np.empty(0, dtype=np.int64),
        }

    y_blocks = y[:n_blocks * width].reshape(n_blocks, width)
    x_blocks = x[:n_blocks * width].reshape(n_blocks, width)
    n_valid = np.isfinite(y_blocks).sum(axis=1)

    # All-NaN blocks are expected at sensor gaps
    with warnings.catch_warnings():
        warnings.simplefilter('ignore', category=RuntimeWarning)
        y_mean = np.nanmean(y_blocks, axis=1)
        x_mean = np.nanmean(x_blocks, axis=1)

    return {
        'x': x_mean,
        'y': y_mean,
        'n_valid': n_valid.astype(np.int64),
    }
