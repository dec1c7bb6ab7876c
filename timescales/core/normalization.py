"""
Column scaling for ACF maps.

Autocorrelation decays with lag, so the raw map is dominated by the short
lags. Scaling each lag (column) across windows puts every time scale on
the same footing and shows when, not how strongly, a lag is elevated.

    zscore  centre on the column mean, divide by the sample sd
    robust  centre on the column median, divide by the interquartile range
    none    copy

NaN cells (sparse windows) are left out of the column statistics and stay
NaN. A column with no spread is centred only.
"""

import warnings
import numpy as np
from typing import Dict, Any, Optional, Tuple
from enum import Enum

# Spread below this is treated as a constant column
MIN_SPREAD = 1e-10


class NormMethod(str, Enum):
    ZSCORE = "zscore"
    ROBUST = "robust"
    NONE = "none"


def _safe_spread(spread: np.ndarray) -> np.ndarray:
    spread = np.where(np.isfinite(spread), spread, 1.0)
    return np.where(spread < MIN_SPREAD, 1.0, spread)


def compute_zscore(
    data: np.ndarray,
    axis: Optional[int] = 0,
    ddof: int = 1,
) -> Tuple[np.ndarray, Dict[str, Any]]:
    """(x - mean) / sd along `axis`; returns the scaled array and its centre/scale."""
    values = np.asarray(data, dtype=np.float64)

    # All-NaN columns come from windows that were too sparse
    with warnings.catch_warnings():
        warnings.simplefilter('ignore', category=RuntimeWarning)
        centre = np.nanmean(values, axis=axis, keepdims=True)
        scale = _safe_spread(np.nanstd(values, axis=axis, ddof=ddof, keepdims=True))

    return (values - centre) / scale, {
        'method': NormMethod.ZSCORE.value,
        'center': np.squeeze(centre),
        'scale': np.squeeze(scale),
    }


def compute_robust(
    data: np.ndarray,
    axis: Optional[int] = 0,
    quantile_range: Tuple[float, float] = (25.0, 75.0),
) -> Tuple[np.ndarray, Dict[str, Any]]:
    """(x - median) / IQR along `axis`, for maps with a few extreme windows."""
    values = np.asarray(data, dtype=np.float64)
    lo, hi = quantile_range

    with warnings.catch_warnings():
        warnings.simplefilter('ignore', category=RuntimeWarning)
        centre = np.nanmedian(values, axis=axis, keepdims=True)
        q_lo, q_hi = np.nanpercentile(values, [lo, hi], axis=axis, keepdims=True)

    scale = _safe_spread(q_hi - q_lo)
    return (values - centre) / scale, {
        'method': NormMethod.ROBUST.value,
        'center': np.squeeze(centre),
        'scale': np.squeeze(scale),
    }


def normalize(
    data: np.ndarray,
    method: str = "zscore",
    axis: Optional[int] = 0,
    **kwargs
) -> Tuple[np.ndarray, Dict[str, Any]]:
    """
    Scale `data` with the named method.

    Args:
        data: windows x lags array
        method: 'zscore', 'robust' or 'none'
        axis: 0 scales each column, 1 each row, None the whole array
        **kwargs: passed to the method (ddof, quantile_range)

    Returns:
        (scaled array, dict with method, center, scale)

    Raises:
        ValueError: unknown method
    """
    method = NormMethod(str(method).lower())

    if method is NormMethod.ZSCORE:
        return compute_zscore(data, axis=axis, **kwargs)
    if method is NormMethod.ROBUST:
        return compute_robust(data, axis=axis, **kwargs)
    return np.array(data, dtype=np.float64), {'method': NormMethod.NONE.value}
