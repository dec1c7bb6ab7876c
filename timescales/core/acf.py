"""
Autocorrelation Engine.

Sample autocorrelation function (ACF) with missing values passed through,
and linear detrending. Lag-1 autocorrelation of a detrended window is the
AR(1) early warning indicator: it rises as recovery from perturbations
slows down near a critical transition (Scheffer 2009, Dakos et al. 2012).

Missing values are handled pairwise. For lag k the lagged products are
summed over pairs where both values are present and divided by
(n_pairs + k), then every lag is normalised by lag 0. On complete data this
is the textbook estimator sum(x_t x_{t+k}) / sum(x_t^2).
"""

import numpy as np
from typing import Dict, Optional
from scipy.stats import norm

from timescales.core._errors import InvalidArgument, check_int
from timescales.core.matrix import ar_fit, max_modulus

EPS = np.finfo(np.float64).eps


def detrend(x: np.ndarray) -> np.ndarray:
    """
    Remove the least-squares linear trend against sample index.

    Only non-missing points enter the fit. Missing positions stay NaN.
    Fewer than 2 valid points: the series is only demeaned.
    """
    x = np.asarray(x, dtype=np.float64).ravel()
    out = np.full_like(x, np.nan)
    valid = np.isfinite(x)
    n_valid = valid.sum()
    if n_valid == 0:
        return out

    t = np.arange(len(x), dtype=np.float64)[valid]
    if n_valid < 2:
        out[valid] = x[valid] - x[valid].mean()
        return out

    slope, intercept = np.polyfit(t, x[valid], 1)
    resid = x[valid] - (slope * t + intercept)

    # Residuals at rounding level are an exact line
    rounding = 16 * EPS * np.sqrt(len(resid)) * np.max(np.abs(x[valid]))
    resid[np.abs(resid) <= rounding] = 0.0
    out[valid] = resid
    return out


def acf(x: np.ndarray, lag_max: Optional[int] = None) -> np.ndarray:
    """
    Sample autocorrelation at lags 0..lag_max.

    Args:
        x: Series, may contain NaN
        lag_max: Largest lag (default 10 * log10(n), capped at n - 1)

    Returns:
        Array of length lag_max + 1. All NaN when fewer than 2 valid
        points or zero variance.
    """
    x = np.asarray(x, dtype=np.float64).ravel()
    n = len(x)

    if lag_max is None:
        lag_max = int(np.floor(10 * np.log10(n))) if n > 1 else 0
    lag_max = check_int(lag_max, 'lag_max')
    if lag_max < 0:
        raise InvalidArgument(f"lag_max must be >= 0, got {lag_max}")
    lag_max = min(lag_max, max(n - 1, 0))

    out = np.full(lag_max + 1, np.nan)
    valid = np.isfinite(x)
    if valid.sum() < 2:
        return out

    xc = np.where(valid, x - x[valid].mean(), 0.0)

    for lag in range(lag_max + 1):
        both = valid[:n - lag] & valid[lag:]
        n_pairs = both.sum()
        if n_pairs == 0:
            continue
        out[lag] = np.sum(xc[:n - lag] * xc[lag:]) / (n_pairs + lag)

    # Zero variance, relative to the scale of the data
    if not np.isfinite(out[0]) or out[0] <= EPS * np.mean(x[valid] ** 2):
        return np.full(lag_max + 1, np.nan)

    return out / out[0]


def acf_confidence(n: int, alpha: float = 0.05) -> float:
    """Half-width of the white-noise band: z_{1-alpha/2} / sqrt(n)."""
    if n < 1:
        return np.nan
    return float(norm.ppf(1 - alpha / 2) / np.sqrt(n))


def ac1(x: np.ndarray, detrend_first: bool = True) -> float:
    """Lag-1 autocorrelation of one window."""
    x = np.asarray(x, dtype=np.float64).ravel()
    if len(x) < 2:
        return np.nan
    if detrend_first:
        x = detrend(x)
    return float(acf(x, lag_max=1)[1])


def compute(
    y: np.ndarray,
    detrend_first: bool = True,
    min_valid: int = 2,
    ar_order: int = 1,
) -> Dict[str, float]:
    """
    Autocorrelation indicators of one window, for the rolling wrapper.

    Args:
        y: Window values (NaN allowed)
        detrend_first: Remove a linear trend before both indicators
        min_valid: Fewer valid values (or fewer than ar_order + 2) gives NaN
        ar_order: Order of the AR fit behind ar_max_modulus

    Returns:
        dict with ac1, ar_max_modulus (dominant companion eigenvalue
        modulus of the AR fit), n_valid
    """
    y = np.asarray(y, dtype=np.float64).ravel()
    n_valid = int(np.isfinite(y).sum())
    if n_valid < max(min_valid, ar_order + 2):
        return {'ac1': np.nan, 'ar_max_modulus': np.nan, 'n_valid': float(n_valid)}

    work = detrend(y) if detrend_first else y
    return {
        'ac1': ac1(work, detrend_first=False),
        'ar_max_modulus': max_modulus(ar_fit(work, order=ar_order)),
        'n_valid': float(n_valid),
    }
