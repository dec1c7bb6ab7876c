"""
Critical Slowing Down Trend Engine

Near a critical transition, recovery from perturbations slows down and
lag-1 autocorrelation rises (Scheffer 2009). A rolling autocorrelation
series is therefore summarised by the strength of its trend.

Kendall tau is used rather than a regression slope because it is robust
to outliers and to the non-linear shape of the rise (Dakos et al. 2012).
The Theil-Sen slope is reported alongside for scale.

Outputs:
    - tau: Kendall rank correlation of indicator vs time
    - tau_pvalue: Two-sided p-value
    - slope: Theil-Sen slope (indicator units per time unit)
    - n_points: Finite points used
"""

import numpy as np
from typing import Dict, Any, Optional
from scipy.stats import kendalltau, theilslopes

MIN_POINTS = 5


def kendall_trend(
    times: np.ndarray,
    values: np.ndarray,
    min_points: int = MIN_POINTS,
) -> Dict[str, Any]:
    """
    Trend of an early warning indicator against time.

    Args:
        times: Time of each indicator value (e.g. window end day of year)
        values: Indicator series (NaN allowed)
        min_points: Fewer finite points than this returns NaN statistics

    Returns:
        dict with tau, tau_pvalue, slope, n_points
    """
    times = np.asarray(times, dtype=np.float64).ravel()
    values = np.asarray(values, dtype=np.float64).ravel()

    valid = np.isfinite(times) & np.isfinite(values)
    n = int(valid.sum())
    if n < min_points:
        return _empty_result(n)

    t = times[valid]
    y = values[valid]
    if np.ptp(y) == 0 or np.ptp(t) == 0:
        return _empty_result(n)

    tau, p = kendalltau(t, y)
    slope = theilslopes(y, t)[0]

    return {
        'tau': _finite_or_nan(tau),
        'tau_pvalue': _finite_or_nan(p),
        'slope': _finite_or_nan(slope),
        'n_points': n,
    }


def _empty_result(n: int) -> Dict[str, Any]:
    return {
        'tau': np.nan,
        'tau_pvalue': np.nan,
        'slope': np.nan,
        'n_points': n,
    }


def _finite_or_nan(x: Optional[float]) -> float:
    return float(x) if x is not None and np.isfinite(x) else np.nan
