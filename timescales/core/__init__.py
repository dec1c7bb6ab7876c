"""
timescales core
===============

Compute engines. Arrays and DataFrames in, numbers and DataFrames out.
No file I/O.

Structure:
    matrix.py                 - shift matrices, AR companion matrix, eigenvalues
    aggregation.py            - block aggregation of a series (agg_ts)
    acf.py                    - detrending, ACF, lag-1 autocorrelation
    rolling.py                - rolling wrapper, acf_roll, roll_ac
    acf_map.py                - AcfMap (windows x lags) and its operations
    normalization.py          - column-wise standardisation
    critical_slowing_down.py  - Kendall tau trend of indicators
    scales.py                 - sampling/window parameters, interval_name
    variables.py              - Variable and LakeRole enums
"""

from timescales.core._errors import InvalidArgument
from timescales.core.matrix import (
    diag_extend,
    companion_matrix,
    ar_fit,
    ar_eigenvalues,
    max_modulus,
)
from timescales.core.aggregation import agg_ts
from timescales.core.acf import acf, acf_confidence, ac1, detrend
from timescales.core.acf_map import AcfMap
from timescales.core.rolling import acf_roll, roll_ac
from timescales.core.rolling import compute as rolling_compute
from timescales.core.normalization import normalize, NormMethod
from timescales.core.critical_slowing_down import kendall_trend
from timescales.core.scales import TimescaleParams, interval_name
from timescales.core.variables import Variable, LakeRole

__all__ = [
    'InvalidArgument',
    'diag_extend',
    'companion_matrix',
    'ar_fit',
    'ar_eigenvalues',
    'max_modulus',
    'agg_ts',
    'acf',
    'acf_confidence',
    'ac1',
    'detrend',
    'AcfMap',
    'acf_roll',
    'roll_ac',
    'rolling_compute',
    'normalize',
    'NormMethod',
    'kendall_trend',
    'TimescaleParams',
    'interval_name',
    'Variable',
    'LakeRole',
]
