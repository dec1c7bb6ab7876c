"""
timescales defaults

Single source of truth for pipeline defaults. manifest.yaml overrides any
of these per dataset.
"""

from typing import Any, Dict, List

# ============================================================
# SAMPLING / WINDOWING
# ============================================================
# Sensors log every 5 minutes. Windows cover 28 days and start 4 times a
# day. Aggregations: 5 min, 1 hr, 1 day, 2 days.

DEFAULT_TIMESCALES: Dict[str, Any] = {
    'sample_minutes': 5,
    'window_days': 28,
    'agg_steps': [1, 12, 288, 576],
    'window_starts_per_day': 4,
    'acf_lag_days': 2,
    'detrend': True,
    'min_valid_fraction': 0.5,
    'ar_order': 1,
}

# ============================================================
# LAKES
# ============================================================
# Peter was fertilised to push it toward a transition; Paul is the
# unmanipulated reference.

DEFAULT_LAKES: Dict[str, str] = {
    'Paul': 'reference',
    'Peter': 'manipulated',
}

DEFAULT_VARIABLES: List[str] = ['chla']

# Raw column -> canonical column. Columns not listed keep their names.
DEFAULT_COLUMNS: Dict[str, str] = {
    'Year': 'year',
    'Lake': 'lake',
    'DoY': 'doy',
    'DateTime': 'datetime',
    'Temp_HYLB': 'wtr',
    'Chla_Conc_HYLB': 'chla',
    'BGA_Conc_HYLB': 'bga',
}

# Values are log-transformed before analysis
LOG_TRANSFORM: bool = True

# Lake label for manipulated - reference rows
DIFFERENCE_LABEL: str = 'difference'
