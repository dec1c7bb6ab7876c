"""
Shared fixtures: a small two-lake sonde dataset with manifest.yaml.

Hourly samples over 20 days keep every stage fast while still giving
dozens of rolling windows.
"""

import numpy as np
import polars as pl
import pytest
import yaml

N_DAYS = 20
SAMPLES_PER_DAY = 24
START_DOY = 150.0

MANIFEST = {
    'paths': {'raw': 'sos_data.csv', 'output_dir': 'output'},
    'lakes': {'Paul': 'reference', 'Peter': 'manipulated'},
    'variables': ['chla'],
    'year': 2015,
    'timescales': {
        'sample_minutes': 60,
        'window_days': 4,
        'agg_steps': [1, 6],
        'window_starts_per_day': 4,
        'acf_lag_days': 0.5,
        'detrend': True,
        'min_valid_fraction': 0.5,
        'ar_order': 1,
    },
}


def _lake_series(phi_start, phi_end, n, seed):
    rng = np.random.default_rng(seed)
    phi = np.linspace(phi_start, phi_end, n)
    x = np.zeros(n)
    for t in range(1, n):
        x[t] = phi[t] * x[t - 1] + rng.normal(scale=0.2)
    return np.exp(1.0 + x)


def make_raw(n_days=N_DAYS, missing_every=0):
    """Wide raw table with sonde column names."""
    n = n_days * SAMPLES_PER_DAY
    doy = START_DOY + np.arange(n) / SAMPLES_PER_DAY
    frames = []
    for lake, (lo, hi), seed in [('Paul', (0.3, 0.3), 1), ('Peter', (0.2, 0.9), 2)]:
        chla = _lake_series(lo, hi, n, seed)
        if missing_every:
            chla[::missing_every] = np.nan
        frames.append(pl.DataFrame({
            'Year': [2015] * n,
            'Lake': [lake] * n,
            'DoY': doy,
            'Temp_HYLB': np.full(n, 20.0),
            'Chla_Conc_HYLB': chla,
        }))
    return pl.concat(frames)


@pytest.fixture
def raw():
    return make_raw()


@pytest.fixture
def data_dir(tmp_path, raw):
    """Data directory with manifest.yaml and sos_data.csv."""
    raw.write_csv(tmp_path / 'sos_data.csv')
    with open(tmp_path / 'manifest.yaml', 'w') as f:
        yaml.safe_dump(MANIFEST, f)
    return tmp_path
