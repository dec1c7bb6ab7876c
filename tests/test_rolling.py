"""
Tests for the rolling engine, acf_roll and roll_ac.
"""

import numpy as np
import polars as pl
import pytest

from timescales.core import InvalidArgument
from timescales.core.acf import compute as ac1_engine
from timescales.core.rolling import (
    window_starts,
    compute,
    acf_roll,
    roll_ac,
    ROLL_AC_SCHEMA,
)


def _ar1(phi, n, seed=42):
    np.random.seed(seed)
    x = np.zeros(n)
    for t in range(1, n):
        x[t] = phi * x[t - 1] + np.random.randn()
    return x


class TestWindowStarts:

    @pytest.mark.parametrize("n,width,by", [(100, 10, 1), (100, 10, 7), (50, 50, 3), (1000, 288, 72)])
    def test_window_count(self, n, width, by):
        starts = window_starts(n, width, by)
        assert len(starts) == (n - width) // by + 1
        assert starts[0] == 0
        assert starts[-1] + width <= n

    def test_series_shorter_than_window(self):
        assert len(window_starts(5, 10, 1)) == 0

    def test_invalid_stride(self):
        with pytest.raises(InvalidArgument):
            window_starts(10, 3, 0)


class TestRollingCompute:

    def test_results_at_window_end(self):
        x = _ar1(0.5, 100)
        out = compute(ac1_engine, x, window=20, stride=10)

        assert set(out) == {'rolling_ac1', 'rolling_ar_max_modulus', 'rolling_n_valid'}
        assert len(out['rolling_ac1']) == 100
        filled = np.flatnonzero(np.isfinite(out['rolling_n_valid']))
        np.testing.assert_array_equal(filled, np.arange(19, 100, 10))

    def test_engine_params_passed(self):
        np.random.seed(0)
        x = np.random.randn(60) + 0.2 * np.arange(60)
        raw = compute(ac1_engine, x, window=30, stride=30, engine_params={'detrend_first': False})
        det = compute(ac1_engine, x, window=30, stride=30)
        assert raw['rolling_ac1'][29] > det['rolling_ac1'][29]

    def test_short_series_all_nan(self):
        out = compute(ac1_engine, np.arange(5.0), window=10, stride=1)
        assert np.all(np.isnan(out['rolling_ac1']))
        assert len(out['rolling_ac1']) == 5


class TestAcfRoll:

    def test_shape_and_axes(self):
        x = _ar1(0.6, 500)
        t = np.arange(500) / 10.0
        m = acf_roll(x, t, width=100, by=50, lag_max=8)

        assert m.shape == ((500 - 100) // 50 + 1, 9)
        np.testing.assert_array_equal(m.lags, np.arange(9))
        np.testing.assert_allclose(m.times, t[np.arange(99, 500, 50)])
        np.testing.assert_allclose(m.values[:, 0], 1.0)

    def test_lag_max_capped_at_width(self):
        with pytest.warns(UserWarning, match="capped"):
            m = acf_roll(np.random.randn(50), np.arange(50.0), width=10, by=5, lag_max=40)
        assert m.lags[-1] == 9

    def test_sparse_window_is_nan_row(self):
        x = _ar1(0.5, 200)
        x[:60] = np.nan
        m = acf_roll(x, np.arange(200.0), width=50, by=50, lag_max=3, min_valid=25)
        assert np.all(np.isnan(m.values[0]))
        assert np.all(np.isfinite(m.values[-1]))

    def test_length_mismatch(self):
        with pytest.raises(InvalidArgument):
            acf_roll(np.ones(10), np.ones(9), width=5, by=1, lag_max=2)


class TestRollAc:

    def test_columns_and_schema(self):
        x = _ar1(0.7, 400)
        t = np.arange(400) / 288.0
        df = roll_ac(x, t, width=100, by=25)

        assert isinstance(df, pl.DataFrame)
        assert df.columns == list(ROLL_AC_SCHEMA)
        assert df.height == (400 - 100) // 25 + 1
        assert df['window'].to_list() == list(range(df.height))
        np.testing.assert_allclose(df['doy'].to_numpy(), df['window_end'].to_numpy())
        assert (df['window_end'] > df['window_start']).all()

    def test_ac1_tracks_persistence(self):
        df = roll_ac(_ar1(0.9, 3000), np.arange(3000.0), width=1000, by=500)
        assert df['ac1'].mean() > 0.8
        # AR(1) modulus is |phi|, close to ac1
        np.testing.assert_allclose(df['ar_max_modulus'].to_numpy(), df['ac1'].to_numpy(), atol=0.05)

    def test_rising_persistence(self):
        """AC1 rises when the AR coefficient ramps up."""
        np.random.seed(9)
        n = 4000
        phi = np.linspace(0.1, 0.95, n)
        x = np.zeros(n)
        for t in range(1, n):
            x[t] = phi[t] * x[t - 1] + np.random.randn()

        df = roll_ac(x, np.arange(n, dtype=float), width=500, by=250)
        ac = df['ac1'].to_numpy()
        assert ac[-1] > ac[0] + 0.4

    def test_missing_windows(self):
        x = _ar1(0.5, 300)
        x[:100] = np.nan
        df = roll_ac(x, np.arange(300.0), width=100, by=100, min_valid=50)

        assert df['n_valid'].to_list() == [0, 100, 100]
        assert np.isnan(df['ac1'][0])
        assert np.isnan(df['ar_max_modulus'][0])
        assert np.isfinite(df['ac1'][1])

    def test_matches_rolling_engine(self):
        x = _ar1(0.6, 600)
        df = roll_ac(x, np.arange(600.0), width=200, by=100, ar_order=2)
        out = compute(ac1_engine, x, window=200, stride=100, engine_params={'ar_order': 2})
        ends = np.arange(199, 600, 100)

        np.testing.assert_array_equal(df['ac1'].to_numpy(), out['rolling_ac1'][ends])
        np.testing.assert_array_equal(df['ar_max_modulus'].to_numpy(), out['rolling_ar_max_modulus'][ends])

    def test_small_units(self):
        x = _ar1(0.7, 400)
        t = np.arange(400.0)
        tiny = roll_ac(x * 1e-7, t, width=100, by=50)
        unit = roll_ac(x, t, width=100, by=50)

        assert np.all(np.isfinite(tiny['ac1'].to_numpy()))
        np.testing.assert_allclose(tiny['ac1'].to_numpy(), unit['ac1'].to_numpy(), rtol=1e-9)

    def test_no_windows(self):
        df = roll_ac(np.ones(5), np.arange(5.0), width=10, by=1)
        assert df.height == 0
        assert df.columns == list(ROLL_AC_SCHEMA)
