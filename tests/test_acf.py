"""
Tests for the autocorrelation engine.
"""

import numpy as np
import pytest

from timescales.core import InvalidArgument
from timescales.core.acf import compute as ac1_engine
from timescales.core.acf import acf, ac1, acf_confidence, detrend


def _ar1(phi, n, seed=42):
    np.random.seed(seed)
    x = np.zeros(n)
    for t in range(1, n):
        x[t] = phi * x[t - 1] + np.random.randn()
    return x


class TestAcf:

    def test_lag_zero_is_one(self):
        np.random.seed(42)
        r = acf(np.random.randn(200), lag_max=10)
        assert r[0] == pytest.approx(1.0)
        assert len(r) == 11

    def test_matches_textbook_estimator(self):
        np.random.seed(3)
        x = np.random.randn(100)
        xc = x - x.mean()
        denom = np.sum(xc ** 2)
        expected = [np.sum(xc[:100 - k] * xc[k:]) / denom for k in range(6)]

        np.testing.assert_allclose(acf(x, lag_max=5), expected, rtol=1e-10)

    def test_default_lag_max(self):
        # floor(10 * log10(100)) = 20
        assert len(acf(np.random.randn(100))) == 21

    def test_lag_max_capped(self):
        assert len(acf(np.arange(5.0), lag_max=50)) == 5

    def test_ar1_lag1(self):
        x = _ar1(0.8, 5000)
        r = acf(x, lag_max=3)
        assert abs(r[1] - 0.8) < 0.05
        assert abs(r[2] - 0.64) < 0.07

    def test_white_noise_inside_band(self):
        np.random.seed(11)
        n = 2000
        r = acf(np.random.randn(n), lag_max=20)
        band = acf_confidence(n)
        assert np.mean(np.abs(r[1:]) < band) > 0.8

    def test_missing_values_passed(self):
        x = _ar1(0.7, 3000)
        x[::10] = np.nan
        r = acf(x, lag_max=2)
        assert np.all(np.isfinite(r))
        assert r[0] == pytest.approx(1.0)
        assert abs(r[1] - 0.7) < 0.08

    def test_constant_series_is_nan(self):
        assert np.all(np.isnan(acf(np.ones(50), lag_max=3)))

    def test_scale_invariant(self):
        x = _ar1(0.8, 2000)
        expected = acf(x, lag_max=3)
        for scale in (1e-7, 1e-12, 1e6):
            np.testing.assert_allclose(acf(x * scale, lag_max=3), expected, rtol=1e-9)

    def test_zero_series_is_nan(self):
        assert np.all(np.isnan(acf(np.zeros(30), lag_max=2)))

    def test_too_few_valid(self):
        x = np.full(20, np.nan)
        x[3] = 1.0
        assert np.all(np.isnan(acf(x, lag_max=2)))

    def test_negative_lag_max(self):
        with pytest.raises(InvalidArgument):
            acf(np.arange(10.0), lag_max=-1)


class TestDetrend:

    def test_removes_line(self):
        x = 3.0 + 0.5 * np.arange(50)
        np.testing.assert_allclose(detrend(x), 0.0, atol=1e-10)

    def test_keeps_missing_positions(self):
        x = 1.0 + 2.0 * np.arange(10, dtype=float)
        x[4] = np.nan
        out = detrend(x)
        assert np.isnan(out[4])
        np.testing.assert_allclose(out[np.isfinite(out)], 0.0, atol=1e-10)

    def test_single_valid_point_demeaned(self):
        x = np.array([np.nan, 5.0, np.nan])
        out = detrend(x)
        assert out[1] == 0.0
        assert np.isnan(out[0])

    def test_all_missing(self):
        assert np.all(np.isnan(detrend(np.full(4, np.nan))))


class TestAc1:

    def test_trend_does_not_inflate_ac1(self):
        np.random.seed(5)
        noise = np.random.randn(1000)
        trended = noise + 0.05 * np.arange(1000)

        assert abs(ac1(trended, detrend_first=True)) < 0.1
        assert ac1(trended, detrend_first=False) > 0.5

    def test_short_series(self):
        assert np.isnan(ac1(np.array([1.0])))

    def test_engine_output_keys(self):
        out = ac1_engine(_ar1(0.5, 500))
        assert set(out) == {'ac1', 'ar_max_modulus', 'n_valid'}
        assert out['n_valid'] == 500
        assert out['ar_max_modulus'] == pytest.approx(abs(out['ac1']), abs=0.02)

    def test_engine_sparse_window(self):
        y = _ar1(0.5, 50)
        y[:40] = np.nan
        out = ac1_engine(y, min_valid=20)
        assert np.isnan(out['ac1'])
        assert np.isnan(out['ar_max_modulus'])
        assert out['n_valid'] == 10

    def test_small_units(self):
        x = _ar1(0.8, 2000)
        assert ac1(x * 1e-7) == pytest.approx(ac1(x), rel=1e-9)
        assert ac1(x * 1e-7, detrend_first=False) == pytest.approx(ac1(x, detrend_first=False), rel=1e-9)

    def test_constant_and_linear_windows_are_nan(self):
        assert np.isnan(ac1(np.full(100, 0.3)))
        assert np.isnan(ac1(2.0 + 0.1 * np.arange(50)))


class TestConfidence:

    def test_band_width(self):
        assert acf_confidence(100) == pytest.approx(1.959964 / 10, rel=1e-5)

    def test_empty(self):
        assert np.isnan(acf_confidence(0))
