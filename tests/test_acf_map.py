"""
Tests for AcfMap operations.
"""

import numpy as np
import pytest

from timescales.core import AcfMap, InvalidArgument


@pytest.fixture
def acf_map():
    np.random.seed(42)
    values = np.random.rand(6, 5)
    values[:, 0] = 1.0
    return AcfMap(
        values=values,
        times=np.array([150.0, 150.25, 150.5, 150.75, 151.0, 151.25]),
        lags=np.arange(5),
    )


class TestAcfMapBasics:

    def test_shape(self, acf_map):
        assert acf_map.shape == (6, 5)
        assert acf_map.n_windows == 6

    def test_shape_mismatch_rejected(self):
        with pytest.raises(InvalidArgument):
            AcfMap(values=np.zeros((3, 2)), times=np.arange(3.0), lags=np.arange(3))
        with pytest.raises(InvalidArgument):
            AcfMap(values=np.zeros(3), times=np.arange(3.0), lags=np.arange(1))

    def test_limits(self, acf_map):
        lo, hi = acf_map.limits()
        assert lo == pytest.approx(acf_map.values.min())
        assert hi == 1.0

    def test_limits_empty(self):
        m = AcfMap(values=np.full((2, 2), np.nan), times=np.arange(2.0), lags=np.arange(2))
        assert all(np.isnan(v) for v in m.limits())


class TestAcfMapSelection:

    def test_subset_positions(self, acf_map):
        sub = acf_map.subset(rows=[0, 2], cols=[1, 3])
        assert sub.shape == (2, 2)
        np.testing.assert_array_equal(sub.lags, [1, 3])
        np.testing.assert_array_equal(sub.times, [150.0, 150.5])
        assert sub.values[1, 1] == acf_map.values[2, 3]

    def test_subset_masks(self, acf_map):
        sub = acf_map.subset(rows=acf_map.times > 150.6)
        assert sub.shape == (3, 5)

    def test_thin_counts_from_one(self, acf_map):
        thinned = acf_map.thin(every_row=2, every_col=2)
        np.testing.assert_array_equal(thinned.times, [150.25, 150.75, 151.25])
        np.testing.assert_array_equal(thinned.lags, [1, 3])

    def test_thin_identity(self, acf_map):
        same = acf_map.thin()
        np.testing.assert_array_equal(same.values, acf_map.values)

    def test_thin_invalid(self, acf_map):
        with pytest.raises(InvalidArgument):
            acf_map.thin(0, 1)

    def test_window(self, acf_map):
        zoomed = acf_map.window(max_time=150.5, max_lag=2)
        assert zoomed.shape == (3, 3)
        assert zoomed.times.max() == 150.5

    def test_at_lag(self, acf_map):
        np.testing.assert_array_equal(acf_map.at_lag(2), acf_map.values[:, 2])
        with pytest.raises(InvalidArgument):
            acf_map.at_lag(10)


class TestAcfMapArithmetic:

    def test_difference(self, acf_map):
        other = AcfMap(values=np.zeros((6, 5)) + 0.25, times=acf_map.times + 1, lags=acf_map.lags)
        diff = acf_map - other
        np.testing.assert_allclose(diff.values, acf_map.values - 0.25)
        np.testing.assert_array_equal(diff.times, acf_map.times)

    def test_difference_shape_mismatch(self, acf_map):
        with pytest.raises(InvalidArgument):
            acf_map - acf_map.subset(rows=[0, 1])

    def test_scaled_columns(self, acf_map):
        scaled = acf_map.scaled()
        # Lag 0 is constant: centred, not rescaled
        np.testing.assert_allclose(scaled.values[:, 0], 0.0)
        np.testing.assert_allclose(scaled.values[:, 1:].mean(axis=0), 0.0, atol=1e-12)
        np.testing.assert_allclose(scaled.values[:, 1:].std(axis=0, ddof=1), 1.0)

    def test_scaled_ignores_missing(self, acf_map):
        values = acf_map.values.copy()
        values[0, :] = np.nan
        m = AcfMap(values=values, times=acf_map.times, lags=acf_map.lags)
        scaled = m.scaled()
        assert np.all(np.isnan(scaled.values[0]))
        assert np.all(np.isfinite(scaled.values[1:]))


class TestAcfMapFrame:

    def test_long_format(self, acf_map):
        df = acf_map.to_frame()
        assert df.columns == ['window', 'doy', 'lag', 'acf']
        assert df.height == 30
        row = df.filter((df['window'] == 3) & (df['lag'] == 4)).row(0, named=True)
        assert row['acf'] == acf_map.values[3, 4]
        assert row['doy'] == 150.75

    def test_lake_column(self, acf_map):
        df = acf_map.to_frame(lake='Peter')
        assert df.columns[0] == 'lake'
        assert df['lake'].unique().to_list() == ['Peter']
