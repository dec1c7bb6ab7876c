"""
Stage: Autocorrelation Trend
============================

Summarises each rolling indicator series by its Kendall tau against time.
A rising lag-1 autocorrelation (tau > 0) in the manipulated lake, and not
in the reference lake, is the critical slowing down signature. Comparing
tau across aggregation widths shows how sampling frequency changes the
warning.

Inputs:
    - rolling_ac.parquet

Output:
    - ac_trend.parquet:
        agg_steps, interval, lake, variable, indicator,
        tau, tau_pvalue, slope, n_points
"""

import argparse
import polars as pl
from typing import Sequence

from timescales.core.critical_slowing_down import kendall_trend
from timescales.io.reader import load_table
from timescales.io.writer import write_output

INDICATORS = ('ac1', 'ar_max_modulus')

AC_TREND_SCHEMA = {
    'agg_steps': pl.Int64,
    'interval': pl.Utf8,
    'lake': pl.Utf8,
    'variable': pl.Utf8,
    'indicator': pl.Utf8,
    'tau': pl.Float64,
    'tau_pvalue': pl.Float64,
    'slope': pl.Float64,
    'n_points': pl.Int64,
}


def compute_ac_trend(
    rolling: pl.DataFrame,
    indicators: Sequence[str] = INDICATORS,
) -> pl.DataFrame:
    """Kendall trend of every rolling indicator series."""
    rows = []
    for (agg, interval, lake, variable), group in rolling.group_by(
        ['agg_steps', 'interval', 'lake', 'variable'], maintain_order=True
    ):
        group = group.sort('window')
        for indicator in indicators:
            stats = kendall_trend(group['doy'].to_numpy(), group[indicator].to_numpy())
            rows.append({
                'agg_steps': agg,
                'interval': interval,
                'lake': lake,
                'variable': variable,
                'indicator': indicator,
                **stats,
            })

    return pl.DataFrame(rows, schema=AC_TREND_SCHEMA)


def run(
    rolling_ac_path: str,
    output_dir: str = "output",
    verbose: bool = True,
) -> pl.DataFrame:
    """
    Trend statistics for every rolling autocorrelation series.

    Args:
        rolling_ac_path: Path to rolling_ac.parquet
        output_dir: Directory the parquet output is written to
        verbose: Print progress

    Returns:
        ac_trend DataFrame
    """
    if verbose:
        print("=" * 70)
        print("STAGE: AUTOCORRELATION TREND")
        print("Kendall tau of rolling indicators vs day of year")
        print("=" * 70)

    rolling = load_table(rolling_ac_path)
    trend = compute_ac_trend(rolling)

    if verbose:
        for row in trend.filter(pl.col('indicator') == 'ac1').iter_rows(named=True):
            print(f"  {row['interval']:>8} {row['lake']:>12}: "
                  f"tau={row['tau']:+.3f} (n={row['n_points']})")

    write_output(trend, output_dir, 'ac_trend', verbose=verbose)
    return trend


def main():
    parser = argparse.ArgumentParser(description="Stage: Autocorrelation trend")
    parser.add_argument('rolling_ac', help='Path to rolling_ac.parquet')
    parser.add_argument('-o', '--output-dir', default='output', help='Output directory')
    parser.add_argument('-q', '--quiet', action='store_true', help='Suppress output')

    args = parser.parse_args()

    run(args.rolling_ac, args.output_dir, verbose=not args.quiet)


if __name__ == "__main__":
    main()
