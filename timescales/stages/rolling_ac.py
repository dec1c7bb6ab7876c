"""
Stage: Rolling Autocorrelation
==============================

Lag-1 autocorrelation in rolling windows, for every aggregation width,
lake and variable. Window length is fixed in days, so coarser series get
fewer samples per window. Each window is linearly detrended first.

A 'difference' series (manipulated - reference) is added per aggregation
and variable, aligned on window index. Positive values mean the
manipulated lake was more autocorrelated.

Inputs:
    - aggregated.parquet

Output:
    - rolling_ac.parquet:
        agg_steps, interval, lake, variable, window, doy,
        window_start, window_end, n_valid, ac1, ar_max_modulus
"""

import argparse
import math
import warnings
import polars as pl
from typing import Dict, List, Optional

from timescales.config import DEFAULT_LAKES, DEFAULT_TIMESCALES, DIFFERENCE_LABEL
from timescales.core.rolling import roll_ac, ROLL_AC_SCHEMA
from timescales.core.scales import TimescaleParams, interval_name
from timescales.core.variables import LakeRole, lake_for, parse_lakes
from timescales.io.reader import load_table
from timescales.io.writer import write_output

ROLLING_AC_SCHEMA = {
    'agg_steps': pl.Int64,
    'interval': pl.Utf8,
    'lake': pl.Utf8,
    'variable': pl.Utf8,
    **ROLL_AC_SCHEMA,
}


def compute_rolling_ac(
    aggregated: pl.DataFrame,
    params: TimescaleParams,
    lakes: Dict[str, str],
    detrend: bool = True,
    min_valid_fraction: float = 0.5,
    ar_order: int = 1,
) -> pl.DataFrame:
    """
    Rolling lag-1 autocorrelation plus the manipulated - reference difference.

    Args:
        aggregated: Output of the aggregate stage
        params: Window sizes per aggregation
        lakes: Lake name -> role
        detrend: Detrend each window
        min_valid_fraction: Windows with fewer valid samples are NaN
        ar_order: AR order for the companion-eigenvalue indicator

    Returns:
        rolling_ac DataFrame
    """
    roles = parse_lakes(lakes)
    parts = []

    for (agg, lake, variable), group in aggregated.group_by(
        ['agg_steps', 'lake', 'variable'], maintain_order=True
    ):
        if lake not in roles:
            continue
        group = group.sort('doy')
        width = params.steps_per_window(agg)
        rolled = roll_ac(
            group['value'].to_numpy(),
            group['doy'].to_numpy(),
            width=width,
            by=params.window_by(agg),
            detrend_first=detrend,
            min_valid=max(2, math.ceil(min_valid_fraction * width)),
            ar_order=ar_order,
        )
        if rolled.height == 0:
            warnings.warn(
                f"rolling_ac: {lake}/{variable} at agg {agg} has {group.height} steps, "
                f"fewer than one {width}-step window"
            )
        parts.append(rolled.with_columns([
            pl.lit(int(agg), dtype=pl.Int64).alias('agg_steps'),
            pl.lit(interval_name(agg, params.sample_minutes)).alias('interval'),
            pl.lit(lake).alias('lake'),
            pl.lit(variable).alias('variable'),
        ]).select(list(ROLLING_AC_SCHEMA)))

    if not parts:
        return pl.DataFrame(schema=ROLLING_AC_SCHEMA)

    rolling = pl.concat(parts)
    diff = compute_difference(rolling, roles)
    return pl.concat([rolling, diff]).sort(['agg_steps', 'variable', 'lake', 'window'])


def compute_difference(rolling: pl.DataFrame, roles: Dict[str, LakeRole]) -> pl.DataFrame:
    """Manipulated - reference, matched on (agg_steps, variable, window)."""
    keys = ['agg_steps', 'interval', 'variable', 'window']
    ref = rolling.filter(pl.col('lake') == lake_for(roles, LakeRole.REFERENCE))
    man = rolling.filter(pl.col('lake') == lake_for(roles, LakeRole.MANIPULATED))

    joined = ref.join(man, on=keys, how='inner', suffix='_man')
    return joined.select([
        'agg_steps',
        'interval',
        pl.lit(DIFFERENCE_LABEL).alias('lake'),
        'variable',
        'window',
        'doy',
        'window_start',
        'window_end',
        pl.min_horizontal('n_valid', 'n_valid_man').alias('n_valid'),
        (pl.col('ac1_man') - pl.col('ac1')).alias('ac1'),
        (pl.col('ar_max_modulus_man') - pl.col('ar_max_modulus')).alias('ar_max_modulus'),
    ]).cast(ROLLING_AC_SCHEMA)


def run(
    aggregated_path: str,
    output_dir: str = "output",
    params: Optional[TimescaleParams] = None,
    lakes: Optional[Dict[str, str]] = None,
    detrend: bool = DEFAULT_TIMESCALES['detrend'],
    min_valid_fraction: float = DEFAULT_TIMESCALES['min_valid_fraction'],
    ar_order: int = 1,
    verbose: bool = True,
) -> pl.DataFrame:
    """
    Compute rolling autocorrelation for all aggregations.

    Args:
        aggregated_path: Path to aggregated.parquet
        output_dir: Directory the parquet output is written to
        params: Timescale parameters
        lakes: Lake name -> role
        detrend: Detrend each window
        min_valid_fraction: Minimum fraction of valid samples per window
        ar_order: AR order for ar_max_modulus
        verbose: Print progress

    Returns:
        rolling_ac DataFrame
    """
    params = params or TimescaleParams()
    lakes = lakes or DEFAULT_LAKES

    if verbose:
        print("=" * 70)
        print("STAGE: ROLLING AUTOCORRELATION")
        print(f"Window: {params.window_days} days, detrend={detrend}")
        print("=" * 70)
        for row in params.table():
            print(f"  {row['interval']:>8}: window {row['steps_per_window']} steps, by {row['window_by']}")

    aggregated = load_table(aggregated_path)
    rolling = compute_rolling_ac(
        aggregated,
        params,
        lakes,
        detrend=detrend,
        min_valid_fraction=min_valid_fraction,
        ar_order=ar_order,
    )

    if verbose:
        for (interval, lake), group in rolling.group_by(['interval', 'lake'], maintain_order=True):
            n_ok = group.filter(pl.col('ac1').is_not_nan()).height
            print(f"  {interval}/{lake}: {n_ok}/{group.height} windows")

    write_output(rolling, output_dir, 'rolling_ac', verbose=verbose)
    return rolling


def main():
    parser = argparse.ArgumentParser(description="Stage: Rolling autocorrelation")
    parser.add_argument('aggregated', help='Path to aggregated.parquet')
    parser.add_argument('-o', '--output-dir', default='output', help='Output directory')
    parser.add_argument('--window-days', type=float, default=DEFAULT_TIMESCALES['window_days'])
    parser.add_argument('--no-detrend', action='store_true', help='Skip window detrending')
    parser.add_argument('-q', '--quiet', action='store_true', help='Suppress output')

    args = parser.parse_args()

    run(
        args.aggregated,
        args.output_dir,
        params=TimescaleParams(window_days=args.window_days),
        detrend=not args.no_detrend,
        verbose=not args.quiet,
    )


if __name__ == "__main__":
    main()
