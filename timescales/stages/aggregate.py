"""
Stage: Aggregate
================

Coarsens every (lake, variable) series to each aggregation width, so the
same statistic can be computed at 5 min, hourly, daily and 2-day
resolution.

Inputs:
    - observations.parquet

Output:
    - aggregated.parquet: agg_steps, lake, variable, doy, value, n_valid
"""

import argparse
import polars as pl
from typing import List, Optional

from timescales.config import DEFAULT_TIMESCALES
from timescales.core.aggregation import agg_ts
from timescales.io.reader import load_observations
from timescales.io.writer import write_output

AGGREGATED_SCHEMA = {
    'agg_steps': pl.Int64,
    'lake': pl.Utf8,
    'variable': pl.Utf8,
    'doy': pl.Float64,
    'value': pl.Float64,
    'n_valid': pl.Int64,
}


def compute_aggregated(obs: pl.DataFrame, agg_steps: List[int]) -> pl.DataFrame:
    """Aggregate each (lake, variable) series at every width in agg_steps."""
    parts = []
    for (lake, variable), group in obs.group_by(['lake', 'variable'], maintain_order=True):
        group = group.sort('doy')
        y = group['value'].to_numpy()
        x = group['doy'].to_numpy()

        for width in agg_steps:
            out = agg_ts(y, x, width)
            parts.append(pl.DataFrame({
                'agg_steps': [int(width)] * len(out['y']),
                'lake': [lake] * len(out['y']),
                'variable': [variable] * len(out['y']),
                'doy': out['x'],
                'value': out['y'],
                'n_valid': out['n_valid'],
            }, schema=AGGREGATED_SCHEMA))

    if not parts:
        return pl.DataFrame(schema=AGGREGATED_SCHEMA)
    return pl.concat(parts).sort(['agg_steps', 'lake', 'variable', 'doy'])


def run(
    observations_path: str,
    output_dir: str = "output",
    agg_steps: Optional[List[int]] = None,
    verbose: bool = True,
) -> pl.DataFrame:
    """
    Aggregate observations at every aggregation width.

    Args:
        observations_path: Path to observations.parquet
        output_dir: Directory the parquet output is written to
        agg_steps: Samples per aggregated step
        verbose: Print progress

    Returns:
        aggregated DataFrame
    """
    agg_steps = agg_steps or DEFAULT_TIMESCALES['agg_steps']

    if verbose:
        print("=" * 70)
        print("STAGE: AGGREGATE")
        print(f"Widths: {agg_steps}")
        print("=" * 70)

    obs = load_observations(observations_path)
    aggregated = compute_aggregated(obs, agg_steps)

    if verbose:
        for (width,), group in aggregated.group_by(['agg_steps'], maintain_order=True):
            print(f"  agg {width}: {group.height:,} rows")

    write_output(aggregated, output_dir, 'aggregated', verbose=verbose)
    return aggregated


def main():
    parser = argparse.ArgumentParser(description="Stage: Aggregate observations")
    parser.add_argument('observations', help='Path to observations.parquet')
    parser.add_argument('-o', '--output-dir', default='output', help='Output directory')
    parser.add_argument('--agg-steps', default='1,12,288,576',
                        help='Comma-separated aggregation widths')
    parser.add_argument('-q', '--quiet', action='store_true', help='Suppress output')

    args = parser.parse_args()

    run(
        args.observations,
        args.output_dir,
        agg_steps=[int(a) for a in args.agg_steps.split(',')],
        verbose=not args.quiet,
    )


if __name__ == "__main__":
    main()
