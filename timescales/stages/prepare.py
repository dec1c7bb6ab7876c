"""
Stage: Prepare
==============

Thin orchestrator:
1. Read the raw wide sensor table (parquet or CSV)
2. Rename columns to canonical names, keep the analysed lakes
3. Melt to long format (one row per lake, variable, sample)
4. Log-transform values
5. Write observations.parquet

Output schema (observations.parquet):
    [year], lake, variable, doy, value
"""

import argparse
import polars as pl
from typing import Dict, List, Optional

from timescales.config import LOG_TRANSFORM
from timescales.core.variables import Variable
from timescales.io.reader import load_raw
from timescales.io.writer import write_output


def compute_observations(
    raw: pl.DataFrame,
    lakes: List[str],
    variables: List[str],
    columns: Optional[Dict[str, str]] = None,
    year: Optional[int] = None,
    log_transform: bool = LOG_TRANSFORM,
) -> pl.DataFrame:
    """
    Reshape a raw wide table into long observations.

    Args:
        raw: Raw table, one column per variable
        lakes: Lakes to keep
        variables: Variables to keep (column names or Variable members)
        columns: Raw -> canonical column rename map
        year: Keep one year when the table spans several
        log_transform: Natural log of values; non-positive values become NaN

    Returns:
        Long observations DataFrame sorted by lake, variable, doy
    """
    columns = columns or {}
    variables = [v.column for v in Variable.parse_many(variables)]

    rename = {old: new for old, new in columns.items() if old in raw.columns and old != new}
    df = raw.rename(rename)

    index = ['lake', 'doy']
    if 'year' in df.columns:
        if year is not None:
            df = df.filter(pl.col('year') == year)
        elif df['year'].n_unique() > 1:
            raise ValueError(
                f"data spans years {sorted(df['year'].unique().to_list())}; "
                f"set 'year' in manifest.yaml"
            )
        index = ['year'] + index

    df = (
        df
        .with_columns(pl.col('lake').cast(pl.Utf8))
        .filter(pl.col('lake').is_in(list(lakes)))
        .with_columns([pl.col(v).cast(pl.Float64, strict=False) for v in variables])
        .with_columns(pl.col('doy').cast(pl.Float64))
        .select(index + variables)
    )

    long = df.unpivot(on=variables, index=index, variable_name='variable', value_name='value')

    value = pl.col('value').fill_nan(None)
    if log_transform:
        value = pl.when(value > 0).then(value.log()).otherwise(None)

    return (
        long
        .with_columns(value.fill_null(float('nan')).alias('value'))
        .sort(['lake', 'variable', 'doy'])
    )


def run(
    raw_path: str,
    output_dir: str = "output",
    lakes: Optional[List[str]] = None,
    variables: Optional[List[str]] = None,
    columns: Optional[Dict[str, str]] = None,
    year: Optional[int] = None,
    log_transform: bool = LOG_TRANSFORM,
    verbose: bool = True,
) -> pl.DataFrame:
    """
    Build observations.parquet from the raw sensor table.

    Args:
        raw_path: Path to raw .parquet or .csv
        output_dir: Directory the parquet output is written to
        lakes: Lakes to keep
        variables: Variables to keep
        columns: Raw -> canonical column rename map
        year: Year to keep when the table spans several
        log_transform: Natural log of values
        verbose: Print progress

    Returns:
        observations DataFrame
    """
    if verbose:
        print("=" * 70)
        print("STAGE: PREPARE")
        print("Raw sensor table -> long, log-transformed observations")
        print("=" * 70)

    raw = load_raw(raw_path)
    if verbose:
        print(f"Loaded raw: {raw.shape}")

    obs = compute_observations(
        raw,
        lakes=lakes or [],
        variables=variables or [Variable.CHLOROPHYLL.value],
        columns=columns,
        year=year,
        log_transform=log_transform,
    )

    if verbose:
        for (lake, var), group in obs.group_by(['lake', 'variable'], maintain_order=True):
            n_nan = int(group['value'].is_nan().sum())
            print(f"  {lake}/{var}: {group.height:,} samples ({n_nan:,} missing)")

    write_output(obs, output_dir, 'observations', verbose=verbose)
    return obs


def main():
    parser = argparse.ArgumentParser(description="Stage: Prepare observations")
    parser.add_argument('raw', help='Path to raw .parquet or .csv')
    parser.add_argument('-o', '--output-dir', default='output', help='Output directory')
    parser.add_argument('--lakes', default='Paul,Peter', help='Comma-separated lakes')
    parser.add_argument('--variables', default='chla', help='Comma-separated variables')
    parser.add_argument('--no-log', action='store_true', help='Skip log transform')
    parser.add_argument('-q', '--quiet', action='store_true', help='Suppress output')

    args = parser.parse_args()

    run(
        args.raw,
        args.output_dir,
        lakes=args.lakes.split(','),
        variables=args.variables.split(','),
        log_transform=not args.no_log,
        verbose=not args.quiet,
    )


if __name__ == "__main__":
    main()
