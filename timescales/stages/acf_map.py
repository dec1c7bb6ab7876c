"""
Stage: ACF Map
==============

Autocorrelation across many time scales at once. At full resolution,
every rolling window gets its whole ACF up to acf_lag_max, giving a
windows x lags map per lake. The manipulated - reference difference map
and column-standardised versions (each lag scaled across windows) show
where in time and at which time scale the lakes diverge.

Inputs:
    - observations.parquet

Output:
    - acf_map.parquet: lake, variable, window, doy, lag, acf, scaled
      (lake is a lake name or 'difference')
"""

import argparse
import math
import polars as pl
from typing import Dict, Optional, Tuple

from timescales.config import DEFAULT_LAKES, DEFAULT_TIMESCALES, DIFFERENCE_LABEL
from timescales.core.acf_map import AcfMap
from timescales.core.rolling import acf_roll
from timescales.core.scales import TimescaleParams
from timescales.core.variables import LakeRole, Variable, lake_for, parse_lakes
from timescales.io.reader import load_observations
from timescales.io.writer import write_output

ACF_MAP_SCHEMA = {
    'lake': pl.Utf8,
    'variable': pl.Utf8,
    'window': pl.Int64,
    'doy': pl.Float64,
    'lag': pl.Int64,
    'acf': pl.Float64,
    'scaled': pl.Float64,
}


def compute_acf_maps(
    obs: pl.DataFrame,
    params: TimescaleParams,
    lakes: Dict[str, str],
    variable: str,
    detrend: bool = True,
    min_valid_fraction: float = 0.5,
) -> Dict[str, AcfMap]:
    """
    ACF maps of one variable for each lake plus their difference.

    Returns:
        dict keyed by lake name and 'difference'
    """
    roles = parse_lakes(lakes)
    variable = Variable.parse(variable).column
    width = params.steps_per_window(1)

    maps = {}
    for lake in roles:
        series = obs.filter(
            (pl.col('lake') == lake) & (pl.col('variable') == variable)
        ).sort('doy')
        maps[lake] = acf_roll(
            series['value'].to_numpy(),
            series['doy'].to_numpy(),
            width=width,
            by=params.window_by(1),
            lag_max=params.acf_lag_max,
            detrend_first=detrend,
            min_valid=max(2, math.ceil(min_valid_fraction * width)),
        )

    ref, man = _aligned(
        maps[lake_for(roles, LakeRole.REFERENCE)],
        maps[lake_for(roles, LakeRole.MANIPULATED)],
    )
    maps[DIFFERENCE_LABEL] = man - ref
    return maps


def _aligned(a: AcfMap, b: AcfMap) -> Tuple[AcfMap, AcfMap]:
    """Truncate two maps to their common number of windows."""
    n = min(a.n_windows, b.n_windows)
    return a.subset(rows=slice(0, n)), b.subset(rows=slice(0, n))


def maps_to_frame(
    maps: Dict[str, AcfMap],
    variable: str,
    max_doy: Optional[float] = None,
    max_lag: Optional[int] = None,
    thin_rows: int = 1,
    thin_cols: int = 1,
) -> pl.DataFrame:
    """
    Flatten maps to long format with raw and column-scaled values.

    Zoom (max_doy, max_lag) and thinning are applied after scaling, so the
    scaled values always refer to the whole record.
    """
    parts = []
    for lake, acf_map in maps.items():
        scaled = acf_map.scaled()
        if max_doy is not None or max_lag is not None:
            acf_map = acf_map.window(max_time=max_doy, max_lag=max_lag)
            scaled = scaled.window(max_time=max_doy, max_lag=max_lag)
        acf_map = acf_map.thin(thin_rows, thin_cols)
        scaled = scaled.thin(thin_rows, thin_cols)

        frame = acf_map.to_frame(lake=lake).with_columns([
            pl.lit(variable).alias('variable'),
            pl.Series('scaled', scaled.values.ravel(), dtype=pl.Float64),
        ])
        parts.append(frame.select(list(ACF_MAP_SCHEMA)))

    if not parts:
        return pl.DataFrame(schema=ACF_MAP_SCHEMA)
    return pl.concat(parts).cast(ACF_MAP_SCHEMA)


def run(
    observations_path: str,
    output_dir: str = "output",
    params: Optional[TimescaleParams] = None,
    lakes: Optional[Dict[str, str]] = None,
    variables: Optional[list] = None,
    detrend: bool = DEFAULT_TIMESCALES['detrend'],
    min_valid_fraction: float = DEFAULT_TIMESCALES['min_valid_fraction'],
    max_doy: Optional[float] = None,
    max_lag: Optional[int] = None,
    thin_rows: int = 1,
    thin_cols: int = 1,
    verbose: bool = True,
) -> pl.DataFrame:
    """
    Compute ACF maps for every variable.

    Args:
        observations_path: Path to observations.parquet
        output_dir: Directory the parquet output is written to
        params: Timescale parameters (full-resolution window and lag_max)
        lakes: Lake name -> role
        variables: Variables to map
        detrend: Detrend each window
        min_valid_fraction: Minimum fraction of valid samples per window
        max_doy: Keep windows ending at or before this day of year
        max_lag: Keep lags up to this value
        thin_rows: Keep every k-th window
        thin_cols: Keep every k-th lag
        verbose: Print progress

    Returns:
        acf_map DataFrame
    """
    params = params or TimescaleParams()
    lakes = lakes or DEFAULT_LAKES
    variables = variables or [Variable.CHLOROPHYLL.value]

    if verbose:
        print("=" * 70)
        print("STAGE: ACF MAP")
        print(f"Window: {params.steps_per_window(1)} samples, "
              f"by {params.window_by(1)}, lag_max {params.acf_lag_max}")
        print("=" * 70)

    obs = load_observations(observations_path)

    frames = []
    for variable in Variable.parse_many(variables):
        maps = compute_acf_maps(
            obs, params, lakes, variable.column,
            detrend=detrend, min_valid_fraction=min_valid_fraction,
        )
        if verbose:
            for lake, acf_map in maps.items():
                lo, hi = acf_map.limits()
                print(f"  {variable.column}/{lake}: {acf_map.shape[0]} windows x "
                      f"{acf_map.shape[1]} lags, range [{lo:.3f}, {hi:.3f}]")
        frames.append(maps_to_frame(
            maps, variable.column,
            max_doy=max_doy, max_lag=max_lag,
            thin_rows=thin_rows, thin_cols=thin_cols,
        ))

    acf_df = pl.concat(frames) if frames else pl.DataFrame(schema=ACF_MAP_SCHEMA)
    write_output(acf_df, output_dir, 'acf_map', verbose=verbose)
    return acf_df


def main():
    parser = argparse.ArgumentParser(description="Stage: ACF map")
    parser.add_argument('observations', help='Path to observations.parquet')
    parser.add_argument('-o', '--output-dir', default='output', help='Output directory')
    parser.add_argument('--max-doy', type=float, default=None, help='Zoom: last window end')
    parser.add_argument('--max-lag', type=int, default=None, help='Zoom: largest lag')
    parser.add_argument('--thin-rows', type=int, default=1, help='Keep every k-th window')
    parser.add_argument('--thin-cols', type=int, default=1, help='Keep every k-th lag')
    parser.add_argument('-q', '--quiet', action='store_true', help='Suppress output')

    args = parser.parse_args()

    run(
        args.observations,
        args.output_dir,
        max_doy=args.max_doy,
        max_lag=args.max_lag,
        thin_rows=args.thin_rows,
        thin_cols=args.thin_cols,
        verbose=not args.quiet,
    )


if __name__ == "__main__":
    main()
