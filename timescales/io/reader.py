"""
Reader: all table reads go through here.

No other module should call pl.read_parquet / pl.read_csv directly.
"""

import polars as pl
from pathlib import Path
from typing import Optional


# Stage outputs, written flat under the manifest output_dir
OUTPUT_NAMES = (
    'observations',
    'aggregated',
    'rolling_ac',
    'acf_map',
    'ac_trend',
)

# Missing-value markers found in sonde exports
NULL_VALUES = ['NA', 'NaN', '', 'null']


def load_raw(path: str) -> pl.DataFrame:
    """Load a raw sensor table from .parquet or .csv."""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"raw data not found: {path}")

    if p.suffix == '.parquet':
        return pl.read_parquet(str(p))
    if p.suffix in ('.csv', '.txt'):
        return pl.read_csv(str(p), null_values=NULL_VALUES, infer_schema_length=10000)
    raise ValueError(f"unsupported raw data format: {p.suffix} ({path})")


def load_observations(data_path: str) -> pl.DataFrame:
    """Load observations.parquet (a file, or output/ under a data directory)."""
    p = Path(data_path)
    if p.is_file() and p.suffix == '.parquet':
        df = pl.read_parquet(str(p))
    elif (p / 'output' / 'observations.parquet').exists():
        df = pl.read_parquet(str(p / 'output' / 'observations.parquet'))
    elif (p / 'observations.parquet').exists():
        df = pl.read_parquet(str(p / 'observations.parquet'))
    else:
        raise FileNotFoundError(f"No observations.parquet in {data_path}")
    return df.sort(['lake', 'variable', 'doy'])


def load_table(path: str) -> pl.DataFrame:
    """Load one stage output from an explicit .parquet path."""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"{p.name} not found: {path}")
    return pl.read_parquet(str(p))


def load_output(output_dir: str, name: str) -> Optional[pl.DataFrame]:
    """Load a stage output by name, or None if it has not been written."""
    path = output_path(output_dir, name)
    if path.exists():
        return pl.read_parquet(str(path))
    return None


def output_path(output_dir: str, name: str) -> Path:
    """
    Path of a stage output: <output_dir>/<name>.parquet.

    output_dir is used as given (run() resolves it from manifest.yaml) and
    is created if missing.
    """
    if name not in OUTPUT_NAMES:
        raise ValueError(f"unknown output {name!r}; expected one of {OUTPUT_NAMES}")
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    return out / f"{name}.parquet"
