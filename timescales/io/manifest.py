"""
Manifest: parse manifest.yaml into pipeline config.

Example:

    paths:
      raw: sos_data.csv
      output_dir: output
    lakes:
      Paul: reference
      Peter: manipulated
    variables: [chla]
    timescales:
      window_days: 28
      agg_steps: [1, 12, 288, 576]
"""

import yaml
from pathlib import Path
from typing import Dict, Any, List

from timescales.config import (
    DEFAULT_COLUMNS,
    DEFAULT_LAKES,
    DEFAULT_TIMESCALES,
    DEFAULT_VARIABLES,
)


def load_manifest(data_path: str) -> Dict[str, Any]:
    """
    Load manifest.yaml from a data directory.

    Tries:
        1. data_path/manifest.yaml
        2. data_path itself (if it's a .yaml file)
    """
    p = Path(data_path)

    if p.is_file() and p.suffix in ('.yaml', '.yml'):
        manifest_path = p
    else:
        manifest_path = p / 'manifest.yaml'

    if not manifest_path.exists():
        raise FileNotFoundError(f"No manifest.yaml in {data_path}")

    with open(manifest_path) as f:
        manifest = yaml.safe_load(f) or {}

    # Stash the manifest path for resolving relative paths
    manifest['_manifest_path'] = str(manifest_path)
    manifest['_data_dir'] = str(manifest_path.parent)

    return manifest


def get_raw_path(manifest: Dict[str, Any]) -> str:
    """Get absolute path to the raw sensor table from manifest."""
    raw_rel = (manifest.get('paths') or {}).get('raw', 'raw.parquet')
    data_dir = Path(manifest.get('_data_dir', '.'))
    return str(data_dir / raw_rel)


def get_output_dir(manifest: Dict[str, Any]) -> str:
    """Get absolute path to output directory from manifest."""
    out_rel = (manifest.get('paths') or {}).get('output_dir', 'output')
    data_dir = Path(manifest.get('_data_dir', '.'))
    out_path = data_dir / out_rel
    out_path.mkdir(parents=True, exist_ok=True)
    return str(out_path)


def get_lakes(manifest: Dict[str, Any]) -> Dict[str, str]:
    """Lake name -> role ('reference' | 'manipulated')."""
    return dict(manifest.get('lakes') or DEFAULT_LAKES)


def get_variables(manifest: Dict[str, Any]) -> List[str]:
    """Variables to analyse (column names)."""
    variables = manifest.get('variables') or DEFAULT_VARIABLES
    if isinstance(variables, str):
        variables = [variables]
    return list(variables)


def get_columns(manifest: Dict[str, Any]) -> Dict[str, str]:
    """Raw column rename map, manifest entries on top of the defaults."""
    columns = dict(DEFAULT_COLUMNS)
    columns.update(manifest.get('columns') or {})
    return columns


def get_timescales(manifest: Dict[str, Any]) -> Dict[str, Any]:
    """Timescale block with defaults filled in."""
    block = dict(DEFAULT_TIMESCALES)
    block.update(manifest.get('timescales') or {})
    return block
