"""
Writer: every parquet file the pipeline produces is written here.

Stages hand over a DataFrame and an output name; the file lands at
<output_dir>/<name>.parquet with the stage name stamped into the parquet
key-value metadata.
"""

import logging
import polars as pl
from pathlib import Path
from typing import Dict, Optional

from timescales.io.reader import output_path

logger = logging.getLogger(__name__)


def _write_parquet(df: Optional[pl.DataFrame], path: Path, metadata: Dict[str, str]) -> bool:
    """
    Write df to path. Returns False when there is nothing to write.

    A frame with columns but no rows is still written, so downstream
    stages see the schema.
    """
    if df is None or df.width == 0:
        logger.warning("not writing %s: no columns", path.name)
        return False

    df.write_parquet(str(path), metadata=metadata)
    return True


def write_output(
    df: pl.DataFrame,
    output_dir: str,
    name: str,
    verbose: bool = True,
    metadata: Optional[Dict[str, str]] = None,
) -> Optional[Path]:
    """
    Write one stage output.

    Args:
        df: Stage output
        output_dir: Directory the file is written to
        name: Output name, one of reader.OUTPUT_NAMES
        verbose: Print the written path and row count
        metadata: Extra parquet metadata (string keys and values)

    Returns:
        Path written, or None if the frame had no columns
    """
    path = output_path(output_dir, name)
    meta = {'timescales_output': name}
    meta.update({str(k): str(v) for k, v in (metadata or {}).items()})

    if not _write_parquet(df, path, meta):
        return None

    logger.debug("wrote %s (%d rows, %d columns)", path, df.height, df.width)
    if verbose:
        print(f"  -> {path} ({df.height:,} rows)")
    return path
