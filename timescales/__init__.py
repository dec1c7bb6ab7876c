"""
timescales: how sampling frequency changes an early warning statistic.

Public API:
    from timescales import run
    run(data_path)

Two layers:
    timescales.stages   Runners, orchestrate I/O (read parquet, call engines, write parquet)
    timescales.core     Engines, compute (arrays/DataFrames in, numbers/DataFrames out)

Also:
    timescales.io         Parquet/CSV I/O (reader, writer, manifest)
    timescales.config     Defaults (timescales, lakes, variables, column names)
    timescales.validation Input validation (manifest, raw table)
"""

from timescales.run import run

__all__ = ["run"]
