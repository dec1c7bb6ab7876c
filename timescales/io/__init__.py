"""Parquet/CSV I/O (reader, writer, manifest)."""
