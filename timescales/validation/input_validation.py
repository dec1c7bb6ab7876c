"""
Input Data Validation

Validates manifest.yaml and the raw sensor table before compute stages.
Every problem is collected into a report; the pipeline refuses to start
while the report has errors.

Usage:
    from timescales.validation import validate_input

    report = validate_input(data_dir='/path/to/data')
"""

import numbers
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Any, Optional

import polars as pl

from timescales.core._errors import InvalidArgument
from timescales.core.scales import TimescaleParams
from timescales.core.variables import Variable, parse_lakes
from timescales.io.manifest import (
    load_manifest,
    get_columns,
    get_lakes,
    get_raw_path,
    get_variables,
)
from timescales.io.reader import load_raw


class ValidationError(Exception):
    """Raised when the manifest or raw table cannot be analysed."""

    def __init__(self, errors: List[str], warnings: List[str] = None):
        self.errors = list(errors)
        self.warnings = list(warnings or [])
        detail = [f"  ERROR: {e}" for e in self.errors]
        detail += [f"  WARNING: {w}" for w in self.warnings]
        super().__init__("Input validation failed:\n" + "\n".join(detail))


@dataclass
class InputValidationReport:
    """Report from input validation."""

    valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    # Counts
    total_rows: int = 0
    lakes: List[str] = field(default_factory=list)
    variables: List[str] = field(default_factory=list)
    null_counts: Dict[str, int] = field(default_factory=dict)

    def error(self, message: str) -> None:
        self.errors.append(message)
        self.valid = False

    def summary(self) -> str:
        """Human-readable summary."""
        rule = "=" * 60
        lines = [
            rule,
            "INPUT VALIDATION REPORT",
            rule,
            f"Rows:      {self.total_rows:,}",
            f"Lakes:     {', '.join(self.lakes) or '-'}",
            f"Variables: {', '.join(self.variables) or '-'}",
        ]

        sections = (
            ("Missing values", [f"{var}: {n:,}" for var, n in self.null_counts.items()]),
            ("ERRORS", self.errors),
            ("WARNINGS", self.warnings),
        )
        for title, items in sections:
            if items:
                lines += ["", f"{title}:"] + [f"  - {item}" for item in items]

        lines += ["", f"Status: {'PASSED' if self.valid else 'FAILED'}", rule]
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to serializable dict."""
        return {
            'valid': self.valid,
            'errors': self.errors,
            'warnings': self.warnings,
            'total_rows': self.total_rows,
            'lakes': self.lakes,
            'variables': self.variables,
            'null_counts': self.null_counts,
        }


def validate_manifest(
    manifest: Dict[str, Any],
    report: InputValidationReport,
) -> None:
    """
    Validate lakes, variables and timescale settings.

    Args:
        manifest: Loaded manifest dict
        report: Report to update with findings
    """
    try:
        roles = parse_lakes(get_lakes(manifest))
        report.lakes = sorted(roles)
    except InvalidArgument as e:
        report.error(f"lakes: {e}")

    try:
        report.variables = [v.value for v in Variable.parse_many(get_variables(manifest))]
    except InvalidArgument as e:
        report.error(f"variables: {e}")

    try:
        TimescaleParams.from_manifest(manifest)
    except (InvalidArgument, TypeError) as e:
        report.error(f"timescales: {e}")

    fraction = (manifest.get('timescales') or {}).get('min_valid_fraction', 0.5)
    if isinstance(fraction, bool) or not isinstance(fraction, numbers.Real) or not 0 <= fraction <= 1:
        report.error(f"timescales: min_valid_fraction must be a number in [0, 1], got {fraction!r}")


def validate_raw(
    raw: pl.DataFrame,
    manifest: Dict[str, Any],
    report: InputValidationReport,
) -> None:
    """
    Validate the raw sensor table schema and basic data quality.

    Args:
        raw: Raw table (before column renaming)
        manifest: Loaded manifest dict
        report: Report to update with findings
    """
    columns = get_columns(manifest)
    renamed = {columns.get(c, c) for c in raw.columns}
    report.total_rows = raw.height

    required = {'lake', 'doy'} | set(report.variables)
    missing = required - renamed
    if missing:
        report.error(f"Missing required columns: {sorted(missing)}")
        return

    lake_col = next(c for c in raw.columns if columns.get(c, c) == 'lake')
    present = set(raw[lake_col].cast(pl.Utf8).unique().to_list())
    for lake in report.lakes:
        if lake not in present:
            report.error(f"lake {lake!r} not found in data (found {sorted(present)})")

    for var in report.variables:
        col = next(c for c in raw.columns if columns.get(c, c) == var)
        series = raw[col].cast(pl.Float64, strict=False)
        n_null = series.null_count() + int(series.is_nan().sum() or 0)
        report.null_counts[var] = n_null
        if n_null:
            pct = 100.0 * n_null / max(raw.height, 1)
            report.warnings.append(f"{var}: {n_null:,} missing values ({pct:.1f}%)")
        n_nonpos = int((series <= 0).sum() or 0)
        if n_nonpos:
            report.warnings.append(
                f"{var}: {n_nonpos:,} non-positive values become missing after log transform"
            )


def validate_input(
    data_dir: str,
    raise_on_error: bool = True,
    verbose: bool = False,
    manifest: Optional[Dict[str, Any]] = None,
) -> InputValidationReport:
    """
    Validate all inputs before the prepare stage.

    Checks:
        1. manifest.yaml has one reference and one manipulated lake,
           known variables and sane timescale settings
        2. The raw table exists, has the required columns and the lakes

    Args:
        data_dir: Directory containing manifest.yaml
        raise_on_error: If True, raise ValidationError on failure
        verbose: If True, print validation report
        manifest: Already loaded manifest (skips reading manifest.yaml)

    Returns:
        InputValidationReport with validation results

    Raises:
        ValidationError: If validation fails and raise_on_error=True
    """
    report = InputValidationReport()

    if verbose:
        print(f"Validating inputs in: {data_dir}")

    if manifest is None:
        manifest = load_manifest(data_dir)
    validate_manifest(manifest, report)

    raw_path = Path(get_raw_path(manifest))
    if not raw_path.exists():
        report.error(f"raw data not found: {raw_path}")
    elif report.valid:
        validate_raw(load_raw(str(raw_path)), manifest, report)

    if verbose:
        print(report.summary())

    if not report.valid and raise_on_error:
        raise ValidationError(report.errors, report.warnings)

    return report
