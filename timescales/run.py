"""
timescales Sequencer
====================

Orchestrates the pipeline stages in dependency order.
Pure orchestration, no computation here.

    prepare -> aggregate -> rolling_ac -> trend
    prepare -> acf_map

Output: 5 parquet files in <data_dir>/output/.

Usage:
    python -m timescales domains/peter_paul_2015
    python -m timescales domains/peter_paul_2015 --stages rolling_ac,trend
    python -m timescales domains/peter_paul_2015 --skip acf_map
"""

import argparse
import logging
from pathlib import Path
from typing import List, Optional, Dict, Any

from timescales.core.scales import TimescaleParams
from timescales.io.manifest import (
    load_manifest,
    get_columns,
    get_lakes,
    get_output_dir,
    get_raw_path,
    get_timescales,
    get_variables,
)
from timescales.io.reader import output_path
from timescales.validation import validate_input

logger = logging.getLogger(__name__)

# Stage names in dependency order
ALL_STAGES = [
    'prepare',
    'aggregate',
    'rolling_ac',
    'acf_map',
    'trend',
]

# Inputs each stage reads (outputs of earlier stages)
STAGE_INPUTS = {
    'prepare': [],
    'aggregate': ['observations'],
    'rolling_ac': ['aggregated'],
    'acf_map': ['observations'],
    'trend': ['rolling_ac'],
}


def _dispatch(
    stage: str,
    manifest: Dict[str, Any],
    output_dir: str,
    verbose: bool,
) -> None:
    """Call one stage's run() with arguments resolved from the manifest."""
    import importlib

    module = importlib.import_module(f'timescales.stages.{stage}')
    ts = get_timescales(manifest)
    params = TimescaleParams.from_manifest(manifest)
    lakes = get_lakes(manifest)
    variables = get_variables(manifest)

    def _in(name: str) -> str:
        return str(output_path(output_dir, name))

    if stage == 'prepare':
        module.run(
            raw_path=get_raw_path(manifest),
            output_dir=output_dir,
            lakes=list(lakes),
            variables=variables,
            columns=get_columns(manifest),
            year=manifest.get('year'),
            log_transform=manifest.get('log_transform', True),
            verbose=verbose,
        )
    elif stage == 'aggregate':
        module.run(
            observations_path=_in('observations'),
            output_dir=output_dir,
            agg_steps=params.agg_steps,
            verbose=verbose,
        )
    elif stage == 'rolling_ac':
        module.run(
            aggregated_path=_in('aggregated'),
            output_dir=output_dir,
            params=params,
            lakes=lakes,
            detrend=ts['detrend'],
            min_valid_fraction=ts['min_valid_fraction'],
            ar_order=ts['ar_order'],
            verbose=verbose,
        )
    elif stage == 'acf_map':
        zoom = manifest.get('acf_map') or {}
        module.run(
            observations_path=_in('observations'),
            output_dir=output_dir,
            params=params,
            lakes=lakes,
            variables=variables,
            detrend=ts['detrend'],
            min_valid_fraction=ts['min_valid_fraction'],
            max_doy=zoom.get('max_doy'),
            max_lag=zoom.get('max_lag'),
            thin_rows=zoom.get('thin_rows', 1),
            thin_cols=zoom.get('thin_cols', 1),
            verbose=verbose,
        )
    elif stage == 'trend':
        module.run(
            rolling_ac_path=_in('rolling_ac'),
            output_dir=output_dir,
            verbose=verbose,
        )


def _check_stage_inputs(stage: str, output_dir: str) -> None:
    """Stages run out of order (--stages) still need their inputs on disk."""
    missing = [n for n in STAGE_INPUTS[stage] if not output_path(output_dir, n).exists()]
    if missing:
        raise FileNotFoundError(
            f"stage {stage!r} needs {', '.join(m + '.parquet' for m in missing)} "
            f"in {output_dir}; run the earlier stages first"
        )


def run(
    data_path: str,
    stages: Optional[List[str]] = None,
    skip: Optional[List[str]] = None,
    verbose: bool = True,
) -> Dict[str, Path]:
    """
    Run pipeline stages in dependency order.

    Args:
        data_path: Data directory containing manifest.yaml
        stages: Specific stages to run (e.g., ['rolling_ac', 'trend'])
        skip: Stages to skip
        verbose: Print progress

    Returns:
        dict of stage output name -> path, for outputs that exist
    """
    data_path = Path(data_path)
    manifest = load_manifest(str(data_path))

    unknown = [s for s in (stages or []) + (skip or []) if s not in ALL_STAGES]
    if unknown:
        raise ValueError(f"unknown stage(s) {unknown}; expected {ALL_STAGES}")

    run_stages = [s for s in ALL_STAGES if (not stages or s in stages) and s not in (skip or [])]

    # Validate before any computation
    if 'prepare' in run_stages:
        validate_input(str(data_path), raise_on_error=True, verbose=False, manifest=manifest)

    output_dir = get_output_dir(manifest)
    params = TimescaleParams.from_manifest(manifest)

    if verbose:
        print("=" * 70)
        print("TIMESCALES PIPELINE")
        print("=" * 70)
        print(f"Data:      {data_path}")
        print(f"Output:    {output_dir}")
        print(f"Stages:    {', '.join(run_stages)}")
        print(f"Lakes:     {get_lakes(manifest)}")
        print(f"Variables: {', '.join(get_variables(manifest))}")
        print(f"Window:    {params.window_days} days, agg {params.agg_steps}")
        print()

    for stage in run_stages:
        _check_stage_inputs(stage, output_dir)
        logger.debug("running stage %s", stage)
        _dispatch(stage, manifest, output_dir, verbose)
        if verbose:
            print()

    outputs = {}
    for name in ('observations', 'aggregated', 'rolling_ac', 'acf_map', 'ac_trend'):
        path = output_path(output_dir, name)
        if path.exists():
            outputs[name] = path
    return outputs


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="timescales: autocorrelation across sampling frequencies",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Stages: prepare, aggregate, rolling_ac, acf_map, trend

Usage:
  python -m timescales ~/domains/peter_paul_2015
  python -m timescales ~/domains/peter_paul_2015 --stages rolling_ac,trend
  python -m timescales ~/domains/peter_paul_2015 --skip acf_map
"""
    )
    parser.add_argument('data_path', help='Path to data directory (must contain manifest.yaml)')
    parser.add_argument('--stages', help='Comma-separated stages to run')
    parser.add_argument('--skip', help='Comma-separated stages to skip')
    parser.add_argument('-q', '--quiet', action='store_true', help='Suppress output')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    run(
        args.data_path,
        stages=args.stages.split(',') if args.stages else None,
        skip=args.skip.split(',') if args.skip else None,
        verbose=not args.quiet,
    )


if __name__ == '__main__':
    main()
