#!/usr/bin/env python3
"""
Pipeline runner for the SSQ standard-format conversion.

Orchestrates load → normalize → brood → capture → individual → location
→ export with:
- Pandera schema validation gates on the input and each output table
- NaN tracking between stages
- an audit of unresolved (null sentinel) records at the end of the run
- all-or-nothing semantics: any failed stage aborts the run, no tables
- PipelineRunResult provenance saved as JSON in ``csv`` mode

Usage:
    # Write the four CSV files to ./output
    python3 -m ssq_pipeline.pipeline_runner --db ./data --output-type csv --output-dir ./output

    # Great tits only, abort on schema violations
    python3 -m ssq_pipeline.pipeline_runner --db ./data --species PARMAJ --strict-validation
"""

import argparse
import sys
import time

from ssq_pipeline import config
from ssq_pipeline.export import check_output_type, save_pipeline_result
from ssq_pipeline.formulas.species import SUPPORTED_SPECIES
from ssq_pipeline.logging_config import get_pipeline_logger, setup_logging, start_run
from ssq_pipeline.pipeline_types import PipelineRunResult
from ssq_pipeline.schemas import PrimaryDataSchema, TABLE_SCHEMAS, validate_schema
from ssq_pipeline.tables import count_unresolved

log = get_pipeline_logger(__name__)


# ── NaN tracking helper ──────────────────────────────────────────────────


def track_nan_counts(df, step_name, prev_nan_counts=None):
    """Track NaN counts per column and warn on propagation.

    Parameters
    ----------
    df : pd.DataFrame or None
        DataFrame to inspect.
    step_name : str
        Pipeline step name for logging.
    prev_nan_counts : dict or None
        NaN counts from the previous step for delta comparison.

    Returns
    -------
    dict
        Column → NaN count mapping for this step.
    """
    if df is None:
        return {}

    nan_counts = df.isna().sum().to_dict()
    nan_counts = {k: int(v) for k, v in nan_counts.items() if v > 0}

    if nan_counts:
        log.debug(
            "[%s] NaN counts: %s",
            step_name,
            nan_counts,
            extra={"step_name": step_name, "nan_summary": nan_counts},
        )

    if prev_nan_counts:
        for col, count in nan_counts.items():
            prev = prev_nan_counts.get(col)
            if prev is not None and count > prev:
                log.warning(
                    "[%s] NaN count increased for '%s': %d → %d (+%d)",
                    step_name, col, prev, count, count - prev,
                )

    return nan_counts


def _gate(df, schema, step_name, strict, pipeline_result):
    """Run a validation gate; returns False when a strict gate fails."""
    try:
        warnings_list = validate_schema(df, schema, step_name, strict=strict)
    except ValueError as e:
        log.error("Validation failed after %s: %s", step_name, e)
        return False
    for w in warnings_list:
        log.warning(w)
    if warnings_list and pipeline_result.step_results:
        pipeline_result.step_results[-1].warnings.extend(warnings_list)
    return True


def _abort(pipeline_result, start_time, step_name, error=None):
    log.error("Pipeline aborted at %s: %s", step_name, error)
    pipeline_result.tables = None
    pipeline_result.total_time_seconds = time.time() - start_time
    return pipeline_result


# ── Pipeline ─────────────────────────────────────────────────────────────


def run_pipeline(
    db,
    species=None,
    output_dir=config.DEFAULT_OUTPUT_DIR,
    output_type=config.DEFAULT_OUTPUT_TYPE,
    max_renest_interval=None,
    strict_validation=False,
):
    """Produce the four standard-format tables for SSQ.

    Parameters
    ----------
    db : str
        Directory holding ``SSQ_PrimaryData.xlsx``.
    species : list[str], optional
        Species codes to keep (default: all supported).
    output_dir : str
        Destination of CSV files and provenance in ``csv`` mode.
    output_type : str
        "csv" or "memory".
    max_renest_interval : int, optional
        Days; defaults to config.MAX_RENEST_INTERVAL_DAYS.
    strict_validation : bool
        Abort on schema violations instead of logging warnings.

    Returns
    -------
    PipelineRunResult
        ``tables`` holds Brood_data, Capture_data, Individual_data and
        Location_data when ``all_ok``; it is None after any failure.
    """
    from ssq_pipeline.pipeline_steps import (
        step_load_primary_data,
        step_normalize,
        step_brood_table,
        step_capture_table,
        step_individual_table,
        step_location_table,
        step_export,
    )

    check_output_type(output_type)
    if max_renest_interval is None:
        max_renest_interval = config.MAX_RENEST_INTERVAL_DAYS

    pipeline_result = PipelineRunResult(
        db=str(db),
        output_dir=str(output_dir),
        output_type=output_type,
        species=list(species) if species is not None else list(SUPPORTED_SPECIES),
    )
    start_time = time.time()

    # Step 1: Load
    result, raw = step_load_primary_data(db)
    pipeline_result.step_results.append(result)
    if not result.ok:
        return _abort(pipeline_result, start_time, "load_primary_data", result.error)

    if not _gate(raw, PrimaryDataSchema, "load_primary_data", strict_validation,
                 pipeline_result):
        return _abort(pipeline_result, start_time, "load_primary_data", "validation")

    # Step 2: Normalize
    result, data = step_normalize(raw, species)
    pipeline_result.step_results.append(result)
    if not result.ok:
        return _abort(pipeline_result, start_time, "normalize", result.error)
    prev_nan_counts = track_nan_counts(data.broods, "normalize")

    # Step 3-6: Tables
    tables = {}

    result, tables["Brood_data"] = step_brood_table(data.broods, max_renest_interval)
    pipeline_result.step_results.append(result)
    if not result.ok:
        return _abort(pipeline_result, start_time, "brood_table", result.error)
    track_nan_counts(tables["Brood_data"], "brood_table", prev_nan_counts)

    result, tables["Capture_data"] = step_capture_table(data.broods, data.chicks)
    pipeline_result.step_results.append(result)
    if not result.ok:
        return _abort(pipeline_result, start_time, "capture_table", result.error)
    track_nan_counts(tables["Capture_data"], "capture_table")

    result, tables["Individual_data"] = step_individual_table(
        tables["Capture_data"], data.broods, data.chicks
    )
    pipeline_result.step_results.append(result)
    if not result.ok:
        return _abort(pipeline_result, start_time, "individual_table", result.error)

    result, tables["Location_data"] = step_location_table(data.broods)
    pipeline_result.step_results.append(result)
    if not result.ok:
        return _abort(pipeline_result, start_time, "location_table", result.error)

    # Validation gates: output tables (Pandera)
    for name, schema in TABLE_SCHEMAS.items():
        if not _gate(tables[name], schema, name, strict_validation, pipeline_result):
            return _abort(pipeline_result, start_time, name, "validation")

    # Audit of unresolved records
    pipeline_result.table_rows = {name: len(df) for name, df in tables.items()}
    pipeline_result.unresolved_counts = count_unresolved(tables)
    log.info(
        "Unresolved records: %s",
        pipeline_result.unresolved_counts,
        extra={"unresolved_counts": pipeline_result.unresolved_counts},
    )

    elapsed = time.time() - start_time
    log.info("All tables generated in %.2f seconds", elapsed)

    # Step 7: Export
    result, paths = step_export(tables, output_type, output_dir)
    pipeline_result.step_results.append(result)
    if not result.ok:
        return _abort(pipeline_result, start_time, "export", result.error)
    pipeline_result.output_files = paths

    pipeline_result.tables = tables
    pipeline_result.total_time_seconds = time.time() - start_time
    return pipeline_result


# ── Main entry point ─────────────────────────────────────────────────────


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Convert SSQ primary data to the standard format"
    )
    parser.add_argument(
        "--db",
        required=True,
        help=f"Directory containing {config.PRIMARY_DATA_FILE}",
    )
    parser.add_argument(
        "--species",
        default=None,
        help=f"Comma-separated species codes to keep (default: {','.join(SUPPORTED_SPECIES)})",
    )
    parser.add_argument(
        "--output-dir",
        default=config.DEFAULT_OUTPUT_DIR,
        dest="output_dir",
        help="Output directory for CSV files and provenance",
    )
    parser.add_argument(
        "--output-type",
        choices=list(config.OUTPUT_TYPES),
        default="csv",
        dest="output_type",
        help="'csv' writes files; 'memory' only builds the tables",
    )
    parser.add_argument(
        "--max-renest-interval",
        type=int,
        default=config.MAX_RENEST_INTERVAL_DAYS,
        dest="max_renest_interval",
        help="Maximum days between a female's broods in one breeding sequence",
    )
    parser.add_argument(
        "--strict-validation",
        action="store_true",
        default=False,
        dest="strict_validation",
        help="Abort on schema validation failures (default: warn only)",
    )
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    run_id = start_run()
    run_dir = args.output_dir if args.output_type == "csv" else None
    setup_logging(run_dir=run_dir)

    # Unsupported codes fail the normalize step, not argument parsing.
    species = args.species.split(",") if args.species else None

    log.info("SSQ pipeline (run_id=%s): db=%s species=%s", run_id, args.db,
             species or list(SUPPORTED_SPECIES))

    result = run_pipeline(
        args.db,
        species=species,
        output_dir=args.output_dir,
        output_type=args.output_type,
        max_renest_interval=args.max_renest_interval,
        strict_validation=args.strict_validation,
    )

    if args.output_type == "csv":
        save_pipeline_result(result, args.output_dir)

    log.info("Pipeline complete in %.1fs", result.total_time_seconds)
    if result.failed_steps or result.tables is None:
        log.error("Failed steps: %s", [s.step_name for s in result.failed_steps])
        return 1
    log.info("All steps succeeded.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
