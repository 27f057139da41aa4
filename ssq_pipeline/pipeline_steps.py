"""
SSQ pipeline step functions.

Each function is a discrete, testable pipeline step with explicit
inputs/outputs and StepResult tracking.  Boilerplate (timing, error
handling, logging) is handled by ``run_step()``.
"""

from ssq_pipeline.logging_config import get_pipeline_logger
from ssq_pipeline.step_runner import run_step

log = get_pipeline_logger(__name__)


def step_load_primary_data(db: str) -> tuple:
    """Read, clean and shape-check the primary workbook."""
    from ssq_pipeline.loader import load_primary_data, primary_data_path

    return run_step(
        "load_primary_data", load_primary_data, db,
        input_summary={"path": primary_data_path(db)},
        output_summary_fn=lambda df: {"rows": len(df), "columns": len(df.columns)},
    )


def step_normalize(raw, species=None) -> tuple:
    """Rename, map species, convert dates and split out chicks."""
    from ssq_pipeline.normalize import normalize_primary_data

    return run_step(
        "normalize", normalize_primary_data, raw, species,
        input_summary={"rows": len(raw), "species": species},
        output_summary_fn=lambda data: {
            "broods": data.n_broods,
            "chicks": data.n_chicks,
        },
    )


def step_brood_table(broods, max_renest_interval=None) -> tuple:
    """Classify clutch types and assemble the Brood table."""
    from ssq_pipeline.tables import create_brood_table

    def _work():
        log.info("Compiling brood information...")
        return create_brood_table(broods, max_renest_interval)

    return run_step(
        "brood_table", _work,
        input_summary={"broods": len(broods), "max_renest_interval": max_renest_interval},
        output_summary_fn=lambda df: {
            "rows": len(df),
            "clutch_types": df["ClutchType_calculated"]
            .fillna("unknown").value_counts().to_dict(),
        },
    )


def step_capture_table(broods, chicks) -> tuple:
    """Assemble adult and chick captures and resolve ages."""
    from ssq_pipeline.tables import create_capture_table

    def _work():
        log.info("Compiling capture information...")
        return create_capture_table(broods, chicks)

    return run_step(
        "capture_table", _work,
        input_summary={"broods": len(broods), "chicks": len(chicks)},
        output_summary_fn=lambda df: {
            "rows": len(df),
            "individuals": df["IndvID"].nunique(),
            "age_unresolved": int(df["Age_calculated"].isna().sum()),
        },
    )


def step_individual_table(captures, broods, chicks) -> tuple:
    """Summarise captures per individual."""
    from ssq_pipeline.tables import create_individual_table

    def _work():
        log.info("Compiling individual information...")
        return create_individual_table(captures, broods, chicks)

    return run_step(
        "individual_table", _work,
        input_summary={"captures": len(captures)},
        output_summary_fn=lambda df: {"rows": len(df)},
    )


def step_location_table(broods) -> tuple:
    """One row per nest box."""
    from ssq_pipeline.tables import create_location_table

    def _work():
        log.info("Compiling nestbox information...")
        return create_location_table(broods)

    return run_step(
        "location_table", _work,
        input_summary={"broods": len(broods)},
        output_summary_fn=lambda df: {"rows": len(df)},
    )


def step_export(tables, output_type, output_dir=None) -> tuple:
    """Write CSV files or hand back in-memory tables."""
    from ssq_pipeline.export import export_tables

    return run_step(
        "export", export_tables, tables, output_type, output_dir,
        input_summary={"output_type": output_type, "output_dir": output_dir},
        output_summary_fn=lambda paths: {"files": len(paths)},
    )
