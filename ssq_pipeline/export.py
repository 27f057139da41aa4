"""
Output of the four standard-format tables.

``csv`` writes one file per table using the fixed SSQ file names;
``memory`` returns the tables unchanged.
"""

import json
import os

from ssq_pipeline import config
from ssq_pipeline.logging_config import get_pipeline_logger

log = get_pipeline_logger(__name__)


def check_output_type(output_type):
    if output_type not in config.OUTPUT_TYPES:
        raise ValueError(
            f"Unknown output type {output_type!r}; expected one of {config.OUTPUT_TYPES}"
        )
    return output_type


def write_tables_csv(tables, output_dir):
    """Write each table to ``{output_dir}/{Table}_data_SSQ.csv``.

    Returns
    -------
    list[str]
        Paths written, in table order.
    """
    os.makedirs(output_dir, exist_ok=True)
    paths = []
    for name, filename in config.OUTPUT_FILES.items():
        path = os.path.join(output_dir, filename)
        tables[name].to_csv(path, index=False, date_format="%Y-%m-%d")
        log.info("Saved %s (%d rows): %s", name, len(tables[name]), path)
        paths.append(path)
    return paths


def export_tables(tables, output_type, output_dir=None):
    """Export tables according to *output_type*.

    Returns
    -------
    list[str]
        Files written (empty for ``memory``).
    """
    check_output_type(output_type)
    if output_type == "csv":
        log.info("Saving .csv files...")
        return write_tables_csv(tables, output_dir or config.DEFAULT_OUTPUT_DIR)
    log.info("Returning in-memory tables...")
    return []


def save_pipeline_result(pipeline_result, output_dir):
    """Save PipelineRunResult as JSON for provenance."""
    os.makedirs(output_dir, exist_ok=True)
    result_path = os.path.join(output_dir, "pipeline_run.json")
    with open(result_path, "w") as f:
        json.dump(pipeline_result.to_dict(), f, indent=2, default=str)
    log.info("Pipeline result saved: %s", result_path)
    return result_path
