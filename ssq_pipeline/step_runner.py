"""
Runs one pipeline stage and records its outcome as a StepResult.

A stage either returns its data (status ``success``, with an output
summary) or raises (status ``error``, with the traceback in
``StepResult.error`` and ``None`` as data). Problems with the workbook
or the run options, such as a missing file, a missing column or an
unsupported species, are INPUT_ERRORS and get a one-line log message;
anything else is logged with its traceback.
"""

import time
import traceback

import pandas as pd

from ssq_pipeline.logging_config import get_pipeline_logger, log_step_summary
from ssq_pipeline.pipeline_types import StepResult, StepStatus

log = get_pipeline_logger(__name__)

INPUT_ERRORS = (
    FileNotFoundError,
    ValueError,
    KeyError,
    pd.errors.EmptyDataError,
    pd.errors.MergeError,
)


def run_step(step_name, fn, *args, input_summary=None, output_summary_fn=None,
             expected_exceptions=INPUT_ERRORS, **kwargs):
    """Call ``fn(*args, **kwargs)`` as the pipeline stage ``step_name``.

    Parameters
    ----------
    step_name : str
        Stage name recorded in the StepResult and the provenance file.
    fn : callable
        The stage function.
    input_summary : dict, optional
        Sizes of the stage's inputs, e.g. ``{"broods": 120}``.
    output_summary_fn : callable, optional
        Maps the stage's return value to an output-summary dict. Not
        called when the stage fails or returns None.
    expected_exceptions : tuple of type
        Exceptions logged without a traceback.

    Returns
    -------
    tuple[StepResult, object]
        The data is None whenever the stage failed.
    """
    result = StepResult(
        step_name=step_name,
        status=StepStatus.SUCCESS.value,
        input_summary=dict(input_summary or {}),
    )
    data = None
    start = time.perf_counter()
    try:
        data = fn(*args, **kwargs)
    except expected_exceptions as exc:
        result.status = StepStatus.ERROR.value
        result.error = traceback.format_exc()
        log.error("%s failed: %s: %s", step_name, type(exc).__name__, exc)
    except Exception:
        result.status = StepStatus.ERROR.value
        result.error = traceback.format_exc()
        log.exception("%s failed unexpectedly", step_name)
    result.timing_seconds = time.perf_counter() - start

    if result.ok and data is not None and output_summary_fn is not None:
        result.output_summary = output_summary_fn(data)

    log_step_summary(log, result)
    return result, data
