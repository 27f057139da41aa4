"""
Logging for the SSQ standard-format pipeline.

Records go to three places:

* the console, one short line per record (level from ``LOG_LEVEL``);
* ``ssq_pipeline.log``, a rotating JSON Lines file in ``SSQ_LOG_DIR``
  (default ``./logs``) that accumulates across runs;
* ``pipeline.jsonl`` in the output directory of a CSV run, next to the
  exported tables and ``pipeline_run.json``.

Every JSON entry carries the run id from start_run(), so entries in the
shared rotating log can be matched to one run's output directory.

Usage:
    from ssq_pipeline.logging_config import get_pipeline_logger
    log = get_pipeline_logger(__name__)
"""

import json
import logging
import os
import uuid
from logging.handlers import RotatingFileHandler

LOG_LEVEL_ENV = "LOG_LEVEL"
LOG_DIR_ENV = "SSQ_LOG_DIR"
ROTATING_LOG_FILE = "ssq_pipeline.log"
RUN_LOG_FILE = "pipeline.jsonl"
ROTATING_MAX_BYTES = 5 * 1024 * 1024
ROTATING_BACKUPS = 3

# ``extra=`` keys set by log_step_summary() and the runner's NaN and
# unresolved-record audits.
STEP_FIELDS = (
    "step_name",
    "status",
    "timing_seconds",
    "input_summary",
    "output_summary",
    "warnings",
    "nan_summary",
    "unresolved_counts",
)

_run_id = None
_console_handler = None
_rotating_handler = None
_run_handler = None


def start_run(run_id=None):
    """Start tagging records with a new run id and return it."""
    global _run_id
    _run_id = run_id or uuid.uuid4().hex[:8]
    return _run_id


class _RunIdFilter(logging.Filter):

    def filter(self, record):
        record.run_id = _run_id
        return True


class JsonLinesFormatter(logging.Formatter):
    """One JSON object per record, with any STEP_FIELDS passed via ``extra=``."""

    def format(self, record):
        entry = {
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "run_id": getattr(record, "run_id", None),
            "message": record.getMessage(),
        }
        for key in STEP_FIELDS:
            if hasattr(record, key):
                entry[key] = getattr(record, key)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _add_handler(handler, level, formatter):
    handler.setLevel(level)
    handler.setFormatter(formatter)
    # Handler filters also see records propagated from child loggers.
    handler.addFilter(_RunIdFilter())
    logging.getLogger().addHandler(handler)
    return handler


def _console_level():
    level = getattr(logging, os.environ.get(LOG_LEVEL_ENV, "INFO").upper(), None)
    return level if isinstance(level, int) else logging.INFO


def setup_logging(run_dir=None, console_level=None, log_dir=None):
    """Attach the pipeline's handlers to the root logger.

    The console and rotating handlers are added once. A ``run_dir`` adds
    ``pipeline.jsonl`` there; a later call with a different ``run_dir``
    moves it, so consecutive runs in one process log to their own
    output directories.

    Parameters
    ----------
    run_dir : str, optional
        Output directory of a CSV run.
    console_level : int, optional
        Overrides ``LOG_LEVEL`` for the console.
    log_dir : str, optional
        Overrides ``SSQ_LOG_DIR`` for the rotating log.
    """
    global _console_handler, _rotating_handler, _run_handler

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    if _run_id is None:
        start_run()

    if _console_handler is None:
        _console_handler = _add_handler(
            logging.StreamHandler(),
            console_level if console_level is not None else _console_level(),
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                              datefmt="%H:%M:%S"),
        )
        log_dir = log_dir or os.environ.get(LOG_DIR_ENV, "logs")
        os.makedirs(log_dir, exist_ok=True)
        _rotating_handler = _add_handler(
            RotatingFileHandler(
                os.path.join(log_dir, ROTATING_LOG_FILE),
                maxBytes=ROTATING_MAX_BYTES,
                backupCount=ROTATING_BACKUPS,
            ),
            logging.DEBUG,
            JsonLinesFormatter(),
        )

    if run_dir is None:
        return
    path = os.path.abspath(os.path.join(run_dir, RUN_LOG_FILE))
    if _run_handler is not None:
        if _run_handler.baseFilename == path:
            return
        root.removeHandler(_run_handler)
        _run_handler.close()
    os.makedirs(run_dir, exist_ok=True)
    _run_handler = _add_handler(logging.FileHandler(path), logging.DEBUG,
                                JsonLinesFormatter())


def reset_logging():
    """Detach and close the pipeline's handlers and forget the run id.

    Handlers added by anything else (pytest's capture, for one) stay.
    """
    global _run_id, _console_handler, _rotating_handler, _run_handler
    root = logging.getLogger()
    for handler in (_console_handler, _rotating_handler, _run_handler):
        if handler is not None:
            root.removeHandler(handler)
            handler.close()
    _run_id = None
    _console_handler = _rotating_handler = _run_handler = None


def get_pipeline_logger(name):
    """Return a logger, setting up console and rotating output on first use."""
    if _console_handler is None:
        setup_logging()
    return logging.getLogger(name)


def log_step_summary(logger, result):
    """Log a finished StepResult.

    The console gets ``[step] status (1.23s) output={...}``; the JSON logs
    also get the input summary, warnings and timing as fields. Failed
    steps are logged at ERROR.
    """
    line = f"[{result.step_name}] {result.status} ({result.timing_seconds:.2f}s)"
    if result.output_summary:
        line += f" output={result.output_summary}"
    logger.log(
        logging.INFO if result.ok else logging.ERROR,
        line,
        extra={
            "step_name": result.step_name,
            "status": result.status,
            "timing_seconds": round(result.timing_seconds, 3),
            "input_summary": result.input_summary,
            "output_summary": result.output_summary,
            "warnings": result.warnings,
        },
    )
