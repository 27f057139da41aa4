"""
Typed result dataclasses for pipeline step tracking.

Every stage returns a StepResult; a run collects them in a
PipelineRunResult together with table sizes and the audit of
unresolved values, which is saved as ``pipeline_run.json``.
"""

import subprocess
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class StepStatus(str, Enum):
    """Pipeline step outcome status."""
    SUCCESS = "success"
    SKIPPED = "skipped"
    ERROR = "error"


def _now_iso():
    return datetime.now(timezone.utc).isoformat()


def _get_git_sha():
    """Return the short git SHA of the current HEAD, or None."""
    try:
        return subprocess.check_output(
            ["git", "rev-parse", "--short", "HEAD"],
            stderr=subprocess.DEVNULL,
            text=True,
        ).strip()
    except (subprocess.SubprocessError, FileNotFoundError):
        return None


@dataclass
class StepResult:
    """Result of a single pipeline step execution."""

    step_name: str
    status: str  # "success", "skipped", "error"
    input_summary: dict = field(default_factory=dict)
    output_summary: dict = field(default_factory=dict)
    timing_seconds: float = 0.0
    warnings: list = field(default_factory=list)
    error: Optional[str] = None
    started_at: str = field(default_factory=_now_iso)
    nan_summary: Optional[dict] = None

    @property
    def ok(self):
        return self.status == StepStatus.SUCCESS.value

    def to_dict(self):
        return {
            "step_name": self.step_name,
            "status": self.status,
            "input_summary": self.input_summary,
            "output_summary": self.output_summary,
            "timing_seconds": self.timing_seconds,
            "warnings": self.warnings,
            "error": self.error,
            "started_at": self.started_at,
            "nan_summary": self.nan_summary,
        }

    @classmethod
    def from_dict(cls, d):
        """Reconstruct a StepResult from a serialized dict."""
        return cls(
            step_name=d["step_name"],
            status=d["status"],
            input_summary=d.get("input_summary", {}),
            output_summary=d.get("output_summary", {}),
            timing_seconds=d.get("timing_seconds", 0.0),
            warnings=d.get("warnings", []),
            error=d.get("error"),
            started_at=d.get("started_at", ""),
            nan_summary=d.get("nan_summary"),
        )


@dataclass
class PipelineRunResult:
    """Result of a complete pipeline execution.

    ``tables`` holds the four output DataFrames when the run succeeded and
    is never serialized; ``table_rows`` records their sizes instead.
    """

    db: str = ""
    output_dir: str = ""
    output_type: str = ""  # "csv" or "memory"
    species: list = field(default_factory=list)
    step_results: list = field(default_factory=list)
    table_rows: dict = field(default_factory=dict)
    unresolved_counts: dict = field(default_factory=dict)
    total_time_seconds: float = 0.0
    output_files: list = field(default_factory=list)
    git_sha: Optional[str] = field(default_factory=_get_git_sha)
    started_at: str = field(default_factory=_now_iso)
    tables: Optional[dict] = field(default=None, repr=False, compare=False)

    @property
    def all_ok(self):
        return bool(self.step_results) and all(s.ok for s in self.step_results)

    @property
    def failed_steps(self):
        return [s for s in self.step_results if not s.ok]

    def to_dict(self):
        return {
            "db": self.db,
            "output_dir": self.output_dir,
            "output_type": self.output_type,
            "species": self.species,
            "steps": [s.to_dict() for s in self.step_results],
            "table_rows": self.table_rows,
            "unresolved_counts": self.unresolved_counts,
            "total_time_seconds": self.total_time_seconds,
            "output_files": self.output_files,
            "all_ok": self.all_ok,
            "git_sha": self.git_sha,
            "started_at": self.started_at,
        }

    @classmethod
    def from_dict(cls, d):
        """Reconstruct a PipelineRunResult from a serialized dict."""
        result = cls(
            db=d.get("db", ""),
            output_dir=d.get("output_dir", ""),
            output_type=d.get("output_type", ""),
            species=d.get("species", []),
            table_rows=d.get("table_rows", {}),
            unresolved_counts=d.get("unresolved_counts", {}),
            total_time_seconds=d.get("total_time_seconds", 0.0),
            output_files=d.get("output_files", []),
            git_sha=d.get("git_sha"),
            started_at=d.get("started_at", ""),
        )
        result.step_results = [
            StepResult.from_dict(s) for s in d.get("steps", [])
        ]
        return result
