"""Run report generation service."""

import json
import os
import tempfile
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from containerdbbackup.models import UnitResult


class ReportService:
    """Collects run metadata and per-container outcomes into a JSON report."""

    def __init__(self, report_file: Optional[str], logger):
        self.report_file = report_file
        self.logger = logger
        self.report: Dict[str, Any] = {
            "status": "running",
            "started_at": None,
            "finished_at": None,
            "duration_seconds": None,
            "metadata": {},
            "containers": {},
            "error": None,
        }

    def start_run(self, metadata: Dict[str, Any]):
        self.report["status"] = "running"
        self.report["started_at"] = self._now()
        self.report["metadata"] = metadata
        self.write()

    def add_unit(self, unit: UnitResult):
        self.report["containers"][unit.container_name] = {
            "status": "success" if unit.succeeded else "failed",
            "artifact": unit.artifact.path if unit.artifact else None,
            "database": unit.artifact.database if unit.artifact else None,
            "pruned": list(unit.pruned),
            "errors": [{"step": error.step, "message": error.message} for error in unit.errors],
        }
        self.write()

    def finalize(self, status: str, error: Optional[str] = None):
        self.report["status"] = status
        self.report["finished_at"] = self._now()
        if self.report.get("started_at"):
            started_at = datetime.fromisoformat(self.report["started_at"])
            finished_at = datetime.fromisoformat(self.report["finished_at"])
            self.report["duration_seconds"] = (finished_at - started_at).total_seconds()
        self.report["error"] = error
        self.write()

    def write(self):
        if not self.report_file:
            return

        report_dir = os.path.dirname(self.report_file) or "."
        try:
            os.makedirs(report_dir, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(prefix="run-report-", suffix=".json", dir=report_dir)
        except OSError as exc:
            self.logger.warning("Could not write report file '%s': %s", self.report_file, exc)
            return

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as file_obj:
                json.dump(self.report, file_obj, indent=2, sort_keys=True)
                file_obj.write("\n")
            os.replace(temp_path, self.report_file)
        except OSError as exc:
            self.logger.warning("Could not write report file '%s': %s", self.report_file, exc)
            try:
                os.remove(temp_path)
            except OSError:
                pass

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()
