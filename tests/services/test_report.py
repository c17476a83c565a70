import json
from datetime import datetime

from containerdbbackup.models import BackupArtifact, UnitResult
from containerdbbackup.services.report import ReportService


class DummyLogger:
    def warning(self, *_args, **_kwargs):
        return None


def test_report_service_writes_unit_outcomes(tmp_path):
    report_file = tmp_path / "reports" / "run.json"
    service = ReportService(str(report_file), logger=DummyLogger())

    ok = UnitResult(
        container_name="db1",
        artifact=BackupArtifact("db1", "app", datetime(2024, 1, 2, 3, 4), "/b/db1-app-202401020304.sql.gz"),
        pruned=["/b/db1-app-202312010304.sql.gz"],
    )
    failed = UnitResult(container_name="db2")
    failed.add_error("credentials", "Container db2 does not define POSTGRES_DB.")

    service.start_run({"max_jobs": 2})
    service.add_unit(ok)
    service.add_unit(failed)
    service.finalize("failed", error="Backup for Databases [FAILED]: db2")

    data = json.loads(report_file.read_text(encoding="utf-8"))

    assert data["status"] == "failed"
    assert data["metadata"] == {"max_jobs": 2}
    assert data["containers"]["db1"]["status"] == "success"
    assert data["containers"]["db1"]["artifact"] == "/b/db1-app-202401020304.sql.gz"
    assert data["containers"]["db1"]["pruned"] == ["/b/db1-app-202312010304.sql.gz"]
    assert data["containers"]["db2"]["errors"][0]["step"] == "credentials"
    assert data["duration_seconds"] is not None


def test_report_service_without_file_writes_nothing(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    service = ReportService(None, logger=DummyLogger())

    service.start_run({})
    service.finalize("success")

    assert list(tmp_path.iterdir()) == []
