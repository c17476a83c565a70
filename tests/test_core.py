import gzip
import json
import os
import subprocess
import threading
import time

import pytest

from containerdbbackup.core import ContainerBackup
from containerdbbackup.errors import ConfigurationError
from containerdbbackup.models import ContainerHandle


class FakeRuntime:
    """In-memory docker runtime reporting a fixed set of containers."""

    def __init__(self, containers=None, environments=None, failing_dumps=()):
        self.containers = containers or [
            ContainerHandle("db1", "postgres:14"),
            ContainerHandle("db2", "postgres:15"),
            ContainerHandle("cache1", "redis:7"),
        ]
        self.environments = environments or {
            "db1": {"POSTGRES_DB": "app", "POSTGRES_USER": "admin"},
            "db2": {"POSTGRES_DB": "shop", "POSTGRES_USER": "shop"},
            "cache1": {"REDIS_PASSWORD": "secret"},
        }
        self.failing_dumps = set(failing_dumps)
        self.lock = threading.Lock()
        self.list_calls = 0
        self.dumped = []
        self.in_flight = 0
        self.peak_in_flight = 0

    def ensure_available(self):
        return None

    def list_running(self):
        self.list_calls += 1
        return list(self.containers)

    def read_environment(self, container):
        return dict(self.environments.get(container, {}))

    def exec_stream(self, container, cmd, destination, env=None, timeout=None):
        with self.lock:
            self.in_flight += 1
            self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
            self.dumped.append(container)
        time.sleep(0.05)
        destination.write(f"-- dump of {container}\n".encode("utf-8"))
        with self.lock:
            self.in_flight -= 1
        returncode = 1 if container in self.failing_dumps else 0
        return subprocess.CompletedProcess(cmd, returncode, stdout=None, stderr="dump failed")


def _artifacts(directory):
    return sorted(name for name in os.listdir(directory) if name.endswith(".gz"))


def test_run_backs_up_only_postgres_containers_one_at_a_time(tmp_path):
    runtime = FakeRuntime()
    backup = ContainerBackup(backup_dir=str(tmp_path), retention_days=2, max_jobs=1, runtime=runtime)

    exit_code = backup.run()

    assert exit_code == 0
    assert sorted(runtime.dumped) == ["db1", "db2"]
    assert runtime.peak_in_flight == 1

    artifacts = _artifacts(tmp_path)
    assert len(artifacts) == 2
    assert artifacts[0].startswith("db1-app-")
    assert artifacts[1].startswith("db2-shop-")
    with gzip.open(tmp_path / artifacts[0], "rb") as file_obj:
        assert file_obj.read() == b"-- dump of db1\n"


def test_zero_retention_days_is_rejected_before_discovery(tmp_path):
    runtime = FakeRuntime()

    with pytest.raises(ConfigurationError, match="positive integer"):
        ContainerBackup(backup_dir=str(tmp_path), retention_days=0, max_jobs=4, runtime=runtime)

    assert runtime.list_calls == 0
    assert os.listdir(tmp_path) == []


def test_missing_credentials_fail_run_but_other_containers_complete(tmp_path):
    runtime = FakeRuntime(
        environments={
            "db1": {"POSTGRES_DB": "app", "POSTGRES_USER": "admin"},
            "db2": {"POSTGRES_DB": "shop", "POSTGRES_USER": ""},
        }
    )
    backup = ContainerBackup(backup_dir=str(tmp_path), retention_days=2, max_jobs=2, runtime=runtime)

    exit_code = backup.run()

    assert exit_code == 1
    assert runtime.dumped == ["db1"]
    assert len(_artifacts(tmp_path)) == 1


def test_prune_runs_even_when_backup_fails(tmp_path):
    old_time = time.time() - 10 * 86400
    for day in range(1, 4):
        path = tmp_path / f"db1-app-2023010{day}0000.sql.gz"
        path.write_bytes(b"old")
        os.utime(path, (old_time, old_time))

    runtime = FakeRuntime(
        containers=[ContainerHandle("db1", "postgres:16")],
        failing_dumps={"db1"},
    )
    report_file = tmp_path / "report.json"
    backup = ContainerBackup(
        backup_dir=str(tmp_path),
        retention_days=2,
        max_jobs=4,
        runtime=runtime,
        report_file=str(report_file),
    )

    exit_code = backup.run()

    assert exit_code == 1
    assert _artifacts(tmp_path) == []

    report = json.loads(report_file.read_text(encoding="utf-8"))
    assert report["status"] == "failed"
    unit = report["containers"]["db1"]
    assert unit["status"] == "failed"
    assert unit["errors"][0]["step"] == "backup"
    assert len(unit["pruned"]) == 3


def test_run_creates_missing_backup_directory(tmp_path):
    target = tmp_path / "nested" / "backup"
    runtime = FakeRuntime(containers=[ContainerHandle("cache1", "redis:7")])

    exit_code = ContainerBackup(backup_dir=str(target), runtime=runtime).run()

    assert exit_code == 0
    assert target.is_dir()
    assert runtime.dumped == []


def test_run_fails_when_runtime_is_unreachable(tmp_path):
    class BrokenRuntime(FakeRuntime):
        def list_running(self):
            from containerdbbackup.errors import BackupError

            raise BackupError("Cannot connect to the Docker daemon")

    exit_code = ContainerBackup(backup_dir=str(tmp_path), runtime=BrokenRuntime()).run()

    assert exit_code == 1


def test_prune_of_one_container_spares_dash_extended_sibling(tmp_path):
    old_time = time.time() - 10 * 86400
    for day in range(1, 7):
        path = tmp_path / f"db-app-2023010{day}0000.sql.gz"
        path.write_bytes(b"old")
        os.utime(path, (old_time, old_time))
    replica_files = []
    for day in range(1, 3):
        path = tmp_path / f"db-replica-app-2023010{day}0000.sql.gz"
        path.write_bytes(b"old")
        os.utime(path, (old_time, old_time))
        replica_files.append(path)

    runtime = FakeRuntime(
        containers=[ContainerHandle("db", "postgres:16"), ContainerHandle("db-replica", "postgres:16")],
        environments={
            "db": {"POSTGRES_DB": "app", "POSTGRES_USER": "admin"},
            "db-replica": {"POSTGRES_DB": "app", "POSTGRES_USER": "admin"},
        },
    )
    backup = ContainerBackup(backup_dir=str(tmp_path), retention_days=5, max_jobs=2, runtime=runtime)

    exit_code = backup.run()

    assert exit_code == 0
    assert all(path.exists() for path in replica_files)
    replica_artifacts = [name for name in _artifacts(tmp_path) if name.startswith("db-replica-")]
    assert len(replica_artifacts) == 3
    own_artifacts = [name for name in _artifacts(tmp_path) if not name.startswith("db-replica-")]
    assert len(own_artifacts) == 1
