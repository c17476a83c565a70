import logging
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.markup import escape

from .constants import (
    DEFAULT_BACKUP_DIR,
    DEFAULT_IMAGE,
    DEFAULT_MAX_JOBS,
    DEFAULT_RETENTION_DAYS,
    DEFAULT_RETRY_BACKOFF_SECONDS,
    DEFAULT_RETRY_COUNT,
)
from .errors import BackupError
from .models import ContainerHandle, UnitResult
from .services.backup import BackupService
from .services.command_runner import CommandRunner
from .services.credentials import CredentialService
from .services.docker_runtime import DockerRuntimeService
from .services.filesystem import FileSystemService
from .services.inventory import InventoryService
from .services.report import ReportService
from .services.retention import RetentionService
from .services.scheduler import JobScheduler
from .services.validation import ValidationService

console = Console()
logger = logging.getLogger("containerdbbackup")


class ContainerBackup:
    def __init__(
        self,
        backup_dir: str = DEFAULT_BACKUP_DIR,
        retention_days: Any = DEFAULT_RETENTION_DAYS,
        max_jobs: Any = DEFAULT_MAX_JOBS,
        image: str = DEFAULT_IMAGE,
        dump_timeout_minutes: Optional[float] = None,
        retry_count: int = DEFAULT_RETRY_COUNT,
        retry_backoff_seconds: float = DEFAULT_RETRY_BACKOFF_SECONDS,
        report_file: Optional[str] = None,
        runtime=None,
    ):
        self.validation_service = ValidationService()
        self.config = self.validation_service.build_run_configuration(
            backup_dir=backup_dir,
            retention_days=retention_days,
            max_jobs=max_jobs,
            image=image,
            dump_timeout_minutes=dump_timeout_minutes,
            retry_count=retry_count,
            retry_backoff_seconds=retry_backoff_seconds,
        )
        self.report_file = report_file

        self.filesystem_service = FileSystemService(logger=logger, console=console)
        self.command_runner = CommandRunner(logger=logger)
        self.docker_runtime_service = runtime or DockerRuntimeService(
            logger=logger,
            console=console,
            command_runner=self.command_runner,
            retry_count=self.config.retry_count,
            retry_backoff_seconds=self.config.retry_backoff_seconds,
        )
        self.inventory_service = InventoryService(self.docker_runtime_service, logger=logger)
        self.credential_service = CredentialService(self.docker_runtime_service, logger=logger)
        self.backup_service = BackupService(
            self.docker_runtime_service,
            logger=logger,
            filesystem_service=self.filesystem_service,
            dump_timeout_seconds=self.config.dump_timeout_seconds,
        )
        self.retention_service = RetentionService(
            logger=logger, filesystem_service=self.filesystem_service
        )
        self.scheduler = JobScheduler(max_jobs=self.config.max_jobs, logger=logger)
        self.report_service = ReportService(report_file=report_file, logger=logger)
        self.discovered_names: List[str] = []

    def _build_report_metadata(self) -> Dict[str, Any]:
        return {
            "backup_dir": self.config.backup_dir,
            "retention_days": self.config.retention_days,
            "max_jobs": self.config.max_jobs,
            "image": self.config.image,
            "dump_timeout_seconds": self.config.dump_timeout_seconds,
        }

    def validate_environment(self):
        """Checks docker and the backup directory before any container is touched."""
        self.docker_runtime_service.ensure_available()
        self.filesystem_service.ensure_dir(self.config.backup_dir)
        self.validation_service.validate_backup_dir(self.config.backup_dir)

    def backup_container(self, container: ContainerHandle) -> UnitResult:
        """Credentials, dump and prune for one container.

        Pruning runs even when the dump failed, it only looks at files left
        by earlier runs.
        """
        console.print(escape(f"Backing up {container.name} ..."))
        unit = UnitResult(container_name=container.name)

        credentials = None
        try:
            credentials = self.credential_service.extract(container)
        except BackupError as exc:
            logger.error("[%s] credentials: %s", container.name, exc)
            unit.add_error("credentials", str(exc))

        if credentials is not None:
            try:
                unit.artifact = self.backup_service.backup(
                    self.config.backup_dir, container, credentials
                )
            except BackupError as exc:
                logger.error("[%s] backup: %s", container.name, exc)
                unit.add_error("backup", str(exc))

        try:
            pruned = self.retention_service.prune(
                self.config.backup_dir,
                self.config.retention_days,
                container.name,
                sibling_names=self.discovered_names,
            )
        except OSError as exc:
            logger.error("[%s] prune: %s", container.name, exc)
            unit.add_error("prune", f"Could not scan {self.config.backup_dir}: {exc}")
        else:
            unit.pruned.extend(pruned.deleted)
            for message in pruned.errors:
                unit.add_error("prune", message)

        if unit.succeeded:
            console.print(escape(f"Backing up {container.name} [DONE]"), style="green")
        else:
            console.print(escape(f"Backing up {container.name} [FAILED]"), style="red")
        return unit

    def run(self) -> int:
        exit_code = 1
        report_status = "failed"
        report_error: Optional[str] = None

        try:
            logger.info("Starting container-db-backup...")
            self.report_service.start_run(self._build_report_metadata())

            self.validate_environment()

            console.print(escape("Backup for Databases [START]"), style="bold blue")
            containers = self.inventory_service.find_by_image(self.config.image)
            self.discovered_names = [container.name for container in containers]

            result = self.scheduler.run(
                containers,
                self.backup_container,
                progress=self.report_service.add_unit,
            )

            if not result.succeeded:
                for unit in result.failed_units:
                    for error in unit.errors:
                        logger.error(
                            "%s failed at %s: %s", unit.container_name, error.step, error.message
                        )
                failed = ", ".join(unit.container_name for unit in result.failed_units)
                raise BackupError(f"Backup for Databases [FAILED]: {failed}")

            console.print(escape("Backup for Databases [DONE]"), style="bold green")
            logger.info("Backed up %s container(s).", len(result.units))
            report_status = "success"
            exit_code = 0
            return exit_code

        except KeyboardInterrupt:
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            report_status = "aborted"
            report_error = "Operation cancelled by user."
            exit_code = 1
            return exit_code
        except BackupError as exc:
            console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
            logger.error(str(exc))
            report_error = str(exc)
            exit_code = 1
            return exit_code
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {escape(str(exc))}")
            logger.exception("Unexpected error")
            report_error = str(exc)
            exit_code = 1
            return exit_code
        finally:
            self.report_service.finalize(report_status, error=report_error)
