"""pg_dump execution and compression for container-db-backup."""

import gzip
import os
from datetime import datetime
from typing import Callable, Optional

from containerdbbackup.constants import (
    ARTIFACT_SUFFIX,
    DATABASE_ENV_VAR,
    DUMP_EXTENSION,
    PARTIAL_SUFFIX,
    TIMESTAMP_FORMAT,
    USER_ENV_VAR,
)
from containerdbbackup.errors import BackupError
from containerdbbackup.errors_catalog import actionable_error
from containerdbbackup.models import BackupArtifact, ContainerHandle, DatabaseCredentials


class BackupService:
    """Dumps one database inside its container and gzips the stream to disk."""

    COMPRESS_LEVEL = 6

    def __init__(
        self,
        runtime,
        logger,
        filesystem_service,
        dump_timeout_seconds: Optional[float] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.runtime = runtime
        self.logger = logger
        self.filesystem_service = filesystem_service
        self.dump_timeout_seconds = dump_timeout_seconds
        self.clock = clock

    @staticmethod
    def is_safe_name(value: str) -> bool:
        forbidden = {"/", "\0", os.sep}
        if os.altsep:
            forbidden.add(os.altsep)
        return not any(char in value for char in forbidden)

    @staticmethod
    def artifact_name(container_name: str, database: str, created_at: datetime) -> str:
        timestamp = created_at.strftime(TIMESTAMP_FORMAT)
        return f"{container_name}-{database}-{timestamp}.{DUMP_EXTENSION}{ARTIFACT_SUFFIX}"

    def backup(
        self,
        backup_dir: str,
        container: ContainerHandle,
        credentials: DatabaseCredentials,
    ) -> BackupArtifact:
        if not self.is_safe_name(credentials.database):
            raise BackupError(
                actionable_error(
                    "unsafe_database_name",
                    container=container.name,
                    database=credentials.database,
                )
            )

        created_at = self.clock()
        target_path = os.path.join(
            backup_dir, self.artifact_name(container.name, credentials.database, created_at)
        )
        partial_path = target_path + PARTIAL_SUFFIX

        self.logger.info(
            "Dumping database '%s' from %s to %s", credentials.database, container.name, target_path
        )

        try:
            with gzip.open(partial_path, "wb", compresslevel=self.COMPRESS_LEVEL) as gz_file:
                result = self.runtime.exec_stream(
                    container.name,
                    ["pg_dump", "-U", credentials.user, credentials.database],
                    gz_file,
                    env={
                        DATABASE_ENV_VAR: credentials.database,
                        USER_ENV_VAR: credentials.user,
                    },
                    timeout=self.dump_timeout_seconds,
                )
        except BackupError:
            self.filesystem_service.remove_file(partial_path)
            raise
        except OSError as exc:
            self.filesystem_service.remove_file(partial_path)
            raise BackupError(
                f"Could not write backup for container {container.name} to {target_path}: {exc}"
            ) from exc

        if result.returncode != 0:
            self.filesystem_service.remove_file(partial_path)
            message = actionable_error(
                "dump_failed", container=container.name, returncode=str(result.returncode)
            )
            stderr = (result.stderr or "").strip()
            if stderr:
                message = f"{message}\n{stderr}"
            raise BackupError(message)

        try:
            os.replace(partial_path, target_path)
        except OSError as exc:
            self.filesystem_service.remove_file(partial_path)
            raise BackupError(f"Could not finalize backup {target_path}: {exc}") from exc

        return BackupArtifact(
            container_name=container.name,
            database=credentials.database,
            created_at=created_at,
            path=target_path,
        )
