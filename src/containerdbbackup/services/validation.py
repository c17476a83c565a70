"""Input validation helpers for container-db-backup."""

import os
import re
from typing import Any, Optional

from containerdbbackup.errors import ConfigurationError
from containerdbbackup.errors_catalog import actionable_error
from containerdbbackup.models import RunConfiguration


class ValidationService:
    """Checks run inputs before any side effect happens."""

    def parse_positive_int(self, value: Any, option_name: str) -> int:
        if isinstance(value, bool):
            raise ConfigurationError(
                actionable_error("not_positive_integer", option=option_name, value=str(value))
            )

        if isinstance(value, int):
            parsed = value
        elif isinstance(value, str) and re.fullmatch(r"\d+", value.strip()):
            parsed = int(value.strip())
        else:
            raise ConfigurationError(
                actionable_error("not_positive_integer", option=option_name, value=str(value))
            )

        if parsed < 1:
            raise ConfigurationError(
                actionable_error("not_positive_integer", option=option_name, value=str(value))
            )
        return parsed

    def parse_non_negative_number(self, value: Any, option_name: str) -> float:
        if isinstance(value, bool):
            raise ConfigurationError(
                actionable_error("not_non_negative_number", option=option_name, value=str(value))
            )

        try:
            parsed = float(value)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(
                actionable_error("not_non_negative_number", option=option_name, value=str(value))
            ) from exc

        if parsed < 0:
            raise ConfigurationError(
                actionable_error("not_non_negative_number", option=option_name, value=str(value))
            )
        return parsed

    def build_run_configuration(
        self,
        backup_dir: str,
        retention_days: Any,
        max_jobs: Any,
        image: str,
        dump_timeout_minutes: Optional[Any] = None,
        retry_count: Any = 0,
        retry_backoff_seconds: Any = 0.0,
    ) -> RunConfiguration:
        if not backup_dir or not str(backup_dir).strip():
            raise ConfigurationError(actionable_error("backup_dir_missing", path=str(backup_dir)))
        if not image or not str(image).strip():
            raise ConfigurationError(actionable_error("empty_image"))

        dump_timeout_seconds = None
        if dump_timeout_minutes is not None:
            minutes = self.parse_non_negative_number(dump_timeout_minutes, "--dump-timeout-minutes")
            # Zero disables the timeout.
            dump_timeout_seconds = minutes * 60 if minutes > 0 else None

        retries = self.parse_non_negative_number(retry_count, "--retry-count")
        if retries != int(retries):
            raise ConfigurationError(
                actionable_error(
                    "not_non_negative_number", option="--retry-count", value=str(retry_count)
                )
            )

        return RunConfiguration(
            backup_dir=os.path.abspath(os.path.expanduser(str(backup_dir))),
            retention_days=self.parse_positive_int(retention_days, "--retention-days"),
            max_jobs=self.parse_positive_int(max_jobs, "--max-jobs"),
            image=str(image).strip(),
            dump_timeout_seconds=dump_timeout_seconds,
            retry_count=int(retries),
            retry_backoff_seconds=self.parse_non_negative_number(
                retry_backoff_seconds, "--retry-backoff-seconds"
            ),
        )

    def validate_backup_dir(self, path: str):
        if not os.path.exists(path):
            raise ConfigurationError(actionable_error("backup_dir_missing", path=path))
        if not os.path.isdir(path):
            raise ConfigurationError(actionable_error("backup_dir_not_directory", path=path))
        if not os.access(path, os.W_OK | os.X_OK):
            raise ConfigurationError(actionable_error("backup_dir_not_writable", path=path))
