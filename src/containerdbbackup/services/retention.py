"""Retention policy enforcement for backup artifacts."""

import os
import time
from typing import Callable, Iterable, List

from containerdbbackup.constants import ARTIFACT_SUFFIX, SECONDS_PER_DAY
from containerdbbackup.models import PruneResult


class RetentionService:
    """Deletes a container's artifacts older than the retention window.

    Age filtering only happens once the container has more artifacts than
    ``retention_days``. A container that has produced fewer files than that
    keeps all of them, however old.
    """

    def __init__(self, logger, filesystem_service, clock: Callable[[], float] = time.time):
        self.logger = logger
        self.filesystem_service = filesystem_service
        self.clock = clock

    def candidates(
        self, backup_dir: str, container_name: str, sibling_names: Iterable[str] = ()
    ) -> List[str]:
        """Artifacts of ``container_name``, excluding those of longer sibling names.

        Docker names may contain dashes, so `db-` also prefixes the files of a
        container called `db-replica`.
        """
        prefix = f"{container_name}-"
        foreign_prefixes = tuple(
            f"{name}-"
            for name in sibling_names
            if name != container_name and name.startswith(prefix)
        )
        files = self.filesystem_service.list_files(
            backup_dir, prefix=prefix, suffix=ARTIFACT_SUFFIX
        )
        if not foreign_prefixes:
            return files
        return [path for path in files if not os.path.basename(path).startswith(foreign_prefixes)]

    def prune(
        self,
        backup_dir: str,
        retention_days: int,
        container_name: str,
        sibling_names: Iterable[str] = (),
    ) -> PruneResult:
        result = PruneResult()
        candidates = self.candidates(backup_dir, container_name, sibling_names)

        if len(candidates) <= retention_days:
            self.logger.debug(
                "Keeping %s backup(s) for %s (limit %s), nothing to prune.",
                len(candidates),
                container_name,
                retention_days,
            )
            return result

        cutoff = self.clock() - retention_days * SECONDS_PER_DAY
        for path in candidates:
            try:
                if os.path.getmtime(path) >= cutoff:
                    continue
                os.remove(path)
            except OSError as exc:
                message = f"Could not remove old backup {path}: {exc}"
                self.logger.warning(message)
                result.errors.append(message)
                continue

            self.logger.info("Removed old backup: %s", path)
            result.deleted.append(path)

        return result
