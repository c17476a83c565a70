"""Filesystem helpers for container-db-backup."""

import logging
import os
from typing import List

from rich.console import Console

from containerdbbackup.errors import ConfigurationError


class FileSystemService:
    """Encapsulates file and directory side effects."""

    def __init__(self, logger: logging.Logger, console: Console):
        self.logger = logger
        self.console = console

    def ensure_dir(self, path: str):
        if os.path.isdir(path):
            return

        try:
            os.makedirs(path, exist_ok=True)
            self.logger.info("Created backup directory: %s", path)
        except OSError as exc:
            raise ConfigurationError(f"Could not create backup directory {path}: {exc}") from exc

    def list_files(self, directory: str, prefix: str, suffix: str) -> List[str]:
        """Regular files directly inside ``directory`` matching prefix and suffix."""
        matches = []
        with os.scandir(directory) as entries:
            for entry in entries:
                if not entry.is_file(follow_symlinks=False):
                    continue
                if entry.name.startswith(prefix) and entry.name.endswith(suffix):
                    matches.append(entry.path)
        return sorted(matches)

    def remove_file(self, path: str) -> bool:
        if not os.path.exists(path):
            return False

        try:
            os.remove(path)
            self.logger.debug("Removed file: %s", path)
            return True
        except OSError as exc:
            message = f"Warning: Could not remove {path}: {exc}"
            self.console.print(f"[yellow]{message}[/yellow]")
            self.logger.warning(message)
            return False
