"""
container-db-backup - Scheduled logical backups for containerized PostgreSQL
"""

__version__ = "0.3.0"

from .core import ContainerBackup
from .errors import BackupError, ConfigurationError

__all__ = ["BackupError", "ConfigurationError", "ContainerBackup"]
