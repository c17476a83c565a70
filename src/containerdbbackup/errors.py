"""Domain errors for container-db-backup."""


class BackupError(RuntimeError):
    """Raised when a backup operation cannot complete."""


class ConfigurationError(BackupError):
    """Raised when run inputs are invalid and no work may start."""


class DependencyError(BackupError):
    """Raised when a required external command is not installed."""


class CredentialsError(BackupError):
    """Raised when a container does not expose usable database credentials."""


class CommandTimeoutError(BackupError):
    """Raised when an external command exceeds its timeout."""
