"""Defaults and naming constants for container-db-backup."""

import os

DEFAULT_BACKUP_DIR = os.path.join(os.path.expanduser("~"), "backup")
DEFAULT_RETENTION_DAYS = 2
DEFAULT_MAX_JOBS = 4
DEFAULT_IMAGE = "postgres"
DEFAULT_RETRY_COUNT = 0
DEFAULT_RETRY_BACKOFF_SECONDS = 2.0
DEFAULT_CONFIG_FILE = ".container-db-backup.yml"

DATABASE_ENV_VAR = "POSTGRES_DB"
USER_ENV_VAR = "POSTGRES_USER"

DUMP_EXTENSION = "sql"
ARTIFACT_SUFFIX = ".gz"
PARTIAL_SUFFIX = ".partial"
TIMESTAMP_FORMAT = "%Y%m%d%H%M"

SECONDS_PER_DAY = 86400
