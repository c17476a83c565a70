"""Actionable error catalog for container-db-backup."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "backup_dir_missing": {
        "what": "The backup directory does not exist: {path}",
        "next": "Ensure the path is correct or let the tool create it with `--backup-dir`.",
    },
    "backup_dir_not_directory": {
        "what": "The backup path is not a directory: {path}",
        "next": "Point `--backup-dir` to a directory instead of a file.",
    },
    "backup_dir_not_writable": {
        "what": "The backup directory is not writable: {path}",
        "next": "Fix the directory permissions or run as a user that can write to it.",
    },
    "not_positive_integer": {
        "what": "{option} must be a positive integer, got `{value}`.",
        "next": "Check your input and try again.",
    },
    "not_non_negative_number": {
        "what": "{option} must be a non-negative number, got `{value}`.",
        "next": "Check your input and try again.",
    },
    "empty_image": {
        "what": "The image filter must not be empty.",
        "next": "Pass an image name substring such as `postgres` with `--image`.",
    },
    "docker_not_found": {
        "what": "docker command could not be found.",
        "next": "Install docker and make sure it is on PATH, then try again.",
    },
    "missing_credentials": {
        "what": "Container {container} does not define {variable}.",
        "next": "Set {variable} in the container environment so the database can be dumped.",
    },
    "unsafe_database_name": {
        "what": (
            "Container {container} uses database name `{database}`, "
            "which cannot be used in a file name."
        ),
        "next": "Use a POSTGRES_DB value without path separators or NUL characters.",
    },
    "dump_failed": {
        "what": "pg_dump failed for container {container} ({returncode}).",
        "next": "Inspect `docker logs {container}` and check the database user permissions.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
