import logging
import os

import click
from rich.logging import RichHandler

from .constants import (
    DEFAULT_BACKUP_DIR,
    DEFAULT_CONFIG_FILE,
    DEFAULT_IMAGE,
    DEFAULT_MAX_JOBS,
    DEFAULT_RETENTION_DAYS,
    DEFAULT_RETRY_BACKOFF_SECONDS,
    DEFAULT_RETRY_COUNT,
)
from .core import ContainerBackup
from .errors import BackupError
from .services.config_loader import ConfigLoader


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


class BackupCommand(click.Command):
    """Reports usage errors with exit code 1 like every other failure."""

    def parse_args(self, ctx, args):
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as exc:
            exc.exit_code = 1
            raise


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


@click.command(cls=BackupCommand)
@click.option(
    "--backup-dir",
    required=False,
    type=click.Path(file_okay=False),
    help=f"Directory to save backups, created if missing (default: {DEFAULT_BACKUP_DIR})",
)
@click.option(
    "--retention-days",
    required=False,
    type=int,
    default=None,
    help=f"Number of days to keep backups (default: {DEFAULT_RETENTION_DAYS})",
)
@click.option(
    "--max-jobs",
    required=False,
    type=int,
    default=None,
    help=f"Maximum number of parallel jobs (default: {DEFAULT_MAX_JOBS})",
)
@click.option(
    "--image",
    required=False,
    help=f"Back up containers whose image contains this text (default: {DEFAULT_IMAGE})",
)
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {DEFAULT_CONFIG_FILE} if present.",
)
@click.option(
    "--dump-timeout-minutes",
    required=False,
    type=float,
    default=None,
    help=(
        "Stop pg_dump when it runs longer than this many minutes (default: no timeout). "
        "The dump is stopped inside the container with `pkill`, which the image must provide."
    ),
)
@click.option(
    "--retry-count",
    required=False,
    type=int,
    default=None,
    help="Number of retries for failed docker queries.",
)
@click.option(
    "--retry-backoff-seconds",
    required=False,
    type=float,
    default=None,
    help="Backoff time in seconds between retries.",
)
@click.option(
    "--report-file",
    required=False,
    type=click.Path(),
    help="Write a JSON summary of the run to this path.",
)
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
def main(
    backup_dir,
    retention_days,
    max_jobs,
    image,
    config,
    dump_timeout_minutes,
    retry_count,
    retry_backoff_seconds,
    report_file,
    verbose,
    log_file,
):
    """Back up every PostgreSQL database running in a Docker container."""
    logger = logging.getLogger("containerdbbackup")

    try:
        config_loader = ConfigLoader()
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_FILE)
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        config_values = config_loader.load(resolved_config)
    except BackupError as exc:
        raise click.ClickException(str(exc)) from exc

    backup_dir = _resolve_option(backup_dir, config_values, "backup_dir", default=DEFAULT_BACKUP_DIR)
    retention_days = _resolve_option(
        retention_days, config_values, "retention_days", default=DEFAULT_RETENTION_DAYS
    )
    max_jobs = _resolve_option(max_jobs, config_values, "max_jobs", default=DEFAULT_MAX_JOBS)
    image = _resolve_option(image, config_values, "image", default=DEFAULT_IMAGE)
    dump_timeout_minutes = _resolve_option(
        dump_timeout_minutes, config_values, "dump_timeout_minutes"
    )
    retry_count = _resolve_option(
        retry_count, config_values, "retry_count", default=DEFAULT_RETRY_COUNT
    )
    retry_backoff_seconds = _resolve_option(
        retry_backoff_seconds,
        config_values,
        "retry_backoff_seconds",
        default=DEFAULT_RETRY_BACKOFF_SECONDS,
    )
    report_file = _resolve_option(report_file, config_values, "report_file")
    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)

    try:
        backup = ContainerBackup(
            backup_dir=str(backup_dir),
            retention_days=retention_days,
            max_jobs=max_jobs,
            image=image,
            dump_timeout_minutes=dump_timeout_minutes,
            retry_count=retry_count,
            retry_backoff_seconds=retry_backoff_seconds,
            report_file=report_file,
        )
    except BackupError as exc:
        raise click.ClickException(str(exc)) from exc

    raise SystemExit(backup.run())


if __name__ == "__main__":
    main()
