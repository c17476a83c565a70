"""Configuration loader for container-db-backup."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from containerdbbackup.errors import ConfigurationError


class ConfigLoader:
    """Loads YAML configuration files for CLI defaults."""

    SUPPORTED_KEYS = {
        "backup_dir",
        "retention_days",
        "max_jobs",
        "image",
        "verbose",
        "log_file",
        "dump_timeout_minutes",
        "retry_count",
        "retry_backoff_seconds",
        "report_file",
    }

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise ConfigurationError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise ConfigurationError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(str(key) for key in unknown)
            raise ConfigurationError(f"Unknown configuration keys: {unknown_list}")

        return parsed
