import os

import pytest

from containerdbbackup.errors import ConfigurationError
from containerdbbackup.services.validation import ValidationService


@pytest.mark.parametrize("value", [0, -1, "0", "abc", "1.5", "", True, None])
def test_parse_positive_int_rejects_invalid_values(value):
    with pytest.raises(ConfigurationError, match="must be a positive integer"):
        ValidationService().parse_positive_int(value, "--retention-days")


def test_parse_positive_int_accepts_ints_and_digit_strings():
    service = ValidationService()

    assert service.parse_positive_int(3, "--max-jobs") == 3
    assert service.parse_positive_int(" 7 ", "--max-jobs") == 7


def test_build_run_configuration_normalizes_values(tmp_path):
    config = ValidationService().build_run_configuration(
        backup_dir=str(tmp_path),
        retention_days="5",
        max_jobs=2,
        image=" postgres ",
        dump_timeout_minutes=1.5,
        retry_count=2,
        retry_backoff_seconds="0.5",
    )

    assert config.backup_dir == os.path.abspath(str(tmp_path))
    assert config.retention_days == 5
    assert config.max_jobs == 2
    assert config.image == "postgres"
    assert config.dump_timeout_seconds == 90.0
    assert config.retry_count == 2
    assert config.retry_backoff_seconds == 0.5


def test_build_run_configuration_treats_zero_timeout_as_disabled(tmp_path):
    config = ValidationService().build_run_configuration(
        backup_dir=str(tmp_path), retention_days=2, max_jobs=4, image="postgres", dump_timeout_minutes=0
    )

    assert config.dump_timeout_seconds is None


def test_build_run_configuration_rejects_blank_image(tmp_path):
    with pytest.raises(ConfigurationError, match="image filter"):
        ValidationService().build_run_configuration(
            backup_dir=str(tmp_path), retention_days=2, max_jobs=4, image="  "
        )


def test_build_run_configuration_rejects_fractional_retry_count(tmp_path):
    with pytest.raises(ConfigurationError, match="--retry-count"):
        ValidationService().build_run_configuration(
            backup_dir=str(tmp_path), retention_days=2, max_jobs=4, image="postgres", retry_count=1.5
        )


def test_validate_backup_dir_rejects_missing_directory(tmp_path):
    with pytest.raises(ConfigurationError, match="does not exist"):
        ValidationService().validate_backup_dir(str(tmp_path / "missing"))


def test_validate_backup_dir_rejects_regular_file(tmp_path):
    target = tmp_path / "backup"
    target.write_text("not a directory", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="not a directory"):
        ValidationService().validate_backup_dir(str(target))


def test_validate_backup_dir_accepts_existing_directory(tmp_path):
    ValidationService().validate_backup_dir(str(tmp_path))
