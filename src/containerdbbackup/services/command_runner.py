"""Subprocess execution service for container-db-backup."""

import shutil
import subprocess
import tempfile
import threading
import time
from typing import BinaryIO, List, Optional

from containerdbbackup.errors import BackupError, CommandTimeoutError, DependencyError


class CommandRunner:
    """Runs external commands with consistent error handling."""

    def __init__(self, logger, default_timeout: Optional[float] = None):
        self.logger = logger
        self.default_timeout = default_timeout

    def run(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = False,
        timeout: Optional[float] = None,
        retry_count: int = 0,
        retry_backoff_seconds: float = 0.0,
    ) -> subprocess.CompletedProcess:
        cmd_str = " ".join(cmd)
        self.logger.debug("Executing: %s", cmd_str)

        effective_timeout = timeout if timeout is not None else self.default_timeout
        max_attempts = max(1, retry_count + 1)

        for attempt in range(1, max_attempts + 1):
            try:
                result = subprocess.run(
                    cmd,
                    text=True,
                    capture_output=capture_output,
                    timeout=effective_timeout,
                )
            except FileNotFoundError as exc:
                raise DependencyError(
                    f"Required command not found: {cmd[0]}. Please install it and try again."
                ) from exc
            except subprocess.TimeoutExpired as exc:
                if attempt < max_attempts:
                    self.logger.warning(
                        "Command timed out on attempt %s/%s. Retrying in %.1fs: %s",
                        attempt,
                        max_attempts,
                        retry_backoff_seconds,
                        cmd_str,
                    )
                    time.sleep(retry_backoff_seconds)
                    continue
                raise CommandTimeoutError(
                    f"Command timed out after {effective_timeout}s: {cmd_str}"
                ) from exc
            except Exception as exc:
                raise BackupError(f"Failed to execute command: {cmd_str}. {exc}") from exc

            if capture_output and result.stdout:
                self.logger.debug("Command output: %s", result.stdout.strip())

            if result.returncode == 0:
                return result

            stderr = (result.stderr or "").strip() if capture_output else ""
            message = f"Command failed ({result.returncode}): {cmd_str}"
            if stderr:
                message = f"{message}\n{stderr}"

            if attempt < max_attempts:
                self.logger.warning(
                    "Command failed on attempt %s/%s and will be retried in %.1fs.\n%s",
                    attempt,
                    max_attempts,
                    retry_backoff_seconds,
                    message,
                )
                time.sleep(retry_backoff_seconds)
                continue

            if check:
                raise BackupError(message)

            self.logger.warning(message)
            return result

        raise BackupError(f"Command failed after retries: {cmd_str}")

    def stream(
        self,
        cmd: List[str],
        destination: BinaryIO,
        timeout: Optional[float] = None,
    ) -> subprocess.CompletedProcess:
        """Copies the command's stdout into ``destination`` as it is produced.

        Returns a CompletedProcess with ``stdout`` set to None and ``stderr``
        holding the decoded error stream. Raises CommandTimeoutError after
        killing the local process on timeout; a non-zero exit is left to the
        caller.
        """
        cmd_str = " ".join(cmd)
        self.logger.debug("Streaming: %s", cmd_str)

        effective_timeout = timeout if timeout is not None else self.default_timeout

        with tempfile.TemporaryFile() as stderr_file:
            try:
                process = subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=stderr_file)
            except FileNotFoundError as exc:
                raise DependencyError(
                    f"Required command not found: {cmd[0]}. Please install it and try again."
                ) from exc
            except OSError as exc:
                raise BackupError(f"Failed to execute command: {cmd_str}. {exc}") from exc

            timed_out = threading.Event()

            def _kill():
                timed_out.set()
                process.kill()

            timer = None
            if effective_timeout is not None:
                timer = threading.Timer(effective_timeout, _kill)
                timer.daemon = True
                timer.start()

            try:
                shutil.copyfileobj(process.stdout, destination)
            except BaseException:
                process.kill()
                raise
            finally:
                process.stdout.close()
                returncode = process.wait()
                if timer is not None:
                    timer.cancel()

            stderr_file.seek(0)
            stderr = stderr_file.read().decode("utf-8", errors="replace")

        if timed_out.is_set():
            raise CommandTimeoutError(f"Command timed out after {effective_timeout}s: {cmd_str}")

        return subprocess.CompletedProcess(cmd, returncode, stdout=None, stderr=stderr)
