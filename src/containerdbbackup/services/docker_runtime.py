"""Docker runtime services for container-db-backup."""

import json
from typing import BinaryIO, Dict, List, Optional

from containerdbbackup.errors import BackupError, CommandTimeoutError, DependencyError
from containerdbbackup.errors_catalog import actionable_error
from containerdbbackup.models import ContainerHandle


class DockerRuntimeService:
    """Talks to the local Docker engine through the docker CLI."""

    def __init__(
        self,
        logger,
        console,
        command_runner,
        retry_count: int = 0,
        retry_backoff_seconds: float = 0.0,
    ):
        self.logger = logger
        self.console = console
        self.command_runner = command_runner
        self.retry_count = retry_count
        self.retry_backoff_seconds = retry_backoff_seconds

    def ensure_available(self):
        self.console.print("[blue]Validating Docker environment...[/blue]")
        try:
            self.command_runner.run(["docker", "--version"], capture_output=True)
        except DependencyError as exc:
            raise DependencyError(actionable_error("docker_not_found")) from exc
        self.console.print("[green]Docker is available.[/green]")

    def list_running(self) -> List[ContainerHandle]:
        result = self.command_runner.run(
            ["docker", "ps", "--format", "{{json .}}"],
            capture_output=True,
            retry_count=self.retry_count,
            retry_backoff_seconds=self.retry_backoff_seconds,
        )

        containers = []
        for line in (result.stdout or "").splitlines():
            line = line.strip()
            if not line:
                continue
            try:
                entry = json.loads(line)
            except json.JSONDecodeError as exc:
                raise BackupError(f"Unexpected `docker ps` output: {line}") from exc
            containers.append(
                ContainerHandle(name=entry.get("Names", ""), image=entry.get("Image", ""))
            )
        return containers

    def exec_capture(self, container: str, cmd: List[str]) -> str:
        result = self.command_runner.run(
            ["docker", "exec", container] + cmd,
            capture_output=True,
            retry_count=self.retry_count,
            retry_backoff_seconds=self.retry_backoff_seconds,
        )
        return result.stdout or ""

    def read_environment(self, container: str) -> Dict[str, str]:
        environment = {}
        for line in self.exec_capture(container, ["env"]).splitlines():
            key, sep, value = line.partition("=")
            if sep:
                environment[key] = value
        return environment

    def exec_stream(
        self,
        container: str,
        cmd: List[str],
        destination: BinaryIO,
        env: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ):
        docker_cmd = ["docker", "exec"]
        for key, value in (env or {}).items():
            docker_cmd.extend(["-e", f"{key}={value}"])
        docker_cmd.append(container)
        try:
            return self.command_runner.stream(docker_cmd + cmd, destination, timeout=timeout)
        except CommandTimeoutError:
            self.stop_process(container, cmd[0])
            raise

    def stop_process(self, container: str, process_name: str):
        # Killing the local `docker exec` client leaves the process running in the container.
        self.logger.warning("Stopping %s inside %s after timeout.", process_name, container)
        try:
            self.command_runner.run(
                ["docker", "exec", container, "pkill", "-x", process_name],
                check=False,
                capture_output=True,
            )
        except BackupError as exc:
            self.logger.warning("Could not stop %s inside %s: %s", process_name, container, exc)
