"""Shared domain models for container-db-backup."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass(frozen=True)
class ContainerHandle:
    """A running container as reported by the runtime."""

    name: str
    image: str


@dataclass(frozen=True)
class DatabaseCredentials:
    database: str
    user: str


@dataclass(frozen=True)
class BackupArtifact:
    """A compressed dump written to the backup directory."""

    container_name: str
    database: str
    created_at: datetime
    path: str


@dataclass(frozen=True)
class RunConfiguration:
    """Validated inputs for one run. Built once, never mutated."""

    backup_dir: str
    retention_days: int
    max_jobs: int
    image: str
    dump_timeout_seconds: Optional[float] = None
    retry_count: int = 0
    retry_backoff_seconds: float = 0.0


@dataclass(frozen=True)
class StepError:
    step: str
    message: str


@dataclass
class PruneResult:
    deleted: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


@dataclass
class UnitResult:
    """Outcome of credentials -> backup -> prune for one container."""

    container_name: str
    artifact: Optional[BackupArtifact] = None
    pruned: List[str] = field(default_factory=list)
    errors: List[StepError] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.errors

    def add_error(self, step: str, message: str):
        self.errors.append(StepError(step=step, message=message))


@dataclass
class RunResult:
    units: List[UnitResult] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return all(unit.succeeded for unit in self.units)

    @property
    def failed_units(self) -> List[UnitResult]:
        return [unit for unit in self.units if not unit.succeeded]
