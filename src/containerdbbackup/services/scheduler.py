"""Bounded fan-out of per-container backup units."""

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Iterable, Optional

from containerdbbackup.models import ContainerHandle, RunResult, UnitResult


class JobScheduler:
    """Runs one unit per container with at most ``max_jobs`` in flight.

    A freed worker picks up the next queued container immediately. Results
    are gathered in the calling thread, so units share no mutable state.
    """

    def __init__(self, max_jobs: int, logger):
        if max_jobs < 1:
            raise ValueError("max_jobs must be at least 1")
        self.max_jobs = max_jobs
        self.logger = logger

    def run(
        self,
        containers: Iterable[ContainerHandle],
        unit: Callable[[ContainerHandle], UnitResult],
        progress: Optional[Callable[[UnitResult], None]] = None,
    ) -> RunResult:
        containers = list(containers)
        result = RunResult()
        if not containers:
            return result

        with ThreadPoolExecutor(
            max_workers=self.max_jobs, thread_name_prefix="backup"
        ) as executor:
            futures = {executor.submit(unit, container): container for container in containers}
            for completed in as_completed(futures):
                container = futures[completed]
                try:
                    unit_result = completed.result()
                except Exception as exc:
                    self.logger.exception("Unexpected error while backing up %s", container.name)
                    unit_result = UnitResult(container_name=container.name)
                    unit_result.add_error("unit", str(exc))
                result.units.append(unit_result)
                if progress:
                    progress(unit_result)

        return result
