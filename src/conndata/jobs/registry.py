from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Protocol

from .models import JobRun


class JobRunRegistry(Protocol):
    """Recent run history lookup supplied by the job service."""

    def get_recent_runs(self, job_id: str) -> List[JobRun]:
        """Return the job's recent runs. Order is not guaranteed."""
        ...


class InMemoryJobRunRegistry:
    """Keeps recent runs per job in registration order (oldest first)."""

    def __init__(self, runs: Iterable[JobRun] = ()):
        self._runs: Dict[str, List[JobRun]] = defaultdict(list)
        for run in runs:
            self.add_run(run)

    def add_run(self, run: JobRun) -> None:
        self._runs[run.job_id].append(run)

    def get_recent_runs(self, job_id: str) -> List[JobRun]:
        return list(self._runs.get(job_id, []))
