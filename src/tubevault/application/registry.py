"""In-memory job registry.

Created once per process and injected into the orchestrator (the only
writer) and the status surface (readers). Entries live as long as the process.
"""

import threading
from dataclasses import dataclass, field
from typing import Callable, Dict

from tubevault.domain.exceptions import JobNotFoundError
from tubevault.domain.models import Job


@dataclass
class _Entry:
    job: Job
    lock: threading.Lock = field(default_factory=threading.Lock)


class JobRegistry:
    """Concurrency-safe map of job id to job state.

    The map lock only guards inserts and lookups. Each job carries its own
    lock, so a pipeline updating one job never blocks readers of another.
    """

    def __init__(self):
        self._entries: Dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def add(self, job: Job) -> None:
        with self._lock:
            if job.id in self._entries:
                raise ValueError(f"Job already registered: {job.id}")
            self._entries[job.id] = _Entry(job=job.snapshot())

    def _entry(self, job_id: str) -> _Entry:
        with self._lock:
            entry = self._entries.get(job_id)
        if entry is None:
            raise JobNotFoundError(job_id)
        return entry

    def get(self, job_id: str) -> Job:
        """
        Return a snapshot of a job.

        Raises:
            JobNotFoundError: If the id was never issued
        """
        entry = self._entry(job_id)
        with entry.lock:
            return entry.job.snapshot()

    def update(self, job_id: str, mutate: Callable[[Job], None]) -> Job:
        """
        Apply mutate to the stored job atomically and return a snapshot.

        Terminal jobs are frozen: mutate is not applied once a job has
        completed or failed.
        """
        entry = self._entry(job_id)
        with entry.lock:
            if not entry.job.status.is_terminal:
                mutate(entry.job)
            return entry.job.snapshot()

    def __contains__(self, job_id: str) -> bool:
        with self._lock:
            return job_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
