"""Job polling surface."""

from typing import Any, Dict, List

from tubevault.application.estimator import format_remaining
from tubevault.application.registry import JobRegistry
from tubevault.domain.models import JobStatus


class JobStatusService:
    """Read-only view of the registry for callers polling their jobs."""

    def __init__(self, registry: JobRegistry):
        self._registry = registry

    def get_status(self, job_id: str) -> Dict[str, Any]:
        """
        Status payload of a job, augmented with timing information.

        Raises:
            JobNotFoundError: If the id was never issued
        """
        job = self._registry.get(job_id)
        status = job.to_dict()
        status["processingTimeMs"] = job.processing_time_ms()
        status["readableTimeRemaining"] = format_remaining(job.estimated_time_remaining_ms)
        return status

    def get_completed_urls(self, job_id: str) -> List[str]:
        """Durable URLs of a completed job; empty while the job is still running or failed."""
        job = self._registry.get(job_id)
        if job.status != JobStatus.COMPLETED:
            return []
        return list(job.urls)
