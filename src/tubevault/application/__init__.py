"""Application layer package."""

from tubevault.application.chains import DownloaderChain, MetadataChain
from tubevault.application.orchestrator import IngestOrchestrator
from tubevault.application.registry import JobRegistry
from tubevault.application.status import JobStatusService

__all__ = [
    "DownloaderChain",
    "MetadataChain",
    "IngestOrchestrator",
    "JobRegistry",
    "JobStatusService",
]
