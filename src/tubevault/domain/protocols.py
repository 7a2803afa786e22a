"""Protocol definitions for dependency inversion."""

from typing import Protocol, List
from pathlib import Path
from .models import VideoInfo, StoredObject


class IMetadataProvider(Protocol):
    """Interface for fetching descriptive attributes of a video."""

    name: str

    def fetch(self, video_id: str) -> VideoInfo:
        """Fetch metadata for a video id. Raises MetadataError on failure."""
        ...


class IDownloader(Protocol):
    """Interface for downloading raw media bytes to local storage."""

    name: str

    def download(self, reference: str, destination: Path, timeout_ms: int) -> Path:
        """Download reference to destination. Raises DownloadError on failure."""
        ...


class ISearchProvider(Protocol):
    """Interface for searching videos by keyword."""

    def search(self, query: str, max_results: int) -> List[str]:
        """Return watch URLs in result order."""
        ...


class IObjectStore(Protocol):
    """Interface for the persistent object store."""

    def list_objects(self, bucket: str, prefix: str = "") -> List[StoredObject]:
        """List objects in bucket under prefix."""
        ...

    def put_file(
        self,
        local_path: Path,
        bucket: str,
        key: str,
        content_type: str = "video/mp4",
        public: bool = True
    ) -> str:
        """Upload a local file and return its durable public URL."""
        ...

    def public_url(self, bucket: str, key: str) -> str:
        """Durable public URL of an object key."""
        ...


class ITempStorage(Protocol):
    """Interface for managing temporary storage."""

    def create_workspace(self, job_id: str) -> Path:
        """Create a temporary workspace for a job."""
        ...

    def cleanup(self, workspace: Path) -> None:
        """Clean up a workspace directory."""
        ...

    def cleanup_all(self) -> None:
        """Remove every workspace still tracked."""
        ...


class ILogger(Protocol):
    """Interface for logging."""

    def debug(self, message: str, **kwargs) -> None:
        """Log debug message."""
        ...

    def info(self, message: str, **kwargs) -> None:
        """Log info message."""
        ...

    def warning(self, message: str, **kwargs) -> None:
        """Log warning message."""
        ...

    def error(self, message: str, **kwargs) -> None:
        """Log error message."""
        ...

    def exception(self, message: str, **kwargs) -> None:
        """Log exception with traceback."""
        ...


class IMetricsCollector(Protocol):
    """Interface for collecting metrics."""

    def start_timer(self, name: str) -> None:
        """Start a named timer."""
        ...

    def stop_timer(self, name: str) -> float:
        """Stop a named timer and return elapsed time."""
        ...

    def increment_counter(self, name: str, amount: int = 1) -> None:
        """Increment a counter."""
        ...

    def get_summary(self) -> dict:
        """Get summary of all metrics."""
        ...

    def format_summary(self) -> str:
        """One-line summary for job completion logs."""
        ...
