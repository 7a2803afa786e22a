"""Domain layer package."""

from .models import (
    Job,
    JobStatus,
    JobProgress,
    ItemOutcome,
    PipelineItem,
    VideoInfo,
    ChannelInfo,
    Thumbnail,
    StoredObject,
    DedupResult,
)
from .exceptions import (
    DomainException,
    ConfigurationError,
    InvalidBatchError,
    InvalidReferenceError,
    MetadataError,
    DownloadError,
    UploadError,
    StorageError,
    SearchError,
    JobNotFoundError,
)
from .protocols import (
    IMetadataProvider,
    IDownloader,
    ISearchProvider,
    IObjectStore,
    ITempStorage,
    ILogger,
    IMetricsCollector,
)
from .references import is_supported_reference, extract_video_id, parse_reference, watch_url

__all__ = [
    # Models
    "Job",
    "JobStatus",
    "JobProgress",
    "ItemOutcome",
    "PipelineItem",
    "VideoInfo",
    "ChannelInfo",
    "Thumbnail",
    "StoredObject",
    "DedupResult",
    # Exceptions
    "DomainException",
    "ConfigurationError",
    "InvalidBatchError",
    "InvalidReferenceError",
    "MetadataError",
    "DownloadError",
    "UploadError",
    "StorageError",
    "SearchError",
    "JobNotFoundError",
    # Protocols
    "IMetadataProvider",
    "IDownloader",
    "ISearchProvider",
    "IObjectStore",
    "ITempStorage",
    "ILogger",
    "IMetricsCollector",
    # References
    "is_supported_reference",
    "extract_video_id",
    "parse_reference",
    "watch_url",
]
