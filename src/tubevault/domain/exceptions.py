"""Domain exceptions for the ingestion pipeline."""


class DomainException(Exception):
    """Base exception for all domain errors."""
    pass


class ConfigurationError(DomainException):
    """Raised when configuration is invalid."""
    pass


class InvalidBatchError(DomainException):
    """Raised when a submitted batch is rejected before a job is created."""
    pass


class InvalidReferenceError(DomainException):
    """Raised when a media reference is malformed or has no video id."""
    pass


class MetadataError(DomainException):
    """Raised when video metadata cannot be fetched."""
    pass


class DownloadError(DomainException):
    """Raised when media download fails."""
    pass


class UploadError(DomainException):
    """Raised when file upload fails."""
    pass


class StorageError(DomainException):
    """Raised when the object store cannot be queried."""
    pass


class SearchError(DomainException):
    """Raised when a video search fails."""
    pass


class JobNotFoundError(DomainException):
    """Raised when a job id is unknown to the registry."""

    def __init__(self, job_id: str):
        super().__init__(f"Job not found: {job_id}")
        self.job_id = job_id
