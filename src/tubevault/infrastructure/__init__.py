"""Infrastructure layer package."""

from tubevault.infrastructure.config import ConfigLoader, IngestConfig
from tubevault.infrastructure.storage import S3ObjectStore, TempStorage

__all__ = ["ConfigLoader", "IngestConfig", "S3ObjectStore", "TempStorage"]
