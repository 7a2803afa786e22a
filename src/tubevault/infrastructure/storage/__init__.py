"""Storage infrastructure."""

from tubevault.infrastructure.storage.s3_client import S3ObjectStore
from tubevault.infrastructure.storage.temp_storage import TempStorage

__all__ = ['S3ObjectStore', 'TempStorage']
