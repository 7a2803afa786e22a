"""
S3 object store.

Infrastructure layer for the destination bucket: listing for deduplication
and public uploads whose URLs are handed back to callers.
"""

from pathlib import Path
from typing import List, Optional

import boto3
from boto3.exceptions import S3UploadFailedError
from boto3.s3.transfer import TransferConfig
from botocore.exceptions import BotoCoreError, ClientError

from tubevault.domain.exceptions import StorageError, UploadError
from tubevault.domain.models import StoredObject
from tubevault.shared.logging import get_logger
from tubevault.shared.retry import RetryStrategy

logger = get_logger(__name__)

PUBLIC_URL_TEMPLATE = "https://{bucket}.s3.{region}.amazonaws.com/{key}"

# upload_file wraps PutObject ClientErrors in S3UploadFailedError
S3_ERRORS = (ClientError, BotoCoreError, S3UploadFailedError)


class S3ObjectStore:
    """
    Object store backed by AWS S3 via boto3.
    Implements IObjectStore protocol.
    """

    def __init__(
        self,
        region: str,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        retry: Optional[RetryStrategy] = None,
        client=None
    ):
        """
        Initialize S3 object store.

        Args:
            region: AWS region, also used to build public URLs
            access_key: AWS access key id (default credential chain if None)
            secret_key: AWS secret access key
            retry: Retry strategy for S3 calls
            client: Pre-built boto3 S3 client
        """
        self.region = region
        self._retry = retry or RetryStrategy(
            max_attempts=3, backoff_seconds=1.0, exceptions=S3_ERRORS
        )
        self._logger = get_logger(__name__)
        self._client = client or self._create_client(access_key, secret_key)

        # Transfer config for multipart uploads
        self._transfer_config = TransferConfig(
            multipart_threshold=50 * 1024 * 1024,  # 50MB
            multipart_chunksize=50 * 1024 * 1024,   # 50MB
            max_concurrency=4,
            use_threads=True
        )

    def _create_client(self, access_key: Optional[str], secret_key: Optional[str]):
        kwargs = {'region_name': self.region}
        if access_key and secret_key:
            kwargs['aws_access_key_id'] = access_key
            kwargs['aws_secret_access_key'] = secret_key
        return boto3.client('s3', **kwargs)

    def public_url(self, bucket: str, key: str) -> str:
        """Durable public URL of an object key."""
        return PUBLIC_URL_TEMPLATE.format(bucket=bucket, region=self.region, key=key)

    def list_objects(self, bucket: str, prefix: str = "") -> List[StoredObject]:
        """
        List every object in bucket under prefix.

        Args:
            bucket: Bucket name
            prefix: Key prefix filter

        Returns:
            Objects across all result pages

        Raises:
            StorageError: If listing fails after retries
        """
        self._logger.info(f"Listing objects: bucket={bucket}, prefix={prefix!r}")

        try:
            objects = self._retry.execute(self._list_all, bucket, prefix)
        except S3_ERRORS as e:
            raise StorageError(f"Failed to list objects in {bucket}: {e}") from e

        self._logger.info(f"Found {len(objects)} objects")
        return objects

    def _list_all(self, bucket: str, prefix: str) -> List[StoredObject]:
        paginator = self._client.get_paginator('list_objects_v2')
        objects = []
        for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
            for item in page.get('Contents', []):
                last_modified = item.get('LastModified')
                objects.append(StoredObject(
                    key=item['Key'],
                    size=item.get('Size', 0),
                    last_modified=last_modified.isoformat() if hasattr(last_modified, 'isoformat')
                    else (str(last_modified) if last_modified else None)
                ))
        return objects

    def put_file(
        self,
        local_path: Path,
        bucket: str,
        key: str,
        content_type: str = "video/mp4",
        public: bool = True
    ) -> str:
        """
        Upload a local file.

        Args:
            local_path: File to upload
            bucket: Destination bucket
            key: Destination object key
            content_type: MIME type stored with the object
            public: Grant public-read on the object

        Returns:
            Durable public URL of the uploaded object

        Raises:
            UploadError: If the file is missing or upload fails after retries
        """
        if not local_path.exists():
            raise UploadError(f"File not found: {local_path}")

        file_size = local_path.stat().st_size
        self._logger.info(f"Uploading {local_path} ({file_size} bytes) -> s3://{bucket}/{key}")

        extra_args = {'ContentType': content_type}
        if public:
            extra_args['ACL'] = 'public-read'

        try:
            self._retry.execute(
                self._client.upload_file,
                str(local_path),
                bucket,
                key,
                ExtraArgs=extra_args,
                Config=self._transfer_config
            )
        except S3_ERRORS as e:
            raise UploadError(f"Upload failed for s3://{bucket}/{key}: {e}") from e

        self._logger.info(f"Upload completed: {key}")
        return self.public_url(bucket, key)
