"""
S3Client - S3/MinIO operations for publishing image variants.
"""

import logging
from typing import Generator, Optional

import boto3
from botocore.config import Config

from .s3_config import S3Config


class S3Client:
    """
    Wrapper for S3/MinIO operations.

    Provides methods for clearing the variant prefix, checking existence,
    downloading and uploading files.
    """

    DELETE_BATCH_SIZE = 1000

    def __init__(self, config: S3Config, logger: Optional[logging.Logger] = None):
        """
        Initialize S3 client.

        Args:
            config: S3 configuration
            logger: Optional logger instance
        """
        self.config = config
        self.logger = logger or logging.getLogger(__name__)

        self._client = boto3.client(
            's3',
            endpoint_url=config.endpoint,
            aws_access_key_id=config.access_key,
            aws_secret_access_key=config.secret_key,
            region_name=config.region,
            config=Config(
                signature_version='s3v4',
                s3={'addressing_style': 'path'}
            ),
            verify=config.verify_ssl
        )

    @property
    def client(self):
        """Return the underlying boto3 client."""
        return self._client

    @property
    def prefix(self) -> str:
        return self.config.prefix.strip('/')

    def full_key(self, key: str) -> str:
        """Prefix a storage key with the configured variant prefix."""
        return f"{self.prefix}/{key}"

    def list_keys(self) -> Generator[str, None, None]:
        """
        List every object key under the variant prefix.

        Yields:
            Full S3 keys
        """
        paginator = self._client.get_paginator('list_objects_v2')
        page_iterator = paginator.paginate(
            Bucket=self.config.bucket,
            Prefix=f"{self.prefix}/",
        )

        for page in page_iterator:
            for obj in page.get('Contents', []):
                yield obj['Key']

    def clear(self) -> None:
        """Delete every object under the variant prefix."""
        batch = []
        deleted = 0
        for key in self.list_keys():
            batch.append({'Key': key})
            if len(batch) >= self.DELETE_BATCH_SIZE:
                deleted += self._delete_batch(batch)
                batch = []
        if batch:
            deleted += self._delete_batch(batch)

        self.logger.info(f"Cleared {deleted:,} objects under s3://{self.config.bucket}/{self.prefix}/")

    def _delete_batch(self, batch: list) -> int:
        response = self._client.delete_objects(
            Bucket=self.config.bucket,
            Delete={'Objects': batch, 'Quiet': True}
        )
        errors = response.get('Errors', [])
        if errors:
            first = errors[0]
            raise RuntimeError(
                f"Failed to delete {len(errors)} objects, "
                f"first: {first.get('Key')} ({first.get('Code')})"
            )
        return len(batch)

    def upload_object(
        self,
        key: str,
        data: bytes,
        content_type: str = 'application/octet-stream'
    ) -> None:
        """Upload an object to S3."""
        self._client.put_object(
            Bucket=self.config.bucket,
            Key=self.full_key(key),
            Body=data,
            ContentType=content_type
        )

    def public_url(self, key: str) -> str:
        """URL the presentation layer uses for a storage key."""
        if self.config.public_base_url:
            base = self.config.public_base_url.rstrip('/')
        elif self.config.endpoint:
            base = f"{self.config.endpoint.rstrip('/')}/{self.config.bucket}"
        else:
            base = f"https://{self.config.bucket}.s3.amazonaws.com"
        return f"{base}/{self.full_key(key)}"

    def describe(self) -> str:
        return f"s3://{self.config.bucket}/{self.prefix}"
