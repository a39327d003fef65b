"""
S3Config - S3/MinIO settings for publishing image variants.
"""

import os
from dataclasses import dataclass
from typing import List, Optional


@dataclass
class S3Config:
    """
    S3/MinIO configuration.

    Attributes:
        endpoint: S3 endpoint URL (None for AWS default)
        bucket: Target bucket
        prefix: Key prefix under which variants are written (e.g., 'i')
        access_key: Access key id
        secret_key: Secret access key
        region: Region name
        verify_ssl: Verify TLS certificates
        public_base_url: Base URL the bucket is served from (CDN or website)
    """
    endpoint: Optional[str] = None
    bucket: Optional[str] = None
    prefix: str = 'i'
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    region: str = 'us-east-1'
    verify_ssl: bool = True
    public_base_url: Optional[str] = None

    @classmethod
    def from_env(cls) -> 'S3Config':
        """Create configuration from S3_* environment variables."""
        return cls(
            endpoint=os.getenv('S3_ENDPOINT') or None,
            bucket=os.getenv('S3_BUCKET') or None,
            prefix=os.getenv('S3_PREFIX', 'i'),
            access_key=os.getenv('S3_ACCESS_KEY') or None,
            secret_key=os.getenv('S3_SECRET_KEY') or None,
            region=os.getenv('S3_REGION', 'us-east-1'),
            verify_ssl=os.getenv('S3_VERIFY_SSL', 'true').lower() not in ('0', 'false', 'no'),
            public_base_url=os.getenv('S3_PUBLIC_BASE_URL') or None,
        )

    def validate(self) -> List[str]:
        """Return a list of configuration errors (empty if valid)."""
        errors = []
        if not self.bucket:
            errors.append("S3_BUCKET is required")
        if not self.access_key:
            errors.append("S3_ACCESS_KEY is required")
        if not self.secret_key:
            errors.append("S3_SECRET_KEY is required")
        if not self.prefix.strip('/'):
            errors.append("S3_PREFIX must not be empty (the prefix is cleared on every build)")
        return errors
