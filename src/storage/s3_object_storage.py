# src/storage/s3_object_storage.py — v1
"""S3-compatible object storage (OBJECT_STORAGE=s3).

Supports AWS S3, MinIO, and other S3-compatible storage.
Requires 'boto3' package: pip install boto3.
"""

from __future__ import annotations

import logging

from stowvision.storage.base_object_storage import BaseObjectStorage

logger = logging.getLogger(__name__)


class S3ObjectStorage(BaseObjectStorage):
    """Presigned-URL issuer over an S3 bucket."""

    def __init__(
        self,
        bucket: str,
        region: str | None = None,
        endpoint_url: str | None = None,
    ) -> None:
        """Initialize S3 storage.

        Args:
            bucket: S3 bucket name.
            region: AWS region (optional, uses boto3 default if not set).
            endpoint_url: Custom endpoint for MinIO/compatible storage.
        """
        try:
            import boto3
        except ImportError as e:
            raise ImportError(
                "boto3 package required for S3 storage: pip install boto3"
            ) from e

        kwargs: dict = {}
        if region:
            kwargs["region_name"] = region
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url

        self._s3 = boto3.client("s3", **kwargs)
        self._bucket = bucket

    async def exists(self, path: str) -> bool:
        """Check if an S3 object exists."""
        try:
            self._s3.head_object(Bucket=self._bucket, Key=path)
            return True
        except self._s3.exceptions.ClientError:
            return False

    async def signed_url(self, path: str, expires_in: int) -> str:
        url = self._s3.generate_presigned_url(
            "get_object",
            Params={"Bucket": self._bucket, "Key": path},
            ExpiresIn=expires_in,
        )
        logger.debug("S3 signed URL issued: s3://%s/%s (ttl=%ds)", self._bucket, path, expires_in)
        return url
