"""S3 storage for proposal images and logos."""

import logging
import mimetypes
import re
from typing import Optional
from uuid import uuid4

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from src.compositor.errors import PersistenceError

from .base import AssetStore

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class S3AssetStore(AssetStore):
    """Uploads proposal assets to S3."""

    def __init__(self, bucket_name: str, region: Optional[str] = None, s3_client=None):
        """Initialize S3 store.

        Args:
            bucket_name: S3 bucket name
            region: AWS region used to build object URLs
            s3_client: Optional S3 client (for testing)
        """
        if not bucket_name:
            raise ValueError("An S3 bucket name is required for asset uploads")
        self.bucket_name = bucket_name
        self.region = region
        self.s3_client = s3_client or boto3.client("s3")

    def _build_key(self, path_hint: str, filename: str) -> str:
        prefix = path_hint.strip("/") or "uploads"
        safe_name = _UNSAFE_KEY_CHARS.sub("-", filename).strip("-") or "file"
        return f"{prefix}/{uuid4().hex[:12]}-{safe_name}"

    def object_url(self, key: str) -> str:
        if self.region:
            return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{key}"
        return f"https://{self.bucket_name}.s3.amazonaws.com/{key}"

    def upload_asset(
        self, data: bytes, path_hint: str, filename: str, content_type: Optional[str] = None
    ) -> str:
        key = self._build_key(path_hint, filename)
        content_type = content_type or mimetypes.guess_type(filename)[0] or "application/octet-stream"

        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=data,
                ContentType=content_type,
                Metadata={"original_filename": filename},
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Error uploading {filename} to s3://{self.bucket_name}/{key}: {str(e)}")
            raise PersistenceError(f"Failed to upload {filename}", original_error=e) from e

        logger.info(f"Stored asset at s3://{self.bucket_name}/{key}")
        return self.object_url(key)
