"""Presigned upload URLs for S3-compatible object storage."""

from __future__ import annotations

import logging
import os
from typing import Any
from uuid import uuid4

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from photo_story.domain.errors import StorageFailureError

UPLOAD_URL_TTL_SECONDS = 900

logger = logging.getLogger(__name__)


class S3UploadUrlIssuer:
    """Issue presigned PUT URLs under `<prefix>/uploads/<uuid>`."""

    def __init__(
        self,
        *,
        bucket: str | None = None,
        prefix: str | None = None,
        client: Any | None = None,
        ttl_seconds: int = UPLOAD_URL_TTL_SECONDS,
    ) -> None:
        self.bucket = (
            bucket if bucket is not None else os.environ.get("PHOTO_STORY_S3_BUCKET", "").strip()
        )
        raw_prefix = (
            prefix if prefix is not None else os.environ.get("PHOTO_STORY_S3_PREFIX", "").strip()
        )
        self.prefix = raw_prefix.strip("/")
        self.ttl_seconds = ttl_seconds
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = boto3.client(
                "s3",
                region_name=os.environ.get("PHOTO_STORY_S3_REGION", "").strip() or None,
                endpoint_url=os.environ.get("PHOTO_STORY_S3_ENDPOINT_URL", "").strip() or None,
            )
        return self._client

    def object_key(self) -> str:
        name = f"uploads/{uuid4()}"
        return f"{self.prefix}/{name}" if self.prefix else name

    def issue_upload_url(self) -> str:
        if not self.bucket:
            raise StorageFailureError("Object storage is not configured")
        key = self.object_key()
        try:
            url = self._get_client().generate_presigned_url(
                "put_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=self.ttl_seconds,
                HttpMethod="PUT",
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageFailureError(f"Failed to sign upload URL: {exc}") from exc
        logger.info("upload_url.issued bucket=%s key=%s ttl=%s", self.bucket, key, self.ttl_seconds)
        return str(url)
