"""Object storage for uploaded media.

All S3 traffic goes through :class:`S3MediaStore`; callers pass a boto3 client
in tests and let the store build its own in production.
"""

from __future__ import annotations

import logging
import mimetypes
import re
from pathlib import PurePosixPath
from typing import Any

import boto3

from clipgate.core.errors import DependencyError

logger = logging.getLogger(__name__)

_EXTENSION_RE = re.compile(r"\.[a-z0-9]{1,10}")


def media_extension(filename: str | None, content_type: str) -> str:
    """Pick a file extension for the stored object, including the dot."""
    suffix = PurePosixPath(filename or "").suffix.lower()
    if _EXTENSION_RE.fullmatch(suffix):
        return suffix
    return mimetypes.guess_extension(content_type) or ""


class S3MediaStore:
    """Store media bytes in an S3 bucket."""

    def __init__(
        self,
        *,
        bucket: str | None,
        region: str | None,
        public_url: str = "",
        prefix: str = "videos",
        client: Any = None,
    ) -> None:
        self.bucket = bucket
        self.region = region
        self.public_url = public_url.rstrip("/")
        self.prefix = prefix.strip("/")
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.bucket and self.region)

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = boto3.client("s3", region_name=self.region)
        return self._client

    def key_for(self, fingerprint: str, extension: str) -> str:
        return f"{self.prefix}/{fingerprint}{extension}" if self.prefix else f"{fingerprint}{extension}"

    def url_for(self, key: str) -> str:
        if self.public_url:
            return f"{self.public_url}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def upload(self, data: bytes, key: str, content_type: str) -> str:
        """Upload ``data`` under ``key`` and return its public URL."""
        if not self.configured:
            raise DependencyError("Missing AWS S3 bucket or region configuration")
        self.client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        return self.url_for(key)

    def delete(self, key: str) -> None:
        if not self.configured:
            raise DependencyError("Missing AWS S3 bucket or region configuration")
        self.client.delete_object(Bucket=self.bucket, Key=key)
