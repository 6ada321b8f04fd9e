"""
Upload storage for admin-supplied media: local disk (served under the
uploads mount), S3-compatible buckets, and an in-memory test double.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Protocol

import boto3
from botocore.config import Config

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^\w.\-]")


def stored_filename(original_name: Optional[str], clock=time.time) -> str:
    """``<ms-timestamp>-<name>`` with unsafe characters replaced by ``_``."""
    safe_name = _UNSAFE_CHARS.sub("_", original_name or "upload")
    return f"{int(clock() * 1000)}-{safe_name}"


class MediaStorage(Protocol):
    """Persists an uploaded file and returns the path to store on the entity."""

    def save(self, filename: str, data: bytes, content_type: Optional[str] = None) -> str:
        ...


@dataclass
class LocalMediaStorage:
    """Writes uploads under ``upload_dir``; paths are rooted at ``mount_path``."""

    upload_dir: str
    mount_path: str = "/uploads"

    def save(self, filename: str, data: bytes, content_type: Optional[str] = None) -> str:
        directory = Path(self.upload_dir)
        directory.mkdir(parents=True, exist_ok=True)
        name = stored_filename(filename)
        (directory / name).write_bytes(data)
        return f"{self.mount_path.rstrip('/')}/{name}"


@dataclass
class InMemoryMediaStorage:
    """Test double for upload handling."""

    mount_path: str = "/uploads"
    stored_objects: dict = field(default_factory=dict)

    def save(self, filename: str, data: bytes, content_type: Optional[str] = None) -> str:
        path = f"{self.mount_path.rstrip('/')}/{stored_filename(filename)}"
        self.stored_objects[path] = data
        return path


@dataclass
class S3MediaStorage:
    """
    S3-compatible bucket storage. Returns the object's public URL, which is
    stored verbatim like any other remote URL.
    """

    bucket: str
    region: str
    endpoint: str
    access_key_id: str
    secret_access_key: str
    public_url: str = ""
    key_prefix: str = "uploads/"

    def __post_init__(self):
        config = Config(
            s3={"addressing_style": "virtual"},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id or None,
            aws_secret_access_key=self.secret_access_key or None,
            config=config,
        )
        if not self.public_url:
            logger.warning(
                "No public URL configured for bucket %s; stored upload URLs are "
                "unsigned and need a publicly readable bucket",
                self.bucket,
            )

    def _object_url(self, key: str) -> str:
        """
        ``public_url`` + key when configured. Otherwise the bucket's own object
        URL, taken from a presigned URL with its signature query removed; that
        plain URL only resolves for publicly readable buckets.
        """
        if self.public_url:
            return f"{self.public_url.rstrip('/')}/{key}"
        return self._client.generate_presigned_url(
            ClientMethod="get_object",
            Params={"Bucket": self.bucket, "Key": key},
        ).split("?", 1)[0]

    def save(self, filename: str, data: bytes, content_type: Optional[str] = None) -> str:
        key = f"{self.key_prefix}{stored_filename(filename)}"
        self._client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType=content_type or "application/octet-stream",
        )
        return self._object_url(key)
