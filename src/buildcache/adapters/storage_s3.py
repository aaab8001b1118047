"""S3 storage adapter."""

import tempfile
from collections.abc import Iterator
from pathlib import Path
from typing import Any, BinaryIO

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..core.errors import ConfigError, StorageTransportError
from ..ports.storage import ObjectHead

# Error codes that mean "not there" rather than "backend broken"
NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound", "NoSuchBucket"})

# Downloads larger than this spill from memory to disk
SPOOL_MAX_SIZE = 8 * 1024 * 1024


def split_key(key: str) -> tuple[str, str]:
    """Split ``/bucket/path/to/object`` into bucket and object key.

    The first path segment of a cache key is the bucket (by default the
    repository owner).
    """
    parts = key.lstrip("/").split("/", 1)
    bucket = parts[0]
    if not bucket:
        raise ConfigError(f"Storage key has no bucket segment: {key!r}")
    return bucket, parts[1] if len(parts) > 1 else ""


def _is_not_found(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code", "") in NOT_FOUND_CODES


class S3StorageAdapter:
    """S3 (and S3-compatible) implementation of StoragePort."""

    def __init__(
        self,
        client: Any = None,
        endpoint_url: str | None = None,
        region: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        connect_timeout: float = 10,
        read_timeout: float = 60,
        max_attempts: int = 3,
    ):
        """Initialize with S3 client.

        Args:
            client: Pre-configured boto3 S3 client. Created from the other
                arguments when omitted.
            endpoint_url: S3-compatible server URL. None means AWS S3.
        """
        if client is None:
            client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                region_name=region,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                config=Config(
                    connect_timeout=connect_timeout,
                    read_timeout=read_timeout,
                    retries={"max_attempts": max_attempts, "mode": "standard"},
                    s3={"addressing_style": "path"},
                ),
            )
        self.client = client

    def head(self, key: str) -> ObjectHead | None:
        """Get object metadata."""
        bucket, object_key = split_key(key)
        try:
            response = self.client.head_object(Bucket=bucket, Key=object_key)
        except ClientError as e:
            if _is_not_found(e):
                return None
            raise StorageTransportError(f"Failed to head {key}: {e}") from e
        except BotoCoreError as e:
            raise StorageTransportError(f"Failed to head {key}: {e}") from e

        return ObjectHead(
            key=key,
            size=response["ContentLength"],
            last_modified=response["LastModified"],
        )

    def list(self, prefix: str) -> Iterator[ObjectHead]:
        """List objects under prefix, following pagination."""
        bucket, object_prefix = split_key(prefix)
        paginator = self.client.get_paginator("list_objects_v2")

        try:
            for page in paginator.paginate(Bucket=bucket, Prefix=object_prefix):
                for obj in page.get("Contents", []):
                    yield ObjectHead(
                        key=f"/{bucket}/{obj['Key']}",
                        size=obj["Size"],
                        last_modified=obj["LastModified"],
                    )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "NoSuchBucket":
                return
            raise StorageTransportError(f"Failed to list {prefix}: {e}") from e
        except BotoCoreError as e:
            raise StorageTransportError(f"Failed to list {prefix}: {e}") from e

    def get(self, key: str) -> BinaryIO | None:
        """Download an object.

        The body is read completely before returning so that transport errors
        surface here and not while the caller consumes the stream.
        """
        bucket, object_key = split_key(key)
        buffer: Any = tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_SIZE)
        try:
            response = self.client.get_object(Bucket=bucket, Key=object_key)
            body = response["Body"]
            for chunk in iter(lambda: body.read(8192), b""):
                buffer.write(chunk)
        except ClientError as e:
            buffer.close()
            if _is_not_found(e):
                return None
            raise StorageTransportError(f"Failed to get {key}: {e}") from e
        except BotoCoreError as e:
            buffer.close()
            raise StorageTransportError(f"Failed to get {key}: {e}") from e

        buffer.seek(0)
        return buffer

    def put(self, key: str, body: Path | BinaryIO) -> None:
        """Upload an object, replacing any existing one."""
        bucket, object_key = split_key(key)
        try:
            if isinstance(body, Path):
                self.client.upload_file(str(body), bucket, object_key)
            else:
                self.client.upload_fileobj(body, bucket, object_key)
        except (ClientError, BotoCoreError, S3UploadFailedError) as e:
            raise StorageTransportError(f"Failed to put {key}: {e}") from e

    def delete(self, key: str) -> None:
        """Delete an object."""
        bucket, object_key = split_key(key)
        try:
            self.client.delete_object(Bucket=bucket, Key=object_key)
        except ClientError as e:
            if _is_not_found(e):
                return
            raise StorageTransportError(f"Failed to delete {key}: {e}") from e
        except BotoCoreError as e:
            raise StorageTransportError(f"Failed to delete {key}: {e}") from e
