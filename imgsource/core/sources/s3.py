"""
Object storage image source.

Claims GET requests carrying `?s3=<bucketName>/<objectKey>`, resolves the
bucket name against the loaded bucket configuration, and returns the
object bytes either from the bucket's local mirror directory or from the
remote store.

Local mirror policy: when a bucket has its mirror enabled, the mirror is
authoritative. A missing or unreadable mirror file fails the request; it
does not fall back to the remote store. A zero-length mirror file is a
valid (empty) image.
"""

import asyncio
import logging
import os
import threading
from typing import Callable, Optional, Protocol

from .base import SourceRequest
from .errors import (
    BucketNotFoundError,
    LocalReadError,
    MissingParameterError,
    RemoteDownloadError,
)
from .models import BucketDefinition, RequestKey, SourceConfiguration

logger = logging.getLogger(__name__)

QUERY_KEY = "s3"


# ---------------------------------------------------------------------------
# Protocols (interfaces)
# ---------------------------------------------------------------------------

class ObjectDownloader(Protocol):
    """
    Interface for fetching whole objects from object storage.

    Called from a worker thread. Implementations should check
    `cancel_event` while transferring and stop once it is set.
    """

    def download(
        self,
        bucket: str,
        key: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> bytes:
        """Download the object and return its full contents."""
        ...


DownloaderFactory = Callable[[BucketDefinition], ObjectDownloader]


def query_value(request: SourceRequest) -> str:
    """
    The first `s3` value on the request, or "" when there is none.

    A repeated parameter resolves to its first occurrence, not the last
    one that Starlette's `get` would return.
    """
    values = request.query_params.getlist(QUERY_KEY)
    return values[0] if values else ""


# ---------------------------------------------------------------------------
# Image Source
# ---------------------------------------------------------------------------

class S3ImageSource:
    """
    Image source backed by S3-compatible object storage.

    Holds only the immutable bucket configuration, so a single instance
    serves concurrent requests without locking. A downloader is built per
    remote fetch from the bucket's own credentials.
    """

    def __init__(
        self,
        configuration: SourceConfiguration,
        downloader_factory: DownloaderFactory,
    ) -> None:
        self._configuration = configuration
        self._downloader_factory = downloader_factory

    @property
    def configuration(self) -> SourceConfiguration:
        return self._configuration

    def matches(self, request: SourceRequest) -> bool:
        return request.method == "GET" and bool(query_value(request))

    async def get_image(self, request: SourceRequest) -> bytes:
        """
        Fetch the image addressed by the request's `s3` parameter.

        Raises:
            MissingParameterError: the parameter is absent or empty
            BucketNotFoundError: no configured bucket matches, or the
                value carries no object key
            LocalReadError: the local mirror file cannot be read
            RemoteDownloadError: the remote download failed
        """
        value = query_value(request)
        if not value:
            raise MissingParameterError(QUERY_KEY)

        bucket, key = self.resolve(value)
        if bucket is None:
            logger.warning("No bucket configured for request", extra={"value": value})
            raise BucketNotFoundError(value)

        if bucket.local_mirror_enabled:
            data = await asyncio.to_thread(self._read_local, bucket, key)
            origin = "local"
        else:
            cancel_event = threading.Event()
            try:
                data = await asyncio.to_thread(self._download_remote, bucket, key, cancel_event)
            except asyncio.CancelledError:
                # Request went away; tell the worker thread to stop reading
                cancel_event.set()
                raise
            origin = "remote"

        logger.debug(
            "Fetched image",
            extra={
                "bucket": bucket.name,
                "key": key,
                "origin": origin,
                "size_bytes": len(data),
            },
        )
        return data

    def resolve(self, value: str) -> tuple[Optional[BucketDefinition], str]:
        """
        Map `<bucketName>/<objectKey>` to a bucket definition and key.

        Returns (None, "") when the value is malformed or names an
        unknown bucket. Never raises.
        """
        request_key = RequestKey.parse(value)
        if request_key is None:
            return None, ""

        bucket = self._configuration.find(request_key.bucket_name)
        if bucket is None:
            return None, ""
        return bucket, request_key.object_key

    def _read_local(self, bucket: BucketDefinition, key: str) -> bytes:
        """
        Read the whole mirror file for the key.

        Runs in a worker thread. Keys that normalize to a path outside the
        mirror directory are refused before anything is opened, so a
        request cannot use `..` to read arbitrary files.
        """
        path = bucket.local_path(key)

        root = os.path.normpath(bucket.local_mirror_dir or "/")
        normalized = os.path.normpath(path)
        if os.path.commonpath([root, normalized]) != root:
            raise LocalReadError(path, PermissionError("path escapes local mirror directory"))

        try:
            with open(normalized, "rb") as f:
                return f.read()
        except OSError as e:
            logger.error(
                "Failed to read local mirror file",
                extra={"bucket": bucket.name, "path": path, "error": str(e)},
            )
            raise LocalReadError(path, e) from e

    def _download_remote(
        self,
        bucket: BucketDefinition,
        key: str,
        cancel_event: threading.Event,
    ) -> bytes:
        """
        Download the object from the bucket's remote store.

        Runs in a worker thread. Whatever the downloader or its factory
        raises is wrapped in RemoteDownloadError, keeping the provider
        error code so the API can tell a missing object from an outage.
        """
        remote_key = bucket.object_key(key)
        try:
            downloader = self._downloader_factory(bucket)
            return downloader.download(bucket.remote_bucket_id, remote_key, cancel_event)
        except Exception as e:
            logger.error(
                "Failed to download remote image",
                extra={
                    "bucket": bucket.name,
                    "remote_bucket": bucket.remote_bucket_id,
                    "key": remote_key,
                    "error": str(e),
                },
            )
            raise RemoteDownloadError(
                repr(bucket),
                remote_key,
                e,
                error_code=getattr(e, "code", None),
            ) from e
