"""
Object storage integration for image bytes.

Supports S3 and S3-compatible stores via boto3, plus an in-memory mode
for local development without credentials.
"""

from .client import (
    DownloadCancelledError,
    MockObjectDownloader,
    ObjectDownloader,
    S3ObjectDownloader,
    StorageConfig,
    StorageError,
    create_object_downloader,
)

__all__ = [
    "DownloadCancelledError",
    "MockObjectDownloader",
    "ObjectDownloader",
    "S3ObjectDownloader",
    "StorageConfig",
    "StorageError",
    "create_object_downloader",
]
