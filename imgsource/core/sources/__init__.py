"""
Image sources.

Each source is one strategy for resolving a request into image bytes.
The registry dispatches a request to the first source that claims it.
"""

from .base import ImageSource, ImageSourceType, SourceRegistry, SourceRequest
from .errors import (
    BucketNotFoundError,
    ConfigLoadError,
    ImageSourceError,
    LocalReadError,
    MissingParameterError,
    RemoteDownloadError,
)
from .models import BucketDefinition, RequestKey, SourceConfiguration
from .s3 import QUERY_KEY, DownloaderFactory, ObjectDownloader, S3ImageSource, query_value

__all__ = [
    "ImageSource",
    "ImageSourceType",
    "SourceRegistry",
    "SourceRequest",
    "BucketNotFoundError",
    "ConfigLoadError",
    "ImageSourceError",
    "LocalReadError",
    "MissingParameterError",
    "RemoteDownloadError",
    "BucketDefinition",
    "RequestKey",
    "SourceConfiguration",
    "QUERY_KEY",
    "DownloaderFactory",
    "ObjectDownloader",
    "S3ImageSource",
    "query_value",
]
