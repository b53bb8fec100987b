"""
Source construction and FastAPI dependency injection.

The application factory calls build_source_registry() once at startup to
load the bucket file and register the image sources explicitly. Route
handlers then receive the registry through the dependencies below,
which read it from app.state.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Annotated, Optional

from fastapi import Depends, Request

from ..config.buckets import load_source_configuration
from ..config.settings import Settings
from ..core.sources import (
    BucketDefinition,
    ConfigLoadError,
    DownloaderFactory,
    ImageSourceType,
    ObjectDownloader,
    S3ImageSource,
    SourceConfiguration,
    SourceRegistry,
)
from ..infrastructure.storage import (
    MockObjectDownloader,
    StorageConfig,
    create_object_downloader,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceConfigStatus:
    """Outcome of loading the bucket file, reported by /health/ready."""
    path: Optional[str]
    loaded: bool
    bucket_count: int = 0
    error: Optional[str] = None


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

def build_downloader_factory(
    settings: Settings,
    mock_downloader: Optional[MockObjectDownloader] = None,
) -> DownloaderFactory:
    """
    Map a bucket definition to a downloader.

    In mock mode every bucket shares one in-memory downloader. Otherwise
    one boto3-backed downloader is built per bucket on first use and
    reused; boto3 clients are safe to share between threads.
    """
    if settings.s3_mock_mode:
        shared = mock_downloader or create_object_downloader(mock_mode=True)
        return lambda bucket: shared

    downloaders: dict[BucketDefinition, ObjectDownloader] = {}
    lock = threading.Lock()

    def factory(bucket: BucketDefinition) -> ObjectDownloader:
        with lock:
            downloader = downloaders.get(bucket)
            if downloader is None:
                config = StorageConfig(
                    access_key_id=bucket.access_id,
                    secret_access_key=bucket.access_secret,
                    session_token=bucket.session_token,
                    endpoint_url=bucket.endpoint,
                    region=bucket.region,
                    max_retries=settings.s3_max_retries,
                    use_ssl=settings.s3_use_ssl,
                )
                downloader = create_object_downloader(config=config)
                downloaders[bucket] = downloader
                logger.debug(
                    "Created object downloader",
                    extra={"bucket": bucket.name, "endpoint": bucket.endpoint},
                )
            return downloader

    return factory


def load_bucket_configuration(settings: Settings) -> tuple[SourceConfiguration, SourceConfigStatus]:
    """
    Load the bucket file named by the settings.

    When loading fails and s3_config_required is false, the failure is
    logged and an empty configuration is returned; the service keeps
    running and every s3 request resolves to not found.

    An unset path counts as a failed load.

    Raises:
        ConfigLoadError: loading failed, or no path is set, and
            s3_config_required is true
    """
    path = settings.s3_config_path
    if not path:
        if settings.s3_config_required:
            raise ConfigLoadError("<unset>", ValueError("IMGSOURCE_S3_CONFIG_PATH is not set"))
        logger.warning("No bucket configuration path set; s3 source has no buckets")
        return SourceConfiguration(), SourceConfigStatus(
            path=None,
            loaded=False,
            error="IMGSOURCE_S3_CONFIG_PATH is not set",
        )

    try:
        configuration = load_source_configuration(path)
    except ConfigLoadError as e:
        if settings.s3_config_required:
            raise
        logger.error(
            "Failed to load bucket configuration; continuing without buckets",
            extra={"path": e.path, "error": str(e.cause)},
            exc_info=e,
        )
        return SourceConfiguration(path=path), SourceConfigStatus(
            path=path,
            loaded=False,
            error=str(e),
        )

    return configuration, SourceConfigStatus(
        path=path,
        loaded=True,
        bucket_count=len(configuration),
    )


def build_source_registry(
    settings: Settings,
    downloader_factory: Optional[DownloaderFactory] = None,
) -> tuple[SourceRegistry, SourceConfigStatus]:
    """Construct every image source and register it explicitly."""
    configuration, status = load_bucket_configuration(settings)

    registry = SourceRegistry()
    registry.register(
        ImageSourceType.S3,
        S3ImageSource(
            configuration,
            downloader_factory or build_downloader_factory(settings),
        ),
    )

    logger.info(
        "Image sources registered",
        extra={"sources": registry.types, "bucket_count": status.bucket_count},
    )
    return registry, status


# ---------------------------------------------------------------------------
# Request Dependencies
# ---------------------------------------------------------------------------

def get_source_registry(request: Request) -> SourceRegistry:
    """Provide the registry built during application startup."""
    return request.app.state.source_registry


def get_source_config_status(request: Request) -> SourceConfigStatus:
    """Outcome of the startup bucket file load."""
    return request.app.state.source_config_status


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

SourceRegistryDep = Annotated[SourceRegistry, Depends(get_source_registry)]
SourceConfigStatusDep = Annotated[SourceConfigStatus, Depends(get_source_config_status)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
