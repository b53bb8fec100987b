"""
Service configuration using Pydantic settings.

Configuration is loaded from environment variables (prefix IMGSOURCE_)
with sensible defaults. Bucket definitions live in a separate TOML file
whose path is one of these settings; see config.buckets.

Mock mode enables local development without object storage.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Service settings loaded from environment variables.

    All settings can be overridden via environment variables,
    e.g. IMGSOURCE_S3_CONFIG_PATH=/etc/imgsource/buckets.toml
    """

    # API Configuration
    api_title: str = "imgsource"
    api_version: str = "v1"

    # Object storage source
    s3_config_path: Optional[str] = Field(
        default=None,
        description="Path to the TOML file with [[S3.Buckets]] definitions."
    )
    s3_config_required: bool = Field(
        default=False,
        description="Abort startup when the bucket file cannot be loaded. "
                    "When false, the service starts with no buckets and every s3 request is not found."
    )
    s3_max_retries: int = Field(
        default=2,
        ge=0,
        description="Automatic transport-level retries passed to botocore."
    )
    s3_use_ssl: bool = Field(
        default=True,
        description="Use TLS toward storage endpoints. An explicit http:// EndPoint always wins."
    )
    s3_mock_mode: bool = Field(
        default=False,
        description="Serve remote objects from an in-memory store instead of real object storage."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    model_config = SettingsConfigDict(
        env_prefix="IMGSOURCE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are loaded once per process. For tests, call
    get_settings.cache_clear() to reset.
    """
    return Settings()
