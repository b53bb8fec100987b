"""
Bucket configuration file loader.

The bucket file is TOML with one `[[S3.Buckets]]` table per bucket:

    [[S3.Buckets]]
    Name = "avatars"
    Dist = "prod-avatars"
    Prefix = "img"
    EndPoint = "http://minio:9000"
    AppId = "..."
    AppKey = "..."
    Region = "us-east-1"
    EnableLocal = false
    LocalDir = "/data/avatars"

Loading happens once at startup. Failures raise ConfigLoadError and the
caller decides whether to abort or run without buckets.
"""

import logging
import tomllib
from pathlib import Path
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..core.sources.errors import ConfigLoadError
from ..core.sources.models import BucketDefinition, SourceConfiguration

logger = logging.getLogger(__name__)


class S3Section(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    buckets: list[BucketDefinition] = Field(default_factory=list, alias="Buckets")


class S3ConfigDocument(BaseModel):
    """Top-level shape of the bucket file. Other tables are ignored."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    s3: S3Section = Field(default_factory=S3Section, alias="S3")


def load_source_configuration(path: Union[str, Path]) -> SourceConfiguration:
    """
    Parse the bucket file at `path`.

    Raises:
        ConfigLoadError: the file is missing, unreadable, not valid TOML,
            or a bucket table fails validation.
    """
    path = str(path)
    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
        document = S3ConfigDocument.model_validate(raw)
    except (OSError, tomllib.TOMLDecodeError, ValidationError) as e:
        raise ConfigLoadError(path, e) from e

    configuration = SourceConfiguration(buckets=tuple(document.s3.buckets), path=path)

    duplicates = configuration.duplicate_names()
    if duplicates:
        logger.warning(
            "Duplicate bucket names in configuration, first definition wins",
            extra={"path": path, "duplicates": duplicates},
        )

    logger.info(
        "Loaded bucket configuration",
        extra={"path": path, "bucket_count": len(configuration)},
    )
    return configuration
