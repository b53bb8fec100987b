"""
Models for the object storage image source.

A BucketDefinition mirrors one `[[S3.Buckets]]` table from the bucket
configuration file. The TOML keys are kept as aliases so the file format
stays compatible with existing deployments, while Python code uses
snake_case names.
"""

from dataclasses import dataclass
from typing import Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class BucketDefinition(BaseModel):
    """
    One configured remote bucket.

    Immutable once loaded. Credentials are excluded from repr because
    bucket definitions show up in error messages and logs.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    name: str = Field(alias="Name", description="Short identifier used in request URLs")
    remote_bucket_id: str = Field(default="", alias="Dist", description="Bucket name at the storage provider")
    key_prefix: str = Field(default="", alias="Prefix", description="Path prefix prepended to every key")
    endpoint: Optional[str] = Field(default=None, alias="EndPoint")
    access_id: str = Field(default="", alias="AppId", repr=False)
    access_secret: str = Field(default="", alias="AppKey", repr=False)
    session_token: str = Field(default="", alias="AppToken", repr=False)
    region: str = Field(default="", alias="Region")
    local_mirror_enabled: bool = Field(default=False, alias="EnableLocal")
    local_mirror_dir: str = Field(default="", alias="LocalDir")

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("bucket Name must be a non-empty string")
        return value

    @field_validator("endpoint")
    @classmethod
    def _empty_endpoint_is_default(cls, value: Optional[str]) -> Optional[str]:
        # An empty EndPoint means "use the provider default"
        return value or None

    @model_validator(mode="after")
    def _credentials_are_paired(self) -> "BucketDefinition":
        # Static credentials come as a pair or not at all
        if bool(self.access_id) != bool(self.access_secret):
            raise ValueError(f"bucket {self.name!r}: AppId and AppKey must be set together")
        return self

    def object_key(self, key: str) -> str:
        """Remote object key: the request key joined under the prefix."""
        key = key.lstrip("/")
        prefix = self.key_prefix.strip("/")
        if prefix:
            return f"{prefix}/{key}"
        return key

    def local_path(self, key: str) -> str:
        """Path of the mirrored copy of `key` under the local mirror root."""
        return self.local_mirror_dir.rstrip("/") + "/" + key.lstrip("/")


@dataclass(frozen=True)
class RequestKey:
    """The `<bucketName>/<objectKey>` value carried by a request."""
    bucket_name: str
    object_key: str

    @classmethod
    def parse(cls, value: str) -> Optional["RequestKey"]:
        """
        Split on the first `/`.

        Returns None when there is no separator or either side is empty,
        so malformed input degrades to "not found" instead of raising.
        """
        bucket_name, sep, object_key = value.partition("/")
        if not sep or not bucket_name or not object_key:
            return None
        return cls(bucket_name=bucket_name, object_key=object_key)


@dataclass(frozen=True)
class SourceConfiguration:
    """Ordered bucket definitions loaded once at startup."""
    buckets: tuple[BucketDefinition, ...] = ()
    path: Optional[str] = None

    def __len__(self) -> int:
        return len(self.buckets)

    def __iter__(self) -> Iterator[BucketDefinition]:
        return iter(self.buckets)

    def find(self, name: str) -> Optional[BucketDefinition]:
        """First bucket whose name matches exactly."""
        for bucket in self.buckets:
            if bucket.name == name:
                return bucket
        return None

    def duplicate_names(self) -> list[str]:
        seen: set[str] = set()
        duplicates: list[str] = []
        for bucket in self.buckets:
            if bucket.name in seen and bucket.name not in duplicates:
                duplicates.append(bucket.name)
            seen.add(bucket.name)
        return duplicates
