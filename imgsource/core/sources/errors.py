"""
Errors raised by image sources.

Every per-request failure is returned to the dispatcher as one of these.
The API layer maps them to HTTP responses; the sources themselves know
nothing about status codes.
"""

from typing import Optional


class ImageSourceError(Exception):
    """Base class for all image source failures."""
    pass


class ConfigLoadError(ImageSourceError):
    """Raised when the bucket configuration file cannot be loaded."""

    def __init__(self, path: str, cause: BaseException) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"error loading source configuration: (path={path}) (err={cause})")


class MissingParameterError(ImageSourceError):
    """Raised when the request carries no usable query parameter."""

    def __init__(self, param: str) -> None:
        self.param = param
        super().__init__(f"missing required query parameter: {param}")


class BucketNotFoundError(ImageSourceError):
    """
    Raised when the requested value does not resolve to a configured bucket.

    Covers both unknown bucket names and malformed values that carry
    no object key.
    """

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"no bucket configured for: {value!r}")


class LocalReadError(ImageSourceError):
    """Raised when a local mirror file cannot be opened or read."""

    def __init__(self, path: str, cause: BaseException) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"error read local image: (path={path}) (err={cause})")

    @property
    def is_missing(self) -> bool:
        return isinstance(self.cause, FileNotFoundError)


class RemoteDownloadError(ImageSourceError):
    """Raised when the object storage download fails."""

    def __init__(
        self,
        bucket: str,
        key: str,
        cause: BaseException,
        error_code: Optional[str] = None,
    ) -> None:
        self.bucket = bucket
        self.key = key
        self.cause = cause
        self.error_code = error_code
        super().__init__(
            f"error download remote image: (cfg={bucket}) (key={key}) (err={cause})"
        )

    @property
    def is_missing(self) -> bool:
        return self.error_code in {"404", "NoSuchKey", "NotFound"}
