"""
Object storage downloader for image bytes.

Supports AWS S3 and S3-compatible stores (MinIO, Ceph, R2) through boto3,
with a mock mode that serves objects from memory for local development.

The downloader is deliberately synchronous. Callers run it in a worker
thread and hand it a cancel event; the body is read in chunks so a
cancelled request stops pulling bytes at the next chunk boundary.
"""

import io
import logging
import threading
from dataclasses import dataclass
from typing import Optional

from boto3.session import Session
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ...core.sources.s3 import ObjectDownloader

logger = logging.getLogger(__name__)

DEFAULT_REGION = "us-east-1"
DEFAULT_MAX_RETRIES = 2
DEFAULT_CHUNK_SIZE = 256 * 1024


class StorageError(Exception):
    """Raised when storage operations fail."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code


class DownloadCancelledError(StorageError):
    """Raised when a download is abandoned because its request went away."""

    def __init__(self, bucket: str, key: str) -> None:
        super().__init__(f"Download cancelled: {bucket}/{key}", code="Cancelled")


@dataclass
class StorageConfig:
    """
    Connection settings for one S3-compatible endpoint.

    Empty credentials are left out of the client so boto3 falls back to
    its default credential chain (env vars, instance profile).
    """
    access_key_id: str = ""
    secret_access_key: str = ""
    session_token: str = ""
    endpoint_url: Optional[str] = None
    region: str = DEFAULT_REGION
    max_retries: int = DEFAULT_MAX_RETRIES
    use_ssl: bool = True

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries cannot be negative")
        if bool(self.access_key_id) != bool(self.secret_access_key):
            raise ValueError(
                "StorageConfig requires all-or-nothing credentials: "
                "set both access_key_id and secret_access_key, or neither."
            )


class S3ObjectDownloader:
    """
    boto3-backed downloader.

    One instance per bucket definition, since credentials, endpoint and
    region are per bucket. Path-style addressing is forced so custom
    endpoints without wildcard DNS keep working.
    """

    def __init__(
        self,
        config: StorageConfig,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        client=None,
    ) -> None:
        self._config = config
        self._chunk_size = chunk_size
        self._s3_client = client if client is not None else self._build_client(config)

    @staticmethod
    def _build_client(config: StorageConfig):
        boto_config = Config(
            signature_version="s3v4",
            s3={"addressing_style": "path"},
            retries={"max_attempts": config.max_retries},
        )
        session_kwargs = {"region_name": config.region or DEFAULT_REGION}
        if config.access_key_id:
            session_kwargs["aws_access_key_id"] = config.access_key_id
            session_kwargs["aws_secret_access_key"] = config.secret_access_key
        if config.session_token:
            session_kwargs["aws_session_token"] = config.session_token

        # A fresh Session per client; the default session is not thread-safe
        session = Session(**session_kwargs)
        return session.client(
            "s3",
            endpoint_url=config.endpoint_url or None,
            use_ssl=config.use_ssl,
            config=boto_config,
        )

    @property
    def client(self):
        """The underlying boto3 S3 client."""
        return self._s3_client

    def download(
        self,
        bucket: str,
        key: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> bytes:
        """
        Fetch `bucket/key` and buffer the whole body.

        Provider errors are re-raised as StorageError with the provider's
        error code attached, so callers can tell a missing object from a
        transport failure.
        """
        if cancel_event is not None and cancel_event.is_set():
            raise DownloadCancelledError(bucket, key)

        try:
            response = self._s3_client.get_object(Bucket=bucket, Key=key)
            body = response["Body"]
            buffer = io.BytesIO()
            try:
                for chunk in body.iter_chunks(chunk_size=self._chunk_size):
                    if cancel_event is not None and cancel_event.is_set():
                        raise DownloadCancelledError(bucket, key)
                    buffer.write(chunk)
            finally:
                body.close()

        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            logger.error(
                "Failed to download object",
                extra={"bucket": bucket, "key": key, "code": code, "error": str(e)},
            )
            raise StorageError(f"Download failed: {e}", code=code) from e

        except BotoCoreError as e:
            logger.error(
                "Failed to download object",
                extra={"bucket": bucket, "key": key, "error": str(e)},
            )
            raise StorageError(f"Download failed: {e}") from e

        data = buffer.getvalue()
        logger.debug(
            "Downloaded object",
            extra={"bucket": bucket, "key": key, "size_bytes": len(data)},
        )
        return data


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

class MockObjectDownloader:
    """
    In-memory object store.

    Lets the full request path run without real object storage. Objects
    are keyed by (bucket, key); every download is recorded so tests can
    assert what was requested.
    """

    def __init__(self) -> None:
        self._objects: dict[tuple[str, str], bytes] = {}
        self.requests: list[tuple[str, str]] = []
        logger.info("Initialized mock object downloader (in-memory)")

    def put(self, bucket: str, key: str, data: bytes) -> None:
        self._objects[(bucket, key)] = data

    def download(
        self,
        bucket: str,
        key: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> bytes:
        """Return the stored object."""
        self.requests.append((bucket, key))
        if cancel_event is not None and cancel_event.is_set():
            raise DownloadCancelledError(bucket, key)
        if (bucket, key) not in self._objects:
            raise StorageError(f"Object not found: {bucket}/{key}", code="NoSuchKey")
        return self._objects[(bucket, key)]


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_object_downloader(
    config: Optional[StorageConfig] = None,
    mock_mode: bool = False,
) -> ObjectDownloader:
    """
    Create a downloader based on configuration.

    Args:
        config: Storage configuration (required if not mock_mode)
        mock_mode: If True, return an in-memory downloader

    Returns:
        ObjectDownloader implementation (S3 or Mock)
    """
    if mock_mode:
        return MockObjectDownloader()

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return S3ObjectDownloader(config)
