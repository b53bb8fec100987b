"""Shared fixtures for the image source tests."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

import pytest
from starlette.datastructures import QueryParams


@dataclass
class FakeRequest:
    """Just enough of a request for an image source to inspect."""
    method: str = "GET"
    query_params: QueryParams = field(default_factory=QueryParams)


def s3_request(
    value: Union[str, list[str], None] = None,
    method: str = "GET",
) -> FakeRequest:
    """
    A request carrying `?s3=value`, or no query string when value is None.

    A list repeats the parameter once per item, in order.
    """
    if value is None:
        return FakeRequest(method=method)
    values = [value] if isinstance(value, str) else value
    return FakeRequest(method=method, query_params=QueryParams([("s3", v) for v in values]))


@pytest.fixture
def make_request():
    return s3_request


BUCKETS_TOML = """
[[S3.Buckets]]
Name = "b1"
Dist = "remote-b1"
Prefix = "/images/"
EndPoint = "http://minio:9000"
AppId = "AKIDEXAMPLE"
AppKey = "secret-key"
AppToken = ""
Region = "eu-west-1"
EnableLocal = false

[[S3.Buckets]]
Name = "mirror"
Dist = "remote-mirror"
EnableLocal = true
LocalDir = "{mirror_dir}/"
"""


@pytest.fixture
def mirror_dir(tmp_path: Path) -> Path:
    """A local mirror root with a couple of files in it."""
    root = tmp_path / "mirror"
    (root / "nested").mkdir(parents=True)
    (root / "img.png").write_bytes(b"\x89PNG\r\n\x1a\n" + bytes(range(256)) * 64)
    (root / "nested" / "photo.jpg").write_bytes(b"\xff\xd8\xff\xe0jpeg-bytes")
    (root / "empty.png").write_bytes(b"")
    return root


@pytest.fixture
def config_file(tmp_path: Path, mirror_dir: Path) -> Path:
    """A bucket file with one remote bucket and one mirrored bucket."""
    path = tmp_path / "buckets.toml"
    path.write_text(BUCKETS_TOML.format(mirror_dir=mirror_dir.as_posix()), encoding="utf-8")
    return path
