"""
Unit tests for the bucket configuration file loader.
"""

import pytest

from imgsource.config.buckets import load_source_configuration
from imgsource.core.sources.errors import ConfigLoadError


class TestLoadSourceConfiguration:
    """Tests for reading `[[S3.Buckets]]` files."""

    def test_loads_all_buckets_in_order(self, config_file, mirror_dir):
        config = load_source_configuration(config_file)

        assert [b.name for b in config] == ["b1", "mirror"]
        assert config.path == str(config_file)

        remote = config.find("b1")
        assert remote.remote_bucket_id == "remote-b1"
        assert remote.key_prefix == "/images/"
        assert remote.endpoint == "http://minio:9000"
        assert remote.access_id == "AKIDEXAMPLE"
        assert remote.access_secret == "secret-key"
        assert remote.session_token == ""
        assert remote.region == "eu-west-1"
        assert not remote.local_mirror_enabled

        mirror = config.find("mirror")
        assert mirror.local_mirror_enabled
        assert mirror.local_mirror_dir == f"{mirror_dir.as_posix()}/"

    def test_document_without_buckets_is_empty(self, tmp_path):
        """A file with no S3 section loads as zero buckets, not an error."""
        path = tmp_path / "empty.toml"
        path.write_text("[Other]\nkey = 1\n", encoding="utf-8")

        config = load_source_configuration(path)

        assert len(config) == 0

    def test_unknown_keys_are_ignored(self, tmp_path):
        path = tmp_path / "extra.toml"
        path.write_text(
            '[[S3.Buckets]]\nName = "b1"\nColor = "blue"\n',
            encoding="utf-8",
        )

        config = load_source_configuration(path)

        assert config.find("b1") is not None

    def test_duplicate_names_are_kept(self, tmp_path):
        """Duplicates load; lookups resolve to the first one."""
        path = tmp_path / "dup.toml"
        path.write_text(
            '[[S3.Buckets]]\nName = "b1"\nDist = "first"\n'
            '[[S3.Buckets]]\nName = "b1"\nDist = "second"\n',
            encoding="utf-8",
        )

        config = load_source_configuration(path)

        assert len(config) == 2
        assert config.find("b1").remote_bucket_id == "first"

    def test_missing_file_raises(self, tmp_path):
        path = tmp_path / "nope.toml"

        with pytest.raises(ConfigLoadError) as exc_info:
            load_source_configuration(path)

        assert exc_info.value.path == str(path)
        assert isinstance(exc_info.value.cause, FileNotFoundError)

    def test_invalid_toml_raises(self, tmp_path):
        path = tmp_path / "broken.toml"
        path.write_text("[[S3.Buckets]\nName = ", encoding="utf-8")

        with pytest.raises(ConfigLoadError, match="broken.toml"):
            load_source_configuration(path)

    def test_bucket_without_name_raises(self, tmp_path):
        path = tmp_path / "noname.toml"
        path.write_text('[[S3.Buckets]]\nDist = "remote"\n', encoding="utf-8")

        with pytest.raises(ConfigLoadError):
            load_source_configuration(path)

    def test_wrong_type_raises(self, tmp_path):
        """EnableLocal must be a boolean."""
        path = tmp_path / "types.toml"
        path.write_text(
            '[[S3.Buckets]]\nName = "b1"\nEnableLocal = [1, 2]\n',
            encoding="utf-8",
        )

        with pytest.raises(ConfigLoadError):
            load_source_configuration(path)

    def test_half_credentials_raise(self, tmp_path):
        """A bucket with AppId but an empty AppKey is refused at load."""
        path = tmp_path / "creds.toml"
        path.write_text(
            '[[S3.Buckets]]\nName = "b1"\nAppId = "AKIDEXAMPLE"\nAppKey = ""\n',
            encoding="utf-8",
        )

        with pytest.raises(ConfigLoadError, match="must be set together"):
            load_source_configuration(path)
