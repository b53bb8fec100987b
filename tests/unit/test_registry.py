"""
Unit tests for explicit image source registration and dispatch.
"""

import pytest

from imgsource.api.dependencies import build_source_registry
from imgsource.config.settings import Settings
from imgsource.core.sources import (
    ConfigLoadError,
    ImageSourceType,
    S3ImageSource,
    SourceConfiguration,
    SourceRegistry,
)


class StaticSource:
    """A source that claims every request and returns fixed bytes."""

    def __init__(self, claims=True):
        self.claims = claims

    def matches(self, request):
        return self.claims

    async def get_image(self, request):
        return b"static"


class TestSourceRegistry:
    """Tests for the registry itself."""

    def test_starts_empty(self, make_request):
        registry = SourceRegistry()

        assert len(registry) == 0
        assert registry.match(make_request("b1/img.png")) is None

    def test_register_and_get(self):
        registry = SourceRegistry()
        source = StaticSource()

        registry.register(ImageSourceType.S3, source)

        assert registry.get(ImageSourceType.S3) is source
        assert registry.types == ["s3"]

    def test_duplicate_registration_is_rejected(self):
        registry = SourceRegistry()
        registry.register(ImageSourceType.S3, StaticSource())

        with pytest.raises(ValueError, match="already registered"):
            registry.register(ImageSourceType.S3, StaticSource())

    def test_match_skips_sources_that_decline(self, make_request):
        registry = SourceRegistry()
        registry.register(ImageSourceType.S3, StaticSource(claims=False))

        assert registry.match(make_request("b1/img.png")) is None

    def test_dispatches_to_s3_source(self, make_request):
        registry = SourceRegistry()
        source = S3ImageSource(SourceConfiguration(), lambda bucket: None)
        registry.register(ImageSourceType.S3, source)

        assert registry.match(make_request("b1/img.png")) is source
        assert registry.match(make_request()) is None


class TestBuildSourceRegistry:
    """Tests for constructing sources from settings."""

    def test_registers_s3_source_with_loaded_buckets(self, config_file):
        settings = Settings(s3_config_path=str(config_file))

        registry, status = build_source_registry(settings)

        source = registry.get(ImageSourceType.S3)
        assert isinstance(source, S3ImageSource)
        assert [b.name for b in source.configuration] == ["b1", "mirror"]
        assert status.loaded
        assert status.bucket_count == 2

    def test_missing_path_registers_empty_source(self):
        registry, status = build_source_registry(Settings(s3_config_path=None))

        assert len(registry.get(ImageSourceType.S3).configuration) == 0
        assert not status.loaded
        assert "not set" in status.error

    def test_load_failure_degrades_by_default(self, tmp_path):
        """The failure is reported, and the source runs with no buckets."""
        settings = Settings(s3_config_path=str(tmp_path / "missing.toml"))

        registry, status = build_source_registry(settings)

        assert len(registry.get(ImageSourceType.S3).configuration) == 0
        assert not status.loaded
        assert "missing.toml" in status.error

    def test_load_failure_propagates_when_required(self, tmp_path):
        settings = Settings(
            s3_config_path=str(tmp_path / "missing.toml"),
            s3_config_required=True,
        )

        with pytest.raises(ConfigLoadError):
            build_source_registry(settings)

    def test_missing_path_propagates_when_required(self):
        """An unset path is a failed load, so a required config aborts."""
        settings = Settings(s3_config_path=None, s3_config_required=True)

        with pytest.raises(ConfigLoadError) as exc_info:
            build_source_registry(settings)

        assert exc_info.value.path == "<unset>"
        assert isinstance(exc_info.value.cause, ValueError)
