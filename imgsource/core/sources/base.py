"""
Image source contract and registry.

An image source is one strategy for turning a request into image bytes.
The dispatcher asks each registered source whether it `matches` the
request and hands the request to the first one that does.

Sources are registered explicitly by the application factory. There is
no import-time registration, so which sources exist is decided in one
place and tests can build registries with exactly the sources they need.
"""

from enum import Enum
from typing import Iterator, Optional, Protocol


class ImageSourceType(str, Enum):
    """Keys under which sources are registered."""
    S3 = "s3"


class QueryParams(Protocol):
    """Multi-valued query string, as Starlette's QueryParams exposes it."""

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        ...

    def getlist(self, key: str) -> list[str]:
        ...


class SourceRequest(Protocol):
    """
    The parts of an inbound request a source may look at.

    Starlette's Request satisfies this structurally, which keeps the
    sources free of any web framework import.
    """

    @property
    def method(self) -> str:
        ...

    @property
    def query_params(self) -> QueryParams:
        ...


class ImageSource(Protocol):
    """Protocol every image source implements."""

    def matches(self, request: SourceRequest) -> bool:
        """Can this source serve the request?"""
        ...

    async def get_image(self, request: SourceRequest) -> bytes:
        """Fetch the raw image bytes for the request."""
        ...


class SourceRegistry:
    """Ordered collection of image sources keyed by type."""

    def __init__(self) -> None:
        self._sources: dict[ImageSourceType, ImageSource] = {}

    def register(self, source_type: ImageSourceType, source: ImageSource) -> None:
        if source_type in self._sources:
            raise ValueError(f"image source already registered: {source_type.value}")
        self._sources[source_type] = source

    def get(self, source_type: ImageSourceType) -> Optional[ImageSource]:
        return self._sources.get(source_type)

    def match(self, request: SourceRequest) -> Optional[ImageSource]:
        """First registered source that claims the request, if any."""
        for source in self._sources.values():
            if source.matches(request):
                return source
        return None

    @property
    def types(self) -> list[str]:
        return [source_type.value for source_type in self._sources]

    def __len__(self) -> int:
        return len(self._sources)

    def __iter__(self) -> Iterator[tuple[ImageSourceType, ImageSource]]:
        return iter(self._sources.items())
