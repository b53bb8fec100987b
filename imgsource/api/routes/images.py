"""
Image fetch endpoint.

GET /image?s3=<bucket>/<key> hands the request to the first registered
image source that claims it and returns the raw bytes. This layer owns
the mapping from source errors to HTTP status codes.
"""

import logging
import mimetypes

from fastapi import APIRouter, HTTPException, Request, Response, status

from ...core.sources import (
    QUERY_KEY,
    BucketNotFoundError,
    LocalReadError,
    MissingParameterError,
    RemoteDownloadError,
    query_value,
)
from ..dependencies import SourceRegistryDep

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_MEDIA_TYPE = "application/octet-stream"


def guess_media_type(key: str) -> str:
    """Media type from the key's file extension."""
    media_type, _ = mimetypes.guess_type(key)
    return media_type or DEFAULT_MEDIA_TYPE


@router.get(
    "",
    status_code=status.HTTP_200_OK,
    summary="Fetch an image",
    description="Returns the raw bytes of the image addressed by the query string, e.g. ?s3=<bucket>/<key>.",
    response_class=Response,
    responses={
        400: {"description": "No source matches the request or a parameter is missing"},
        404: {"description": "Bucket or object not found"},
        502: {"description": "Object storage download failed"},
    },
)
async def fetch_image(request: Request, registry: SourceRegistryDep) -> Response:
    """
    Serve the image bytes for a query-addressed request.

    Sources raise typed errors and know nothing about HTTP, so the status
    mapping lives here. A missing object is a 404 whether it was absent
    from the local mirror or from the remote store. Other mirror read
    failures are ours (500); other store failures are upstream (502).
    Local paths are kept out of the response.
    """
    source = registry.match(request)
    if source is None:
        logger.warning(
            "No image source matched request",
            extra={"query": str(request.query_params)},
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"No image source matches the request. Provide ?{QUERY_KEY}=<bucket>/<key>.",
        )

    try:
        data = await source.get_image(request)

    except MissingParameterError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    except BucketNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )

    except LocalReadError as e:
        if e.is_missing:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Image not found",
            )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to read image",
        )

    except RemoteDownloadError as e:
        if e.is_missing:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Image not found",
            )
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to download image from object storage",
        )

    return Response(
        content=data,
        media_type=guess_media_type(query_value(request)),
    )
