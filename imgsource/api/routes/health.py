"""
Health check endpoints.

We provide two endpoints:
- /health: Basic liveness check (is the process running?)
- /health/ready: Readiness check (did the bucket configuration load?)

A service whose bucket file failed to load keeps running, but every s3
request resolves to not found. Readiness reports that state so
orchestrators can hold traffic back.
"""

import logging
from typing import Any

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from ... import __version__
from ..dependencies import SettingsDep, SourceConfigStatusDep, SourceRegistryDep

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    details: dict[str, Any] = {}


class ReadinessCheck(BaseModel):
    """Individual readiness check result."""
    name: str
    status: str  # "ok" or "error"
    error: str | None = None


class ReadinessResponse(BaseModel):
    """Readiness check response with details."""
    status: str  # "ready" or "not_ready"
    version: str
    checks: list[ReadinessCheck]


@router.get(
    "",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
    description="Returns 200 if the service is running. Does not check dependencies.",
)
async def health_check(settings: SettingsDep, registry: SourceRegistryDep) -> HealthResponse:
    """
    Liveness check for load balancers and orchestrators.

    This should be fast and not touch object storage. If this fails,
    the process should be restarted. The registered sources are listed
    so a misconfigured deployment is visible at a glance.
    """
    return HealthResponse(
        status="ok",
        version=__version__,
        details={
            "api_version": settings.api_version,
            "sources": registry.types,
            "mock_mode": settings.s3_mock_mode,
        },
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    status_code=status.HTTP_200_OK,
    summary="Readiness check",
    description="Returns 200 if the bucket configuration loaded, 503 otherwise.",
    responses={
        503: {
            "description": "Service not ready",
            "model": ReadinessResponse,
        }
    },
)
async def readiness_check(
    response: Response,
    config_status: SourceConfigStatusDep,
) -> ReadinessResponse:
    """
    Readiness check: can this instance serve images?

    Reports the outcome of the startup bucket file load rather than
    contacting the stores on every call. A degraded instance, whose
    bucket file did not load or holds no buckets, answers 503 so
    traffic is routed elsewhere while the process itself stays up.
    """
    checks: list[ReadinessCheck] = []

    if config_status.loaded:
        checks.append(ReadinessCheck(name="bucket_configuration", status="ok"))
    else:
        checks.append(ReadinessCheck(
            name="bucket_configuration",
            status="error",
            error=config_status.error,
        ))

    if config_status.bucket_count > 0:
        checks.append(ReadinessCheck(name="buckets", status="ok"))
    else:
        checks.append(ReadinessCheck(
            name="buckets",
            status="error",
            error="no buckets configured",
        ))

    all_ok = all(check.status == "ok" for check in checks)
    if not all_ok:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        logger.warning(
            "Readiness check failed",
            extra={
                "checks": [
                    {"name": c.name, "status": c.status, "error": c.error}
                    for c in checks
                ]
            }
        )

    return ReadinessResponse(
        status="ready" if all_ok else "not_ready",
        version=__version__,
        checks=checks,
    )
