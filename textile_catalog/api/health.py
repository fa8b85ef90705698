"""Health check endpoints.

Provides endpoints for monitoring service health and readiness.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from textile_catalog.api.schemas import HealthResponse, ReadinessResponse
from textile_catalog.catalog.service import get_product_repository
from textile_catalog.domain.exceptions import TransientStoreError
from textile_catalog.infrastructure.config import settings

router = APIRouter(prefix="/api")


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check service health.

    Returns:
        Health status with service name and version.
    """
    return HealthResponse(
        status="healthy",
        service="textile-catalog",
        version=settings.api_version,
        timestamp=datetime.now(timezone.utc),
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"model": ReadinessResponse}},
)
async def readiness_check() -> ReadinessResponse | JSONResponse:
    """Check if the product store is reachable.

    Returns:
        Readiness status, with 503 when the store cannot be reached.
    """
    try:
        await get_product_repository().ping()
    except TransientStoreError:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unavailable", "store": settings.store_backend.value},
        )

    return ReadinessResponse(status="ready", store=settings.store_backend.value)
