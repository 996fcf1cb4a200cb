"""Liveness and readiness probes."""

import structlog
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from storefront.api.dependencies import ServiceDep
from storefront.api.schemas import HealthResponse, ReadinessResponse
from storefront.catalog.tree import CategoryTreeBuilder
from storefront.domain.exceptions import HierarchyIntegrityError
from storefront.infrastructure.config import settings

logger = structlog.get_logger()

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Report that the process is up."""
    return HealthResponse(
        status="healthy",
        service=settings.service_name,
        version=settings.api_version,
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"model": ReadinessResponse, "description": "Hierarchy is inconsistent"}},
)
async def readiness_check(service: ServiceDep) -> JSONResponse:
    """Report catalog sizes and whether the category hierarchy is consistent.

    The hierarchy is always checked strictly here, whatever the tree
    endpoint's integrity setting, so a parent cycle makes the service
    not ready (503).
    """
    categories = service.store.categories()
    readiness = ReadinessResponse(
        status="ready",
        categories=len(categories),
        products=len(service.store.products()),
    )
    try:
        CategoryTreeBuilder(strict=True).build(categories)
    except HierarchyIntegrityError as e:
        logger.error("Readiness check failed", cycle_ids=e.cycle_ids)
        readiness.status = "degraded"
        readiness.cycle_ids = e.cycle_ids
        return JSONResponse(status_code=503, content=readiness.model_dump(by_alias=True))
    return JSONResponse(content=readiness.model_dump(by_alias=True, exclude_none=True))
