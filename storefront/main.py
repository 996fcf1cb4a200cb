"""Storefront catalog ASGI application.

Wires logging, middleware, the catalog routers and the exception
handlers that keep every error response in the envelope shape.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront.api.categories import router as categories_router
from storefront.api.dependencies import envelope_response
from storefront.api.health import router as health_router
from storefront.api.middleware import setup_middleware
from storefront.api.products import router as products_router
from storefront.catalog.service import Envelope, get_catalog_service
from storefront.domain.exceptions import CatalogError
from storefront.infrastructure.config import settings
from storefront.infrastructure.logging import configure_logging

configure_logging(settings)

logger = structlog.get_logger()

HTTP_ERROR_CODES = {
    400: "VALIDATION_ERROR",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Load the catalog before serving and log the shutdown."""
    logger.info(
        "Starting storefront catalog API",
        version=settings.api_version,
        debug=settings.debug,
    )

    service = get_catalog_service()
    logger.info(
        "Catalog loaded",
        categories=len(service.store.categories()),
        products=len(service.store.products()),
        seeded=settings.seed_demo_data,
    )

    yield

    logger.info("Shutting down storefront catalog API")


app = FastAPI(
    title="Storefront Catalog API",
    description="Category and product catalog for the storefront and admin dashboard",
    version=settings.api_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_middleware(app)

app.include_router(health_router, tags=["Health"])
app.include_router(categories_router)
app.include_router(products_router)


# ============================================================================
# Envelope Exception Handlers
# ============================================================================


def envelope_error(status_code: int, error: str, message: str) -> JSONResponse:
    """Render a failure envelope outside the catalog service."""
    return envelope_response(
        Envelope(success=False, status_code=status_code, error=error, message=message)
    )


@app.exception_handler(CatalogError)
async def catalog_exception_handler(request: Request, exc: CatalogError) -> JSONResponse:
    """Handle catalog errors raised while reading request input."""
    return envelope_response(
        Envelope.from_error(exc) if exc.status_code < 500 else Envelope.unexpected()
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions (unknown routes, wrong methods) with the envelope format."""
    return envelope_error(
        exc.status_code,
        HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
        str(exc.detail),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request validation errors with the envelope format."""
    return envelope_error(400, "VALIDATION_ERROR", "Invalid request")


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions with the envelope format."""
    logger.exception(
        "Unhandled exception in route",
        method=request.method,
        path=request.url.path,
    )
    return envelope_response(Envelope.unexpected())
