"""HTTP middleware for the catalog API.

Every response carries an ``X-Request-ID`` header (echoed from the
request or freshly generated) and the id is bound into the structlog
context while the request runs. Anything that escapes the route
handlers and exception handlers is rendered as a failure envelope.
"""

import time
from typing import Callable
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from storefront.api.dependencies import envelope_response
from storefront.catalog.service import Envelope

logger = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"


# ============================================================================
# Request Correlation
# ============================================================================


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag each request with a correlation id and log its outcome.

    Client errors are logged at warning level, server errors at error
    level and everything else at info.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
        request.state.request_id = request_id
        structlog.contextvars.bind_contextvars(request_id=request_id)

        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
            if status_code >= 500:
                log = logger.error
            elif status_code >= 400:
                log = logger.warning
            else:
                log = logger.info
            log(
                "Request handled",
                method=request.method,
                path=request.url.path,
                query=str(request.query_params) or None,
                status_code=status_code,
                duration_ms=elapsed_ms,
            )
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


# ============================================================================
# Last-Resort Errors
# ============================================================================


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Render exceptions that escaped the handlers as a 500 envelope."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception:
            logger.exception(
                "Request failed outside the catalog service",
                method=request.method,
                path=request.url.path,
            )
            return envelope_response(Envelope.unexpected())


def setup_middleware(app: FastAPI) -> None:
    """Install the catalog middleware stack.

    Starlette runs the most recently added middleware first, so request
    correlation wraps error rendering and tags its responses too.

    Args:
        app: FastAPI application instance.
    """
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(RequestIdMiddleware)
