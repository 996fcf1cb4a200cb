"""Shared route dependencies and response helpers."""

import json
from typing import Annotated, Any

from fastapi import Depends, Request
from fastapi.responses import JSONResponse

from storefront.catalog.service import CatalogService, Envelope, get_catalog_service
from storefront.domain.exceptions import ValidationError


def get_service() -> CatalogService:
    """Get the catalog service."""
    return get_catalog_service()


def read_query_params(request: Request) -> dict[str, str]:
    """Get raw query parameters; repeated keys keep the last value."""
    return dict(request.query_params)


async def read_json_body(request: Request) -> Any:
    """Decode the request body, or None when it is empty.

    Raises:
        ValidationError: If the body is not valid JSON.
    """
    raw = await request.body()
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except ValueError as e:
        raise ValidationError("Request body is not valid JSON", field="body") from e


def envelope_response(envelope: Envelope) -> JSONResponse:
    """Render an envelope with its status code."""
    return JSONResponse(status_code=envelope.status_code, content=envelope.to_dict())


ServiceDep = Annotated[CatalogService, Depends(get_service)]
QueryParams = Annotated[dict[str, str], Depends(read_query_params)]
JsonBody = Annotated[Any, Depends(read_json_body)]
