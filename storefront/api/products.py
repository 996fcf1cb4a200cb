"""Product API endpoints.

- GET /api/products - list products (paginated)
- POST /api/products - create a product
- GET/PUT/DELETE /api/products/{id} - read, update, delete
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from storefront.api.dependencies import (
    JsonBody,
    QueryParams,
    ServiceDep,
    envelope_response,
)
from storefront.api.schemas import ERROR_RESPONSES, SuccessEnvelope

router = APIRouter(prefix="/api/products", tags=["Products"], responses=ERROR_RESPONSES)


@router.get(
    "",
    response_model=SuccessEnvelope,
    summary="List products",
    description=(
        "Paginated product list. Query parameters: page, limit, search, "
        "sortBy, sortOrder and filters[categoryId|status|featured]."
    ),
)
async def list_products(service: ServiceDep, params: QueryParams) -> JSONResponse:
    """List products."""
    return envelope_response(service.list_products(params))


@router.post("", status_code=201, response_model=SuccessEnvelope, summary="Create product")
async def create_product(service: ServiceDep, body: JsonBody) -> JSONResponse:
    """Create a product."""
    return envelope_response(service.create_product(body))


@router.get("/{product_id}", response_model=SuccessEnvelope, summary="Get product")
async def get_product(product_id: str, service: ServiceDep) -> JSONResponse:
    """Get a product."""
    return envelope_response(service.get_product(product_id))


@router.put("/{product_id}", response_model=SuccessEnvelope, summary="Update product")
async def update_product(product_id: str, service: ServiceDep, body: JsonBody) -> JSONResponse:
    """Update a product."""
    return envelope_response(service.update_product(product_id, body))


@router.delete("/{product_id}", response_model=SuccessEnvelope, summary="Delete product")
async def delete_product(product_id: str, service: ServiceDep) -> JSONResponse:
    """Delete a product."""
    return envelope_response(service.delete_product(product_id))
