"""Category API endpoints.

Provides endpoints for category management:
- GET /api/categories - list categories (paginated)
- POST /api/categories - create a category
- GET /api/categories/tree - category forest
- GET /api/categories/stats - catalog summary
- GET /api/categories/search - quick search
- GET /api/categories/validate-slug - live slug check
- GET /api/categories/uncategorized-products - products without a category
- PATCH /api/categories/reorder - apply sibling positions
- DELETE /api/categories/bulk - delete several categories
- GET /api/categories/slug/{slug} - category by slug
- GET/PUT/DELETE /api/categories/{id} - read, update, delete
- PATCH /api/categories/{id}/status - activate or deactivate
- GET/POST/DELETE /api/categories/{id}/products - list, assign, remove products

Handlers pass raw input to the catalog service and render its envelope.
Fixed paths are declared before /{category_id} so they are matched first.
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

router = APIRouter(
    prefix="/api/categories",
    tags=["Categories"],
    responses=ERROR_RESPONSES,
)


# ============================================================================
# Collection Endpoints
# ============================================================================


@router.get(
    "",
    response_model=SuccessEnvelope,
    summary="List categories",
    description=(
        "Paginated category list. Query parameters: page, limit, search, "
        "sortBy, sortOrder and filters[isActive|parentId|level|includeInMenu]."
    ),
)
async def list_categories(service: ServiceDep, params: QueryParams) -> JSONResponse:
    """List categories."""
    return envelope_response(service.list_categories(params))


@router.post(
    "",
    status_code=201,
    response_model=SuccessEnvelope,
    summary="Create category",
)
async def create_category(service: ServiceDep, body: JsonBody) -> JSONResponse:
    """Create a category."""
    return envelope_response(service.create_category(body))


@router.get(
    "/tree",
    response_model=SuccessEnvelope,
    summary="Category tree",
    description="Category forest ordered by position. Pass activeOnly=true to hide inactive branches.",
)
async def get_category_tree(service: ServiceDep, params: QueryParams) -> JSONResponse:
    """Get the category forest."""
    return envelope_response(service.get_category_tree(params))


@router.get("/stats", response_model=SuccessEnvelope, summary="Catalog statistics")
async def get_category_stats(service: ServiceDep) -> JSONResponse:
    """Get catalog statistics."""
    return envelope_response(service.get_category_stats())


@router.get(
    "/search",
    response_model=SuccessEnvelope,
    summary="Quick category search",
    description="Categories whose name, slug or description contain q; at most limit results.",
)
async def search_categories(service: ServiceDep, params: QueryParams) -> JSONResponse:
    """Search categories."""
    return envelope_response(service.search_categories(params))


@router.get(
    "/validate-slug",
    response_model=SuccessEnvelope,
    summary="Validate slug",
    description="Reports whether slug is free; excludeId ignores the category being edited.",
)
async def validate_slug(service: ServiceDep, params: QueryParams) -> JSONResponse:
    """Check slug availability."""
    return envelope_response(service.validate_slug(params))


@router.get(
    "/uncategorized-products",
    response_model=SuccessEnvelope,
    summary="Uncategorized products",
)
async def get_uncategorized_products(service: ServiceDep, params: QueryParams) -> JSONResponse:
    """List products without a category."""
    return envelope_response(service.get_uncategorized_products(params))


@router.patch(
    "/reorder",
    response_model=SuccessEnvelope,
    summary="Reorder categories",
    description="Body: {categoryOrders: [{id, position}]}. Applied all-or-nothing.",
)
async def reorder_categories(service: ServiceDep, body: JsonBody) -> JSONResponse:
    """Reorder categories."""
    return envelope_response(service.reorder_categories(body))


@router.delete(
    "/bulk",
    response_model=SuccessEnvelope,
    summary="Bulk delete categories",
    description="Body: {ids: [...], mode?: restrict|reassign|cascade}. Reports each id's outcome.",
)
async def bulk_delete_categories(service: ServiceDep, body: JsonBody) -> JSONResponse:
    """Delete several categories."""
    return envelope_response(service.bulk_delete_categories(body))


@router.get("/slug/{slug}", response_model=SuccessEnvelope, summary="Get category by slug")
async def get_category_by_slug(slug: str, service: ServiceDep) -> JSONResponse:
    """Get a category by slug."""
    return envelope_response(service.get_category_by_slug(slug))


# ============================================================================
# Item Endpoints
# ============================================================================


@router.get("/{category_id}", response_model=SuccessEnvelope, summary="Get category")
async def get_category(category_id: str, service: ServiceDep) -> JSONResponse:
    """Get a category."""
    return envelope_response(service.get_category(category_id))


@router.put("/{category_id}", response_model=SuccessEnvelope, summary="Update category")
async def update_category(
    category_id: str,
    service: ServiceDep,
    body: JsonBody,
) -> JSONResponse:
    """Update a category."""
    return envelope_response(service.update_category(category_id, body))


@router.delete(
    "/{category_id}",
    response_model=SuccessEnvelope,
    summary="Delete category",
    description="mode=restrict (default) rejects categories with children or products.",
)
async def delete_category(
    category_id: str,
    service: ServiceDep,
    params: QueryParams,
) -> JSONResponse:
    """Delete a category."""
    return envelope_response(service.delete_category(category_id, params.get("mode")))


@router.patch(
    "/{category_id}/status",
    response_model=SuccessEnvelope,
    summary="Set category status",
)
async def set_category_status(
    category_id: str,
    service: ServiceDep,
    body: JsonBody,
) -> JSONResponse:
    """Activate or deactivate a category."""
    return envelope_response(service.set_category_status(category_id, body))


@router.get(
    "/{category_id}/products",
    response_model=SuccessEnvelope,
    summary="Category with products",
)
async def get_category_products(
    category_id: str,
    service: ServiceDep,
    params: QueryParams,
) -> JSONResponse:
    """Get a category with one page of its products."""
    return envelope_response(service.get_category_with_products(category_id, params))


@router.post(
    "/{category_id}/products",
    response_model=SuccessEnvelope,
    summary="Assign products",
)
async def assign_products(
    category_id: str,
    service: ServiceDep,
    body: JsonBody,
) -> JSONResponse:
    """Assign products to a category."""
    return envelope_response(service.assign_products(category_id, body))


@router.delete(
    "/{category_id}/products",
    response_model=SuccessEnvelope,
    summary="Remove products",
)
async def remove_products(
    category_id: str,
    service: ServiceDep,
    body: JsonBody,
) -> JSONResponse:
    """Remove products from a category."""
    return envelope_response(service.remove_products(category_id, body))
