"""Catalog payload schemas.

Pydantic models the facade validates request bodies against. Bodies use
camelCase keys on the wire; ``model_dump`` yields the snake_case field
names the store expects.
"""

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt
from pydantic.alias_generators import to_camel

from storefront.domain.entities import ProductStatus
from storefront.domain.value_objects import DeleteMode


class CatalogPayload(BaseModel):
    """Base payload: camelCase aliases, unknown keys rejected."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


# ============================================================================
# Category Payloads
# ============================================================================


class CategoryCreate(CatalogPayload):
    """Body for creating a category."""

    name: str = Field(..., description="Display name")
    slug: str | None = Field(default=None, description="URL slug, derived from name if omitted")
    description: str | None = Field(default=None, description="Long description")
    parent_id: StrictInt | None = Field(
        default=None, description="Parent category (null for root)"
    )
    is_active: StrictBool = Field(default=True, description="Storefront visibility")
    position: StrictInt | None = Field(
        default=None, description="Sibling position, appended if omitted"
    )
    include_in_menu: StrictBool = Field(default=True, description="Listed in the storefront menu")


class CategoryUpdate(CatalogPayload):
    """Body for updating a category; only sent fields change."""

    name: str | None = None
    slug: str | None = None
    description: str | None = None
    parent_id: StrictInt | None = None
    is_active: StrictBool | None = None
    position: StrictInt | None = None
    include_in_menu: StrictBool | None = None


class StatusUpdate(CatalogPayload):
    """Body for activating or deactivating a category."""

    is_active: StrictBool = Field(..., description="New status")


class CategoryOrder(CatalogPayload):
    """One requested sibling position."""

    id: StrictInt
    position: StrictInt


class ReorderRequest(CatalogPayload):
    """Body for reordering categories."""

    category_orders: list[CategoryOrder] = Field(
        ..., description="Category positions to apply atomically"
    )


class BulkDeleteRequest(CatalogPayload):
    """Body for deleting several categories."""

    ids: list[StrictInt] = Field(..., min_length=1, description="Category IDs to delete")
    mode: DeleteMode = Field(default=DeleteMode.RESTRICT, description="Delete mode per id")


class ProductAssignment(CatalogPayload):
    """Body for assigning products to, or removing them from, a category."""

    product_ids: list[StrictInt] = Field(..., min_length=1, description="Product IDs")


# ============================================================================
# Product Payloads
# ============================================================================


class ProductCreate(CatalogPayload):
    """Body for creating a product."""

    name: str = Field(..., description="Display name")
    slug: str | None = Field(default=None, description="URL slug, derived from name if omitted")
    sku: str | None = Field(default=None, description="Stock keeping unit")
    description: str | None = None
    price: StrictInt = Field(default=0, description="Price in cents")
    category_id: StrictInt | None = Field(default=None, description="Owning category")
    status: ProductStatus = Field(default=ProductStatus.DRAFT, description="Lifecycle status")
    featured: StrictBool = False


class ProductUpdate(CatalogPayload):
    """Body for updating a product; only sent fields change."""

    name: str | None = None
    slug: str | None = None
    sku: str | None = None
    description: str | None = None
    price: StrictInt | None = None
    category_id: StrictInt | None = None
    status: ProductStatus | None = None
    featured: StrictBool | None = None
