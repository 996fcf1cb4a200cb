"""Domain layer - Entities, value objects and catalog exceptions.

This module exports the core catalog building blocks:

- **Entities**: Objects with identity (Category, Product)
- **Value Objects**: Immutable objects compared by value (CatalogQuery, PositionUpdate)
- **Exceptions**: Validation, not-found, conflict and unexpected errors

Example usage:
    from storefront.domain import CatalogQuery, SortOrder

    query = CatalogQuery.from_params({"page": "2", "sortBy": "name"})
    assert query.sort_order is SortOrder.ASC
"""

from storefront.domain.base import Entity, ValueObject, utc_now
from storefront.domain.entities import (
    Category,
    Product,
    ProductStatus,
    is_valid_slug,
    slugify,
)
from storefront.domain.exceptions import (
    CatalogError,
    ConflictError,
    HierarchyIntegrityError,
    NotFoundError,
    UnexpectedError,
    ValidationError,
)
from storefront.domain.value_objects import (
    BulkDeleteFailure,
    BulkDeleteResult,
    CatalogQuery,
    CategoryDeletion,
    DeleteMode,
    PositionUpdate,
    SortOrder,
)

__all__ = [
    # Base
    "Entity",
    "ValueObject",
    "utc_now",
    # Entities
    "Category",
    "Product",
    "ProductStatus",
    "is_valid_slug",
    "slugify",
    # Exceptions
    "CatalogError",
    "ConflictError",
    "HierarchyIntegrityError",
    "NotFoundError",
    "UnexpectedError",
    "ValidationError",
    # Value objects
    "BulkDeleteFailure",
    "BulkDeleteResult",
    "CatalogQuery",
    "CategoryDeletion",
    "DeleteMode",
    "PositionUpdate",
    "SortOrder",
]
