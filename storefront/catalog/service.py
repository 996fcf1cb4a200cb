"""Catalog service facade.

The single entry point route handlers call. It normalizes raw query
parameters and JSON bodies, delegates to the store, query engine and
tree builder, and wraps every outcome in an ``Envelope``:

    {"success": true, "data": {...}, "message": "...", "timestamp": "..."}
    {"success": false, "error": "NOT_FOUND", "message": "...", "timestamp": "..."}

Catalog errors never cross this boundary; each operation returns an
envelope carrying the HTTP-equivalent status code.
"""

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from functools import wraps
from typing import Any, TypeVar

import pydantic
import structlog
from pydantic.alias_generators import to_camel

from storefront.catalog.query import (
    CATEGORY_FIELDS,
    PRODUCT_FIELDS,
    Page,
    QueryEngine,
)
from storefront.catalog.schemas import (
    BulkDeleteRequest,
    CatalogPayload,
    CategoryCreate,
    CategoryUpdate,
    ProductAssignment,
    ProductCreate,
    ProductUpdate,
    ReorderRequest,
    StatusUpdate,
)
from storefront.catalog.seed import seed_demo_data
from storefront.catalog.store import CatalogStore
from storefront.catalog.tree import CategoryTreeBuilder, TreeNode, filter_forest
from storefront.domain import (
    CatalogError,
    CatalogQuery,
    Category,
    DeleteMode,
    PositionUpdate,
    Product,
    UnexpectedError,
    ValidationError,
    is_valid_slug,
    utc_now,
)
from storefront.infrastructure.config import Settings
from storefront.infrastructure.config import settings as default_settings

logger = structlog.get_logger()

P = TypeVar("P", bound=CatalogPayload)

GENERIC_ERROR_MESSAGE = "An internal error occurred"
_NUMERIC_ID = re.compile(r"[0-9]+")
_SNAKE_NAME = re.compile(r"[a-z0-9]+(?:_[a-z0-9]+)+")
_TRUE_TOKENS = {"true", "1", "yes"}


# ============================================================================
# Envelope
# ============================================================================


@dataclass
class Envelope:
    """Uniform operation result.

    Attributes:
        success: Whether the operation succeeded.
        status_code: HTTP-equivalent status (200, 201, 400, 404, 409, 500).
        data: Payload on success.
        error: Machine-readable error code on failure.
        message: Optional human-readable message.
        details: Optional error context.
        timestamp: When the result was produced.
    """

    success: bool
    status_code: int = 200
    data: Any = None
    error: str | None = None
    message: str | None = None
    details: dict[str, Any] | None = None
    timestamp: datetime = field(default_factory=utc_now)

    @classmethod
    def ok(
        cls,
        data: Any = None,
        message: str | None = None,
        status_code: int = 200,
    ) -> "Envelope":
        """Create a success envelope."""
        return cls(success=True, status_code=status_code, data=data, message=message)

    @classmethod
    def from_error(cls, error: CatalogError) -> "Envelope":
        """Create a failure envelope from a catalog error."""
        return cls(
            success=False,
            status_code=error.status_code,
            error=error.error_code,
            message=error.message,
            details=error.details or None,
        )

    @classmethod
    def unexpected(cls, error_code: str = UnexpectedError.error_code) -> "Envelope":
        """Create a generic failure envelope for defects."""
        return cls(
            success=False,
            status_code=500,
            error=error_code,
            message=GENERIC_ERROR_MESSAGE,
        )

    def to_dict(self) -> dict[str, Any]:
        """Render the wire body."""
        body: dict[str, Any] = {"success": self.success}
        if self.success:
            body["data"] = self.data
        else:
            body["error"] = self.error
        if self.message is not None:
            body["message"] = self.message
        if self.details:
            body["details"] = _wire_details(self.details)
        body["timestamp"] = self.timestamp.isoformat()
        return body


def _wire_name(name: str) -> str:
    """Convert a snake_case attribute name to its camelCase wire name."""
    return to_camel(name) if _SNAKE_NAME.fullmatch(name) else name


def _wire_details(details: Mapping[str, Any]) -> dict[str, Any]:
    """Camel-case detail keys and the offending field name."""
    wire = {}
    for key, value in details.items():
        if key == "field" and isinstance(value, str):
            value = _wire_name(value)
        wire[_wire_name(key)] = value
    return wire


def catalog_operation(method: Callable[..., Envelope]) -> Callable[..., Envelope]:
    """Map errors raised by a facade method to failure envelopes.

    Client errors are logged at warning level. Server-side catalog errors
    and anything unexpected are logged in full and reported generically.
    """

    @wraps(method)
    def wrapper(self: "CatalogService", *args: Any, **kwargs: Any) -> Envelope:
        try:
            return method(self, *args, **kwargs)
        except CatalogError as e:
            if e.status_code >= 500:
                logger.error(
                    "Catalog operation failed",
                    operation=method.__name__,
                    error_code=e.error_code,
                    error=e.message,
                    details=e.details,
                )
                return Envelope.unexpected(e.error_code)
            logger.warning(
                "Catalog operation rejected",
                operation=method.__name__,
                error_code=e.error_code,
                error=e.message,
            )
            return Envelope.from_error(e)
        except Exception:
            logger.exception("Unexpected catalog error", operation=method.__name__)
            return Envelope.unexpected()

    return wrapper


# ============================================================================
# Input Normalization
# ============================================================================


def parse_id(raw: Any, field: str = "id") -> int:
    """Parse a raw identifier such as "12".

    Raises:
        ValidationError: If the value is not a non-negative integer.
    """
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    if isinstance(raw, str) and _NUMERIC_ID.fullmatch(raw.strip()):
        try:
            return int(raw.strip())
        except ValueError:
            raise ValidationError(f"Invalid {field}: id is too long", field=field) from None
    raise ValidationError(f"Invalid {field}: {raw!r} is not a numeric id", field=field)


def parse_payload(model: type[P], body: Any) -> P:
    """Validate a JSON body against a payload model.

    Raises:
        ValidationError: If the body is not an object or fails validation;
            ``details["errors"]`` lists every offending field.
    """
    if body is None:
        body = {}
    if not isinstance(body, Mapping):
        raise ValidationError("Request body must be a JSON object", field="body")
    try:
        return model.model_validate(body)
    except pydantic.ValidationError as e:
        errors = [
            {
                "field": ".".join(str(part) for part in error["loc"]) or "body",
                "message": error["msg"],
            }
            for error in e.errors()
        ]
        first = errors[0]
        raise ValidationError(
            f"{first['field']}: {first['message']}",
            field=first["field"],
            details={"errors": errors},
        ) from e


def parse_delete_mode(raw: Any) -> DeleteMode:
    """Parse a delete mode; absent means RESTRICT.

    Raises:
        ValidationError: If the mode is not recognised.
    """
    if raw is None or raw == "":
        return DeleteMode.RESTRICT
    try:
        return DeleteMode(str(raw).strip().lower())
    except ValueError:
        allowed = [mode.value for mode in DeleteMode]
        raise ValidationError(f"Mode must be one of {allowed}", field="mode") from None


def parse_flag(raw: Any) -> bool:
    """Parse a boolean query flag such as ``activeOnly=true``."""
    if isinstance(raw, bool):
        return raw
    return isinstance(raw, str) and raw.strip().lower() in _TRUE_TOKENS


# ============================================================================
# Serialization
# ============================================================================


def category_to_dict(category: Category, product_count: int = 0) -> dict[str, Any]:
    """Serialize a category to its wire shape."""
    return {
        "id": category.id,
        "name": category.name,
        "slug": category.slug,
        "description": category.description,
        "parentId": category.parent_id,
        "level": category.level,
        "path": category.path,
        "isActive": category.is_active,
        "position": category.position,
        "includeInMenu": category.include_in_menu,
        "productCount": product_count,
        "createdAt": category.created_at.isoformat(),
        "updatedAt": category.updated_at.isoformat(),
    }


def product_to_dict(product: Product) -> dict[str, Any]:
    """Serialize a product to its wire shape."""
    return {
        "id": product.id,
        "name": product.name,
        "slug": product.slug,
        "sku": product.sku,
        "description": product.description,
        "price": product.price,
        "categoryId": product.category_id,
        "status": product.status.value,
        "featured": product.featured,
        "createdAt": product.created_at.isoformat(),
        "updatedAt": product.updated_at.isoformat(),
    }


def page_to_dict(page: Page[Any], serialize: Callable[[Any], dict[str, Any]]) -> dict[str, Any]:
    """Serialize a result page with its pagination metadata."""
    return {
        "items": [serialize(item) for item in page.items],
        "total": page.total,
        "page": page.page,
        "limit": page.limit,
        "totalPages": page.total_pages,
        "hasNext": page.has_next,
        "hasPrev": page.has_prev,
    }


def tree_node_to_dict(node: TreeNode, counts: Mapping[int, int]) -> dict[str, Any]:
    """Serialize a tree node and its children."""
    return {
        "category": category_to_dict(node.category, counts.get(node.category.id, 0)),
        "depth": node.depth,
        "children": [tree_node_to_dict(child, counts) for child in node.children],
    }


# ============================================================================
# Catalog Service
# ============================================================================


class CatalogService:
    """Facade over the catalog store, query engine and tree builder.

    Every public method takes raw input (path values, query parameters,
    decoded JSON bodies) and returns an Envelope.

    Example usage:
        service = get_catalog_service()
        envelope = service.list_categories({"page": "1", "sortBy": "name"})
        return JSONResponse(envelope.to_dict(), status_code=envelope.status_code)
    """

    def __init__(
        self,
        store: CatalogStore | None = None,
        engine: QueryEngine | None = None,
        tree_builder: CategoryTreeBuilder | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize service.

        Args:
            store: Catalog store (empty in-memory store by default).
            engine: Query engine.
            tree_builder: Tree builder (strictness taken from settings by default).
            settings: Application settings.
        """
        self.settings = settings or default_settings
        self.store = store or CatalogStore()
        self.engine = engine or QueryEngine()
        self.tree_builder = tree_builder or CategoryTreeBuilder(
            strict=self.settings.strict_tree_integrity
        )

    # ========================================================================
    # Helpers
    # ========================================================================

    def _category_query(self, params: Mapping[str, Any] | None) -> CatalogQuery:
        return CatalogQuery.from_params(
            params,
            default_limit=self.settings.category_page_size,
            max_limit=self.settings.max_page_size,
        )

    def _product_query(self, params: Mapping[str, Any] | None) -> CatalogQuery:
        return CatalogQuery.from_params(
            params,
            default_limit=self.settings.product_page_size,
            max_limit=self.settings.max_page_size,
        )

    def _category_data(self, category: Category) -> dict[str, Any]:
        return category_to_dict(category, self.store.product_count(category.id))

    def _product_page(
        self,
        params: Mapping[str, Any] | None,
        where: Callable[[Product], bool],
    ) -> dict[str, Any]:
        page = self.engine.query(
            self.store.products(), self._product_query(params), PRODUCT_FIELDS, where
        )
        return page_to_dict(page, product_to_dict)

    # ========================================================================
    # Category Reads
    # ========================================================================

    @catalog_operation
    def list_categories(self, params: Mapping[str, Any] | None = None) -> Envelope:
        """List categories with filtering, search, sorting and pagination."""
        page = self.engine.query(
            self.store.categories(), self._category_query(params), CATEGORY_FIELDS
        )
        counts = self.store.product_counts()
        return Envelope.ok(
            page_to_dict(page, lambda c: category_to_dict(c, counts.get(c.id, 0)))
        )

    @catalog_operation
    def get_category(self, raw_id: Any) -> Envelope:
        """Get one category."""
        category = self.store.get_category(parse_id(raw_id))
        return Envelope.ok(self._category_data(category))

    @catalog_operation
    def get_category_by_slug(self, slug: str) -> Envelope:
        """Get one category by slug."""
        return Envelope.ok(self._category_data(self.store.get_category_by_slug(slug)))

    @catalog_operation
    def get_category_tree(self, params: Mapping[str, Any] | None = None) -> Envelope:
        """Get the category forest.

        With ``activeOnly`` set, inactive categories are dropped together
        with everything below them.
        """
        forest = self.tree_builder.build(self.store.categories())
        if parse_flag((params or {}).get("activeOnly")):
            forest = filter_forest(forest, lambda category: category.is_active)
        counts = self.store.product_counts()
        return Envelope.ok([tree_node_to_dict(node, counts) for node in forest])

    @catalog_operation
    def get_category_with_products(
        self,
        raw_id: Any,
        params: Mapping[str, Any] | None = None,
    ) -> Envelope:
        """Get a category with one page of its products."""
        category = self.store.get_category(parse_id(raw_id))
        return Envelope.ok(
            {
                "category": self._category_data(category),
                "products": self._product_page(
                    params, lambda product: product.category_id == category.id
                ),
            }
        )

    @catalog_operation
    def get_uncategorized_products(self, params: Mapping[str, Any] | None = None) -> Envelope:
        """List products without a category."""
        return Envelope.ok(
            self._product_page(params, lambda product: product.category_id is None)
        )

    @catalog_operation
    def get_category_stats(self) -> Envelope:
        """Summarize the catalog."""
        stats = self.store.category_stats()
        return Envelope.ok({to_camel(key): value for key, value in stats.items()})

    @catalog_operation
    def search_categories(self, params: Mapping[str, Any] | None = None) -> Envelope:
        """Quick search by ``q``, returning at most ``limit`` categories."""
        params = params or {}
        query = CatalogQuery.from_params(
            {"search": params.get("q"), "limit": params.get("limit")},
            default_limit=self.settings.search_result_limit,
            max_limit=self.settings.max_page_size,
        )
        if not query.search:
            return Envelope.ok([])

        page = self.engine.query(self.store.categories(), query, CATEGORY_FIELDS)
        counts = self.store.product_counts()
        return Envelope.ok([category_to_dict(c, counts.get(c.id, 0)) for c in page.items])

    @catalog_operation
    def validate_slug(self, params: Mapping[str, Any] | None = None) -> Envelope:
        """Report whether a slug is free for a new or existing category.

        Query parameters:
            slug: Candidate slug.
            excludeId: Category being edited, whose own slug counts as free.
        """
        params = params or {}
        slug = params.get("slug")
        if not isinstance(slug, str) or not slug.strip():
            raise ValidationError("Slug is required", field="slug")
        slug = slug.strip()

        raw_exclude = params.get("excludeId")
        exclude_id = None if raw_exclude in (None, "") else parse_id(raw_exclude, "excludeId")

        if not is_valid_slug(slug):
            return Envelope.ok(
                {
                    "available": False,
                    "message": "Slug may only contain lowercase letters, digits and single hyphens",
                }
            )

        existing = self.store.find_by_slug(slug, exclude_id)
        if existing is not None:
            return Envelope.ok(
                {
                    "available": False,
                    "message": f'Slug "{slug}" is already in use by category "{existing.name}"',
                }
            )
        return Envelope.ok({"available": True})

    # ========================================================================
    # Category Writes
    # ========================================================================

    @catalog_operation
    def create_category(self, body: Any) -> Envelope:
        """Create a category."""
        payload = parse_payload(CategoryCreate, body)
        category = self.store.create_category(payload.model_dump(exclude_unset=True))
        return Envelope.ok(
            self._category_data(category),
            message="Category created successfully",
            status_code=201,
        )

    @catalog_operation
    def update_category(self, raw_id: Any, body: Any) -> Envelope:
        """Update a category with the fields present in the body."""
        category_id = parse_id(raw_id)
        payload = parse_payload(CategoryUpdate, body)
        category = self.store.update_category(
            category_id, payload.model_dump(exclude_unset=True)
        )
        return Envelope.ok(self._category_data(category), message="Category updated successfully")

    @catalog_operation
    def set_category_status(self, raw_id: Any, body: Any) -> Envelope:
        """Activate or deactivate a category."""
        category_id = parse_id(raw_id)
        payload = parse_payload(StatusUpdate, body)
        category = self.store.set_category_status(category_id, payload.is_active)
        state = "activated" if category.is_active else "deactivated"
        return Envelope.ok(self._category_data(category), message=f"Category {state}")

    @catalog_operation
    def delete_category(self, raw_id: Any, raw_mode: Any = None) -> Envelope:
        """Delete a category under the requested mode."""
        category_id = parse_id(raw_id)
        deletion = self.store.delete_category(category_id, parse_delete_mode(raw_mode))
        return Envelope.ok(
            {
                "deletedIds": deletion.deleted_ids,
                "reassignedIds": deletion.reassigned_ids,
                "uncategorizedProductIds": deletion.uncategorized_product_ids,
            },
            message="Category deleted successfully",
        )

    @catalog_operation
    def bulk_delete_categories(self, body: Any) -> Envelope:
        """Delete several categories, reporting each id's outcome."""
        payload = parse_payload(BulkDeleteRequest, body)
        result = self.store.bulk_delete_categories(payload.ids, payload.mode)
        return Envelope.ok(
            {
                "succeeded": result.succeeded,
                "failed": [
                    {"id": failure.id, "error": failure.error, "message": failure.message}
                    for failure in result.failed
                ],
            },
            message=f"Deleted {len(result.succeeded)} of {len(payload.ids)} categories",
        )

    @catalog_operation
    def reorder_categories(self, body: Any) -> Envelope:
        """Apply sibling positions atomically."""
        payload = parse_payload(ReorderRequest, body)
        self.store.reorder_categories(
            PositionUpdate(id=order.id, position=order.position)
            for order in payload.category_orders
        )
        return Envelope.ok(message="Categories reordered successfully")

    @catalog_operation
    def assign_products(self, raw_id: Any, body: Any) -> Envelope:
        """Move products into a category."""
        category_id = parse_id(raw_id)
        payload = parse_payload(ProductAssignment, body)
        products = self.store.assign_products(category_id, payload.product_ids)
        return Envelope.ok(
            {"categoryId": category_id, "productIds": [p.id for p in products]},
            message=f"Assigned {len(products)} products to category",
        )

    @catalog_operation
    def remove_products(self, raw_id: Any, body: Any) -> Envelope:
        """Detach products from a category."""
        category_id = parse_id(raw_id)
        payload = parse_payload(ProductAssignment, body)
        products = self.store.remove_products(category_id, payload.product_ids)
        return Envelope.ok(
            {"categoryId": category_id, "productIds": [p.id for p in products]},
            message=f"Removed {len(products)} products from category",
        )

    # ========================================================================
    # Products
    # ========================================================================

    @catalog_operation
    def list_products(self, params: Mapping[str, Any] | None = None) -> Envelope:
        """List products with filtering, search, sorting and pagination."""
        page = self.engine.query(self.store.products(), self._product_query(params), PRODUCT_FIELDS)
        return Envelope.ok(page_to_dict(page, product_to_dict))

    @catalog_operation
    def get_product(self, raw_id: Any) -> Envelope:
        """Get one product."""
        return Envelope.ok(product_to_dict(self.store.get_product(parse_id(raw_id))))

    @catalog_operation
    def create_product(self, body: Any) -> Envelope:
        """Create a product."""
        payload = parse_payload(ProductCreate, body)
        product = self.store.create_product(payload.model_dump(exclude_unset=True))
        return Envelope.ok(
            product_to_dict(product),
            message="Product created successfully",
            status_code=201,
        )

    @catalog_operation
    def update_product(self, raw_id: Any, body: Any) -> Envelope:
        """Update a product with the fields present in the body."""
        product_id = parse_id(raw_id)
        payload = parse_payload(ProductUpdate, body)
        product = self.store.update_product(product_id, payload.model_dump(exclude_unset=True))
        return Envelope.ok(product_to_dict(product), message="Product updated successfully")

    @catalog_operation
    def delete_product(self, raw_id: Any) -> Envelope:
        """Delete a product."""
        product_id = parse_id(raw_id)
        self.store.delete_product(product_id)
        return Envelope.ok({"id": product_id}, message="Product deleted successfully")


# ============================================================================
# Service Factory
# ============================================================================


_catalog_service: CatalogService | None = None


def create_catalog_service(settings: Settings | None = None) -> CatalogService:
    """Build a service with a fresh store, seeded when configured.

    Args:
        settings: Application settings (module settings by default).

    Returns:
        New CatalogService instance.
    """
    settings = settings or default_settings
    service = CatalogService(settings=settings)
    if settings.seed_demo_data:
        seed_demo_data(service.store)
    return service


def get_catalog_service() -> CatalogService:
    """Get the process-wide catalog service singleton."""
    global _catalog_service
    if _catalog_service is None:
        _catalog_service = create_catalog_service()
    return _catalog_service


def reset_catalog_service() -> None:
    """Reset the catalog service (for testing)."""
    global _catalog_service
    _catalog_service = None
