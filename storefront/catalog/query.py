"""In-memory query engine for catalog collections.

Filters, searches, sorts and paginates a read-only collection view.
The engine never mutates what it is given.
"""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

from storefront.domain.value_objects import CatalogQuery, SortOrder

T = TypeVar("T")

_NULL_TOKENS = {"null", "none"}
_TRUE_TOKENS = {"true", "1", "yes"}
_FALSE_TOKENS = {"false", "0", "no"}


class _Unmatchable:
    """Marker for a filter value that cannot equal any stored value."""


UNMATCHABLE = _Unmatchable()


# ============================================================================
# Field Descriptions
# ============================================================================


@dataclass(frozen=True)
class FilterField:
    """A filterable attribute and the kind its raw values are coerced to.

    Attributes:
        attribute: Entity attribute name.
        kind: One of bool, int or str.
        nullable: Whether "null" selects entities where the attribute is None.
    """

    attribute: str
    kind: type = str
    nullable: bool = False


@dataclass(frozen=True)
class QueryFields:
    """Describes how one collection can be queried.

    Attributes:
        searchable: Text attributes matched by ``search``.
        filterable: Wire filter name to field description.
        sortable: Wire sort name to entity attribute.
    """

    searchable: tuple[str, ...]
    filterable: Mapping[str, FilterField] = field(default_factory=dict)
    sortable: Mapping[str, str] = field(default_factory=dict)


CATEGORY_FIELDS = QueryFields(
    searchable=("name", "slug", "description"),
    filterable={
        "isActive": FilterField("is_active", bool),
        "parentId": FilterField("parent_id", int, nullable=True),
        "level": FilterField("level", int),
        "includeInMenu": FilterField("include_in_menu", bool),
    },
    sortable={
        "id": "id",
        "name": "name",
        "slug": "slug",
        "level": "level",
        "position": "position",
        "isActive": "is_active",
        "createdAt": "created_at",
        "updatedAt": "updated_at",
    },
)

PRODUCT_FIELDS = QueryFields(
    searchable=("name", "slug", "description", "sku"),
    filterable={
        "categoryId": FilterField("category_id", int, nullable=True),
        "status": FilterField("status", str),
        "featured": FilterField("featured", bool),
    },
    sortable={
        "id": "id",
        "name": "name",
        "price": "price",
        "status": "status",
        "createdAt": "created_at",
        "updatedAt": "updated_at",
    },
)


# ============================================================================
# Results
# ============================================================================


@dataclass
class Page(Generic[T]):
    """One page of query results.

    Attributes:
        items: Entities on this page.
        total: Count of matching entities before pagination.
        page: Current page (1-indexed).
        limit: Items per page.
    """

    items: list[T]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        """Calculate total pages."""
        return (self.total + self.limit - 1) // self.limit

    @property
    def has_next(self) -> bool:
        """Check if there's a next page."""
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        """Check if there's a previous page."""
        return self.page > 1


# ============================================================================
# Query Engine
# ============================================================================


def coerce_filter_value(raw: Any, filter_field: FilterField) -> Any:
    """Coerce a raw filter value to the kind of its field.

    Args:
        raw: Raw value from a query string or body.
        filter_field: Field description.

    Returns:
        Coerced value, or UNMATCHABLE if it cannot be coerced.
    """
    if raw is None or (isinstance(raw, str) and raw.strip().lower() in _NULL_TOKENS):
        return None if filter_field.nullable else UNMATCHABLE

    if filter_field.kind is bool:
        if isinstance(raw, bool):
            return raw
        token = str(raw).strip().lower()
        if token in _TRUE_TOKENS:
            return True
        if token in _FALSE_TOKENS:
            return False
        return UNMATCHABLE

    if filter_field.kind is int:
        if isinstance(raw, bool):
            return UNMATCHABLE
        try:
            return int(str(raw).strip())
        except ValueError:
            return UNMATCHABLE

    return str(raw)


def _sort_value(value: Any) -> Any:
    """Normalize an attribute value into a comparable sort key."""
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, str):
        return value.lower()
    return value


class QueryEngine:
    """Applies a CatalogQuery to a collection.

    Filters are a logical AND of exact matches, search is a
    case-insensitive substring match over the collection's text
    fields, and sorting is stable in both directions.

    Example usage:
        engine = QueryEngine()
        page = engine.query(
            store.categories(),
            CatalogQuery(search="phone", sort_by="name"),
            CATEGORY_FIELDS,
        )
    """

    def query(
        self,
        collection: Iterable[T],
        query: CatalogQuery,
        fields: QueryFields,
        where: Callable[[T], bool] | None = None,
    ) -> Page[T]:
        """Run a query over a collection.

        Args:
            collection: Read-only view in insertion order.
            query: Normalized query.
            fields: How this collection can be searched, filtered and sorted.
            where: Optional extra predicate scoping the collection.

        Returns:
            Requested page plus the total match count.
        """
        items = [item for item in collection if where is None or where(item)]
        items = self.apply_filters(items, query.filters, fields)
        items = self.apply_search(items, query.search, fields)
        items = self.apply_sort(items, query.sort_by, query.sort_order, fields)
        return self.paginate(items, query.page, query.limit)

    def apply_filters(
        self,
        items: list[T],
        filters: Mapping[str, Any],
        fields: QueryFields,
    ) -> list[T]:
        """Keep items matching every known filter; unknown keys are ignored."""
        for key, raw in filters.items():
            filter_field = fields.filterable.get(key)
            if filter_field is None:
                continue
            expected = coerce_filter_value(raw, filter_field)
            if expected is UNMATCHABLE:
                return []
            items = [item for item in items if getattr(item, filter_field.attribute) == expected]
        return items

    def apply_search(
        self,
        items: list[T],
        search: str | None,
        fields: QueryFields,
    ) -> list[T]:
        """Keep items whose text fields contain the search term."""
        if not search:
            return items
        needle = search.lower()

        def matches(item: T) -> bool:
            for attribute in fields.searchable:
                value = getattr(item, attribute, None)
                if isinstance(value, str) and needle in value.lower():
                    return True
            return False

        return [item for item in items if matches(item)]

    def apply_sort(
        self,
        items: list[T],
        sort_by: str | None,
        sort_order: SortOrder,
        fields: QueryFields,
    ) -> list[T]:
        """Sort items by a known field, keeping input order otherwise.

        Items whose sort value is None always go last.
        """
        attribute = fields.sortable.get(sort_by) if sort_by else None
        if attribute is None:
            return items

        present = [item for item in items if getattr(item, attribute) is not None]
        missing = [item for item in items if getattr(item, attribute) is None]
        present.sort(
            key=lambda item: _sort_value(getattr(item, attribute)),
            reverse=sort_order is SortOrder.DESC,
        )
        return present + missing

    def paginate(self, items: list[T], page: int, limit: int) -> Page[T]:
        """Slice one page out of the full result list."""
        start = (page - 1) * limit
        return Page(
            items=items[start : start + limit],
            total=len(items),
            page=page,
            limit=limit,
        )
