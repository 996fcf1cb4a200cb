"""Value Objects for the domain layer.

Value objects are immutable objects that are defined by their attributes
rather than identity. They are interchangeable when their values are equal.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Self

from storefront.domain.base import ValueObject

FILTER_KEY_PREFIX = "filters["


# ============================================================================
# Enumerations
# ============================================================================


class SortOrder(str, Enum):
    """Sort direction for list queries."""

    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value: Any) -> "SortOrder":
        """Parse a sort direction, falling back to ascending.

        Args:
            value: Raw value such as "desc" or "DESC".

        Returns:
            Matching SortOrder, or ASC for anything unrecognised.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and value.strip().lower() == cls.DESC.value:
            return cls.DESC
        return cls.ASC


class DeleteMode(str, Enum):
    """How a category delete treats its dependents.

    - RESTRICT: refuse while child categories or products exist
    - REASSIGN: children become roots, products become uncategorized
    - CASCADE: remove the whole subtree, products become uncategorized
    """

    RESTRICT = "restrict"
    REASSIGN = "reassign"
    CASCADE = "cascade"


# ============================================================================
# Query
# ============================================================================


def _positive_int(value: Any, default: int) -> int:
    """Coerce a raw pagination value, falling back to the default.

    Args:
        value: Raw value from a query string or body.
        default: Value used when the input is missing, non-numeric or <= 0.

    Returns:
        Positive integer.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        number = int(str(value).strip())
    except ValueError:
        return default
    return number if number > 0 else default


@dataclass(frozen=True)
class CatalogQuery(ValueObject):
    """Transient list query consumed once by the query engine.

    Attributes:
        page: Page number (1-indexed).
        limit: Items per page.
        search: Case-insensitive substring to match, if any.
        sort_by: Wire name of the sort field, if any.
        sort_order: Sort direction.
        filters: Mapping of wire field name to raw filter value.
    """

    page: int = 1
    limit: int = 20
    search: str | None = None
    sort_by: str | None = None
    sort_order: SortOrder = SortOrder.ASC
    filters: Mapping[str, Any] = field(default_factory=dict)

    @property
    def offset(self) -> int:
        """Calculate offset from page number."""
        return (self.page - 1) * self.limit

    @classmethod
    def from_params(
        cls,
        params: Mapping[str, Any] | None,
        default_limit: int = 20,
        max_limit: int | None = None,
    ) -> Self:
        """Build a query from raw query-string or body parameters.

        Invalid page/limit values are normalized to defaults rather than
        rejected. Filters are read from a nested ``filters`` mapping and
        from flat ``filters[key]`` parameters.

        Args:
            params: Raw parameters (e.g. request query params).
            default_limit: Page size used when limit is missing or invalid.
            max_limit: Upper bound for the page size.

        Returns:
            Normalized query.
        """
        params = params or {}

        limit = _positive_int(params.get("limit"), default_limit)
        if max_limit is not None:
            limit = min(limit, max_limit)

        search = params.get("search")
        search = search.strip() if isinstance(search, str) else None

        sort_by = params.get("sortBy")
        sort_by = sort_by.strip() if isinstance(sort_by, str) else None

        filters: dict[str, Any] = {}
        nested = params.get("filters")
        if isinstance(nested, Mapping):
            filters.update(nested)
        for key in params.keys():
            if key.startswith(FILTER_KEY_PREFIX) and key.endswith("]"):
                filters[key[len(FILTER_KEY_PREFIX) : -1]] = params[key]

        return cls(
            page=_positive_int(params.get("page"), 1),
            limit=limit,
            search=search or None,
            sort_by=sort_by or None,
            sort_order=SortOrder.parse(params.get("sortOrder")),
            filters=filters,
        )


# ============================================================================
# Store Operation Values
# ============================================================================


@dataclass(frozen=True)
class PositionUpdate(ValueObject):
    """A requested sibling position for one category."""

    id: int
    position: int


@dataclass(frozen=True)
class BulkDeleteFailure(ValueObject):
    """Why one id in a bulk delete was not removed."""

    id: int
    error: str
    message: str


@dataclass
class CategoryDeletion:
    """What a single category delete changed.

    Attributes:
        deleted_ids: Removed category IDs (more than one under CASCADE).
        reassigned_ids: Former children that became roots.
        uncategorized_product_ids: Products detached from removed categories.
    """

    deleted_ids: list[int] = field(default_factory=list)
    reassigned_ids: list[int] = field(default_factory=list)
    uncategorized_product_ids: list[int] = field(default_factory=list)


@dataclass
class BulkDeleteResult:
    """Per-id outcome of a bulk delete.

    Attributes:
        succeeded: IDs that were deleted, in processing order.
        failed: IDs that were not deleted, with the reason.
    """

    succeeded: list[int] = field(default_factory=list)
    failed: list[BulkDeleteFailure] = field(default_factory=list)

    @property
    def all_succeeded(self) -> bool:
        """Check if every requested id was deleted."""
        return not self.failed
