"""Domain exceptions.

All catalog errors raised by the store, query engine and tree builder.
The service facade is the single place that maps them to response
envelopes; each class carries the HTTP-equivalent status it maps to.
"""

from typing import Any


class CatalogError(Exception):
    """Base class for all catalog exceptions.

    All catalog errors inherit from this class so the facade can
    catch them in one place.
    """

    status_code: int = 500
    error_code: str = "CATALOG_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize catalog error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# Client Errors
# ============================================================================


class ValidationError(CatalogError):
    """Raised for malformed, missing or duplicate input.

    User-correctable; ``details`` names the offending field when known.
    """

    status_code = 400
    error_code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize validation error.

        Args:
            message: Human-readable error message.
            field: Name of the field that failed validation.
            details: Optional dictionary with additional error context.
        """
        context = dict(details or {})
        if field is not None:
            context.setdefault("field", field)
        super().__init__(message, details=context)
        self.field = field


class NotFoundError(CatalogError):
    """Raised when a referenced entity does not exist."""

    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: int | str) -> None:
        """Initialize not found error.

        Args:
            entity_type: Type of entity (e.g., "Category", "Product").
            entity_id: The identifier that was looked up.
        """
        super().__init__(
            f"{entity_type} with id {entity_id} not found",
            details={"entity_type": entity_type, "entity_id": entity_id},
        )
        self.entity_type = entity_type
        self.entity_id = entity_id


class ConflictError(CatalogError):
    """Raised when an operation would violate a referential invariant.

    Examples are deleting a category that still has dependents or
    moving a category underneath one of its own descendants.
    """

    status_code = 409
    error_code = "CONFLICT"


# ============================================================================
# Server Errors
# ============================================================================


class UnexpectedError(CatalogError):
    """Raised for defects; reported to clients generically."""

    status_code = 500
    error_code = "INTERNAL_ERROR"


class HierarchyIntegrityError(UnexpectedError):
    """Raised when stored categories form a parent cycle."""

    error_code = "HIERARCHY_INTEGRITY_ERROR"

    def __init__(self, cycle_ids: list[int]) -> None:
        """Initialize hierarchy integrity error.

        Args:
            cycle_ids: IDs of categories that are not reachable from any root.
        """
        super().__init__(
            f"Category hierarchy contains a parent cycle: {cycle_ids}",
            details={"cycle_ids": cycle_ids},
        )
        self.cycle_ids = cycle_ids
