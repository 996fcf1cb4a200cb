"""Base classes for catalog domain objects."""

from abc import ABC
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Generic, Self, TypeVar


def utc_now() -> datetime:
    """Get the current time in UTC."""
    return datetime.now(timezone.utc)


# ============================================================================
# Value Objects
# ============================================================================


@dataclass(frozen=True)
class ValueObject(ABC):
    """Immutable value compared field by field.

    Example:
        @dataclass(frozen=True)
        class PositionUpdate(ValueObject):
            id: int
            position: int
    """


# ============================================================================
# Entities
# ============================================================================


IdT = TypeVar("IdT", bound=int | str)


@dataclass(kw_only=True, eq=False)
class Entity(ABC, Generic[IdT]):
    """Catalog record identified by its store-assigned id.

    Entities are never mutated in place. Changes produce a new copy via
    ``evolve``, which the store then writes back, so readers holding an
    earlier copy keep a consistent snapshot.

    Attributes:
        id: Identifier, fixed for the entity's lifetime.
        created_at: When the entity was first stored.
        updated_at: When the entity last changed.
    """

    id: IdT
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def evolve(self, **changes: Any) -> Self:
        """Return a copy with the given fields changed and a fresh timestamp."""
        return replace(self, updated_at=utc_now(), **changes)

    def __eq__(self, other: object) -> bool:
        return type(other) is type(self) and other.id == self.id

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.id))
