"""Repository abstraction for catalog collections.

The store talks to its collections only through ``Repository``; the
in-memory implementation below stands in for a transactional datastore.
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from storefront.domain.base import Entity

E = TypeVar("E", bound=Entity)


class Repository(ABC, Generic[E]):
    """Storage contract for one entity collection.

    Implementations must return entities from ``list`` in insertion
    order; the query engine relies on it as the default sort order.
    """

    @abstractmethod
    def next_id(self) -> int:
        """Reserve and return the next unused identifier."""

    @abstractmethod
    def get(self, entity_id: int) -> E | None:
        """Get an entity by ID, or None if absent."""

    @abstractmethod
    def list(self) -> tuple[E, ...]:
        """Get a read-only snapshot of every entity in insertion order."""

    @abstractmethod
    def add(self, entity: E) -> E:
        """Insert a new entity."""

    @abstractmethod
    def replace(self, entity: E) -> E:
        """Swap in a new version of an existing entity, keeping its order."""

    @abstractmethod
    def remove(self, entity_id: int) -> None:
        """Delete an entity by ID."""

    @abstractmethod
    def __len__(self) -> int:
        """Count stored entities."""

    def __contains__(self, entity_id: object) -> bool:
        """Check whether an ID is stored."""
        return isinstance(entity_id, int) and self.get(entity_id) is not None


class InMemoryRepository(Repository[E]):
    """Dict-backed repository.

    Example usage:
        repo: InMemoryRepository[Category] = InMemoryRepository()
        category = Category(id=repo.next_id(), name="Shoes", slug="shoes")
        repo.add(category)
        assert repo.get(category.id) is category
    """

    def __init__(self) -> None:
        """Initialize an empty collection."""
        self._items: dict[int, E] = {}
        self._last_id = 0

    def next_id(self) -> int:
        """Reserve and return the next unused identifier.

        IDs are never reused, even after the highest one is deleted.
        """
        self._last_id += 1
        return self._last_id

    def get(self, entity_id: int) -> E | None:
        """Get an entity by ID."""
        return self._items.get(entity_id)

    def list(self) -> tuple[E, ...]:
        """Get all entities in insertion order."""
        return tuple(self._items.values())

    def add(self, entity: E) -> E:
        """Insert a new entity.

        Raises:
            KeyError: If the ID is already stored.
        """
        if entity.id in self._items:
            raise KeyError(f"Duplicate id {entity.id}")
        self._items[entity.id] = entity
        self._last_id = max(self._last_id, entity.id)
        return entity

    def replace(self, entity: E) -> E:
        """Swap in a new version of an existing entity.

        Raises:
            KeyError: If the ID is not stored.
        """
        if entity.id not in self._items:
            raise KeyError(f"Unknown id {entity.id}")
        self._items[entity.id] = entity
        return entity

    def remove(self, entity_id: int) -> None:
        """Delete an entity by ID."""
        del self._items[entity_id]

    def __len__(self) -> int:
        """Count stored entities."""
        return len(self._items)
