"""Catalog store.

Owns the canonical category and product collections and enforces
their invariants:

- category ids are unique and never change
- category slugs are URL-safe and unique
- the parent relation is acyclic, and level/path always follow it
- products only reference existing categories

Every write validates the complete new state before touching a
repository, so a rejected call leaves the collections unchanged.
"""

from collections import Counter, defaultdict
from collections.abc import Iterable, Mapping
from typing import Any

import structlog

from storefront.catalog.repository import InMemoryRepository, Repository
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
    NotFoundError,
    ValidationError,
)
from storefront.domain.value_objects import (
    BulkDeleteFailure,
    BulkDeleteResult,
    CategoryDeletion,
    DeleteMode,
    PositionUpdate,
)

logger = structlog.get_logger()

CATEGORY_FIELDS = frozenset(
    {"name", "slug", "description", "parent_id", "is_active", "position", "include_in_menu"}
)
PRODUCT_FIELDS = frozenset(
    {"name", "slug", "sku", "description", "price", "category_id", "status", "featured"}
)


def _reject_unknown_fields(data: Mapping[str, Any], allowed: frozenset[str]) -> None:
    """Raise ValidationError for keys outside the writable field set."""
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise ValidationError(
            f"Unknown or read-only fields: {', '.join(unknown)}",
            field=unknown[0],
            details={"fields": unknown},
        )


def _require_name(value: Any) -> str:
    """Validate a required display name."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Name is required", field="name")
    return value.strip()


def _require_flag(data: Mapping[str, Any], key: str) -> None:
    """Validate that a present boolean field is not null."""
    if key in data and not isinstance(data[key], bool):
        raise ValidationError(f"{key} must be a boolean", field=key)


def _require_position(value: Any) -> int:
    """Validate a sibling position."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError("Position must be a non-negative integer", field="position")
    return value


class CatalogStore:
    """Canonical in-memory catalog.

    The store is the only component that mutates the collections; it
    hands out read-only snapshots via ``categories()`` and ``products()``.

    Example usage:
        store = CatalogStore()
        shoes = store.create_category({"name": "Shoes"})
        store.create_product({"name": "Runner", "price": 8999, "category_id": shoes.id})
        store.delete_category(shoes.id, DeleteMode.REASSIGN)
    """

    def __init__(
        self,
        categories: Repository[Category] | None = None,
        products: Repository[Product] | None = None,
    ) -> None:
        """Initialize store with injected repositories.

        Args:
            categories: Category repository (in-memory by default).
            products: Product repository (in-memory by default).
        """
        self._categories: Repository[Category] = categories or InMemoryRepository()
        self._products: Repository[Product] = products or InMemoryRepository()

    # ========================================================================
    # Read Views
    # ========================================================================

    def categories(self) -> tuple[Category, ...]:
        """Get every category in insertion order."""
        return self._categories.list()

    def products(self) -> tuple[Product, ...]:
        """Get every product in insertion order."""
        return self._products.list()

    def get_category(self, category_id: int) -> Category:
        """Get a category by ID.

        Raises:
            NotFoundError: If no category has this ID.
        """
        category = self._categories.get(category_id)
        if category is None:
            raise NotFoundError("Category", category_id)
        return category

    def get_category_by_slug(self, slug: str) -> Category:
        """Get a category by slug.

        Raises:
            NotFoundError: If no category has this slug.
        """
        category = self.find_by_slug(slug)
        if category is None:
            raise NotFoundError("Category", slug)
        return category

    def find_by_slug(self, slug: str, exclude_id: int | None = None) -> Category | None:
        """Find the category using a slug, ignoring ``exclude_id``."""
        for category in self._categories.list():
            if category.slug == slug and category.id != exclude_id:
                return category
        return None

    def is_slug_available(self, slug: str, exclude_id: int | None = None) -> bool:
        """Check that no other category uses the slug."""
        return self.find_by_slug(slug, exclude_id) is None

    def get_product(self, product_id: int) -> Product:
        """Get a product by ID.

        Raises:
            NotFoundError: If no product has this ID.
        """
        product = self._products.get(product_id)
        if product is None:
            raise NotFoundError("Product", product_id)
        return product

    def children_of(self, category_id: int | None) -> list[Category]:
        """Get direct children of a category (roots for None)."""
        return [c for c in self._categories.list() if c.parent_id == category_id]

    def descendant_ids(self, category_id: int) -> list[int]:
        """Get IDs of every category below this one, breadth-first."""
        children = self._children_index()
        result: list[int] = []
        queue = list(children.get(category_id, []))
        seen = {category_id}
        while queue:
            child_id = queue.pop(0)
            if child_id in seen:
                continue
            seen.add(child_id)
            result.append(child_id)
            queue.extend(children.get(child_id, []))
        return result

    def product_counts(self) -> dict[int, int]:
        """Count products per category ID."""
        counts: dict[int, int] = defaultdict(int)
        for product in self._products.list():
            if product.category_id is not None:
                counts[product.category_id] += 1
        return dict(counts)

    def product_count(self, category_id: int) -> int:
        """Count products assigned to one category."""
        return sum(1 for p in self._products.list() if p.category_id == category_id)

    def category_stats(self) -> dict[str, int]:
        """Summarize the catalog.

        Returns:
            Category and product totals, including how many categories
            hold products and how many products are uncategorized.
        """
        categories = self._categories.list()
        products = self._products.list()
        active = sum(1 for c in categories if c.is_active)
        counts = self.product_counts()
        return {
            "total_categories": len(categories),
            "active_categories": active,
            "inactive_categories": len(categories) - active,
            "root_categories": sum(1 for c in categories if c.parent_id is None),
            "max_depth": max((c.level for c in categories), default=0),
            "categories_with_products": len(counts),
            "total_products": len(products),
            "categorized_products": sum(counts.values()),
            "uncategorized_products": sum(1 for p in products if p.category_id is None),
        }

    # ========================================================================
    # Category Writes
    # ========================================================================

    def create_category(self, data: Mapping[str, Any]) -> Category:
        """Create a category.

        Args:
            data: Writable category fields; ``name`` is required and
                ``slug`` is derived from it when omitted.

        Returns:
            The stored category with its assigned ID.

        Raises:
            ValidationError: If a field is missing, malformed or the slug
                is taken, or the parent does not exist.
        """
        _reject_unknown_fields(data, CATEGORY_FIELDS)
        name = _require_name(data.get("name"))
        slug = self._validate_slug(data.get("slug") or slugify(name))
        parent = self._resolve_parent(data.get("parent_id"))
        _require_flag(data, "is_active")
        _require_flag(data, "include_in_menu")

        if data.get("position") is None:
            siblings = self.children_of(parent.id if parent else None)
            position = max((s.position for s in siblings), default=-1) + 1
        else:
            position = _require_position(data["position"])

        category_id = self._categories.next_id()
        level, path = self._placement(category_id, parent)
        category = Category(
            id=category_id,
            name=name,
            slug=slug,
            description=data.get("description"),
            parent_id=parent.id if parent else None,
            level=level,
            path=path,
            is_active=data.get("is_active", True),
            position=position,
            include_in_menu=data.get("include_in_menu", True),
        )
        self._categories.add(category)

        logger.info(
            "Category created",
            category_id=category.id,
            slug=category.slug,
            parent_id=category.parent_id,
        )
        return category

    def update_category(self, category_id: int, patch: Mapping[str, Any]) -> Category:
        """Merge a patch into a category.

        Args:
            category_id: Category to update.
            patch: Fields to change; ``parent_id`` may be None to make
                the category a root.

        Returns:
            The updated category.

        Raises:
            NotFoundError: If the category does not exist.
            ValidationError: If a field is malformed, the slug is taken
                or the new parent does not exist.
            ConflictError: If the new parent is the category itself or
                one of its descendants.
        """
        current = self.get_category(category_id)
        _reject_unknown_fields(patch, CATEGORY_FIELDS)
        changes = dict(patch)

        if "name" in changes:
            changes["name"] = _require_name(changes["name"])
        if "slug" in changes:
            slug = changes["slug"] or slugify(changes.get("name", current.name))
            if slug != current.slug:
                slug = self._validate_slug(slug, exclude_id=category_id)
            changes["slug"] = slug
        if "position" in changes:
            changes["position"] = _require_position(changes["position"])
        _require_flag(changes, "is_active")
        _require_flag(changes, "include_in_menu")

        parent_changed = (
            "parent_id" in changes and changes["parent_id"] != current.parent_id
        )
        if parent_changed:
            parent = self._resolve_parent(changes["parent_id"])
            self._check_acyclic(current, parent)
            changes["level"], changes["path"] = self._placement(category_id, parent)

        updated = current.evolve(**changes)
        self._categories.replace(updated)
        if parent_changed:
            self._refresh_subtree(updated)

        logger.info(
            "Category updated",
            category_id=category_id,
            fields=sorted(patch),
        )
        return updated

    def set_category_status(self, category_id: int, is_active: bool) -> Category:
        """Activate or deactivate a category."""
        return self.update_category(category_id, {"is_active": is_active})

    def delete_category(
        self,
        category_id: int,
        mode: DeleteMode = DeleteMode.RESTRICT,
    ) -> CategoryDeletion:
        """Delete a category.

        Args:
            category_id: Category to delete.
            mode: What happens to child categories and assigned products.

        Returns:
            Summary of removed, reassigned and detached entities.

        Raises:
            NotFoundError: If the category does not exist.
            ConflictError: If mode is RESTRICT and dependents exist.
        """
        self.get_category(category_id)
        children = self.children_of(category_id)
        product_ids = [p.id for p in self._products.list() if p.category_id == category_id]

        if mode is DeleteMode.RESTRICT and (children or product_ids):
            logger.warning(
                "Category delete rejected",
                category_id=category_id,
                child_count=len(children),
                product_count=len(product_ids),
            )
            raise ConflictError(
                f"Category {category_id} has {len(children)} child categories and "
                f"{len(product_ids)} products; reassign or cascade to delete it",
                details={
                    "category_id": category_id,
                    "child_ids": [c.id for c in children],
                    "product_count": len(product_ids),
                },
            )

        deletion = CategoryDeletion()
        if mode is DeleteMode.CASCADE:
            doomed = [category_id, *self.descendant_ids(category_id)]
        else:
            doomed = [category_id]
            for child in children:
                root = child.evolve(parent_id=None, level=0, path=str(child.id))
                self._categories.replace(root)
                self._refresh_subtree(root)
                deletion.reassigned_ids.append(child.id)

        doomed_set = set(doomed)
        for product in self._products.list():
            if product.category_id in doomed_set:
                self._products.replace(product.evolve(category_id=None))
                deletion.uncategorized_product_ids.append(product.id)

        for doomed_id in reversed(doomed):
            self._categories.remove(doomed_id)
        deletion.deleted_ids.extend(doomed)

        logger.info(
            "Category deleted",
            category_id=category_id,
            mode=mode.value,
            deleted_ids=deletion.deleted_ids,
            reassigned_ids=deletion.reassigned_ids,
            uncategorized_products=len(deletion.uncategorized_product_ids),
        )
        return deletion

    def bulk_delete_categories(
        self,
        category_ids: Iterable[int],
        mode: DeleteMode = DeleteMode.RESTRICT,
    ) -> BulkDeleteResult:
        """Delete several categories, collecting a per-id outcome.

        IDs are processed deepest level first, so a batch holding a
        parent together with its children succeeds under RESTRICT.
        A failure never stops the remaining deletes.

        Args:
            category_ids: Categories to delete.
            mode: Delete mode applied to each id.

        Returns:
            Succeeded and failed ids.
        """
        requested = list(category_ids)

        def depth_first(indexed: tuple[int, int]) -> tuple[int, int]:
            index, category_id = indexed
            category = self._categories.get(category_id)
            return (-(category.level if category else 0), index)

        result = BulkDeleteResult()
        for _, category_id in sorted(enumerate(requested), key=depth_first):
            try:
                self.delete_category(category_id, mode)
            except CatalogError as e:
                result.failed.append(
                    BulkDeleteFailure(id=category_id, error=e.error_code, message=e.message)
                )
            else:
                result.succeeded.append(category_id)

        logger.info(
            "Bulk category delete finished",
            requested=len(requested),
            succeeded=len(result.succeeded),
            failed=len(result.failed),
        )
        return result

    def reorder_categories(self, orderings: Iterable[PositionUpdate]) -> None:
        """Rewrite sibling positions for exactly the given categories.

        All-or-nothing: every id and position is validated before any
        category is changed. Categories not listed keep their position.

        Args:
            orderings: Requested (id, position) pairs.

        Raises:
            ValidationError: If an id is unknown or repeated, or a
                position is negative.
        """
        updates = list(orderings)

        counts = Counter(u.id for u in updates)
        duplicates = sorted(cid for cid, n in counts.items() if n > 1)
        if duplicates:
            raise ValidationError(
                f"Duplicate category ids in reorder: {duplicates}",
                field="id",
                details={"duplicate_ids": duplicates},
            )

        unknown = [u.id for u in updates if u.id not in self._categories]
        if unknown:
            raise ValidationError(
                f"Unknown category ids in reorder: {unknown}",
                field="id",
                details={"unknown_ids": unknown},
            )

        for update in updates:
            _require_position(update.position)

        for update in updates:
            category = self.get_category(update.id)
            self._categories.replace(category.evolve(position=update.position))

        logger.info("Categories reordered", category_ids=[u.id for u in updates])

    # ========================================================================
    # Product Writes
    # ========================================================================

    def create_product(self, data: Mapping[str, Any]) -> Product:
        """Create a product.

        Raises:
            ValidationError: If a field is missing or malformed, or the
                category does not exist.
        """
        _reject_unknown_fields(data, PRODUCT_FIELDS)
        name = _require_name(data.get("name"))
        _require_flag(data, "featured")
        product = Product(
            id=self._products.next_id(),
            name=name,
            slug=data.get("slug") or slugify(name),
            sku=data.get("sku"),
            description=data.get("description"),
            price=self._validate_price(data.get("price", 0)),
            category_id=self._validate_category_ref(data.get("category_id")),
            status=self._validate_status(data.get("status", ProductStatus.DRAFT)),
            featured=data.get("featured", False),
        )
        self._products.add(product)

        logger.info(
            "Product created",
            product_id=product.id,
            category_id=product.category_id,
        )
        return product

    def update_product(self, product_id: int, patch: Mapping[str, Any]) -> Product:
        """Merge a patch into a product.

        Raises:
            NotFoundError: If the product does not exist.
            ValidationError: If a field is malformed or the category
                does not exist.
        """
        current = self.get_product(product_id)
        _reject_unknown_fields(patch, PRODUCT_FIELDS)
        changes = dict(patch)

        if "name" in changes:
            changes["name"] = _require_name(changes["name"])
        if "slug" in changes:
            changes["slug"] = changes["slug"] or slugify(changes.get("name", current.name))
        if "price" in changes:
            changes["price"] = self._validate_price(changes["price"])
        if "status" in changes:
            changes["status"] = self._validate_status(changes["status"])
        if "category_id" in changes:
            changes["category_id"] = self._validate_category_ref(changes["category_id"])
        _require_flag(changes, "featured")

        updated = current.evolve(**changes)
        self._products.replace(updated)

        logger.info("Product updated", product_id=product_id, fields=sorted(patch))
        return updated

    def delete_product(self, product_id: int) -> None:
        """Delete a product.

        Raises:
            NotFoundError: If the product does not exist.
        """
        self.get_product(product_id)
        self._products.remove(product_id)
        logger.info("Product deleted", product_id=product_id)

    def assign_products(self, category_id: int, product_ids: Iterable[int]) -> list[Product]:
        """Move products into a category.

        Raises:
            NotFoundError: If the category does not exist.
            ValidationError: If any product id is unknown.
        """
        self.get_category(category_id)
        products = self._resolve_products(product_ids)

        moved = []
        for product in products:
            if product.category_id != category_id:
                product = self._products.replace(product.evolve(category_id=category_id))
            moved.append(product)

        logger.info(
            "Products assigned to category",
            category_id=category_id,
            product_ids=[p.id for p in moved],
        )
        return moved

    def remove_products(self, category_id: int, product_ids: Iterable[int]) -> list[Product]:
        """Detach products from a category.

        Products that are not in the category are left untouched.

        Raises:
            NotFoundError: If the category does not exist.
            ValidationError: If any product id is unknown.
        """
        self.get_category(category_id)
        products = self._resolve_products(product_ids)

        detached = [
            self._products.replace(product.evolve(category_id=None))
            for product in products
            if product.category_id == category_id
        ]

        logger.info(
            "Products removed from category",
            category_id=category_id,
            product_ids=[p.id for p in detached],
        )
        return detached

    # ========================================================================
    # Validation Helpers
    # ========================================================================

    def _validate_slug(self, slug: Any, exclude_id: int | None = None) -> str:
        """Check slug format and uniqueness."""
        if not isinstance(slug, str) or not slug:
            raise ValidationError("Slug could not be derived from the name", field="slug")
        if not is_valid_slug(slug):
            raise ValidationError(
                f'Slug "{slug}" must contain only lowercase letters, digits and single hyphens',
                field="slug",
            )
        existing = self.find_by_slug(slug, exclude_id)
        if existing is not None:
            raise ValidationError(
                f'Slug "{slug}" is already in use by category "{existing.name}"',
                field="slug",
                details={"conflicting_id": existing.id},
            )
        return slug

    def _resolve_parent(self, parent_id: Any) -> Category | None:
        """Look up a parent reference; None means root."""
        if parent_id is None:
            return None
        parent = self._categories.get(parent_id) if isinstance(parent_id, int) else None
        if parent is None:
            raise ValidationError(
                f"Parent category {parent_id} does not exist",
                field="parent_id",
            )
        return parent

    def _check_acyclic(self, category: Category, parent: Category | None) -> None:
        """Ensure ``parent`` is neither the category nor below it."""
        seen: set[int] = set()
        ancestor = parent
        while ancestor is not None and ancestor.id not in seen:
            if ancestor.id == category.id:
                target = "itself" if parent.id == category.id else f"its descendant {parent.id}"
                raise ConflictError(
                    f"Category {category.id} cannot be moved under {target}",
                    details={"category_id": category.id, "parent_id": parent.id},
                )
            seen.add(ancestor.id)
            ancestor = (
                self._categories.get(ancestor.parent_id)
                if ancestor.parent_id is not None
                else None
            )

    def _validate_category_ref(self, category_id: Any) -> int | None:
        """Check that a product's category exists."""
        if category_id is None:
            return None
        if not isinstance(category_id, int) or category_id not in self._categories:
            raise ValidationError(
                f"Category {category_id} does not exist",
                field="category_id",
            )
        return category_id

    def _resolve_products(self, product_ids: Iterable[int]) -> list[Product]:
        """Look up products, failing on any unknown id."""
        ids = list(dict.fromkeys(product_ids))
        unknown = [pid for pid in ids if pid not in self._products]
        if unknown:
            raise ValidationError(
                f"Unknown product ids: {unknown}",
                field="product_ids",
                details={"unknown_ids": unknown},
            )
        return [self.get_product(pid) for pid in ids]

    @staticmethod
    def _validate_price(price: Any) -> int:
        """Check that a price is a non-negative amount in cents."""
        if isinstance(price, bool) or not isinstance(price, int) or price < 0:
            raise ValidationError(
                "Price must be a non-negative integer amount in cents",
                field="price",
            )
        return price

    @staticmethod
    def _validate_status(status: Any) -> ProductStatus:
        """Parse a product status."""
        try:
            return ProductStatus(status)
        except ValueError:
            allowed = [s.value for s in ProductStatus]
            raise ValidationError(
                f"Status must be one of {allowed}",
                field="status",
            ) from None

    # ========================================================================
    # Hierarchy Helpers
    # ========================================================================

    @staticmethod
    def _placement(category_id: int, parent: Category | None) -> tuple[int, str]:
        """Compute level and path for a category under ``parent``."""
        if parent is None:
            return 0, str(category_id)
        return parent.level + 1, f"{parent.path}/{category_id}"

    def _children_index(self) -> dict[int, list[int]]:
        """Map each parent ID to its child IDs."""
        index: dict[int, list[int]] = defaultdict(list)
        for category in self._categories.list():
            if category.parent_id is not None:
                index[category.parent_id].append(category.id)
        return index

    def _refresh_subtree(self, root: Category) -> None:
        """Recompute level and path below a moved category."""
        children = self._children_index()
        queue = [root]
        seen = {root.id}
        while queue:
            parent = queue.pop(0)
            for child_id in children.get(parent.id, []):
                if child_id in seen:
                    continue
                seen.add(child_id)
                child = self.get_category(child_id)
                level, path = self._placement(child_id, parent)
                if (child.level, child.path) != (level, path):
                    child = self._categories.replace(child.evolve(level=level, path=path))
                queue.append(child)
