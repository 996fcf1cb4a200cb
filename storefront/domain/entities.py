"""Domain entities for the storefront catalog.

Entities are domain objects with identity that persists across state changes.
This module contains the two catalog entities: Category and Product.
"""

import re
import unicodedata
from dataclasses import dataclass
from enum import Enum

from storefront.domain.base import Entity

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def slugify(value: str) -> str:
    """Derive a URL-safe slug from a display name.

    Accents are folded to ASCII, runs of anything that is not a lowercase
    letter or digit collapse into a single hyphen, and leading/trailing
    hyphens are stripped.

    Args:
        value: Display name.

    Returns:
        Slug such as "home-garden" for "Home & Garden".
    """
    folded = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode()
    slug = re.sub(r"[^a-z0-9]+", "-", folded.lower())
    return slug.strip("-")


def is_valid_slug(value: str) -> bool:
    """Check that a slug is URL-safe."""
    return bool(SLUG_PATTERN.match(value))


# ============================================================================
# Category
# ============================================================================


@dataclass(kw_only=True, eq=False)
class Category(Entity[int]):
    """A node in the category hierarchy.

    Attributes:
        id: Store-assigned identifier, immutable.
        name: Display name.
        slug: URL-safe identifier, unique across categories.
        description: Optional long description.
        parent_id: Parent category ID (None for roots).
        level: Depth in the hierarchy (0 for roots).
        path: Slash-separated ancestor IDs ending with this ID (e.g. "1/4/8").
        is_active: Whether the category is visible on the storefront.
        position: Ordering among siblings.
        include_in_menu: Whether the storefront menu lists the category.
    """

    name: str
    slug: str
    description: str | None = None
    parent_id: int | None = None
    level: int = 0
    path: str = ""
    is_active: bool = True
    position: int = 0
    include_in_menu: bool = True

    @property
    def is_root(self) -> bool:
        """Check if this category has no parent."""
        return self.parent_id is None

    @property
    def ancestor_ids(self) -> list[int]:
        """Get ancestor IDs from the root down, excluding this category."""
        if not self.path:
            return []
        return [int(part) for part in self.path.split("/")[:-1]]


# ============================================================================
# Product
# ============================================================================


class ProductStatus(str, Enum):
    """Product lifecycle status."""

    ACTIVE = "active"
    DRAFT = "draft"
    ARCHIVED = "archived"


@dataclass(kw_only=True, eq=False)
class Product(Entity[int]):
    """A sellable catalog item.

    Attributes:
        id: Store-assigned identifier.
        name: Display name.
        slug: URL-friendly name.
        sku: Optional stock keeping unit.
        description: Optional description.
        price: Price in the smallest currency unit (cents).
        category_id: Owning category (None when uncategorized).
        status: Lifecycle status.
        featured: Whether the storefront highlights the product.
    """

    name: str
    slug: str = ""
    sku: str | None = None
    description: str | None = None
    price: int = 0
    category_id: int | None = None
    status: ProductStatus = ProductStatus.DRAFT
    featured: bool = False

    @property
    def is_categorized(self) -> bool:
        """Check if the product belongs to a category."""
        return self.category_id is not None
