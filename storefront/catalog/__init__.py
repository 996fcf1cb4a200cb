"""Catalog core.

Provides the in-memory catalog store, the query engine, the category
tree builder and the service facade that route handlers call.
"""

from storefront.catalog.query import (
    CATEGORY_FIELDS,
    PRODUCT_FIELDS,
    FilterField,
    Page,
    QueryEngine,
    QueryFields,
)
from storefront.catalog.repository import InMemoryRepository, Repository
from storefront.catalog.service import (
    CatalogService,
    Envelope,
    get_catalog_service,
    reset_catalog_service,
)
from storefront.catalog.store import CatalogStore
from storefront.catalog.tree import CategoryTreeBuilder, TreeNode, build_tree

__all__ = [
    # Repository
    "InMemoryRepository",
    "Repository",
    # Store
    "CatalogStore",
    # Query
    "CATEGORY_FIELDS",
    "PRODUCT_FIELDS",
    "FilterField",
    "Page",
    "QueryEngine",
    "QueryFields",
    # Tree
    "CategoryTreeBuilder",
    "TreeNode",
    "build_tree",
    # Service
    "CatalogService",
    "Envelope",
    "get_catalog_service",
    "reset_catalog_service",
]
