"""Shared fixtures."""

import pytest
from fastapi.testclient import TestClient

from storefront.catalog.service import reset_catalog_service
from storefront.catalog.seed import seed_demo_data
from storefront.catalog.store import CatalogStore
from storefront.main import app


@pytest.fixture(autouse=True)
def reset_service():
    """Reset the catalog service before and after each test."""
    reset_catalog_service()
    yield
    reset_catalog_service()


@pytest.fixture
def client() -> TestClient:
    """Create test client backed by the demo catalog."""
    return TestClient(app)


@pytest.fixture
def store() -> CatalogStore:
    """Create an empty catalog store."""
    return CatalogStore()


@pytest.fixture
def seeded_store() -> CatalogStore:
    """Create a catalog store holding the demo data."""
    store = CatalogStore()
    seed_demo_data(store)
    return store
