"""Tests for the catalog service facade."""

from unittest.mock import patch

import pytest

from storefront.catalog.service import (
    CatalogService,
    Envelope,
    create_catalog_service,
    get_catalog_service,
    parse_id,
    reset_catalog_service,
)
from storefront.catalog.store import CatalogStore
from storefront.catalog.tree import CategoryTreeBuilder
from storefront.domain import ValidationError
from storefront.infrastructure.config import Settings


@pytest.fixture
def service(seeded_store: CatalogStore) -> CatalogService:
    """Create a service over the demo catalog."""
    return CatalogService(store=seeded_store, settings=Settings(seed_demo_data=False))


class TestEnvelope:
    """Tests for Envelope rendering."""

    def test_success_body(self) -> None:
        """Success bodies carry data and never an error."""
        body = Envelope.ok({"id": 1}, message="done").to_dict()
        assert body["success"] is True
        assert body["data"] == {"id": 1}
        assert body["message"] == "done"
        assert "error" not in body
        assert "timestamp" in body

    def test_failure_body(self) -> None:
        """Failure bodies carry the error code and camelCase details."""
        error = ValidationError("bad parent", field="parent_id", details={"parent_id": 4})
        body = Envelope.from_error(error).to_dict()
        assert body["success"] is False
        assert body["error"] == "VALIDATION_ERROR"
        assert body["message"] == "bad parent"
        assert body["details"] == {"field": "parentId", "parentId": 4}
        assert "data" not in body


class TestParseId:
    """Tests for raw id parsing."""

    @pytest.mark.parametrize("raw, expected", [("12", 12), (" 7 ", 7), (3, 3)])
    def test_valid(self, raw: object, expected: int) -> None:
        """Numeric strings and ints are accepted."""
        assert parse_id(raw) == expected

    @pytest.mark.parametrize("raw", ["abc", "1.5", "", "-1", None, True])
    def test_invalid(self, raw: object) -> None:
        """Anything else is a validation error."""
        with pytest.raises(ValidationError):
            parse_id(raw)

    def test_oversized_digit_string(self) -> None:
        """Ids beyond the int conversion limit are validation errors."""
        with pytest.raises(ValidationError) as exc_info:
            parse_id("9" * 5000, "excludeId")
        assert exc_info.value.details["field"] == "excludeId"

    def test_oversized_id_is_client_error(self, service: CatalogService) -> None:
        """Oversized ids reach the envelope as 400, not a server error."""
        envelope = service.get_category("9" * 5000)
        assert envelope.status_code == 400
        assert envelope.error == "VALIDATION_ERROR"


class TestCategoryOperations:
    """Tests for category operations."""

    def test_list_categories(self, service: CatalogService) -> None:
        """Listing returns a page with metadata and product counts."""
        envelope = service.list_categories({"limit": "5"})
        assert envelope.success
        assert envelope.status_code == 200
        data = envelope.data
        assert data["total"] == 9
        assert data["limit"] == 5
        assert data["totalPages"] == 2
        assert data["hasNext"] is True
        assert len(data["items"]) == 5
        assert data["items"][0]["name"] == "Electronics"
        assert data["items"][0]["productCount"] == 1

    def test_list_with_lenient_params(self, service: CatalogService) -> None:
        """Garbage pagination input falls back to defaults."""
        data = service.list_categories({"page": "x", "limit": "-3", "sortOrder": "up"}).data
        assert data["page"] == 1
        assert data["limit"] == 20

    def test_list_filtered_by_parent(self, service: CatalogService) -> None:
        """Filters use wire names."""
        data = service.list_categories({"filters[parentId]": "1"}).data
        assert [c["name"] for c in data["items"]] == ["Smartphones", "Laptops"]

    def test_get_category_non_numeric_id(self, service: CatalogService) -> None:
        """Non-numeric ids are rejected before reaching the store."""
        with patch.object(service.store, "get_category") as get_category:
            envelope = service.get_category("abc")
        get_category.assert_not_called()
        assert envelope.status_code == 400
        assert envelope.error == "VALIDATION_ERROR"

    def test_get_category_not_found(self, service: CatalogService) -> None:
        """Unknown ids map to 404."""
        envelope = service.get_category("999")
        assert not envelope.success
        assert envelope.status_code == 404
        assert envelope.message == "Category with id 999 not found"

    def test_create_category(self, service: CatalogService) -> None:
        """Create returns 201 with the stored category."""
        envelope = service.create_category({"name": "Toys", "parentId": 3, "isActive": False})
        assert envelope.status_code == 201
        assert envelope.data["id"] == 10
        assert envelope.data["slug"] == "toys"
        assert envelope.data["path"] == "3/10"
        assert envelope.data["isActive"] is False

    def test_create_category_payload_errors(self, service: CatalogService) -> None:
        """Pydantic errors become validation envelopes with field details."""
        envelope = service.create_category({"parentId": "abc"})
        assert envelope.status_code == 400
        fields = {error["field"] for error in envelope.details["errors"]}
        assert fields == {"name", "parentId"}

    def test_create_category_rejects_non_object(self, service: CatalogService) -> None:
        """Bodies must be JSON objects."""
        assert service.create_category(["Toys"]).status_code == 400

    def test_update_rejects_id(self, service: CatalogService) -> None:
        """Immutable fields cannot be updated."""
        envelope = service.update_category("2", {"id": 20})
        assert envelope.status_code == 400

    def test_update_cycle_conflict(self, service: CatalogService) -> None:
        """Cyclic moves map to 409."""
        envelope = service.update_category("1", {"parentId": 8})
        assert envelope.status_code == 409
        assert envelope.error == "CONFLICT"

    def test_delete_with_children_conflicts(self, service: CatalogService) -> None:
        """Restricted deletes of parents map to 409."""
        assert service.delete_category("4").status_code == 409

    def test_delete_reassign(self, service: CatalogService) -> None:
        """Reassign deletes promote children to roots."""
        envelope = service.delete_category("4", "reassign")
        assert envelope.success
        assert envelope.data["reassignedIds"] == [8, 9]
        assert service.store.get_category(8).parent_id is None

    def test_delete_invalid_mode(self, service: CatalogService) -> None:
        """Unknown modes are validation errors."""
        assert service.delete_category("4", "obliterate").status_code == 400

    def test_bulk_delete_reports_failures(self, service: CatalogService) -> None:
        """Bulk delete succeeds as a whole and lists per-id failures."""
        envelope = service.bulk_delete_categories({"ids": [3, 1, 404]})
        assert envelope.status_code == 200
        assert envelope.data["succeeded"] == []
        failed = {f["id"]: f["error"] for f in envelope.data["failed"]}
        assert failed == {3: "CONFLICT", 1: "CONFLICT", 404: "NOT_FOUND"}
        assert envelope.message == "Deleted 0 of 3 categories"

    def test_reorder(self, service: CatalogService) -> None:
        """Reorder applies positions and returns no data."""
        envelope = service.reorder_categories(
            {"categoryOrders": [{"id": 5, "position": 0}, {"id": 4, "position": 1}]}
        )
        assert envelope.success
        assert envelope.data is None
        children = service.list_categories(
            {"filters[parentId]": "1", "sortBy": "position"}
        ).data["items"]
        assert [c["name"] for c in children] == ["Laptops", "Smartphones"]

    def test_reorder_unknown_id(self, service: CatalogService) -> None:
        """Unknown ids reject the reorder."""
        envelope = service.reorder_categories({"categoryOrders": [{"id": 404, "position": 0}]})
        assert envelope.status_code == 400

    def test_set_status(self, service: CatalogService) -> None:
        """Status updates read isActive."""
        envelope = service.set_category_status("2", {"isActive": False})
        assert envelope.data["isActive"] is False
        assert envelope.message == "Category deactivated"


class TestTreeAndSearch:
    """Tests for tree, search, stats and slug validation."""

    def test_tree(self, service: CatalogService) -> None:
        """The tree nests children under their parents."""
        forest = service.get_category_tree().data
        assert [node["category"]["name"] for node in forest] == [
            "Electronics",
            "Fashion",
            "Home & Garden",
        ]
        smartphones = forest[0]["children"][0]
        assert smartphones["depth"] == 1
        assert [n["category"]["slug"] for n in smartphones["children"]] == ["iphone", "android"]

    def test_tree_active_only(self, service: CatalogService) -> None:
        """Inactive branches are hidden with activeOnly."""
        service.set_category_status("4", {"isActive": False})
        forest = service.get_category_tree({"activeOnly": "true"}).data
        assert [n["category"]["name"] for n in forest[0]["children"]] == ["Laptops"]

    def test_strict_tree_integrity_maps_to_500(self, seeded_store: CatalogStore) -> None:
        """Cycles found by a strict builder are reported generically."""
        service = CatalogService(store=seeded_store, tree_builder=CategoryTreeBuilder(strict=True))
        broken = seeded_store.get_category(1).evolve(parent_id=8)
        seeded_store._categories.replace(broken)

        envelope = service.get_category_tree()
        assert envelope.status_code == 500
        assert envelope.error == "HIERARCHY_INTEGRITY_ERROR"
        assert envelope.message == "An internal error occurred"

    def test_category_with_products(self, service: CatalogService) -> None:
        """A category comes with a page of its own products."""
        data = service.get_category_with_products("8").data
        assert data["category"]["name"] == "iPhone"
        assert [p["name"] for p in data["products"]["items"]] == ["iPhone 15 Pro"]
        assert data["products"]["limit"] == 10

    def test_uncategorized_products(self, service: CatalogService) -> None:
        """Only products without a category are listed."""
        data = service.get_uncategorized_products().data
        assert [p["name"] for p in data["items"]] == ["Gift Card"]

    def test_search(self, service: CatalogService) -> None:
        """Quick search matches names, slugs and descriptions."""
        names = [c["name"] for c in service.search_categories({"q": "clothing"}).data]
        assert names == ["Fashion", "Men's Clothing", "Women's Clothing"]

    def test_search_limit(self, service: CatalogService) -> None:
        """Quick search honours the limit."""
        assert len(service.search_categories({"q": "smartphones", "limit": "1"}).data) == 1

    def test_search_blank(self, service: CatalogService) -> None:
        """A blank query returns nothing."""
        assert service.search_categories({"q": " "}).data == []

    def test_validate_slug(self, service: CatalogService) -> None:
        """Slug availability respects excludeId."""
        created = service.create_category({"name": "Shoes", "slug": "shoes"}).data

        taken = service.validate_slug({"slug": "shoes"}).data
        assert taken["available"] is False
        assert taken["message"] == 'Slug "shoes" is already in use by category "Shoes"'

        own = service.validate_slug({"slug": "shoes", "excludeId": str(created["id"])}).data
        assert own == {"available": True}

    def test_validate_slug_format(self, service: CatalogService) -> None:
        """Malformed slugs are reported unavailable."""
        assert service.validate_slug({"slug": "Not A Slug"}).data["available"] is False

    def test_validate_slug_requires_slug(self, service: CatalogService) -> None:
        """The slug parameter is required."""
        assert service.validate_slug({}).status_code == 400

    def test_stats(self, service: CatalogService) -> None:
        """Stats use camelCase keys."""
        stats = service.get_category_stats().data
        assert stats["totalCategories"] == 9
        assert stats["uncategorizedProducts"] == 1


class TestProductOperations:
    """Tests for product operations."""

    def test_search_wireless(self, service: CatalogService) -> None:
        """Product search finds the headphones only."""
        data = service.list_products({"search": "wireless"}).data
        assert data["total"] == 1
        assert data["items"][0]["name"] == "Premium Wireless Headphones"

    def test_default_page_size(self, service: CatalogService) -> None:
        """Products page by ten by default."""
        assert service.list_products().data["limit"] == 10

    def test_create_and_update(self, service: CatalogService) -> None:
        """Products can be created and patched."""
        created = service.create_product({"name": "Trail Runner", "price": 8999, "categoryId": 6})
        assert created.status_code == 201
        assert created.data["status"] == "draft"

        updated = service.update_product(str(created.data["id"]), {"status": "active"})
        assert updated.data["status"] == "active"
        assert updated.data["categoryId"] == 6

    def test_create_negative_price(self, service: CatalogService) -> None:
        """Negative prices are rejected."""
        envelope = service.create_product({"name": "Refund", "price": -100})
        assert envelope.status_code == 400
        assert envelope.to_dict()["details"]["field"] == "price"

    def test_delete(self, service: CatalogService) -> None:
        """Deleted products are gone."""
        assert service.delete_product("1").success
        assert service.get_product("1").status_code == 404

    def test_assign_products(self, service: CatalogService) -> None:
        """Assigning moves products into the category."""
        envelope = service.assign_products("3", {"productIds": [8]})
        assert envelope.data == {"categoryId": 3, "productIds": [8]}
        assert service.get_product("8").data["categoryId"] == 3


class TestUnexpectedErrors:
    """Tests for defect handling."""

    def test_unexpected_exception_is_generic(self, service: CatalogService) -> None:
        """Non-catalog exceptions become generic 500 envelopes."""
        with patch.object(service.store, "categories", side_effect=RuntimeError("boom")):
            envelope = service.list_categories()
        assert envelope.status_code == 500
        assert envelope.error == "INTERNAL_ERROR"
        assert envelope.message == "An internal error occurred"


class TestServiceFactory:
    """Tests for the service singleton."""

    def test_singleton(self) -> None:
        """The same service is returned until reset."""
        first = get_catalog_service()
        assert get_catalog_service() is first
        reset_catalog_service()
        assert get_catalog_service() is not first

    def test_seeding_follows_settings(self) -> None:
        """Demo data is only loaded when enabled."""
        assert len(create_catalog_service(Settings(seed_demo_data=True)).store.categories()) == 9
        assert create_catalog_service(Settings(seed_demo_data=False)).store.categories() == ()

    def test_strict_setting_configures_builder(self) -> None:
        """Tree strictness comes from settings."""
        service = CatalogService(settings=Settings(strict_tree_integrity=True))
        assert service.tree_builder.strict
        assert service.store.categories() == ()
