"""Tests for the query engine."""

import pytest

from storefront.catalog.query import (
    CATEGORY_FIELDS,
    PRODUCT_FIELDS,
    UNMATCHABLE,
    FilterField,
    Page,
    QueryEngine,
    QueryFields,
    coerce_filter_value,
)
from storefront.domain import CatalogQuery, Category, Product, ProductStatus, SortOrder


@pytest.fixture
def engine() -> QueryEngine:
    """Create query engine."""
    return QueryEngine()


@pytest.fixture
def products() -> list[Product]:
    """Fixed four-product fixture."""
    return [
        Product(
            id=1,
            name="Premium Wireless Headphones",
            slug="premium-wireless-headphones",
            description="Noise cancelling over-ear headphones",
            price=19999,
            category_id=1,
            status=ProductStatus.ACTIVE,
            featured=True,
        ),
        Product(
            id=2,
            name="USB-C Charging Cable",
            slug="usb-c-charging-cable",
            description="Braided two metre cable",
            price=1499,
            category_id=1,
            status=ProductStatus.ACTIVE,
        ),
        Product(
            id=3,
            name="Leather Wallet",
            slug="leather-wallet",
            description="Slim bifold wallet",
            price=4999,
            category_id=2,
            status=ProductStatus.DRAFT,
        ),
        Product(
            id=4,
            name="Desk Lamp",
            slug="desk-lamp",
            description=None,
            price=2999,
            category_id=None,
            status=ProductStatus.ARCHIVED,
        ),
    ]


@pytest.fixture
def categories() -> list[Category]:
    """Categories with repeated positions for sort stability checks."""
    return [
        Category(id=1, name="Electronics", slug="electronics", position=1),
        Category(id=2, name="fashion", slug="fashion", position=0),
        Category(id=3, name="Books", slug="books", position=1, is_active=False),
        Category(id=4, name="Garden", slug="garden", position=0, parent_id=1, level=1),
        Category(id=5, name="Audio", slug="audio", position=1, parent_id=1, level=1),
    ]


class TestSearch:
    """Tests for text search."""

    def test_search_wireless(self, engine: QueryEngine, products: list[Product]) -> None:
        """Searching "wireless" finds exactly the headphones."""
        page = engine.query(products, CatalogQuery(search="wireless"), PRODUCT_FIELDS)
        assert page.total == 1
        assert [p.name for p in page.items] == ["Premium Wireless Headphones"]

    def test_search_is_case_insensitive(self, engine: QueryEngine, products: list[Product]) -> None:
        """Search ignores case."""
        page = engine.query(products, CatalogQuery(search="WALLET"), PRODUCT_FIELDS)
        assert [p.id for p in page.items] == [3]

    def test_search_matches_description(self, engine: QueryEngine, products: list[Product]) -> None:
        """Descriptions are searched too."""
        page = engine.query(products, CatalogQuery(search="braided"), PRODUCT_FIELDS)
        assert [p.id for p in page.items] == [2]

    def test_empty_search_matches_everything(
        self, engine: QueryEngine, products: list[Product]
    ) -> None:
        """An absent search keeps every item."""
        page = engine.query(products, CatalogQuery(search=None), PRODUCT_FIELDS)
        assert page.total == 4


class TestFilters:
    """Tests for filtering."""

    def test_boolean_filter(self, engine: QueryEngine, categories: list[Category]) -> None:
        """Boolean filter values are coerced from strings."""
        query = CatalogQuery(filters={"isActive": "false"})
        page = engine.query(categories, query, CATEGORY_FIELDS)
        assert [c.id for c in page.items] == [3]

    def test_null_filter(self, engine: QueryEngine, categories: list[Category]) -> None:
        """"null" selects roots."""
        query = CatalogQuery(filters={"parentId": "null"})
        page = engine.query(categories, query, CATEGORY_FIELDS)
        assert [c.id for c in page.items] == [1, 2, 3]

    def test_filters_are_anded(self, engine: QueryEngine, products: list[Product]) -> None:
        """Every filter must match."""
        query = CatalogQuery(filters={"categoryId": "1", "featured": "true"})
        page = engine.query(products, query, PRODUCT_FIELDS)
        assert [p.id for p in page.items] == [1]

    def test_filters_commute(self, engine: QueryEngine, products: list[Product]) -> None:
        """Filter order does not change the result."""
        a = engine.query(
            products, CatalogQuery(filters={"status": "active", "categoryId": "1"}), PRODUCT_FIELDS
        )
        b = engine.query(
            products, CatalogQuery(filters={"categoryId": "1", "status": "active"}), PRODUCT_FIELDS
        )
        assert [p.id for p in a.items] == [p.id for p in b.items] == [1, 2]

    def test_unknown_filter_ignored(self, engine: QueryEngine, products: list[Product]) -> None:
        """Unknown filter keys are not an error."""
        query = CatalogQuery(filters={"colour": "red"})
        assert engine.query(products, query, PRODUCT_FIELDS).total == 4

    def test_uncoercible_filter_matches_nothing(
        self, engine: QueryEngine, products: list[Product]
    ) -> None:
        """A value that cannot be coerced matches no item."""
        query = CatalogQuery(filters={"categoryId": "abc"})
        assert engine.query(products, query, PRODUCT_FIELDS).total == 0

    def test_where_scopes_collection(self, engine: QueryEngine, products: list[Product]) -> None:
        """The where predicate narrows the collection before the query."""
        page = engine.query(
            products, CatalogQuery(), PRODUCT_FIELDS, where=lambda p: p.category_id is None
        )
        assert [p.id for p in page.items] == [4]

    @pytest.mark.parametrize(
        "raw, spec, expected",
        [
            ("true", FilterField("x", bool), True),
            ("0", FilterField("x", bool), False),
            ("maybe", FilterField("x", bool), UNMATCHABLE),
            ("12", FilterField("x", int), 12),
            (True, FilterField("x", int), UNMATCHABLE),
            ("null", FilterField("x", int, nullable=True), None),
            ("null", FilterField("x", int), UNMATCHABLE),
            (7, FilterField("x", str), "7"),
        ],
    )
    def test_coerce_filter_value(self, raw: object, spec: FilterField, expected: object) -> None:
        """Raw values are coerced to the field kind."""
        assert coerce_filter_value(raw, spec) == expected


class TestSort:
    """Tests for sorting."""

    def test_sort_by_name_case_insensitive(
        self, engine: QueryEngine, categories: list[Category]
    ) -> None:
        """Strings compare without regard to case."""
        page = engine.query(categories, CatalogQuery(sort_by="name"), CATEGORY_FIELDS)
        assert [c.name for c in page.items] == ["Audio", "Books", "Electronics", "fashion", "Garden"]

    def test_sort_is_stable_ascending(
        self, engine: QueryEngine, categories: list[Category]
    ) -> None:
        """Equal keys keep their input order."""
        page = engine.query(categories, CatalogQuery(sort_by="position"), CATEGORY_FIELDS)
        assert [c.id for c in page.items] == [2, 4, 1, 3, 5]

    def test_sort_is_stable_descending(
        self, engine: QueryEngine, categories: list[Category]
    ) -> None:
        """Equal keys keep their input order when sorting descending."""
        query = CatalogQuery(sort_by="position", sort_order=SortOrder.DESC)
        page = engine.query(categories, query, CATEGORY_FIELDS)
        assert [c.id for c in page.items] == [1, 3, 5, 2, 4]

    def test_unknown_sort_keeps_input_order(
        self, engine: QueryEngine, categories: list[Category]
    ) -> None:
        """An unknown sort field falls back to insertion order."""
        page = engine.query(categories, CatalogQuery(sort_by="colour"), CATEGORY_FIELDS)
        assert [c.id for c in page.items] == [1, 2, 3, 4, 5]

    def test_none_sorts_last(self, engine: QueryEngine) -> None:
        """Items without a value go last in both directions."""
        items = [
            Product(id=1, name="A", category_id=None),
            Product(id=2, name="B", category_id=5),
            Product(id=3, name="C", category_id=2),
        ]
        fields = QueryFields(searchable=("name",), sortable={"categoryId": "category_id"})
        asc = engine.query(items, CatalogQuery(sort_by="categoryId"), fields)
        desc = engine.query(
            items, CatalogQuery(sort_by="categoryId", sort_order=SortOrder.DESC), fields
        )
        assert [p.id for p in asc.items] == [3, 2, 1]
        assert [p.id for p in desc.items] == [2, 3, 1]

    def test_sort_by_price_desc(self, engine: QueryEngine, products: list[Product]) -> None:
        """Numeric fields sort numerically."""
        query = CatalogQuery(sort_by="price", sort_order=SortOrder.DESC)
        page = engine.query(products, query, PRODUCT_FIELDS)
        assert [p.price for p in page.items] == [19999, 4999, 2999, 1499]


class TestPagination:
    """Tests for pagination."""

    @pytest.mark.parametrize("limit", [1, 2, 3, 4, 5, 10])
    @pytest.mark.parametrize("page_number", [1, 2, 3, 4, 5, 6])
    def test_page_size(
        self,
        engine: QueryEngine,
        products: list[Product],
        page_number: int,
        limit: int,
    ) -> None:
        """Each page holds min(limit, remaining) items."""
        page = engine.query(products, CatalogQuery(page=page_number, limit=limit), PRODUCT_FIELDS)
        expected = max(0, min(limit, page.total - (page_number - 1) * limit))
        assert len(page.items) <= limit
        assert len(page.items) == expected
        assert page.total == 4

    def test_pages_partition_results(self, engine: QueryEngine, products: list[Product]) -> None:
        """Walking all pages yields every item exactly once."""
        seen = []
        for number in range(1, 3):
            page = engine.query(products, CatalogQuery(page=number, limit=3), PRODUCT_FIELDS)
            seen.extend(p.id for p in page.items)
        assert seen == [1, 2, 3, 4]

    def test_total_counted_before_pagination(
        self, engine: QueryEngine, products: list[Product]
    ) -> None:
        """Total reflects the filtered set, not the page."""
        query = CatalogQuery(limit=1, filters={"status": "active"})
        page = engine.query(products, query, PRODUCT_FIELDS)
        assert page.total == 2
        assert len(page.items) == 1

    def test_page_metadata(self) -> None:
        """Derived page counts and navigation flags."""
        page = Page(items=[], total=45, page=2, limit=20)
        assert page.total_pages == 3
        assert page.has_next
        assert page.has_prev

        last = Page(items=[], total=45, page=3, limit=20)
        assert not last.has_next

    def test_query_does_not_mutate_input(
        self, engine: QueryEngine, products: list[Product]
    ) -> None:
        """The source collection is left untouched."""
        before = list(products)
        engine.query(products, CatalogQuery(sort_by="price", limit=1), PRODUCT_FIELDS)
        assert products == before
        assert [p.id for p in products] == [1, 2, 3, 4]
