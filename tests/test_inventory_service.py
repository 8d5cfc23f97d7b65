"""
Tests for the paginated serving layer.
"""
import asyncio
from types import SimpleNamespace

import pytest

from inventory_feed.errors import ItemNotFound, ItemOutOfStock
from inventory_feed.schemas.inventory import EnrichedInventoryItem
from tests.conftest import FakeSearch, make_raw


class TestGetPage:

    def test_first_page_of_five(self, make_service, five_items):
        service = make_service(five_items)
        result = asyncio.run(service.get_page(page=1, page_size=2))

        assert [item.id for item in result.items] == ["A1", "A2"]
        assert result.total == 5
        assert result.total_pages == 3
        assert result.has_more is True
        assert result.page == 1
        assert result.page_size == 2

    def test_last_page(self, make_service, five_items):
        result = asyncio.run(make_service(five_items).get_page(page=3, page_size=2))
        assert [item.id for item in result.items] == ["A5"]
        assert result.has_more is False

    def test_past_the_end(self, make_service, five_items):
        result = asyncio.run(make_service(five_items).get_page(page=9, page_size=2))
        assert result.items == []
        assert result.total == 5

    def test_only_requested_slice_is_enriched(self, make_service, five_items):
        search = FakeSearch()
        service = make_service(five_items, search=search)
        asyncio.run(service.get_page(page=2, page_size=2))
        assert len(search.queries) == 2
        assert len(service.enrichment_cache) == 2

    def test_zero_price_item_never_served(self, make_service, five_items):
        items = five_items + [make_raw("FREE", "Nike Dunk Low sz 9", price=0, stock=4)]
        service = make_service(items)

        raw_ids = [item.id for item in asyncio.run(service.get_raw_inventory())]
        page = asyncio.run(service.get_page(page=1, page_size=100))

        assert "FREE" not in raw_ids
        assert "FREE" not in [item.id for item in page.items]
        assert page.total == 5

    def test_page_arguments_are_clamped(self, make_service, five_items):
        service = make_service(five_items)
        result = asyncio.run(service.get_page(page=0, page_size=10_000))
        assert result.page == 1
        assert result.page_size == service.max_page_size

    def test_zero_page_size_becomes_one(self, make_service, five_items):
        result = asyncio.run(make_service(five_items).get_page(page=1, page_size=0))
        assert result.page_size == 1
        assert [item.id for item in result.items] == ["A1"]
        assert result.total_pages == 5

    def test_brand_filter(self, make_service, five_items):
        service = make_service(five_items)
        result = asyncio.run(service.get_page(page=1, page_size=10, brand="jumpman"))
        assert [item.id for item in result.items] == ["A2"]
        assert result.total == 1

    def test_enriched_out_of_stock_items_are_dropped(self, make_service, five_items):
        service = make_service(five_items)
        stale = EnrichedInventoryItem(id="A1", name="x", original_name="x", stock_count=0)
        service.enrichment_cache.set("A1", stale)

        result = asyncio.run(service.get_page(page=1, page_size=2))

        assert [item.id for item in result.items] == ["A2"]
        assert result.total == 5


class TestPrefetch:

    def test_next_page_is_warmed_in_background(self, make_service, five_items):
        service = make_service(five_items, prefetch=True)

        async def scenario():
            await service.get_page(page=1, page_size=2)
            await service.wait_for_prefetch()

        asyncio.run(scenario())
        assert service.enrichment_cache.get("A3") is not None
        assert service.enrichment_cache.get("A4") is not None
        assert service.enrichment_cache.get("A5") is None

    def test_no_prefetch_on_last_page(self, make_service, five_items):
        service = make_service(five_items, prefetch=True)

        async def scenario():
            await service.get_page(page=3, page_size=2)
            return len(service._background)

        assert asyncio.run(scenario()) == 0


class TestMetadata:

    def test_facets_from_parser(self, make_service, five_items):
        search = FakeSearch()
        service = make_service(five_items, search=search)
        metadata = asyncio.run(service.get_metadata())

        assert metadata.total == 5
        assert metadata.brands == ["Adidas", "Jordan", "New Balance", "Nike"]
        assert metadata.sizes == ["5.5Y", "9", "10", "10.5", "11"]
        assert search.queries == []


class TestGetItem:

    def test_enriches_single_item(self, make_service, five_items):
        service = make_service(five_items)
        item = asyncio.run(service.get_item("A4"))
        assert item.brand == "New Balance"
        assert service.enrichment_cache.get("A4") == item

    def test_served_from_cache(self, make_service, five_items):
        search = FakeSearch()
        service = make_service(five_items, search=search)
        asyncio.run(service.get_item("A1"))
        asyncio.run(service.get_item("A1"))
        assert len(search.queries) == 1

    def test_unknown_id(self, make_service, five_items):
        with pytest.raises(ItemNotFound):
            asyncio.run(make_service(five_items).get_item("nope"))

    def test_out_of_stock(self, make_service, five_items):
        service = make_service(five_items)
        service.enrichment_cache.set("A1", EnrichedInventoryItem(id="A1", name="x", original_name="x", stock_count=0))
        with pytest.raises(ItemOutOfStock):
            asyncio.run(service.get_item("A1"))


class TestClearCaches:

    def test_clears_both(self, make_service, five_items):
        service = make_service(five_items)
        asyncio.run(service.get_page(page=1, page_size=2))
        service.clear_caches()
        assert len(service.enrichment_cache) == 0
        assert service.raw_cache._entry is None


class TestClose:

    def test_aclose_releases_ai_client(self, make_service, five_items):
        service = make_service(five_items)
        closed = []

        async def close():
            closed.append(True)

        service.enricher.normalizer.client = SimpleNamespace(close=close)
        asyncio.run(service.aclose())
        assert closed == [True]
