"""
Shared fixtures for the inventory feed test suite.

Provides:
- A controllable clock for TTL/expiry tests
- In-process fakes for the catalog and image-search collaborators
- A factory that wires an InventoryService around a canned inventory
"""
from typing import Callable

import pytest

from inventory_feed.repositories.inventory_cache import EnrichmentCache, RawInventoryCache
from inventory_feed.schemas.catalog import CatalogCandidate
from inventory_feed.schemas.inventory import RawInventoryItem
from inventory_feed.services.enrichment import EnrichmentService
from inventory_feed.services.image_service import ImageResolver
from inventory_feed.services.inventory_service import InventoryService
from inventory_feed.services.name_normalizer import NameNormalizer
from inventory_feed.services.product_search import find_best_match
from inventory_feed.services.rate_limiter import TokenBucket


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSearch:
    """Catalog double: scores a fixed candidate list, can be told to fail for some queries."""

    def __init__(self, candidates: list[CatalogCandidate] | None = None, fail_on: tuple[str, ...] = ()):
        self.candidates = candidates or []
        self.fail_on = fail_on
        self.queries: list[str] = []

    async def match(self, query: str) -> CatalogCandidate | None:
        self.queries.append(query)
        if any(marker in query for marker in self.fail_on):
            raise RuntimeError(f"catalog unavailable for {query}")
        return find_best_match(query, self.candidates)


class FakeImageSearch:
    def __init__(self, urls: list[str] | None = None):
        self.urls = urls or []
        self.queries: list[str] = []

    async def search_images(self, query: str) -> list[str]:
        self.queries.append(query)
        return list(self.urls)


class FakeSource:
    def __init__(self, items: list[RawInventoryItem]):
        self.items = items
        self.calls = 0

    async def fetch_inventory(self) -> list[RawInventoryItem]:
        self.calls += 1
        return list(self.items)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

def make_raw(item_id: str, name: str, price: int | None = 10000, stock: int | None = 1) -> RawInventoryItem:
    return RawInventoryItem(id=item_id, name=name, price=price, stock_count=stock)


def make_candidate(name: str, brand: str = "Nike", model: str | None = None, **kwargs) -> CatalogCandidate:
    return CatalogCandidate(name=name, brand=brand, model=model, **kwargs)


def make_enricher(
    search: FakeSearch | None = None,
    images: FakeImageSearch | None = None,
    cache: EnrichmentCache | None = None,
    fallback_ttl: float = 60.0,
) -> EnrichmentService:
    return EnrichmentService(
        cache=cache if cache is not None else EnrichmentCache(max_entries=1000),
        normalizer=NameNormalizer(api_key=""),
        search=search or FakeSearch(),
        resolver=ImageResolver(search=images or FakeImageSearch()),
        limiter=TokenBucket(rate=1_000_000, capacity=1000),
        batch_size=10,
        fallback_ttl=fallback_ttl,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def five_items() -> list[RawInventoryItem]:
    return [
        make_raw("A1", "Nike Air Force 1 White sz 10", price=12000, stock=3),
        make_raw("A2", "Jordan 4 Retro Black Cat (10.5)", price=35000, stock=1),
        make_raw("A3", "Yeezy Boost 350 V2 Zebra GS 5.5Y", price=28000, stock=None),
        make_raw("A4", "New Balance 550 White Green Size 9", price=13000, stock=2),
        make_raw("A5", "Adidas Samba OG Black sz 11", price=11000, stock=5),
    ]


@pytest.fixture
def make_service() -> Callable[..., InventoryService]:
    def factory(
        items: list[RawInventoryItem],
        search: FakeSearch | None = None,
        images: FakeImageSearch | None = None,
        prefetch: bool = False,
    ) -> InventoryService:
        source = FakeSource(items)
        enricher = make_enricher(search=search, images=images)
        return InventoryService(
            raw_cache=RawInventoryCache(source.fetch_inventory, ttl=300),
            enricher=enricher,
            prefetch=prefetch,
        )

    return factory
