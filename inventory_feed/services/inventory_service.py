import asyncio
import logging
import math

from inventory_feed.config import settings
from inventory_feed.errors import ItemNotFound, ItemOutOfStock
from inventory_feed.repositories.inventory_cache import EnrichmentCache, RawInventoryCache
from inventory_feed.schemas.inventory import (
    EnrichedInventoryItem,
    InventoryMetadata,
    PageResult,
    RawInventoryItem,
)
from inventory_feed.services.clover_client import CloverClient
from inventory_feed.services.enrichment import EnrichmentService
from inventory_feed.services.name_parser import normalize_brand, parse_product_name

logger = logging.getLogger(__name__)


def _size_sort_key(size: str) -> tuple[int, float, str]:
    try:
        return (0, float(size.rstrip("YCWMycwm")), size)
    except ValueError:
        return (1, 0.0, size)


class InventoryService:
    """Serving facade: raw snapshot, lazily enriched pages, facets and single-item lookup.

    Owns both caches, so separate instances (e.g. one per test) never share state.
    """

    def __init__(
        self,
        source: CloverClient | None = None,
        raw_cache: RawInventoryCache | None = None,
        enrichment_cache: EnrichmentCache | None = None,
        enricher: EnrichmentService | None = None,
        prefetch: bool | None = None,
        max_page_size: int | None = None,
    ):
        self.source = source or CloverClient()
        self.raw_cache = raw_cache or RawInventoryCache(
            self.source.fetch_inventory, ttl=settings.raw_cache_ttl
        )
        self.enricher = enricher or EnrichmentService(
            enrichment_cache or EnrichmentCache(settings.enrichment_cache_size)
        )
        self.enrichment_cache = self.enricher.cache
        self.prefetch = settings.prefetch_next_page if prefetch is None else prefetch
        self.max_page_size = max_page_size or settings.max_page_size
        self._background: set[asyncio.Task] = set()

    async def get_raw_inventory(self) -> list[RawInventoryItem]:
        return await self.raw_cache.get()

    async def _filtered_raw(self, brand: str | None) -> list[RawInventoryItem]:
        items = await self.raw_cache.get()
        if not brand:
            return items
        wanted = normalize_brand(brand).casefold()
        return [
            item for item in items
            if normalize_brand(parse_product_name(item.name).brand or "").casefold() == wanted
        ]

    async def get_page(self, page: int = 1, page_size: int | None = None, brand: str | None = None) -> PageResult:
        page = max(1, page)
        if page_size is None:
            page_size = settings.default_page_size
        page_size = min(max(1, page_size), self.max_page_size)

        items = await self._filtered_raw(brand)
        total = len(items)
        total_pages = math.ceil(total / page_size)

        start = (page - 1) * page_size
        end = start + page_size
        enriched = await self.enricher.enrich_batch(items[start:end])

        # enrichment copies stock from the raw record, so this only drops stale edits
        in_stock = [item for item in enriched if item.in_stock]

        if self.prefetch and page < total_pages:
            self._prefetch(items[end:end + page_size])

        return PageResult(
            items=in_stock,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages,
            has_more=page < total_pages,
        )

    def _prefetch(self, items: list[RawInventoryItem]) -> None:
        if not items:
            return
        task = asyncio.create_task(self.enricher.enrich_batch(items))
        self._background.add(task)
        task.add_done_callback(self._prefetch_done)

    def _prefetch_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        if exc := task.exception():
            logger.warning("Background enrichment failed: %s", exc)

    async def wait_for_prefetch(self) -> None:
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    async def get_metadata(self) -> InventoryMetadata:
        """Brand and size facets from the deterministic parser only (no network calls)."""
        items = await self.raw_cache.get()
        brands = set()
        sizes = set()
        for item in items:
            parsed = parse_product_name(item.name)
            if parsed.brand:
                brands.add(parsed.brand)
            if parsed.size:
                sizes.add(parsed.size)

        return InventoryMetadata(
            total=len(items),
            brands=sorted(brands),
            sizes=sorted(sizes, key=_size_sort_key),
        )

    async def get_item(self, item_id: str) -> EnrichedInventoryItem:
        product = self.enrichment_cache.get(item_id)
        if product is None:
            items = await self.raw_cache.get()
            raw = next((item for item in items if item.id == item_id), None)
            if raw is None:
                raise ItemNotFound(item_id)
            product = await self.enricher.enrich_item(raw)

        if not product.in_stock:
            raise ItemOutOfStock(item_id)
        return product

    def clear_caches(self) -> None:
        self.raw_cache.clear()
        self.enrichment_cache.clear()
        logger.info("Inventory caches cleared")

    async def aclose(self) -> None:
        for task in list(self._background):
            task.cancel()
        await self.wait_for_prefetch()
        await self.enricher.normalizer.aclose()
