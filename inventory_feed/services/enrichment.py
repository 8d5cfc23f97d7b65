import asyncio
import logging

from inventory_feed.config import settings
from inventory_feed.repositories.inventory_cache import EnrichmentCache
from inventory_feed.schemas.catalog import CatalogCandidate, NormalizedName, ResolvedImages
from inventory_feed.schemas.inventory import EnrichedInventoryItem, RawInventoryItem
from inventory_feed.services.image_service import ImageResolver
from inventory_feed.services.name_normalizer import NameNormalizer
from inventory_feed.services.name_parser import parse_product_name
from inventory_feed.services.product_search import ProductSearchService
from inventory_feed.services.rate_limiter import TokenBucket

logger = logging.getLogger(__name__)


def build_fallback_item(item: RawInventoryItem) -> EnrichedInventoryItem:
    """Degraded result from the deterministic parse alone: unmatched, no images."""
    parsed = parse_product_name(item.name)
    return EnrichedInventoryItem(
        id=item.id,
        name=item.name,
        original_name=item.name,
        brand=parsed.brand or "",
        model=parsed.model or "",
        size=parsed.size,
        variant=parsed.variant,
        price=item.price,
        stock_count=item.stock_count,
        matched=False,
        search_query=parsed.search_query or item.name.strip(),
    )


def build_enriched_item(
    item: RawInventoryItem,
    normalized: NormalizedName,
    candidate: CatalogCandidate | None,
    images: ResolvedImages,
) -> EnrichedInventoryItem:
    # matched means a catalog entry was selected; a stock photo alone does not count
    if candidate is None:
        return EnrichedInventoryItem(
            id=item.id,
            name=item.name,
            original_name=item.name,
            brand=normalized.brand or "",
            model=normalized.model or "",
            size=normalized.size,
            variant=normalized.variant,
            price=item.price,
            stock_count=item.stock_count,
            image_url=images.image_url,
            images=images.images,
            matched=False,
            search_query=normalized.search_query or "",
        )

    return EnrichedInventoryItem(
        id=item.id,
        name=candidate.name or normalized.model or item.name,
        original_name=item.name,
        brand=normalized.brand or candidate.brand or "",
        model=normalized.model or candidate.model or "",
        size=normalized.size,
        variant=normalized.variant,
        price=item.price,
        stock_count=item.stock_count,
        image_url=images.image_url,
        images=images.images,
        colorway=candidate.colorway,
        retail_price=candidate.retail_price,
        release_date=candidate.release_date,
        matched=True,
        search_query=normalized.search_query or "",
    )


class EnrichmentService:
    """Runs normalize -> match -> resolve images per item, batched, rate limited and memoized."""

    def __init__(
        self,
        cache: EnrichmentCache,
        normalizer: NameNormalizer | None = None,
        search: ProductSearchService | None = None,
        resolver: ImageResolver | None = None,
        limiter: TokenBucket | None = None,
        batch_size: int | None = None,
        fallback_ttl: float | None = None,
    ):
        self.cache = cache
        self.normalizer = normalizer or NameNormalizer()
        self.search = search or ProductSearchService()
        self.resolver = resolver or ImageResolver()
        self.batch_size = batch_size or settings.batch_size
        self.limiter = limiter or TokenBucket(
            rate=settings.enrichment_rate_per_second, capacity=self.batch_size
        )
        self.fallback_ttl = settings.fallback_cache_ttl if fallback_ttl is None else fallback_ttl

    async def enrich_item(self, item: RawInventoryItem) -> EnrichedInventoryItem:
        results = await self.enrich_batch([item])
        return results[0]

    async def enrich_batch(self, items: list[RawInventoryItem]) -> list[EnrichedInventoryItem]:
        """Enrich items in input order. Never raises for a single item's failure."""
        results: list[EnrichedInventoryItem | None] = [self.cache.get(item.id) for item in items]
        pending = [(idx, item) for idx, item in enumerate(items) if results[idx] is None]
        if not pending:
            return results

        logger.debug("Enriching %d of %d items (%d cached)", len(pending), len(items), len(items) - len(pending))

        for start in range(0, len(pending), self.batch_size):
            batch = pending[start:start + self.batch_size]
            enriched = await asyncio.gather(*(self._enrich_isolated(item) for _, item in batch))
            for (idx, _), value in zip(batch, enriched):
                results[idx] = value

        return results

    async def _enrich_isolated(self, item: RawInventoryItem) -> EnrichedInventoryItem:
        await self.limiter.acquire()
        try:
            enriched = await self._enrich(item)
        except Exception:
            logger.exception("Enrichment failed for item %s (%r); using fallback", item.id, item.name)
            fallback = build_fallback_item(item)
            # fallbacks expire so a transient upstream failure gets retried
            self.cache.set(item.id, fallback, ttl=self.fallback_ttl)
            return fallback

        self.cache.set(item.id, enriched)
        return enriched

    async def _enrich(self, item: RawInventoryItem) -> EnrichedInventoryItem:
        normalized = await self.normalizer.normalize(item.name)
        query = normalized.search_query or item.name
        candidate = await self.search.match(query)
        images = await self.resolver.resolve_images(query, candidate)
        return build_enriched_item(item, normalized, candidate, images)
