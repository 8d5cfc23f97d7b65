import logging

import httpx

from inventory_feed.config import settings
from inventory_feed.schemas.catalog import CatalogCandidate, ResolvedImages

logger = logging.getLogger(__name__)


class ImageSearchService:
    """Product photo lookup through the Unsplash search API."""

    def __init__(
        self,
        access_key: str | None = None,
        base_url: str | None = None,
        limit: int | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.access_key = settings.unsplash_access_key if access_key is None else access_key
        self.base_url = base_url or settings.unsplash_base_url
        self.limit = limit or settings.image_search_limit
        self.timeout = timeout or settings.image_search_timeout
        self.transport = transport

    async def search_images(self, query: str) -> list[str]:
        """Return up to ``limit`` image URLs. Never raises; failures mean no images."""
        if not self.access_key or not query.strip():
            return []

        params = {
            "query": f"{query} sneaker shoe",
            "per_page": self.limit,
            "orientation": "squarish",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.get(
                    f"{self.base_url}/search/photos",
                    params=params,
                    headers={"Authorization": f"Client-ID {self.access_key}"},
                )
                resp.raise_for_status()
                data = resp.json()
        except Exception:
            logger.exception("Image search failed for: %s", query)
            return []

        urls = []
        for result in data.get("results", []) if isinstance(data, dict) else []:
            links = result.get("urls") or {}
            url = links.get("regular") or links.get("small")
            if url:
                urls.append(url)

        return urls[:self.limit]


class ImageResolver:
    def __init__(self, search: ImageSearchService | None = None):
        self.search = search or ImageSearchService()

    async def resolve_images(
        self, search_query: str, candidate: CatalogCandidate | None
    ) -> ResolvedImages:
        """Catalog images when the match carries any, otherwise the first image-search hit."""
        if candidate is not None and candidate.has_image:
            image_url = candidate.image_url or candidate.images[0]
            return ResolvedImages(image_url=image_url, images=candidate.images or None)

        urls = await self.search.search_images(search_query)
        if not urls:
            return ResolvedImages()
        return ResolvedImages(image_url=urls[0], images=urls)
