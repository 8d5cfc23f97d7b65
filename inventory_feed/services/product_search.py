import logging

import httpx

from inventory_feed.config import settings
from inventory_feed.schemas.catalog import CatalogCandidate

logger = logging.getLogger(__name__)

NAME_WEIGHT = 2
BRAND_WEIGHT = 3
MODEL_WEIGHT = 3
IMAGE_BONUS = 5


def score_candidate(query: str, candidate: CatalogCandidate) -> int:
    name = (candidate.name or "").lower()
    brand = (candidate.brand or "").lower()
    model = (candidate.model or "").lower()

    score = 0
    for token in query.lower().split():
        if token in name:
            score += NAME_WEIGHT
        if token in brand:
            score += BRAND_WEIGHT
        if token in model:
            score += MODEL_WEIGHT

    if candidate.has_image:
        score += IMAGE_BONUS
    return score


def find_best_match(query: str, candidates: list[CatalogCandidate]) -> CatalogCandidate | None:
    """Highest-scoring candidate; on ties the earliest one in result order wins."""
    best = None
    best_score = None
    for candidate in candidates:
        score = score_candidate(query, candidate)
        if best_score is None or score > best_score:
            best, best_score = candidate, score
    return best


class ProductSearchService:
    """Search the sneaker catalog and pick the candidate that best fits a normalized query."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        limit: int | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.catalog_base_url
        self.api_key = settings.catalog_api_key if api_key is None else api_key
        self.limit = limit or settings.catalog_result_limit
        self.timeout = timeout or settings.catalog_timeout
        self.transport = transport

    async def search(self, query: str) -> list[CatalogCandidate]:
        """Raw catalog hits for a query. Transport and HTTP errors propagate to the caller."""
        if not query.strip():
            return []
        if not self.api_key:
            logger.debug("Catalog search disabled, no API key; skipping %r", query)
            return []

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            resp = await client.get(
                self.base_url,
                params={"query": query, "limit": self.limit},
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
            resp.raise_for_status()
            data = resp.json()

        if isinstance(data, dict):
            hits = data.get("data") or data.get("products") or data.get("results") or []
        else:
            hits = data

        candidates = [CatalogCandidate.from_payload(hit) for hit in hits if isinstance(hit, dict)]
        logger.debug("Catalog returned %d candidates for: %s", len(candidates), query)
        return candidates

    async def match(self, query: str) -> CatalogCandidate | None:
        candidates = await self.search(query)
        return find_best_match(query, candidates)
