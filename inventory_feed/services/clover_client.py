import asyncio
import json
import logging
from typing import Any

import httpx
from pydantic import ValidationError

from inventory_feed.config import settings
from inventory_feed.errors import SourceUnavailable
from inventory_feed.schemas.inventory import RawInventoryItem

logger = logging.getLogger(__name__)


class CloverClient:
    """Read-only client for the Clover POS item inventory."""

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        merchant_id: str | None = None,
        page_size: int | None = None,
        max_pages: int | None = None,
        page_delay: float | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.clover_api_base_url).rstrip("/")
        self.token = settings.clover_api_token if token is None else token
        self.merchant_id = settings.clover_merchant_id if merchant_id is None else merchant_id
        self.page_size = page_size or settings.clover_page_size
        self.max_pages = max_pages or settings.clover_max_pages
        self.page_delay = settings.clover_page_delay if page_delay is None else page_delay
        self.timeout = timeout or settings.clover_timeout
        self.transport = transport

    @property
    def items_url(self) -> str:
        return f"{self.base_url}/v3/merchants/{self.merchant_id}/items"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
        }

    async def fetch_inventory(self) -> list[RawInventoryItem]:
        """Fetch every item across all pages. Raises SourceUnavailable on failure."""
        if not self.token:
            raise SourceUnavailable("CLOVER_API_TOKEN is not set")
        if not self.merchant_id:
            raise SourceUnavailable("CLOVER_MERCHANT_ID is not set")

        async with httpx.AsyncClient(
            timeout=self.timeout, headers=self._headers(), transport=self.transport
        ) as client:
            await self._verify_connection(client)
            records = await self._fetch_all_pages(client)

        items = []
        for record in records:
            try:
                items.append(RawInventoryItem.from_source(record))
            except (ValidationError, TypeError, ValueError):
                logger.warning("Skipping malformed inventory record: %s", record.get("id"))

        logger.info("Fetched %d items from Clover", len(items))
        return items

    async def _verify_connection(self, client: httpx.AsyncClient) -> None:
        try:
            resp = await client.get(f"{self.base_url}/v3/merchants/{self.merchant_id}")
        except httpx.HTTPError as exc:
            raise SourceUnavailable(f"Clover API unreachable: {exc}") from exc

        if resp.status_code != 200:
            hint = " (check the API token, merchant id and sandbox/production environment)" if resp.status_code == 401 else ""
            raise SourceUnavailable(
                f"Clover API authentication failed: {resp.status_code} {resp.text[:200]}{hint}"
            )

    async def _fetch_all_pages(self, client: httpx.AsyncClient) -> list[dict[str, Any]]:
        records: list[dict[str, Any]] = []
        url = self.items_url
        params: dict[str, Any] = {"limit": self.page_size, "offset": 0}
        use_limit = True
        pages = 0

        while pages < self.max_pages:
            try:
                elements, next_url = await self._fetch_page(client, url, params)
            except (httpx.HTTPError, SourceUnavailable) as exc:
                # some merchants reject the limit parameter; retry the first page once without it
                if pages == 0 and use_limit:
                    logger.warning("Initial Clover request with limit failed (%s), retrying without limit", exc)
                    use_limit = False
                    params = {}
                    continue
                if isinstance(exc, SourceUnavailable):
                    raise
                raise SourceUnavailable(f"Clover API request failed: {exc}") from exc

            records.extend(elements)
            pages += 1

            if use_limit:
                if len(elements) < self.page_size:
                    break
                params = {**params, "offset": params["offset"] + self.page_size}
            else:
                if not next_url or next_url == url:
                    break
                url, params = next_url, {}

            if self.page_delay:
                await asyncio.sleep(self.page_delay)
        else:
            logger.warning("Reached maximum Clover page limit (%d); some items may be missing", self.max_pages)

        logger.debug("Fetched %d Clover records across %d page(s)", len(records), pages)
        return records

    async def _fetch_page(
        self, client: httpx.AsyncClient, url: str, params: dict[str, Any]
    ) -> tuple[list[dict[str, Any]], str | None]:
        resp = await client.get(url, params=params)
        if resp.status_code != 200:
            raise SourceUnavailable(f"Clover API error: {resp.status_code} {resp.text[:200]}")

        if not resp.text.strip():
            logger.warning("Empty response from Clover API, treating as an empty page")
            return [], None

        try:
            data = resp.json()
        except json.JSONDecodeError as exc:
            raise SourceUnavailable(f"Invalid JSON response from Clover API: {exc}") from exc

        if isinstance(data, list):
            return [e for e in data if isinstance(e, dict)], None
        if isinstance(data, dict) and isinstance(data.get("elements"), list):
            next_url = data.get("href") if isinstance(data.get("href"), str) else None
            return [e for e in data["elements"] if isinstance(e, dict)], next_url
        return [], None
