import asyncio
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, TypeVar

from inventory_feed.schemas.inventory import EnrichedInventoryItem, RawInventoryItem

logger = logging.getLogger(__name__)

Clock = Callable[[], float]

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    data: T
    timestamp: float
    expires_at: float | None = None


def is_fresh(entry: CacheEntry | None, now: float, ttl: float | None = None) -> bool:
    """An entry is valid while ``now - timestamp < ttl`` and before its own expiry."""
    if entry is None:
        return False
    if ttl is not None and now - entry.timestamp >= ttl:
        return False
    if entry.expires_at is not None and now >= entry.expires_at:
        return False
    return True


def filter_sellable(items: list[RawInventoryItem]) -> list[RawInventoryItem]:
    """Keep items with a positive price whose stock count is unknown or positive."""
    return [item for item in items if item.sellable]


class RawInventoryCache:
    """Single TTL-bound snapshot of the filtered point-of-sale inventory."""

    def __init__(
        self,
        fetcher: Callable[[], Awaitable[list[RawInventoryItem]]],
        ttl: float,
        clock: Clock = time.monotonic,
    ):
        self.fetcher = fetcher
        self.ttl = ttl
        self._clock = clock
        self._entry: CacheEntry[tuple[RawInventoryItem, ...]] | None = None
        self._lock = asyncio.Lock()

    async def get(self) -> list[RawInventoryItem]:
        entry = self._entry
        if is_fresh(entry, self._clock(), self.ttl):
            return list(entry.data)

        async with self._lock:
            # another caller may have refilled while we waited
            entry = self._entry
            if is_fresh(entry, self._clock(), self.ttl):
                return list(entry.data)

            fetched = await self.fetcher()
            kept = filter_sellable(fetched)
            logger.info("Cached %d of %d inventory items", len(kept), len(fetched))
            self._entry = CacheEntry(data=tuple(kept), timestamp=self._clock())
            return list(kept)

    def clear(self) -> None:
        self._entry = None


class EnrichmentCache:
    """Per-item enrichment memo, LRU-bounded, with optional per-entry expiry."""

    def __init__(self, max_entries: int, clock: Clock = time.monotonic):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry[EnrichedInventoryItem]] = OrderedDict()

    def get(self, item_id: str) -> EnrichedInventoryItem | None:
        entry = self._entries.get(item_id)
        if entry is None:
            return None
        if not is_fresh(entry, self._clock()):
            del self._entries[item_id]
            return None
        self._entries.move_to_end(item_id)
        return entry.data

    def set(self, item_id: str, item: EnrichedInventoryItem, ttl: float | None = None) -> None:
        now = self._clock()
        expires_at = now + ttl if ttl is not None else None
        self._entries[item_id] = CacheEntry(data=item, timestamp=now, expires_at=expires_at)
        self._entries.move_to_end(item_id)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Evicted enrichment for %s", evicted)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, item_id: str) -> bool:
        return self.get(item_id) is not None

    def __len__(self) -> int:
        return len(self._entries)
