import asyncio
import json
import logging

import anthropic

from inventory_feed.config import settings
from inventory_feed.schemas.catalog import NormalizedName
from inventory_feed.services.name_parser import parse_product_name

logger = logging.getLogger(__name__)

NORMALIZE_PROMPT = """You clean up point-of-sale listing names for a sneaker and streetwear shop.

Listing name: {name}

Return ONLY a JSON object with these fields (use null when unknown):
- "brand": manufacturer, e.g. "Nike", "Jordan", "Adidas", "New Balance"
- "model": model name without brand, colorway or size, e.g. "Air Force 1", "Dunk Low"
- "size": US size as written, e.g. "10", "10.5", "5.5Y"
- "variant": sizing line if present, one of "GS", "PS", "TD", "Women's", "Men's"
- "searchQuery": the best query for finding this exact product in a sneaker catalog

Example: {{"brand": "Nike", "model": "Air Force 1", "size": "10", "variant": null, "searchQuery": "Nike Air Force 1 Low White"}}"""

_PLACEHOLDERS = {"null", "none", "n/a", "unknown", ""}

_FIELDS = ("brand", "model", "size", "variant", "search_query")


def _squash(text: str) -> str:
    return " ".join(text.split())


def parse_ai_response(text: str) -> NormalizedName | None:
    """Parse the model's reply into a NormalizedName; None when it is not usable JSON."""
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[-1].rsplit("```", 1)[0].strip()

    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        start = text.find("{")
        end = text.rfind("}")
        if start == -1 or end <= start:
            return None
        try:
            data = json.loads(text[start:end + 1])
        except json.JSONDecodeError:
            return None

    if not isinstance(data, dict):
        return None

    values = {}
    for field in _FIELDS:
        value = data.get(field)
        if value is None and field == "search_query":
            value = data.get("searchQuery")
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        if isinstance(value, str):
            values[field] = value
    return NormalizedName(**values)


def merge_normalized(
    raw_name: str, suggested: NormalizedName | None, fallback: NormalizedName
) -> NormalizedName:
    """Per field: the AI value when it is real and not just the input echoed back, else the parse."""
    original = _squash(raw_name or "").casefold()
    merged = {}
    for field in _FIELDS:
        value = getattr(suggested, field) if suggested else None
        if value is not None:
            value = _squash(value)
            if value.casefold() in _PLACEHOLDERS or value.casefold() == original:
                value = None
        merged[field] = value or getattr(fallback, field)

    if not merged["search_query"]:
        merged["search_query"] = _squash(raw_name or "")
    return NormalizedName(**merged)


class NameNormalizer:
    """AI-assisted name normalization with the deterministic parser as a guaranteed fallback."""

    def __init__(
        self,
        client: anthropic.AsyncAnthropic | None = None,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
    ):
        self.timeout = settings.normalizer_timeout if timeout is None else timeout
        self.model = model or settings.normalizer_model
        key = settings.anthropic_api_key if api_key is None else api_key
        if client is None and key:
            client = anthropic.AsyncAnthropic(api_key=key, max_retries=0, timeout=self.timeout)
        self.client = client

    async def aclose(self) -> None:
        if self.client is not None:
            await self.client.close()

    async def normalize(self, raw_name: str) -> NormalizedName:
        fallback = parse_product_name(raw_name)
        suggested = await self._normalize_ai(raw_name)
        return merge_normalized(raw_name, suggested, fallback)

    async def _normalize_ai(self, raw_name: str) -> NormalizedName | None:
        if self.client is None or not (raw_name or "").strip():
            return None

        try:
            response = await asyncio.wait_for(
                self.client.messages.create(
                    model=self.model,
                    max_tokens=200,
                    messages=[{"role": "user", "content": NORMALIZE_PROMPT.format(name=raw_name)}],
                ),
                timeout=self.timeout,
            )
            return parse_ai_response(response.content[0].text)
        except TimeoutError:
            logger.debug("Name normalization timed out for %r", raw_name)
        except anthropic.APIStatusError as exc:
            # overloaded / unavailable models land here
            logger.debug("Name normalization returned %s for %r", exc.status_code, raw_name)
        except Exception:
            logger.debug("Name normalization failed for %r", raw_name, exc_info=True)
        return None
