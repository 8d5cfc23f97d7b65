from typing import Any

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

CAMEL_CONFIG = {
    "alias_generator": to_camel,
    "populate_by_name": True,
}


class RawInventoryItem(BaseModel):
    id: str
    name: str = ""
    price: int | None = None  # minor currency units (cents)
    stock_count: int | None = None

    # source-specific fields (sku, code, hidden, ...) are kept as extras
    model_config = {**CAMEL_CONFIG, "extra": "allow", "frozen": True}

    @classmethod
    def from_source(cls, payload: dict[str, Any]) -> "RawInventoryItem":
        """Build from a point-of-sale record, reading stock from ``itemStock`` when needed."""
        data = dict(payload)
        data["id"] = str(data.get("id", ""))
        data["name"] = data.get("name") or ""
        if data.get("stockCount") is None and data.get("stock_count") is None:
            item_stock = data.get("itemStock")
            if isinstance(item_stock, dict) and item_stock.get("quantity") is not None:
                data["stockCount"] = int(item_stock["quantity"])
        return cls.model_validate(data)

    @property
    def in_stock(self) -> bool:
        return self.stock_count is None or self.stock_count > 0

    @property
    def sellable(self) -> bool:
        return self.price is not None and self.price > 0 and self.in_stock


class EnrichedInventoryItem(BaseModel):
    id: str
    name: str
    original_name: str
    brand: str = ""
    model: str = ""
    size: str | None = None
    variant: str | None = None
    price: int | None = None
    stock_count: int | None = None
    image_url: str | None = None
    images: list[str] | None = None
    colorway: str | None = None
    retail_price: float | None = None
    release_date: str | None = None
    matched: bool = False
    search_query: str = ""

    model_config = {**CAMEL_CONFIG, "frozen": True}

    @property
    def in_stock(self) -> bool:
        return self.stock_count is None or self.stock_count > 0


class PageResult(BaseModel):
    items: list[EnrichedInventoryItem] = Field(default_factory=list)
    total: int
    page: int
    page_size: int
    total_pages: int
    has_more: bool

    model_config = CAMEL_CONFIG


class InventoryMetadata(BaseModel):
    total: int
    brands: list[str] = Field(default_factory=list)
    sizes: list[str] = Field(default_factory=list)
