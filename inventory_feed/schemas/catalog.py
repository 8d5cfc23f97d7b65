from typing import Any

from pydantic import BaseModel, Field

from inventory_feed.schemas.inventory import CAMEL_CONFIG


class NormalizedName(BaseModel):
    brand: str | None = None
    model: str | None = None
    size: str | None = None
    variant: str | None = None
    search_query: str | None = None

    model_config = CAMEL_CONFIG


class CatalogCandidate(BaseModel):
    id: str | None = None
    name: str = ""
    brand: str | None = None
    model: str | None = None
    colorway: str | None = None
    retail_price: float | None = None
    release_date: str | None = None
    image_url: str | None = None
    images: list[str] = Field(default_factory=list)

    model_config = CAMEL_CONFIG

    @property
    def has_image(self) -> bool:
        return bool(self.image_url or self.images)

    @classmethod
    def from_payload(cls, item: dict[str, Any]) -> "CatalogCandidate":
        """Map a catalog search hit, tolerating the key spellings different catalogs use."""
        images = item.get("images") or item.get("gallery") or []
        if isinstance(images, dict):
            # {"original": ..., "small": ...} style image blocks
            images = [v for v in images.values() if isinstance(v, str)]
        images = [img for img in images if isinstance(img, str) and img]

        retail_price = item.get("retail_price", item.get("retailPrice"))
        try:
            retail_price = float(retail_price) if retail_price is not None else None
        except (ValueError, TypeError):
            retail_price = None

        image_url = item.get("image") or item.get("imageUrl") or item.get("thumbnail")
        if not isinstance(image_url, str):
            image_url = None

        raw_id = item.get("id") or item.get("styleID") or item.get("sku")
        return cls(
            id=str(raw_id) if raw_id is not None else None,
            name=item.get("title") or item.get("name") or item.get("shoeName") or "",
            brand=item.get("brand"),
            model=item.get("model") or item.get("silhouette"),
            colorway=item.get("colorway"),
            retail_price=retail_price,
            release_date=item.get("release_date") or item.get("releaseDate"),
            image_url=image_url,
            images=images,
        )


class ResolvedImages(BaseModel):
    image_url: str | None = None
    images: list[str] | None = None
