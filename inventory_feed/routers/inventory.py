from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from inventory_feed.schemas.inventory import EnrichedInventoryItem, RawInventoryItem
from inventory_feed.services.inventory_service import InventoryService

router = APIRouter(prefix="/api/inventory")


def get_inventory_service(request: Request) -> InventoryService:
    return request.app.state.inventory


def _json(model: BaseModel) -> JSONResponse:
    return JSONResponse(model.model_dump(mode="json", by_alias=True, exclude_none=True))


@router.get("")
async def list_inventory(
    page: int = 1,
    page_size: int | None = Query(default=None, alias="pageSize"),
    all_items: bool = Query(default=False, alias="all"),
    brand: str | None = None,
    service: InventoryService = Depends(get_inventory_service),
):
    """One lazily enriched page, or the brand/size facets when ``all=true``."""
    if all_items:
        return _json(await service.get_metadata())
    return _json(await service.get_page(page, page_size, brand=brand))


@router.get("/raw", response_model=list[RawInventoryItem], response_model_exclude_none=True)
async def raw_inventory(service: InventoryService = Depends(get_inventory_service)):
    return await service.get_raw_inventory()


@router.delete("/cache")
async def clear_cache(service: InventoryService = Depends(get_inventory_service)):
    service.clear_caches()
    return {"cleared": True}


@router.get("/{item_id}", response_model=EnrichedInventoryItem, response_model_exclude_none=True)
async def inventory_item(item_id: str, service: InventoryService = Depends(get_inventory_service)):
    return await service.get_item(item_id)
