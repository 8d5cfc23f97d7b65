import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from inventory_feed.config import settings
from inventory_feed.errors import ItemNotFound, SourceUnavailable
from inventory_feed.logging_config import configure_logging
from inventory_feed.routers import inventory
from inventory_feed.services.inventory_service import InventoryService

logger = logging.getLogger(__name__)


def create_app(service: InventoryService | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging()
        app.state.inventory = service or InventoryService()
        logger.info("%s started", settings.app_name)

        yield

        await app.state.inventory.aclose()

    app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)

    @app.exception_handler(SourceUnavailable)
    async def source_unavailable(request: Request, exc: SourceUnavailable):
        what = "product" if "item_id" in request.path_params else "inventory"
        logger.error("Error fetching %s: %s", what, exc)
        return JSONResponse(
            {"error": f"Failed to fetch {what}", "message": str(exc)},
            status_code=500,
        )

    @app.exception_handler(ItemNotFound)
    async def item_not_found(request: Request, exc: ItemNotFound):
        return JSONResponse({"error": exc.message, "id": exc.item_id}, status_code=404)

    app.include_router(inventory.router)
    return app


app = create_app()
