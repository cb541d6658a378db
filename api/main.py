"""
FastAPI application serving the map version pages and JSON API.

Only reads happen on the request path. Stores are handed to the app
explicitly through ``create_app``; when none are given they are built from
configuration during startup.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import HTMLResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import CurrentVersionResponse, ErrorResponse, VersionHistoryResponse
from api.pages import render_api_index, render_home_page
from crawler.database import MapVersionStores, MongoKVManager
from utilities.config import MapVersionConfig, load_config
from utilities.exceptions import StoreError

logger = structlog.get_logger(__name__)

NO_CACHE = {"Cache-Control": "no-cache"}
READ_METHODS = ["GET", "HEAD"]


def get_stores(request: Request) -> MapVersionStores:
    """Dependency returning the stores bound to this application."""
    return request.app.state.stores


def create_app(
    stores: Optional[MapVersionStores] = None,
    config: Optional[MapVersionConfig] = None
) -> FastAPI:
    """
    Build the API application.

    Args:
        stores: Pre-built stores; skips the MongoDB connection when given
        config: Configuration used to connect when ``stores`` is None
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if stores is not None:
            yield
            return

        settings = config or load_config()
        db_manager = MongoKVManager(settings.mongodb_url, settings.mongodb_database)
        await db_manager.connect()
        app.state.stores = MapVersionStores.from_manager(
            db_manager,
            versions_collection=settings.versions_collection,
            changes_collection=settings.changes_collection
        )
        logger.info("Map version API started", database=settings.mongodb_database)
        try:
            yield
        finally:
            await db_manager.disconnect()
            logger.info("Map version API stopped")

    app = FastAPI(
        title="TomTom Map Version API",
        version="1.0.0",
        redirect_slashes=False,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan
    )
    if stores is not None:
        app.state.stores = stores

    @app.middleware("http")
    async def no_cache_middleware(request: Request, call_next):
        response = await call_next(request)
        response.headers.update(NO_CACHE)
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        # Unsupported methods on known paths answer like unknown paths.
        if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
            return JSONResponse(
                status_code=status.HTTP_404_NOT_FOUND,
                content=ErrorResponse(error="Not found").model_dump(exclude_none=True)
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(error=str(exc.detail)).model_dump(exclude_none=True),
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        logger.error("Store read failed", error=str(exc), path=request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error="Internal server error").model_dump(exclude_none=True)
        )

    @app.api_route("/", methods=READ_METHODS, response_class=HTMLResponse, include_in_schema=False)
    async def home_page(stores: MapVersionStores = Depends(get_stores)):
        latest = await stores.versions.get_latest_version()
        last_change = await stores.changes.get_latest_change()
        change_date, change = last_change if last_change else (None, None)
        return HTMLResponse(render_home_page(latest, change, change_date))

    @app.api_route("/v1", methods=READ_METHODS, response_class=HTMLResponse, include_in_schema=False)
    async def api_index():
        return HTMLResponse(render_api_index())

    @app.api_route("/v1/current", methods=READ_METHODS, response_model=CurrentVersionResponse)
    async def current_version(stores: MapVersionStores = Depends(get_stores)):
        """Latest known map version and the date it was checked."""
        latest = await stores.versions.get_latest_version()
        return CurrentVersionResponse(
            current_map_version=latest.version if latest else None,
            last_checked=latest.date if latest else None
        )

    @app.api_route("/v1/history", methods=READ_METHODS, response_model=VersionHistoryResponse)
    async def version_history(stores: MapVersionStores = Depends(get_stores)):
        """All recorded version changes, oldest first."""
        return VersionHistoryResponse(version_history=await stores.changes.list_history())

    return app


app = create_app()
