"""SOR — FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from sor import __version__
from sor.api.catalog import router as catalog_router
from sor.api.databases import router as databases_router
from sor.api.studio import router as studio_router
from sor.config import AppConfig
from sor.db.directory import init_directory
from sor.middleware import ApiKeyMiddleware, ErrorMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup/shutdown lifecycle."""
    logger.info("Serving databases from %s", app.state.config.storage.data_dir)
    yield
    app.state.directory.close_all()
    logger.info("Application shutdown complete")


def _init_sentry(dsn: str, environment: str) -> None:
    """Initialize Sentry SDK if a DSN is configured and not in development."""
    if not dsn or environment == "development":
        return
    sentry_sdk.init(
        dsn,
        environment=environment,
        send_default_pii=False,
        traces_sample_rate=0,
        send_client_reports=False,
        auto_session_tracking=False,
    )


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Unknown paths and unsupported methods look the same to clients
    if exc.status_code in (404, 405):
        return JSONResponse({"error": "Not found"}, status_code=404)
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code)


def create_app(config: AppConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    if config is None:
        config = AppConfig.from_yaml()

    _init_sentry(config.sentry_dsn, config.environment)

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, config.server.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not config.server.api_key:
        logger.warning("No API key configured (SOR_SERVER_API_KEY); all API requests will be rejected")

    app = FastAPI(
        title="SOR",
        version=__version__,
        description="SQLite databases over REST",
        lifespan=lifespan,
        debug=config.environment == "development",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    app.state.config = config
    app.state.directory = init_directory(config.storage)

    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_middleware(ErrorMiddleware)
    app.add_middleware(ApiKeyMiddleware, api_key=config.server.api_key)

    # Register routes
    app.include_router(catalog_router)
    app.include_router(databases_router)
    app.include_router(studio_router)

    return app


def cli_entry() -> None:
    """CLI entry point for running the server."""
    import uvicorn

    config = AppConfig.from_yaml()
    app = create_app(config)

    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level=config.server.log_level,
    )
