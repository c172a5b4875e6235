import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles

from .api import photos, websockets
from .api.errors import register_error_handlers
from .config import Settings
from .dependencies import (
    get_change_aggregator,
    get_event_bus,
    get_photo_storage,
    get_presentation_event_handlers,
    get_settings,
    get_storage_watcher,
    get_subscription_broadcaster,
    override_settings,
)
from .domains.sync.registration import register_sync_handlers
from .logging_config import log_startup_banner, setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    settings = get_settings()
    setup_logging(settings)
    log_startup_banner(settings)

    config_info = settings.config_file_info
    logging.info(f"Running on hostname: {config_info['hostname']}")
    if config_info["active_config_files"]:
        logging.info(f"Configuration loaded from: {', '.join(config_info['active_config_files'])}")

    storage = get_photo_storage()
    await storage.ensure_root()
    logging.info(f"Photos directory: {storage.root}")

    aggregator = get_change_aggregator()
    await register_sync_handlers(
        get_event_bus(), aggregator, get_presentation_event_handlers()
    )

    # Baseline before the seed build: a file landing in between is then
    # either in the snapshot or reported by the watcher
    watcher = get_storage_watcher()
    await watcher.start_watching()

    # Seed the current snapshot before the first viewer connects
    await aggregator.rebuild_now()

    yield

    logging.info("Photo Frame shutting down...")
    await watcher.stop_watching()
    await aggregator.stop()
    logging.info("Alle background tasks stoppet")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    if settings is not None:
        override_settings(settings)
    settings = get_settings()

    app = FastAPI(
        title="Photo Frame",
        description="Keeps every connected photo frame in sync with a shared photo directory",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logging.debug(
            f"Incoming request: {request.method} {request.url.path}",
            extra={
                "operation": "http_request",
                "method": request.method,
                "path": request.url.path,
                "client_ip": request.client.host if request.client else "unknown",
            },
        )
        response = await call_next(request)
        logging.debug(
            f"Response: {response.status_code}",
            extra={
                "operation": "http_response",
                "status_code": response.status_code,
                "path": request.url.path,
            },
        )
        return response

    register_error_handlers(app)

    app.include_router(photos.router)
    app.include_router(websockets.router)

    @app.get("/health")
    async def health():
        """Detaljeret health check."""
        return {
            "status": "healthy",
            "service": "photo-frame",
            "photos_directory": str(settings.photos_path),
            "subscribers": get_subscription_broadcaster().subscriber_count,
            "snapshot_rebuilds": get_change_aggregator().rebuild_count,
        }

    # Photo bytes; the directory is created during startup
    app.mount(
        settings.photos_url_prefix,
        StaticFiles(directory=str(settings.photos_path), check_dir=False),
        name="photos",
    )

    frontend_dir = Path(settings.frontend_directory).resolve()
    # Paths the SPA fallback must never answer for
    reserved_prefixes = {"api", settings.photos_url_prefix.strip("/").split("/", 1)[0]}

    @app.get("/{full_path:path}", include_in_schema=False)
    async def spa_fallback(full_path: str):
        """Serve the frontend build, falling back to index.html for client-side routes."""
        if full_path.split("/", 1)[0] in reserved_prefixes:
            return PlainTextResponse("Not found", status_code=404)

        if full_path:
            candidate = (frontend_dir / full_path).resolve()
            if candidate.is_relative_to(frontend_dir) and candidate.is_file():
                return FileResponse(candidate)

        index_file = frontend_dir / "index.html"
        if index_file.is_file():
            return FileResponse(index_file)
        return PlainTextResponse("Not found", status_code=404)

    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "photoframe.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
