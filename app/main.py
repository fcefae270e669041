import logging
import os
import sys
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from app.config import ConfigurationError, Settings, load_settings
from app.hub import NotificationHub
from app.routers.photos import router as photos_router
from app.routers.realtime import router as realtime_router
from app.routers.rescan import router as rescan_router
from app.routers.status import router as status_router
from app.service import PhotoService
from app.storage import PhotoStorage, RemoteUnavailable, get_storage_backend

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)

load_dotenv()


def configure_logging() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )


class UnhandledErrorMiddleware(BaseHTTPMiddleware):
    """Convert exceptions escaping a route into a 500 JSON response.
    Handlers report their own expected failures; this only keeps an
    unexpected one from taking the worker down."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            return JSONResponse(
                status_code=HTTP_500_INTERNAL_SERVER_ERROR,
                content={"detail": str(exc)},
            )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: Settings | None = app.state.settings
    if settings is None:
        settings = load_settings()
        app.state.settings = settings
    storage: PhotoStorage = app.state.storage or get_storage_backend(settings)

    service = PhotoService(
        storage,
        folder_id=settings.folder_id,
        base_url=settings.base_url,
        poll_interval=settings.poll_interval,
    )
    hub = NotificationHub(service)
    app.state.service = service
    app.state.hub = hub

    try:
        await service.reconcile()
    except RemoteUnavailable:
        logger.warning("Initial photo load failed; will retry on next poll")
    if settings.poll_interval > 0:
        service.start()

    logger.info("Server running at %s", settings.base_url)
    logger.info("Loaded %d photos from folder %s", len(service.snapshot), settings.folder_id)
    logger.info("Images proxied through: %s/image/[ID]", settings.base_url)
    logger.info("Environment: %s", settings.environment)
    try:
        yield
    finally:
        logger.info("Shutting down...")
        await service.stop()
        hub.close()


def create_app(
    settings: Settings | None = None,
    storage: PhotoStorage | None = None,
) -> FastAPI:
    """
    Build the application. Settings are read from the environment at startup
    when not given; storage defaults to the backend the settings select.
    """
    app = FastAPI(lifespan=lifespan)
    app.state.settings = settings
    app.state.storage = storage

    app.add_middleware(UnhandledErrorMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.include_router(status_router)
    app.include_router(photos_router)
    app.include_router(rescan_router)
    app.include_router(realtime_router)

    public_dir = Path(settings.public_dir if settings else os.getenv("PUBLIC_DIR", "public"))
    if public_dir.is_dir():
        app.mount("/static", StaticFiles(directory=public_dir), name="static")
    return app


app = create_app()


def run() -> None:
    """Console entry point: validate configuration, then serve on 0.0.0.0."""
    configure_logging()
    logger.info("Starting server...")
    try:
        settings = load_settings()
        storage = get_storage_backend(settings)
    except (ConfigurationError, ValueError) as exc:
        logger.error("Failed to start: %s", exc)
        sys.exit(1)
    uvicorn.run(
        create_app(settings, storage),
        host="0.0.0.0",  # noqa: S104
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    run()
