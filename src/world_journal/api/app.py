"""FastAPI application factory."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from world_journal.api.images import router as images_router
from world_journal.api.waypoints import router as waypoints_router
from world_journal.app_logging import configure_logging
from world_journal.containers import AppContainer
from world_journal.errors import (
    BlobStoreError,
    NotFoundError,
    StorageError,
    UnsupportedMediaType,
    ValidationError,
)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)
    settings = container.settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        sweeper_task = None
        if settings.sweep_interval_seconds > 0:
            sweeper = app.state.container.retention_sweeper
            sweeper_task = asyncio.create_task(
                sweeper.run_forever(settings.sweep_interval_seconds)
            )
        yield
        if sweeper_task is not None:
            sweeper_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper_task

    app = FastAPI(title="World Journal", lifespan=lifespan)
    app.state.container = container

    app.include_router(waypoints_router)
    app.include_router(images_router)
    if settings.blob_backend == "local":
        app.mount(
            "/uploads",
            StaticFiles(directory=settings.uploads_dir),
            name="uploads",
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = [
            {"loc": [str(part) for part in error["loc"]], "msg": error["msg"]}
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid request", "details": errors},
        )

    @app.exception_handler(ValidationError)
    @app.exception_handler(UnsupportedMediaType)
    async def bad_request(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(exc)}
        )

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND, content={"error": str(exc)}
        )

    @app.exception_handler(StorageError)
    @app.exception_handler(BlobStoreError)
    async def store_failure(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Store failure on %s %s",
            request.method,
            request.url.path,
            exc_info=exc,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
