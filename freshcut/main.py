"""freshcut - stock tracker for perishable meat inventory."""

import logging
from collections.abc import AsyncIterator
from contextlib import AsyncExitStack, asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from freshcut import __version__
from freshcut.core.config import settings
from freshcut.core.db_client import SQLiteCollectionStore
from freshcut.core.errors import NotSignedInError, ScanFailedError, classify_error_with_response
from freshcut.core.logging import configure_logfire, instrument_fastapi, instrument_pydantic_ai
from freshcut.core.remote_store import DatabaseError, PermissionDeniedError, RecordNotFoundError, RemoteCollectionStore
from freshcut.interface.api_router import router as api_router
from freshcut.interface.dependencies import AppServices


logger = logging.getLogger(__name__)


def _status_code_for(exc: Exception) -> int:
    if isinstance(exc, NotSignedInError):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(exc, PermissionDeniedError):
        return status.HTTP_403_FORBIDDEN
    if isinstance(exc, RecordNotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, ScanFailedError):
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    return status.HTTP_502_BAD_GATEWAY


async def handle_app_error(_request: Request, exc: Exception) -> JSONResponse:
    """Render known failures as ErrorResponse bodies."""
    response = classify_error_with_response(exc)
    return JSONResponse(content=response.model_dump(mode="json"), status_code=_status_code_for(exc))


def create_app(store: RemoteCollectionStore | None = None) -> FastAPI:
    """Build the application.

    Args:
        store: Collection store to use; defaults to SQLite at the configured path
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # Configure logging first so startup logs are captured
        configure_logfire()
        instrument_pydantic_ai()

        async with AsyncExitStack() as stack:
            active_store = store
            if active_store is None:
                active_store = await stack.enter_async_context(
                    SQLiteCollectionStore(settings.sqlite_db_path, read_only=settings.read_only_collections)
                )
                logger.info("Document store opened", extra={"path": settings.sqlite_db_path})

            services = AppServices(active_store)
            services.start()
            app.state.services = services
            try:
                yield
            finally:
                await services.close()

    app = FastAPI(
        title="freshcut",
        description="Stock tracker for perishable meat inventory",
        version=__version__,
        lifespan=lifespan,
    )

    # Instrument FastAPI with Logfire
    instrument_fastapi(app)

    app.add_exception_handler(NotSignedInError, handle_app_error)
    app.add_exception_handler(DatabaseError, handle_app_error)
    app.add_exception_handler(ScanFailedError, handle_app_error)

    app.include_router(api_router)

    @app.get("/health")
    async def health_check() -> JSONResponse:
        """Health check endpoint."""
        return JSONResponse(content={"status": "healthy"}, status_code=200)

    return app


app = create_app()
