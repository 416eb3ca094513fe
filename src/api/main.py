import logging
import sys
import time
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.adapters.store_factory import create_store
from src.api.deps import Settings, get_settings
from src.api.routes import analytics
from src.app_shell.config import validate_settings
from src.components.analytics import AggregationStorePort, StorageError
from src.shell.http.health import create_health_router

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def connect_store_or_exit(store: AggregationStorePort) -> None:
    """Connect the store; there is no degraded mode, so failure is fatal."""
    try:
        store.connect()
    except StorageError as e:
        logger.critical("Failed to connect to database: %s", e)
        sys.exit(1)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    store: AggregationStorePort = app.state.store
    connect_store_or_exit(store)
    logger.info("Connected to database")

    yield

    store.close()
    logger.info("Server and database connections closed.")


# --- Error handlers ---


def _error_body(message: str) -> dict[str, object]:
    return {"success": False, "error": message}


async def storage_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("API Error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content=_error_body(str(exc)))


async def malformed_body_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("API Error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content=_error_body(str(exc)))


async def validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    errors = exc.errors() if isinstance(exc, RequestValidationError) else []
    if errors and errors[0].get("type") == "json_invalid":
        message = "Malformed JSON body"
    elif errors:
        first = errors[0]
        location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = str(exc)
    logger.warning("Rejected %s %s: %s", request.method, request.url.path, message)
    return JSONResponse(status_code=400, content=_error_body(message))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=_error_body(str(exc)))


# --- App factory ---


def create_app(
    settings: Settings | None = None,
    store: AggregationStorePort | None = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Configuration (read from the environment if None)
        store: Pre-built store (created from settings.store_url if None)
    """
    settings = settings or get_settings()
    if store is None:
        validate_settings(settings)
        store = create_store(settings.store_url)

    app = FastAPI(
        title="Page Load Analytics API",
        version=VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.store = store
    app.state.display_tz = settings.display_tz()
    app.state.trust_proxy_headers = settings.trust_proxy_headers

    # --- Routers ---
    app.include_router(analytics.router, prefix="/api/analytics", tags=["Analytics"])
    app.include_router(create_health_router(), prefix="/api")

    # --- Errors ---
    app.add_exception_handler(StorageError, storage_error_handler)
    app.add_exception_handler(analytics.MalformedBodyError, malformed_body_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # --- Request log ---
    @app.middleware("http")
    async def log_requests(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s -> %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        return response

    # CORS
    allow_all = "*" in settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_origins,
        allow_credentials=not allow_all,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    return app
