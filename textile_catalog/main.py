"""Textile catalog API main application module.

This module initializes the FastAPI application and configures
core middleware, routers, and startup/shutdown events.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException

from textile_catalog.api.health import router as health_router
from textile_catalog.api.middleware import error_response, setup_middleware
from textile_catalog.api.products import router as products_router
from textile_catalog.catalog.service import get_product_repository
from textile_catalog.domain.exceptions import (
    CatalogError,
    ProductNotFoundError,
    ProductValidationError,
    TransientStoreError,
)
from textile_catalog.infrastructure.config import ImageMode, StoreBackend, settings
from textile_catalog.infrastructure.logging import configure_logging

configure_logging(settings.log_level, settings.log_json)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events.

    An unreachable product store aborts startup.

    Args:
        app: The FastAPI application instance.

    Yields:
        None after startup, cleanup happens after yield.
    """
    # Startup
    logger.info(
        "Starting textile catalog API",
        version=settings.api_version,
        store_backend=settings.store_backend.value,
        image_mode=settings.image_mode.value,
    )

    repository = get_product_repository()
    try:
        await repository.ping()
    except TransientStoreError as e:
        logger.critical("Product store unreachable, refusing to start", reason=e.details.get("reason"))
        raise

    if settings.store_backend == StoreBackend.SQL and settings.create_tables:
        from textile_catalog.infrastructure.database import create_tables

        await create_tables()
        logger.info("Database tables ready")

    yield

    # Shutdown
    if settings.store_backend == StoreBackend.SQL:
        from textile_catalog.infrastructure.database import engine

        await engine.dispose()
    logger.info("Shutting down textile catalog API")


app = FastAPI(
    title="Textile Catalog API",
    description="Catalog of textile products: fabrics, categories, specifications and photos",
    version=settings.api_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware (must be added before custom middleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=1000)

# Setup custom middleware (request ID, error handling)
setup_middleware(app)

# Include routers
app.include_router(health_router, tags=["Health"])
app.include_router(products_router)

# Stored image files are served as static content
if settings.image_mode == ImageMode.FILESYSTEM:
    settings.upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount(
        settings.upload_url_prefix,
        StaticFiles(directory=settings.upload_dir),
        name="uploads",
    )


# ============================================================================
# Exception Handlers
# ============================================================================

# Checked in order; subclasses before their bases
ERROR_STATUS: tuple[tuple[type[CatalogError], int], ...] = (
    (ProductValidationError, status.HTTP_400_BAD_REQUEST),
    (ProductNotFoundError, status.HTTP_404_NOT_FOUND),
    (TransientStoreError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def status_for(exc: CatalogError) -> int:
    """HTTP status for a catalog error kind."""
    for error_class, status_code in ERROR_STATUS:
        if isinstance(exc, error_class):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@app.exception_handler(CatalogError)
async def catalog_exception_handler(request: Request, exc: CatalogError) -> JSONResponse:
    """Map catalog errors to their status and the error envelope."""
    status_code = status_for(exc)
    log = logger.error if status_code >= 500 else logger.info
    log(
        "Catalog request failed" if status_code >= 500 else "Catalog request rejected",
        path=request.url.path,
        error_code=exc.error_code,
        error=exc.message,
    )

    field = exc.details.get("field")
    return error_response(
        request,
        status_code,
        exc.error_code,
        exc.message,
        details=[{"field": field, "message": exc.message}] if field else None,
        headers={"Retry-After": "1"} if isinstance(exc, TransientStoreError) else None,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed query and path parameters."""
    return error_response(
        request,
        422,
        "VALIDATION_ERROR",
        "Request parameters are invalid",
        details=[
            {
                "field": ".".join(str(part) for part in error["loc"]),
                "message": error["msg"],
            }
            for error in exc.errors()
        ],
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Wrap framework HTTP errors (unknown route, wrong method) in the envelope."""
    return error_response(
        request,
        exc.status_code,
        "NOT_FOUND" if exc.status_code == status.HTTP_404_NOT_FOUND else "HTTP_ERROR",
        str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Report uncaught exceptions without leaking internals."""
    logger.exception(
        "Unhandled exception in handler",
        path=request.url.path,
        method=request.method,
        error=str(exc),
    )
    return error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_ERROR",
        "An internal error occurred",
    )
