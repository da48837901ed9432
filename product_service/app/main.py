"""
Product Service FastAPI Application
==================================

Main application entry point for the Product Service microservice.
Serves the product lifecycle API (create, list, get, update, delete) with
product images stored on local disk and lifecycle events published to Kafka.
"""

import socket
import time
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.v1.health import router as health_router
from .api.v1.products import router as products_router
from .core import database
from .core.event_management import close_events, init_events
from .core.setting import get_settings
from .middleware.auth.auth_middleware import setup_product_auth_middleware
from .middleware.error.error_handler import setup_product_error_handling
from .services.image_storage import ProductImageStorage
from .utils.logging import setup_product_logging

settings = get_settings()
enable_file_logging = settings.ENVIRONMENT.lower() in ["production", "staging"]

logger = setup_product_logging(
    "product_service",
    log_level=settings.LOG_LEVEL,
    enable_file_logging=enable_file_logging,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager for startup and shutdown."""
    startup_start = time.time()

    try:
        await _initialize_services(startup_start)
    except Exception as e:
        logger.error(
            "Failed to start product service",
            exc_info=True,
            extra={
                "startup_duration_ms": int((time.time() - startup_start) * 1000),
                "error_type": type(e).__name__,
            },
        )
        raise

    yield

    await _shutdown_services()


async def _initialize_services(startup_start: float) -> None:
    """Initialize database and event publishing during startup."""
    logger.info(
        "Starting product service initialization",
        extra={
            "environment": settings.ENVIRONMENT,
            "debug_mode": settings.DEBUG,
            "service_version": settings.APP_VERSION,
        },
    )

    db_start = time.time()
    await database.database_manager.create_tables()
    db_duration = int((time.time() - db_start) * 1000)

    event_duration, events_enabled = await _init_event_publisher()

    logger.info(
        "Product service started successfully",
        extra={
            "total_startup_duration_ms": int((time.time() - startup_start) * 1000),
            "database_init_ms": db_duration,
            "event_publisher_init_ms": event_duration,
            "events_enabled": events_enabled,
        },
    )


def _kafka_reachable(bootstrap_servers: str) -> bool:
    """Quick TCP probe of the first bootstrap server."""
    first_server = bootstrap_servers.split(",")[0].strip()
    host, _, port = first_server.rpartition(":")
    if not host or not port.isdigit():
        return False

    try:
        with socket.create_connection((host, int(port)), timeout=1.0):
            return True
    except OSError:
        return False


async def _init_event_publisher() -> tuple[int, bool]:
    """Initialize event publisher and return duration in ms and success status."""
    start_time = time.time()

    if not _kafka_reachable(settings.KAFKA_BOOTSTRAP_SERVERS):
        logger.warning(
            "Kafka not available, skipping event publisher initialization",
            extra={"kafka_servers": settings.KAFKA_BOOTSTRAP_SERVERS},
        )
        return 0, False

    await init_events()
    duration = int((time.time() - start_time) * 1000)
    logger.info("Event publisher started", extra={"duration_ms": duration})
    return duration, True


async def _shutdown_services() -> None:
    """Shutdown event publishing and database connections."""
    shutdown_start = time.time()
    logger.info("Starting product service shutdown")

    await close_events()
    await database.database_manager.close()

    logger.info(
        "Product service shutdown completed",
        extra={"shutdown_duration_ms": int((time.time() - shutdown_start) * 1000)},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    app.state.image_storage = ProductImageStorage(settings.UPLOADS_DIR)

    _setup_middleware(app)
    _setup_cors(app)
    _setup_routers(app)

    return app


def _setup_middleware(app: FastAPI) -> None:
    """Configure error handling and authentication."""
    setup_product_error_handling(app)
    setup_product_auth_middleware(app)


def _setup_cors(app: FastAPI) -> None:
    """Configure CORS settings; added last so it wraps authentication."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=settings.CORS_CREDENTIALS,
        allow_methods=settings.CORS_METHODS,
        allow_headers=settings.CORS_HEADERS,
    )

    logger.info(
        "CORS middleware configured",
        extra={
            "allowed_origins": len(settings.CORS_ORIGINS),
            "credentials_allowed": settings.CORS_CREDENTIALS,
        },
    )


def _setup_routers(app: FastAPI) -> None:
    """Configure all application routers."""
    routers_info: list[dict[str, Any]] = []

    app.include_router(health_router, tags=["Health"])
    routers_info.append({"router": "health", "prefix": "", "tags": ["Health"]})

    app.include_router(products_router, prefix="/api/v1", tags=["Product Management"])
    routers_info.append(
        {"router": "products", "prefix": "/api/v1", "tags": ["Product Management"]}
    )

    logger.info(
        "API routes configured",
        extra={"total_routers": len(routers_info), "routers": routers_info},
    )


app = create_app()


def run() -> None:
    """Serve the application with uvicorn."""
    import uvicorn

    uvicorn.run(  # type: ignore
        "product_service.app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
        access_log=True,
    )


if __name__ == "__main__":
    run()
