"""
Pytest configuration and fixtures for product service tests.
"""

import os
import tempfile
from datetime import timedelta
from typing import Any, AsyncGenerator, Dict
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

# Set up test environment variables before importing anything else
os.environ.setdefault("APP_NAME", "Product Service Test")
os.environ.setdefault("APP_VERSION", "1.0.0")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_LEVEL", "INFO")
os.environ.setdefault("SERVICE_NAME", "product-service")
os.environ.setdefault("PRODUCT_DATABASE_URL", "sqlite+aiosqlite:///product_test.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing-only")
os.environ.setdefault("ALGORITHM", "HS256")
# Nothing listens on port 1, so startup skips the event publisher
os.environ.setdefault("KAFKA_BOOTSTRAP_SERVERS", "localhost:1")
os.environ.setdefault("KAFKA_TOPIC_PRODUCT_EVENTS", "product-events-test")
os.environ.setdefault("UPLOADS_DIR", tempfile.mkdtemp(prefix="product-uploads-"))
os.environ.setdefault(
    "CORS_ORIGINS", '["http://localhost:3000", "http://localhost:8080"]'
)
os.environ.setdefault("CORS_CREDENTIALS", "true")
os.environ.setdefault("CORS_METHODS", '["GET", "POST", "PATCH", "DELETE", "OPTIONS"]')
os.environ.setdefault("CORS_HEADERS", '["*"]')

import product_service.app.core.database as db_module  # noqa: E402
from product_service.app.api.dependencies import (  # noqa: E402
    get_product_event_producer,
)
from product_service.app.core.database import (  # noqa: E402
    ProductServiceDatabaseManager,
)
from product_service.app.core.setting import get_settings  # noqa: E402
from product_service.app.main import create_app  # noqa: E402
from product_service.app.models import Product, Stock  # noqa: E402, F401
from product_service.app.services.image_storage import (  # noqa: E402
    ProductImageStorage,
)
from product_service.app.utils.jwt_handler import JWTHandler  # noqa: E402


@pytest.fixture
async def database_manager(tmp_path) -> AsyncGenerator[ProductServiceDatabaseManager, None]:
    """Fresh SQLite file database per test."""
    manager = ProductServiceDatabaseManager(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'products.db'}", echo=False
    )
    await manager.create_tables()
    yield manager
    await manager.drop_tables()
    await manager.close()


@pytest.fixture
async def db_session(database_manager: ProductServiceDatabaseManager) -> AsyncGenerator[Any, None]:
    """Create a test database session with proper cleanup."""
    async with database_manager.async_session_maker() as session:
        yield session


@pytest.fixture
def image_storage(tmp_path) -> ProductImageStorage:
    return ProductImageStorage(tmp_path / "uploads")


@pytest.fixture
def mock_event_producer() -> AsyncMock:
    """Event producer double recording every publish call."""
    producer = AsyncMock()
    producer.publish_product_created.return_value = True
    producer.publish_product_updated.return_value = True
    producer.publish_product_deleted.return_value = True
    return producer


@pytest.fixture
def app(tmp_path, image_storage, mock_event_producer):
    """Application wired to a per-test database, upload directory and producer."""
    original_manager = db_module.database_manager
    db_module.database_manager = ProductServiceDatabaseManager(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'api.db'}", echo=False
    )

    application = create_app()
    application.state.image_storage = image_storage
    application.dependency_overrides[get_product_event_producer] = (
        lambda: mock_event_producer
    )

    yield application

    application.dependency_overrides.clear()
    db_module.database_manager = original_manager


@pytest.fixture
def client(app) -> TestClient:
    """FastAPI test client; the context runs startup and shutdown."""
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


def _token(user_id: str, roles: list[str]) -> str:
    settings = get_settings()
    handler = JWTHandler(secret_key=settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return handler.encode_token(
        {"user_id": user_id, "roles": roles}, expires_delta=timedelta(minutes=5)
    )


@pytest.fixture
def admin_headers() -> Dict[str, str]:
    return {"Authorization": f"Bearer {_token('admin-1', ['admin'])}"}


@pytest.fixture
def user_headers() -> Dict[str, str]:
    return {"Authorization": f"Bearer {_token('user-1', ['user'])}"}
