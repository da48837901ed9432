"""
FastAPI dependency injection for Product Service

Provides database sessions, the event producer, the image storage, the
product service itself, authentication and correlation ID handling.
"""

from typing import AsyncGenerator, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db_session
from ..core.event_management import get_event_producer
from ..events.event_producers import ProductEventProducer
from ..middleware.auth.auth_middleware import admin_user, authenticated_user
from ..services.image_storage import ProductImageStorage
from ..services.product_service import ProductService

# =====================================================
# DATABASE DEPENDENCIES
# =====================================================


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide async database session"""
    async for session in get_db_session():
        yield session


# =====================================================
# EVENT PUBLISHER & STORAGE DEPENDENCIES
# =====================================================


def get_product_event_producer() -> Optional[ProductEventProducer]:
    """Provide ProductEventProducer instance (None when events are unavailable)"""
    return get_event_producer()


def get_image_storage(request: Request) -> ProductImageStorage:
    """Provide the image storage created with the application"""
    return request.app.state.image_storage


# =====================================================
# SERVICE DEPENDENCIES
# =====================================================


def get_product_service(
    session: AsyncSession = Depends(get_async_session),
    image_storage: ProductImageStorage = Depends(get_image_storage),
    event_producer: Optional[ProductEventProducer] = Depends(
        get_product_event_producer
    ),
) -> ProductService:
    """Provide ProductService instance with database, storage and event publishing"""
    return ProductService(session, image_storage, event_producer)


# =====================================================
# REQUEST CONTEXT DEPENDENCIES
# =====================================================


def get_correlation_id(request: Request) -> Optional[str]:
    """Extract correlation ID from request headers or state"""
    correlation_id = (
        request.headers.get("X-Correlation-ID")
        or request.headers.get("correlation-id")
        or request.headers.get("x-request-id")
    )

    if not correlation_id:
        correlation_id = getattr(request.state, "correlation_id", None)

    return correlation_id


# =====================================================
# COMMON DEPENDENCY ALIASES
# =====================================================

CorrelationIdDep = Depends(get_correlation_id)
AuthenticatedUserDep = Depends(authenticated_user)
AdminUserDep = Depends(admin_user)
ProductServiceDep = Depends(get_product_service)
