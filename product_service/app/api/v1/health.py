import os
from typing import Any, Dict

from fastapi import APIRouter, Request
from sqlalchemy import text

from ...core import database
from ...core.event_management import health_check_events
from ...core.setting import get_settings
from ...utils.service_health import ProductServiceHealthChecker

router = APIRouter()


@router.get("/health")
async def health_check(request: Request) -> Dict[str, Any]:
    """Health check covering the database, the event channel and image storage."""
    settings = get_settings()
    checker = ProductServiceHealthChecker(settings.SERVICE_NAME, settings.APP_VERSION)

    async def database_check() -> Dict[str, Any]:
        async with database.database_manager.async_session_maker() as session:
            await session.execute(text("SELECT 1"))
        return {"status": "healthy", "component": "database"}

    async def events_check() -> Dict[str, Any]:
        # Events are optional: the service keeps serving without Kafka
        if await health_check_events():
            return {"status": "healthy", "component": "events"}
        return {"status": "degraded", "component": "events"}

    async def image_storage_check() -> Dict[str, Any]:
        uploads_dir = request.app.state.image_storage.uploads_dir
        if uploads_dir.is_dir() and os.access(uploads_dir, os.W_OK):
            return {"status": "healthy", "component": "image_storage"}
        return {"status": "unhealthy", "component": "image_storage"}

    checker.add_check("database", database_check)
    checker.add_check("events", events_check)
    checker.add_check("image_storage", image_storage_check)
    return await checker.run_checks()
