"""
Product Service Event Producers
==============================

Publishes product lifecycle events (create, update, delete) to other
microservices. Publication is fire-and-forget from the caller's point of view:
a failure is logged here and never reaches the code that already committed
the change.
"""

from typing import Any, Dict, Optional

from ..core.setting import get_settings
from ..utils.logging import setup_product_logging as setup_logging
from .base import BaseEvent, EventPublisher
from .schemas import (
    PRODUCT_CREATED,
    PRODUCT_DELETED,
    PRODUCT_UPDATED,
    ProductEventData,
)

settings = get_settings()
logger = setup_logging("product_service.events.producers", log_level=settings.LOG_LEVEL)


class ProductEventProducer:
    """
    Product service event producer.
    Publishes product-related events to other microservices.
    """

    def __init__(self, kafka_publisher: EventPublisher):
        self.kafka_publisher = kafka_publisher

    async def publish_event(
        self,
        event_name: str,
        payload: Dict[str, Any],
        correlation_id: Optional[str] = None,
    ) -> bool:
        """Publish an event by name; returns False when publication failed"""
        try:
            event = BaseEvent(
                event_type=event_name,
                source_service="product-service",
                data=payload,
                correlation_id=correlation_id,
            )
            await self.kafka_publisher.publish(event)
            logger.info(
                f"Published {event_name} event",
                extra={
                    "event_id": event.event_id,
                    "product_id": payload.get("id"),
                    "correlation_id": correlation_id,
                },
            )
            return True

        except Exception as e:
            logger.error(
                f"Failed to publish {event_name} event: {e}",
                extra={
                    "event_type": event_name,
                    "product_id": payload.get("id"),
                    "correlation_id": correlation_id,
                    "error": str(e),
                },
                exc_info=True,
            )
            return False

    # ==============================================
    # PRODUCT EVENTS
    # ==============================================

    async def publish_product_created(
        self, product: Dict[str, Any], correlation_id: Optional[str] = None
    ) -> bool:
        """Publish product created event carrying the full product document"""
        return await self.publish_event(
            PRODUCT_CREATED, self._product_document(product), correlation_id
        )

    async def publish_product_updated(
        self, product: Dict[str, Any], correlation_id: Optional[str] = None
    ) -> bool:
        """Publish product updated event carrying the full product document"""
        return await self.publish_event(
            PRODUCT_UPDATED, self._product_document(product), correlation_id
        )

    async def publish_product_deleted(
        self, product: Dict[str, Any], correlation_id: Optional[str] = None
    ) -> bool:
        """Publish product deleted event carrying the last known product document"""
        return await self.publish_event(
            PRODUCT_DELETED, self._product_document(product), correlation_id
        )

    @staticmethod
    def _product_document(product: Dict[str, Any]) -> Dict[str, Any]:
        return ProductEventData.model_validate(product).to_dict()
