import asyncio
import json
from typing import Optional

from aiokafka import AIOKafkaProducer  # type: ignore
from aiokafka.errors import KafkaConnectionError  # type: ignore

from ...core.setting import get_settings
from ...utils.logging import setup_product_logging as setup_logging
from . import BaseEvent, EventPublisher

logger = setup_logging(
    "product_service.events.kafka", log_level=get_settings().LOG_LEVEL
)

DEFAULT_PRODUCT_TOPIC = "product.events"


class KafkaEventPublisher(EventPublisher):
    """
    Product Service Kafka publisher with connection retry logic.

    ``publish`` returns as soon as the record is accepted into the producer
    buffer; broker acknowledgement is reported later by a delivery callback.
    """

    def __init__(
        self,
        bootstrap_servers: str,
        client_id: str,
        max_retries: int = 20,
        retry_delay: float = 2.0,
        enable_graceful_degradation: bool = True,
        product_topic: Optional[str] = None,
    ):
        self.bootstrap_servers = bootstrap_servers
        self.client_id = client_id
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.enable_graceful_degradation = enable_graceful_degradation
        self.product_topic = product_topic or DEFAULT_PRODUCT_TOPIC
        self.producer: Optional[AIOKafkaProducer] = None
        self.is_connected = False
        self._connection_lock = asyncio.Lock()

    async def start(self, timeout: float = 30.0) -> None:
        """Start Kafka producer with retry logic"""
        async with self._connection_lock:
            if self.producer and self.is_connected:
                return

            self.producer = AIOKafkaProducer(
                bootstrap_servers=self.bootstrap_servers,
                client_id=self.client_id,
                value_serializer=lambda x: json.dumps(x, default=str).encode("utf-8"),  # type: ignore
                key_serializer=lambda x: x.encode("utf-8") if x else None,  # type: ignore
                retry_backoff_ms=1000,
                request_timeout_ms=30000,
            )

            # Retry connection with exponential backoff
            for attempt in range(self.max_retries):
                try:
                    logger.info(
                        "Attempting Kafka connection",
                        extra={
                            "attempt": attempt + 1,
                            "max_retries": self.max_retries,
                            "operation": "kafka_connect",
                        },
                    )
                    await asyncio.wait_for(self.producer.start(), timeout=timeout)  # type: ignore

                    self.is_connected = True
                    logger.info("Successfully connected to Kafka")
                    return

                except (KafkaConnectionError, asyncio.TimeoutError) as e:
                    delay = self.retry_delay * (2**attempt)
                    logger.warning(
                        f"Kafka connection attempt {attempt + 1} failed: {e}. "
                        f"Retrying in {delay} seconds..."
                    )

                    if attempt < self.max_retries - 1:
                        await asyncio.sleep(delay)
                    else:
                        logger.error(
                            f"Failed to connect to Kafka after {self.max_retries} attempts. "
                            "Running in degraded mode (events will be logged but not published)"
                        )
                        self.is_connected = False
                        return

    async def stop(self) -> None:
        """Stop Kafka producer, flushing buffered records first"""
        async with self._connection_lock:
            if self.producer:
                try:
                    await self.producer.stop()  # type: ignore
                    logger.info("Kafka producer stopped")
                except Exception as e:
                    logger.warning(
                        "Error stopping Kafka producer",
                        extra={"error": str(e), "operation": "stop_producer"},
                    )
                finally:
                    self.producer = None
                    self.is_connected = False

    async def publish(self, event: BaseEvent, topic: Optional[str] = None) -> None:
        """Hand the event to the producer without waiting for the broker ack"""
        if not self.is_connected or not self.producer:
            if self.enable_graceful_degradation:
                logger.warning(
                    f"Kafka not available, logging event instead: {event.event_type}",
                    extra={
                        "event_id": event.event_id,
                        "event_type": event.event_type,
                        "event_data": event.model_dump(mode="json"),
                    },
                )
                return
            raise KafkaConnectionError("Kafka producer not connected")

        topic = topic or self._get_topic_for_event(event.event_type)

        delivery = await self.producer.send(  # type: ignore
            topic,
            value=event.model_dump(mode="json"),
            key=event.event_type,
        )
        delivery.add_done_callback(
            lambda future: self._on_delivery(future, event, topic)
        )
        logger.info(
            "Event accepted for delivery",
            extra={
                "event_type": event.event_type,
                "topic": topic,
                "event_id": event.event_id,
                "correlation_id": event.correlation_id,
                "operation": "publish_event",
            },
        )

    def _on_delivery(self, future: "asyncio.Future", event: BaseEvent, topic: str) -> None:
        if future.cancelled():
            logger.warning(
                "Event delivery cancelled",
                extra={"event_id": event.event_id, "event_type": event.event_type},
            )
            return

        error = future.exception()
        if error is not None:
            logger.error(
                f"Failed to deliver event {event.event_type}: {error}",
                extra={
                    "event_id": event.event_id,
                    "event_type": event.event_type,
                    "topic": topic,
                    "error": str(error),
                    "operation": "publish_event_failed",
                },
            )

    def _get_topic_for_event(self, event_type: str) -> str:
        """Map event name to Kafka topic"""
        if event_type.startswith("products."):
            return self.product_topic
        return DEFAULT_PRODUCT_TOPIC

    async def health_check(self) -> bool:
        """Check if Kafka connection is healthy"""
        try:
            if not self.producer or not self.is_connected:
                return False

            metadata = await self.producer.client.fetch_all_metadata()  # type: ignore
            return len(metadata.brokers()) > 0  # type: ignore

        except Exception as e:
            logger.warning(
                "Kafka health check failed",
                extra={"error": str(e), "operation": "health_check"},
            )
            return False
