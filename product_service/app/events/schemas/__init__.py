"""
Product Service Event Schemas
=============================

Event names and payload schemas for the product service domain.
"""

from .event_schemas import (
    PRODUCT_CREATED,
    PRODUCT_DELETED,
    PRODUCT_EVENT_TYPES,
    PRODUCT_UPDATED,
    ProductEventData,
)

__all__ = [
    "ProductEventData",
    "PRODUCT_CREATED",
    "PRODUCT_UPDATED",
    "PRODUCT_DELETED",
    "PRODUCT_EVENT_TYPES",
]
