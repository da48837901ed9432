"""
Events module for the Product Service.

Producers:
    - ProductEventProducer: Publishes product lifecycle events

Event Types Published:
    products.create, products.update, products.delete
    (each carries the full product document)
"""

from .event_producers import ProductEventProducer

__all__ = [
    "ProductEventProducer",
]
