"""Service layer for Product Service"""

from .image_storage import ProductImageStorage
from .product_service import ProductService

__all__ = [
    "ProductService",
    "ProductImageStorage",
]
