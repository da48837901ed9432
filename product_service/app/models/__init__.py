"""Product Service Models"""

from .base import ProductServiceBase, ProductServiceBaseModel
from .product import Product
from .stock import Stock

__all__ = [
    "ProductServiceBase",
    "ProductServiceBaseModel",
    "Product",
    "Stock",
]
