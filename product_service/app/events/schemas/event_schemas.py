"""
Product Service Event Schemas
=============================

Event names and payload schemas published by the product service. Every
product lifecycle event carries the full product document.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel

# ==============================================
# EVENT NAMES
# ==============================================

PRODUCT_CREATED = "products.create"
PRODUCT_UPDATED = "products.update"
PRODUCT_DELETED = "products.delete"

PRODUCT_EVENT_TYPES = (PRODUCT_CREATED, PRODUCT_UPDATED, PRODUCT_DELETED)


# ==============================================
# PRODUCT EVENT DATA SCHEMAS
# ==============================================


class ProductEventData(BaseModel):
    """Product document as carried by lifecycle events"""

    id: int
    name: str
    description: str
    price: Decimal
    image: Optional[str] = None
    user_id: str
    stock: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")
