from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StockSummary(BaseModel):
    """Stock fields exposed on a product; the rest of the stock row stays private."""

    model_config = ConfigDict(from_attributes=True)

    quantity: int


class ProductBase(BaseModel):
    name: str = Field(
        ..., min_length=1, description="Product name (required, non-empty)"
    )
    description: str = Field(
        ..., min_length=1, description="Product description (required, non-empty)"
    )
    price: Decimal = Field(
        ..., max_digits=10, decimal_places=2, description="Product price, no currency enforced"
    )

    @field_validator("name", "description")
    @classmethod
    def validate_not_blank(cls, v, info):
        if not v or not v.strip():
            raise ValueError(f"{info.field_name} cannot be empty or whitespace only")
        return v.strip()


class ProductCreate(ProductBase):
    model_config = ConfigDict(extra="forbid")

    image: Optional[str] = None


class ProductUpdate(BaseModel):
    """Partial product update; owner is never taken from the body."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    price: Optional[Decimal] = Field(None, max_digits=10, decimal_places=2)
    image: Optional[str] = None

    @field_validator("name", "description")
    @classmethod
    def validate_not_blank(cls, v, info):
        if v is not None and not v.strip():
            raise ValueError(f"{info.field_name} cannot be empty or whitespace only")
        return v.strip() if v is not None else v


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    price: Decimal
    image: Optional[str] = None
    user_id: str
    stock: Optional[StockSummary] = None
    created_at: datetime
    updated_at: datetime


class PaginationOptions(BaseModel):
    """Paging options accepted by the product listing"""

    sort_by: Optional[str] = None
    project_by: Optional[str] = None
    limit: int = Field(default=10, ge=1)
    page: int = Field(default=1, ge=1)


class ProductPage(BaseModel):
    results: List[Dict[str, Any]]
    page: int
    limit: int
    total_pages: int
    total_results: int
