from typing import Optional

from sqlalchemy import DECIMAL, TEXT, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import ProductServiceBaseModel
from .stock import Stock


class Product(ProductServiceBaseModel):
    __tablename__ = "products"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(TEXT, nullable=False)
    price: Mapped[float] = mapped_column(DECIMAL(10, 2), nullable=False)
    image: Mapped[str | None] = mapped_column(String(512), nullable=True)

    # Owner reference to user service (no FK in microservices)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    # Weak reference: a product never owns its stock row
    stock_id: Mapped[int | None] = mapped_column(
        ForeignKey("stocks.id", ondelete="SET NULL"), nullable=True
    )
    stock: Mapped[Optional[Stock]] = relationship(Stock, lazy="raise")
