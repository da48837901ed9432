from sqlalchemy import CheckConstraint, Integer
from sqlalchemy.orm import Mapped, mapped_column

from .base import ProductServiceBaseModel


class Stock(ProductServiceBaseModel):
    __tablename__ = "stocks"

    quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="stock_quantity_non_negative"),
    )
