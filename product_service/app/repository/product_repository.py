"""Product repository for database operations"""

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models.product import Product
from ..schemas.product import PaginationOptions, ProductCreate

SORTABLE_FIELDS = ("id", "name", "description", "price", "user_id", "created_at", "updated_at")
FILTERABLE_FIELDS = ("name", "user_id", "price")


class ProductRepository:
    """Repository for product database operations.

    Every read path loads the related stock row so callers always receive
    products with ``stock`` populated (or None when there is no stock row).
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    def _select_products(self):
        return select(Product).options(selectinload(Product.stock))

    async def _reload(self, product_id: int) -> Product:
        query = (
            self._select_products()
            .where(Product.id == product_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return result.scalar_one()

    async def create_product(self, product_data: ProductCreate, user_id: str) -> Product:
        """Create a new product owned by user_id"""
        product = Product(
            name=product_data.name,
            description=product_data.description,
            price=product_data.price,
            image=product_data.image,
            user_id=user_id,
        )

        self.db.add(product)
        await self.db.commit()
        return await self._reload(product.id)

    async def get_product_by_id(self, product_id: int) -> Optional[Product]:
        """Get product by ID"""
        query = self._select_products().where(Product.id == product_id)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def query_products(
        self, filters: Dict[str, Any], options: PaginationOptions
    ) -> Tuple[List[Product], int]:
        """Get one page of products matching filters and return total count"""
        query = select(Product)
        for field, value in filters.items():
            if field not in FILTERABLE_FIELDS:
                raise ValueError(f"Unsupported filter field '{field}'")
            query = query.where(getattr(Product, field) == value)

        # Get total count
        count_query = select(func.count()).select_from(query.subquery())
        count_result = await self.db.execute(count_query)
        total = count_result.scalar() or 0

        # Get paginated results
        skip = (options.page - 1) * options.limit
        query = (
            query.options(selectinload(Product.stock))
            .order_by(*self._order_by(options.sort_by))
            .offset(skip)
            .limit(options.limit)
        )
        result = await self.db.execute(query)
        products = list(result.scalars().all())

        return products, total

    async def update_product(
        self, product_id: int, update_data: Dict[str, Any], user_id: str
    ) -> Optional[Product]:
        """Merge update_data onto the product and re-stamp its owner"""
        product = await self.get_product_by_id(product_id)
        if not product:
            return None

        for field, value in update_data.items():
            setattr(product, field, value)
        product.user_id = user_id

        await self.db.commit()
        return await self._reload(product_id)

    async def delete_product(self, product_id: int) -> Optional[Product]:
        """Delete product and return the removed record"""
        product = await self.get_product_by_id(product_id)
        if not product:
            return None

        await self.db.delete(product)
        await self.db.commit()
        return product

    @staticmethod
    def _order_by(sort_by: Optional[str]) -> list:
        """Translate 'field:desc,field2:asc' into ORDER BY clauses"""
        if not sort_by:
            return [Product.created_at.asc(), Product.id.asc()]

        clauses = []
        for criterion in sort_by.split(","):
            field, _, direction = criterion.strip().partition(":")
            direction = (direction or "asc").lower()
            if field not in SORTABLE_FIELDS:
                raise ValueError(f"Unsupported sort field '{field}'")
            if direction not in ("asc", "desc"):
                raise ValueError(f"Unsupported sort direction '{direction}'")
            column = getattr(Product, field)
            clauses.append(column.desc() if direction == "desc" else column.asc())

        # Stable ordering across pages
        clauses.append(Product.id.asc())
        return clauses
