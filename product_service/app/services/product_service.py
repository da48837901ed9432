"""Product service for business logic"""

import math
from decimal import Decimal
from typing import Any, Dict, Optional, Set, Tuple

from fastapi import HTTPException, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..events.event_producers import ProductEventProducer
from ..events.schemas import PRODUCT_CREATED, PRODUCT_DELETED, PRODUCT_UPDATED
from ..repository.product_repository import ProductRepository
from ..schemas.product import (
    PaginationOptions,
    ProductCreate,
    ProductPage,
    ProductResponse,
    ProductUpdate,
    StockSummary,
)
from ..utils.logging import setup_product_logging as setup_logging
from .image_storage import ProductImageStorage

logger = setup_logging("product_service.products")

PRODUCT_NOT_FOUND = "Product not found"


class ProductService:
    """Service class for the product lifecycle.

    Each mutation runs in the same order: existence check, persistence, then
    side effects (image file, event). Events are only published after the
    store call succeeded.
    """

    def __init__(
        self,
        db: AsyncSession,
        image_storage: ProductImageStorage,
        event_producer: Optional[ProductEventProducer] = None,
    ):
        self.db = db
        self.repository = ProductRepository(db)
        self.image_storage = image_storage
        self.event_producer = event_producer

    def _convert_to_product_response(self, product: Any) -> ProductResponse:
        """Shape a database product, with its stock populated, into a response"""
        return ProductResponse(
            id=product.id,
            name=product.name,
            description=product.description,
            price=Decimal(str(product.price)),
            image=product.image,
            user_id=product.user_id,
            stock=StockSummary(quantity=product.stock.quantity)
            if product.stock is not None
            else None,
            created_at=product.created_at,
            updated_at=product.updated_at,
        )

    async def create_product(
        self,
        product_data: ProductCreate,
        user_id: str,
        image: Optional[UploadFile] = None,
        correlation_id: Optional[str] = None,
    ) -> ProductResponse:
        """Create a new product owned by user_id"""
        image_path: Optional[str] = None
        try:
            if image is not None:
                image_path = await self.image_storage.save(
                    image, self.image_storage.fallback_token()
                )
                product_data = product_data.model_copy(update={"image": image_path})

            product = await self.repository.create_product(product_data, user_id)

        except Exception as e:
            if image_path:
                await self.image_storage.dispose(image_path)
            logger.error(
                f"Failed to create product: {str(e)}",
                extra={
                    "user_id": user_id,
                    "correlation_id": correlation_id,
                    "error": str(e),
                },
                exc_info=True,
            )
            raise

        logger.info(
            "Product created successfully",
            extra={
                "product_id": product.id,
                "user_id": user_id,
                "correlation_id": correlation_id,
            },
        )

        response = self._convert_to_product_response(product)
        if self.event_producer:
            await self.event_producer.publish_product_created(
                response.model_dump(), correlation_id=correlation_id
            )
        else:
            self._log_event_not_published(PRODUCT_CREATED, response.id, correlation_id)
        return response

    async def query_products(
        self,
        filters: Dict[str, Any],
        options: PaginationOptions,
        correlation_id: Optional[str] = None,
    ) -> ProductPage:
        """Get one page of products; each result document honours project_by"""
        include, exclude = self._parse_projection(options.project_by)
        products, total = await self.repository.query_products(filters, options)

        results = [
            self._convert_to_product_response(product).model_dump(
                mode="json", include=include, exclude=exclude
            )
            for product in products
        ]

        logger.info(
            "Products listed",
            extra={
                "filters": list(filters.keys()),
                "page": options.page,
                "limit": options.limit,
                "total_results": total,
                "correlation_id": correlation_id,
            },
        )

        return ProductPage(
            results=results,
            page=options.page,
            limit=options.limit,
            total_pages=math.ceil(total / options.limit),
            total_results=total,
        )

    async def get_product(
        self, product_id: int, correlation_id: Optional[str] = None
    ) -> Optional[ProductResponse]:
        """Get product by ID"""
        product = await self.repository.get_product_by_id(product_id)
        if not product:
            return None

        logger.info(
            "Product retrieved",
            extra={
                "product_id": product_id,
                "correlation_id": correlation_id,
            },
        )

        return self._convert_to_product_response(product)

    async def update_product(
        self,
        product_id: int,
        product_data: ProductUpdate,
        user_id: str,
        image: Optional[UploadFile] = None,
        correlation_id: Optional[str] = None,
    ) -> ProductResponse:
        """Update product fields and re-stamp its owner"""
        existing = await self.repository.get_product_by_id(product_id)
        if not existing:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail=PRODUCT_NOT_FOUND
            )

        update_data = product_data.model_dump(exclude_unset=True)
        new_image_path: Optional[str] = None
        try:
            if image is not None:
                update_data["image"] = await self.image_storage.save(image, product_id)
                # Same path as the stored image means the old file was overwritten
                if update_data["image"] != existing.image:
                    new_image_path = update_data["image"]

            product = await self.repository.update_product(
                product_id, update_data, user_id
            )

        except Exception as e:
            if new_image_path:
                await self.image_storage.dispose(new_image_path)
            logger.error(
                f"Failed to update product: {str(e)}",
                extra={
                    "product_id": product_id,
                    "user_id": user_id,
                    "correlation_id": correlation_id,
                    "error": str(e),
                },
                exc_info=True,
            )
            raise

        # Removed by a concurrent delete between the lookup and the update
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail=PRODUCT_NOT_FOUND
            )

        logger.info(
            "Product updated successfully",
            extra={
                "product_id": product_id,
                "updated_fields": list(update_data.keys()),
                "user_id": user_id,
                "correlation_id": correlation_id,
            },
        )

        response = self._convert_to_product_response(product)
        if self.event_producer:
            await self.event_producer.publish_product_updated(
                response.model_dump(), correlation_id=correlation_id
            )
        else:
            self._log_event_not_published(PRODUCT_UPDATED, response.id, correlation_id)
        return response

    async def delete_product(
        self,
        product_id: int,
        user_id: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> ProductResponse:
        """Delete product, disposing of its image file first (best effort)"""
        existing = await self.repository.get_product_by_id(product_id)
        if not existing:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail=PRODUCT_NOT_FOUND
            )

        if existing.image:
            await self.image_storage.dispose(existing.image)

        try:
            product = await self.repository.delete_product(product_id)
        except Exception as e:
            logger.error(
                f"Failed to delete product: {str(e)}",
                extra={
                    "product_id": product_id,
                    "user_id": user_id,
                    "correlation_id": correlation_id,
                    "error": str(e),
                },
                exc_info=True,
            )
            raise

        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail=PRODUCT_NOT_FOUND
            )

        logger.info(
            "Product deleted successfully",
            extra={
                "product_id": product_id,
                "user_id": user_id,
                "correlation_id": correlation_id,
            },
        )

        response = self._convert_to_product_response(product)
        if self.event_producer:
            await self.event_producer.publish_product_deleted(
                response.model_dump(), correlation_id=correlation_id
            )
        else:
            self._log_event_not_published(PRODUCT_DELETED, response.id, correlation_id)
        return response

    @staticmethod
    def _log_event_not_published(
        event_name: str, product_id: int, correlation_id: Optional[str]
    ) -> None:
        """Event publishing is not running (Kafka unreachable at startup)"""
        logger.warning(
            f"Event publisher unavailable, {event_name} event not published",
            extra={
                "event_type": event_name,
                "product_id": product_id,
                "correlation_id": correlation_id,
            },
        )

    @staticmethod
    def _parse_projection(
        project_by: Optional[str],
    ) -> Tuple[Optional[Set[str]], Optional[Set[str]]]:
        """Translate 'field:include,other:hide' into model_dump include/exclude sets"""
        if not project_by:
            return None, None

        include: Set[str] = set()
        exclude: Set[str] = set()
        for criterion in project_by.split(","):
            field, _, mode = criterion.strip().partition(":")
            mode = (mode or "include").lower()
            if field not in ProductResponse.model_fields:
                raise ValueError(f"Unsupported projection field '{field}'")
            if mode == "include":
                include.add(field)
            elif mode == "hide":
                exclude.add(field)
            else:
                raise ValueError(f"Unsupported projection mode '{mode}'")

        if include:
            include.add("id")
        return include or None, exclude or None
