"""Product API endpoints"""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, File, Form, HTTPException, Query, UploadFile, status

from ...core.setting import get_settings
from ...schemas.product import (
    PaginationOptions,
    ProductCreate,
    ProductPage,
    ProductResponse,
    ProductUpdate,
)
from ...services.product_service import PRODUCT_NOT_FOUND, ProductService
from ..dependencies import (
    AdminUserDep,
    AuthenticatedUserDep,
    CorrelationIdDep,
    ProductServiceDep,
)

router = APIRouter(prefix="/products")


@router.post("/", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    name: str = Form(...),
    description: str = Form(...),
    price: Decimal = Form(...),
    image: Optional[UploadFile] = File(None),
    correlation_id: Optional[str] = CorrelationIdDep,
    user_id: str = AdminUserDep,
    service: ProductService = ProductServiceDep,
):
    """Create a new product (admin only)"""
    product_data = ProductCreate(name=name, description=description, price=price)

    return await service.create_product(
        product_data=product_data,
        user_id=user_id,
        image=image,
        correlation_id=correlation_id,
    )


@router.get("/", response_model=ProductPage)
async def list_products(
    name: Optional[str] = Query(None, description="Exact product name"),
    sort_by: Optional[str] = Query(
        None, alias="sortBy", description="field:asc|desc, comma separated"
    ),
    project_by: Optional[str] = Query(
        None, alias="projectBy", description="field:include|hide, comma separated"
    ),
    limit: Optional[int] = Query(None, ge=1, le=100),
    page: int = Query(1, ge=1),
    correlation_id: Optional[str] = CorrelationIdDep,
    user_id: str = AuthenticatedUserDep,
    service: ProductService = ProductServiceDep,
):
    """List products with filtering, sorting, projection and pagination"""
    filters = {"name": name} if name else {}
    options = PaginationOptions(
        sort_by=sort_by,
        project_by=project_by,
        limit=limit or get_settings().DEFAULT_PAGE_LIMIT,
        page=page,
    )

    try:
        return await service.query_products(
            filters=filters, options=options, correlation_id=correlation_id
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: int,
    correlation_id: Optional[str] = CorrelationIdDep,
    user_id: str = AuthenticatedUserDep,
    service: ProductService = ProductServiceDep,
):
    """Get product details by ID"""
    product = await service.get_product(
        product_id=product_id,
        correlation_id=correlation_id,
    )

    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=PRODUCT_NOT_FOUND
        )

    return product


@router.patch("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: int,
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[Decimal] = Form(None),
    image: Optional[UploadFile] = File(None),
    correlation_id: Optional[str] = CorrelationIdDep,
    user_id: str = AdminUserDep,
    service: ProductService = ProductServiceDep,
):
    """Update product (admin only); at least one field or an image is required"""
    fields = {
        key: value
        for key, value in {
            "name": name,
            "description": description,
            "price": price,
        }.items()
        if value is not None
    }
    if not fields and image is None:
        raise HTTPException(
            status_code=422,
            detail="At least one field must be provided",
        )

    return await service.update_product(
        product_id=product_id,
        product_data=ProductUpdate(**fields),
        user_id=user_id,
        image=image,
        correlation_id=correlation_id,
    )


@router.delete("/{product_id}", response_model=ProductResponse)
async def delete_product(
    product_id: int,
    correlation_id: Optional[str] = CorrelationIdDep,
    user_id: str = AdminUserDep,
    service: ProductService = ProductServiceDep,
):
    """Delete product (admin only) and return the removed record"""
    return await service.delete_product(
        product_id=product_id,
        user_id=user_id,
        correlation_id=correlation_id,
    )
