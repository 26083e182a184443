from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.database import get_db
from app.services.product_service import ProductService
from app.schemas.product import (
    ErrorResponse,
    ProductRequest,
    ProductResponse,
)

router = APIRouter(prefix="/products", tags=["Product Management"])

NOT_FOUND = {status.HTTP_404_NOT_FOUND: {"model": ErrorResponse, "description": "Product not found"}}
BAD_REQUEST = {status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse, "description": "Invalid input"}}
CONFLICT = {status.HTTP_409_CONFLICT: {"model": ErrorResponse, "description": "SKU already in use"}}
SERVER_ERROR = {status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse, "description": "Internal server error"}}


def get_product_service(db: Session = Depends(get_db)) -> ProductService:
    return ProductService(db)


@router.get(
    "",
    response_model=List[ProductResponse],
    summary="Get all products",
    description="Returns all products in the inventory, optionally filtered by name or category.",
    responses={**SERVER_ERROR},
)
def list_products(
    name: Optional[str] = Query(None, description="Case-insensitive name fragment"),
    category: Optional[str] = Query(None, description="Case-insensitive category"),
    service: ProductService = Depends(get_product_service),
):
    """Get all products."""
    return service.get_all(name=name, category=category)


@router.get(
    "/low-stock",
    response_model=List[ProductResponse],
    summary="Get low stock products",
    description="Returns all products at or below their low stock threshold.",
    responses={**SERVER_ERROR},
)
def list_low_stock_products(service: ProductService = Depends(get_product_service)):
    """Get products that need replenishment."""
    return service.get_low_stock()


@router.get(
    "/sku/{sku}",
    response_model=ProductResponse,
    summary="Get product by SKU",
    responses={**NOT_FOUND, **SERVER_ERROR},
)
def get_product_by_sku(sku: str, service: ProductService = Depends(get_product_service)):
    return service.get_by_sku(sku)


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Get product by ID",
    description="Returns a single product by its ID.",
    responses={**NOT_FOUND, **SERVER_ERROR},
)
def get_product(product_id: int, service: ProductService = Depends(get_product_service)):
    return service.get_by_id(product_id)


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new product",
    description="Creates a new product in the inventory.",
    responses={**BAD_REQUEST, **CONFLICT, **SERVER_ERROR},
)
def create_product(
    product_data: ProductRequest,
    service: ProductService = Depends(get_product_service),
):
    """
    Create a new product.

    - **name**: Product name, 2 to 100 characters (required)
    - **price**: Unit price, must be positive (required)
    - **stockQuantity**: Units on hand, must be non-negative (required)
    - **lowStockThreshold**: Defaults to 5, must be at least 1 (optional)

    `isLowStock` is computed by the server and cannot be set.
    """
    return service.create(product_data)


@router.put(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Update a product",
    description="Replaces an existing product. Every field must be resupplied.",
    responses={**BAD_REQUEST, **NOT_FOUND, **CONFLICT, **SERVER_ERROR},
)
def update_product(
    product_id: int,
    product_data: ProductRequest,
    service: ProductService = Depends(get_product_service),
):
    """
    Update a product.

    This is a full replacement: optional fields left out are cleared and
    the low stock flag is recomputed.
    """
    return service.update(product_id, product_data)


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a product",
    description="Deletes a product by its ID.",
    responses={**NOT_FOUND, **SERVER_ERROR},
)
def delete_product(product_id: int, service: ProductService = Depends(get_product_service)):
    """Delete a product."""
    service.delete(product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
