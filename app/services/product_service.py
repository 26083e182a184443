from sqlalchemy.orm import Session
from pydantic import ValidationError as PydanticValidationError
from typing import Any, List, Mapping, Optional, Union
import logging

from app.exceptions import NotFoundError, ValidationError, format_validation_errors
from app.models.product import Product, utcnow
from app.repositories.product_repository import ProductRepository
from app.schemas.product import ProductRequest, ProductResponse
from app.services.stock_rules import is_low_stock

logger = logging.getLogger(__name__)

ProductInput = Union[ProductRequest, Mapping[str, Any]]


class ProductService:
    """
    Service class for Product operations.

    This service handles:
    - Validating create/update input
    - Applying the low-stock rule before every write
    - Delegating persistence to ProductRepository
    - Mapping stored records to ProductResponse

    The low-stock flag is recomputed here, explicitly, on both write paths;
    nothing else writes it.
    """

    def __init__(self, db: Optional[Session] = None, repository: Optional[ProductRepository] = None):
        if repository is None:
            if db is None:
                raise ValueError("ProductService needs a database session or a repository")
            repository = ProductRepository(db)
        self.repository = repository

    def create(self, product_data: ProductInput) -> ProductResponse:
        """
        Create a new product.

        Args:
            product_data: Product input (schema instance or raw mapping)

        Returns:
            The stored product

        Raises:
            ValidationError: If the input violates a field constraint
        """
        data = self._validate(product_data)

        now = utcnow()
        product = Product(created_at=now, updated_at=now)
        self._apply_request(product, data)

        product = self.repository.insert(product)
        logger.info(f"Product #{product.id} created (low stock: {product.is_low_stock})")
        return self._to_response(product)

    def get_by_id(self, product_id: int) -> ProductResponse:
        """
        Get a product by ID.

        Raises:
            NotFoundError: If no product has this ID
        """
        return self._to_response(self._find(product_id))

    def get_by_sku(self, sku: str) -> ProductResponse:
        return self._to_response(self.repository.get_by_sku(sku))

    def get_all(self, name: Optional[str] = None, category: Optional[str] = None) -> List[ProductResponse]:
        """
        Get all products, optionally narrowed by a name fragment or a category.

        When both filters are given, a product must match both.
        """
        if name and category:
            products = self.repository.search(name, category)
        elif name:
            products = self.repository.search_by_name(name)
        elif category:
            products = self.repository.get_by_category(category)
        else:
            products = self.repository.get_all()
        return [self._to_response(p) for p in products]

    def get_low_stock(self) -> List[ProductResponse]:
        """Get every product currently at or below its low-stock threshold."""
        return [self._to_response(p) for p in self.repository.get_low_stock()]

    def update(self, product_id: int, product_data: ProductInput) -> ProductResponse:
        """
        Replace an existing product.

        This is a full replacement: optional fields missing from the input
        are cleared rather than kept.

        Args:
            product_id: ID of product to update
            product_data: Complete product input

        Returns:
            The updated product

        Raises:
            ValidationError: If the input violates a field constraint
            NotFoundError: If no product has this ID
        """
        data = self._validate(product_data)
        product = self._find(product_id)

        self._apply_request(product, data)
        product.updated_at = utcnow()

        product = self.repository.update(product_id, product)
        logger.info(f"Product #{product_id} updated (low stock: {product.is_low_stock})")
        return self._to_response(product)

    def delete(self, product_id: int) -> None:
        """
        Delete a product.

        Raises:
            NotFoundError: If no product has this ID
        """
        self._find(product_id)
        self.repository.delete(product_id)
        logger.info(f"Product #{product_id} deleted")

    def _find(self, product_id: int) -> Product:
        try:
            return self.repository.get_by_id(product_id)
        except NotFoundError:
            logger.warning(f"Product #{product_id} not found")
            raise

    def _validate(self, product_data: ProductInput) -> ProductRequest:
        if isinstance(product_data, ProductRequest):
            # Attribute assignment on a model instance is not validated
            product_data = product_data.model_dump()
        try:
            return ProductRequest.model_validate(product_data)
        except PydanticValidationError as e:
            raise ValidationError(format_validation_errors(e.errors())) from e

    def _apply_request(self, product: Product, data: ProductRequest) -> None:
        """Overwrite every client-supplied field and recompute the derived flag."""
        product.name = data.name
        product.description = data.description
        product.price = data.price
        product.stock_quantity = data.stock_quantity
        product.low_stock_threshold = data.low_stock_threshold
        product.sku = data.sku
        product.category = data.category
        product.is_low_stock = is_low_stock(data.stock_quantity, data.low_stock_threshold)

    def _to_response(self, product: Product) -> ProductResponse:
        return ProductResponse.model_validate(product)
