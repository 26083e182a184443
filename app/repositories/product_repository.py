import logging
from typing import List

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.exceptions import ConflictError, NotFoundError, StorageError
from app.models.product import Product, utcnow

logger = logging.getLogger(__name__)


class ProductRepository:
    """
    Persistence for Product records.

    Every write commits on its own and rolls the session back before
    surfacing a failure, so a failed call never leaves partial state behind.
    Integrity violations (duplicate SKU) surface as ConflictError; any other
    database failure surfaces as StorageError.
    """

    def __init__(self, db: Session):
        self.db = db

    def insert(self, product: Product) -> Product:
        """
        Persist a new product. The database assigns the id; timestamps are
        filled in here if the caller did not set them.
        """
        now = utcnow()
        if product.created_at is None:
            product.created_at = now
        if product.updated_at is None:
            product.updated_at = product.created_at

        self.db.add(product)
        self._commit(f"inserting product sku={product.sku!r}")
        self.db.refresh(product)
        return product

    def get_by_id(self, product_id: int) -> Product:
        product = self._run(lambda: self.db.get(Product, product_id))
        if product is None:
            raise NotFoundError(f"Product not found with id: {product_id}", resource_id=product_id)
        return product

    def get_all(self) -> List[Product]:
        return self._scalars(select(Product).order_by(Product.id))

    def get_low_stock(self) -> List[Product]:
        return self._scalars(
            select(Product).where(Product.is_low_stock.is_(True)).order_by(Product.id)
        )

    def search_by_name(self, fragment: str) -> List[Product]:
        """Products whose name contains the fragment, ignoring case."""
        return self._scalars(
            select(Product).where(Product.name.ilike(f"%{fragment}%")).order_by(Product.id)
        )

    def get_by_category(self, category: str) -> List[Product]:
        return self._scalars(
            select(Product)
            .where(func.lower(Product.category) == category.lower())
            .order_by(Product.id)
        )

    def search(self, fragment: str, category: str) -> List[Product]:
        """Products matching both a name fragment and a category, ignoring case."""
        return self._scalars(
            select(Product)
            .where(
                Product.name.ilike(f"%{fragment}%"),
                func.lower(Product.category) == category.lower(),
            )
            .order_by(Product.id)
        )

    def get_by_sku(self, sku: str) -> Product:
        product = self._run(
            lambda: self.db.execute(select(Product).where(Product.sku == sku)).scalars().first()
        )
        if product is None:
            raise NotFoundError(f"Product not found with sku: {sku}", resource_id=sku)
        return product

    def update(self, product_id: int, product: Product) -> Product:
        """
        Replace every mutable field of the stored record with those of
        `product`. The id and created_at of the stored record are kept.
        """
        existing = self.get_by_id(product_id)
        if existing is not product:
            for field in Product.MUTABLE_FIELDS:
                setattr(existing, field, getattr(product, field))
        if existing.updated_at is None:
            existing.updated_at = utcnow()

        self._commit(f"updating product {product_id}")
        self.db.refresh(existing)
        return existing

    def delete(self, product_id: int) -> None:
        product = self.get_by_id(product_id)
        self.db.delete(product)
        self._commit(f"deleting product {product_id}")

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Integrity error {action}: {e.orig}")
            raise ConflictError("Product with the same SKU already exists") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error {action}: {e}")
            raise StorageError(str(e)) from e

    def _scalars(self, statement) -> List[Product]:
        return self._run(lambda: list(self.db.execute(statement).scalars().all()))

    def _run(self, query):
        try:
            return query()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error reading products: {e}")
            raise StorageError(str(e)) from e
