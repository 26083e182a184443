from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Integer,
    Numeric,
    String,
    Text,
)

from app.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Product(Base):
    """
    Product model representing an item tracked in the inventory.

    Attributes:
        id: Unique identifier for the product
        name: Product name
        description: Optional free-form description
        price: Unit price (must be positive)
        stock_quantity: Units on hand (must be non-negative)
        low_stock_threshold: Quantity at or below which the product is low on stock
        is_low_stock: Derived flag, written by ProductService on every create/update
        sku: Optional stock keeping unit, unique when present
        category: Optional category name
        created_at: Timestamp when product was created
        updated_at: Timestamp when product was last updated
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    description = Column(Text, nullable=True)
    price = Column(Numeric(19, 2), nullable=False)
    stock_quantity = Column(Integer, nullable=False, default=0)
    low_stock_threshold = Column(Integer, nullable=False, default=5)
    is_low_stock = Column(Boolean, nullable=False, default=False, index=True)
    sku = Column(String, nullable=True, unique=True)
    category = Column(String, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Database-level constraints to ensure data integrity
    __table_args__ = (
        CheckConstraint('price > 0', name='check_price_positive'),
        CheckConstraint('stock_quantity >= 0', name='check_stock_non_negative'),
        CheckConstraint('low_stock_threshold >= 1', name='check_threshold_positive'),
    )

    # Fields replaced by a full update; id and created_at never change
    MUTABLE_FIELDS = (
        "name",
        "description",
        "price",
        "stock_quantity",
        "low_stock_threshold",
        "is_low_stock",
        "sku",
        "category",
        "updated_at",
    )

    def __repr__(self):
        return (
            f"<Product(id={self.id}, name='{self.name}', "
            f"stock_quantity={self.stock_quantity}, is_low_stock={self.is_low_stock})>"
        )
