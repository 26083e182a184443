from pydantic import BaseModel, Field, ConfigDict, field_validator, field_serializer
from pydantic.alias_generators import to_camel
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

from app.services.stock_rules import DEFAULT_LOW_STOCK_THRESHOLD

PRICE_SCALE = Decimal("0.01")


class ProductBase(BaseModel):
    """Base schema for Product with the client-supplied attributes."""
    name: str = Field(..., min_length=2, max_length=100, description="Product name")
    description: Optional[str] = Field(None, description="Product description")
    price: Decimal = Field(..., gt=0, description="Unit price (must be positive)")
    stock_quantity: int = Field(..., ge=0, description="Units on hand (must be non-negative)")
    low_stock_threshold: int = Field(
        DEFAULT_LOW_STOCK_THRESHOLD,
        ge=1,
        description="Quantity at or below which the product is flagged as low on stock",
    )
    sku: Optional[str] = Field(None, description="Stock keeping unit")
    category: Optional[str] = Field(None, description="Product category")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProductRequest(ProductBase):
    """
    Schema for creating or replacing a product.

    Updates are full replacements: optional fields left out of the payload
    are cleared, and a missing threshold falls back to the default.
    """

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Product name is required")
        return value

    @field_validator("price")
    @classmethod
    def round_price_to_cents(cls, value: Decimal) -> Decimal:
        """Prices are stored with two decimal places; extra digits are rounded."""
        try:
            rounded = value.quantize(PRICE_SCALE, rounding=ROUND_HALF_UP)
        except InvalidOperation:
            raise ValueError("Price is too large")
        if rounded <= 0:
            raise ValueError("Price must be at least 0.01")
        return rounded

    @field_validator("sku", mode="before")
    @classmethod
    def blank_sku_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("low_stock_threshold", mode="before")
    @classmethod
    def default_threshold(cls, value):
        if value is None:
            return DEFAULT_LOW_STOCK_THRESHOLD
        return value


class ProductResponse(ProductBase):
    """Schema for product response including server-owned fields."""
    id: int
    is_low_stock: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    @field_serializer("price")
    def serialize_price(self, price: Decimal) -> float:
        return float(price)


class ErrorResponse(BaseModel):
    """Error body returned for every failed request."""
    timestamp: datetime
    status: int
    message: str
    path: str
    details: Optional[str] = None
