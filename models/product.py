"""
Product schemas for the pricing catalog.
"""

from pydantic import Field, field_validator
from typing import Optional
from decimal import Decimal

from models.base import BaseSchema


class ProductResponse(BaseSchema):
    """
    Priced product as persisted in the catalog.

    Null cost/price columns are read as zero.
    """

    id: str = Field(..., description="Product UUID")
    code: Optional[str] = Field(None, description="Product code")
    name: str = Field(..., description="Product name")
    cost: Decimal = Field(Decimal("0"), ge=0, description="Unit cost")
    price: Decimal = Field(Decimal("0"), ge=0, description="Sale price in the primary unit")
    max_discount_percent: Optional[Decimal] = Field(
        None,
        ge=0,
        le=100,
        description="Maximum discount allowed at sale time"
    )
    category_id: Optional[str] = Field(None, description="Product category")
    group_id: Optional[str] = Field(None, description="Product group")
    main_unit_id: Optional[str] = Field(None, description="Primary unit of measure")
    active: bool = Field(True, description="Whether product is active")

    @field_validator("cost", "price", mode="before")
    @classmethod
    def null_as_zero(cls, v):
        """Catalog rows may carry NULL money columns."""
        return Decimal("0") if v is None else v


class ProductPricingUpdate(BaseSchema):
    """
    Partial pricing update sent to the catalog.

    Only provided fields are written.
    """

    price: Optional[Decimal] = Field(None, ge=0, description="New sale price")
    max_discount_percent: Optional[Decimal] = Field(
        None,
        ge=0,
        le=100,
        description="New maximum discount percent"
    )

    def to_db(self) -> dict:
        """Column dict for the products table."""
        data = {}
        if self.price is not None:
            data["price"] = float(self.price)
        if self.max_discount_percent is not None:
            data["max_discount_percent"] = float(self.max_discount_percent)
        return data
