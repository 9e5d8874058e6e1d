"""
Unit of measure schemas.

Units are owned by the unit catalog; this service only reads them
and links them to products.
"""

from pydantic import Field
from typing import Optional
from decimal import Decimal

from models.base import BaseSchema


class UnitResponse(BaseSchema):
    """A measurement unit and how many base items one of it contains."""

    id: str = Field(..., description="Unit UUID")
    symbol: str = Field(..., description="Short code, e.g. CX or UN")
    label: str = Field(..., description="Display label")
    package_quantity: Optional[int] = Field(
        None,
        description="Base items per unit; missing or non-positive counts as 1"
    )


class UnitListResponse(BaseSchema):
    """List of units."""

    data: list[UnitResponse]
    total: int


class ProductUnitLink(BaseSchema):
    """A unit attached to a product."""

    product_id: str
    unit_id: str
    is_primary: bool = False


class AttachUnitRequest(BaseSchema):
    """Attach a unit to a product."""

    unit_id: str = Field(..., min_length=1, description="Unit UUID")
    make_primary: bool = Field(False, description="Promote the unit to primary")


class ProductUnitPrice(BaseSchema):
    """A linked unit with its price derived from the primary unit."""

    unit_id: str
    symbol: str
    label: str
    package_quantity: Optional[int] = None
    is_primary: bool
    conversion_factor: Optional[int] = Field(
        None,
        description="Sub units per primary unit; None when the conversion is invalid"
    )
    price: Decimal
    conversion_label: Optional[str] = None


class ProductUnitsResponse(BaseSchema):
    """All units of a product with derived prices."""

    product_id: str
    primary_unit_id: Optional[str] = None
    units: list[ProductUnitPrice]


class ConversionResponse(BaseSchema):
    """Conversion ratio between two units."""

    main_unit_id: str
    sub_unit_id: str
    is_valid: bool
    ratio: Optional[int] = None
    label: Optional[str] = None
    reason: Optional[str] = None
