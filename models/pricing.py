"""
Pricing schemas: staged edits, validation issues, bulk rules and batch state.
"""

from pydantic import Field, model_validator
from typing import Optional
from enum import Enum
from decimal import Decimal

from models.base import BaseSchema
from models.product import ProductResponse, ProductPricingUpdate


class PricingMode(str, Enum):
    """How a bulk rule derives the new price."""
    PERCENTAGE = "percentage"  # markup percent over cost
    FIXED = "fixed"            # fixed amount over cost
    ABSOLUTE = "absolute"      # direct replacement


class IssueKind(str, Enum):
    """Validation issue types."""
    PRICE_BELOW_COST = "price_below_cost"
    PRICE_NEAR_COST = "price_near_cost"


class IssueSeverity(str, Enum):
    """Only errors block an unconfirmed save."""
    ERROR = "error"
    WARNING = "warning"


class DiscountStatus(str, Enum):
    """Advisory status of a discount applied at sale time."""
    UNRESTRICTED = "unrestricted"
    OK = "ok"
    NEAR_MAX = "near_max"
    ABOVE_MAX = "above_max"


class BatchItemStatus(str, Enum):
    """Per-product state while a batch is saved."""
    NONE = "none"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


# ===================
# EDIT BUFFER
# ===================

class StagedPricing(BaseSchema):
    """Buffered price and discount for one product."""

    price: Decimal = Field(Decimal("0"), ge=0)
    max_discount_percent: Optional[Decimal] = Field(None, ge=0, le=100)


class PendingChange(BaseSchema):
    """Difference between a staged edit and the persisted product."""

    product_id: str
    product_name: Optional[str] = None
    old_price: Decimal
    new_price: Decimal
    old_max_discount: Optional[Decimal] = None
    new_max_discount: Optional[Decimal] = None

    @property
    def display_name(self) -> str:
        return self.product_name or self.product_id

    @property
    def price_changed(self) -> bool:
        return self.new_price != self.old_price

    @property
    def discount_changed(self) -> bool:
        return self.new_max_discount != self.old_max_discount

    def to_update(self) -> ProductPricingUpdate:
        """Partial update carrying only the fields that changed."""
        return ProductPricingUpdate(
            price=self.new_price if self.price_changed else None,
            max_discount_percent=self.new_max_discount if self.discount_changed else None,
        )


class StagePricingRequest(BaseSchema):
    """Stage a price and/or discount edit for one product."""

    price: Optional[Decimal] = Field(None, description="New sale price")
    max_discount_percent: Optional[Decimal] = Field(None, description="New max discount percent")

    @model_validator(mode="after")
    def at_least_one_field(self):
        if self.price is None and self.max_discount_percent is None:
            raise ValueError("price or max_discount_percent is required")
        return self


# ===================
# VALIDATION
# ===================

class PricingIssue(BaseSchema):
    """An advisory problem with a staged price."""

    product_id: str
    product_name: Optional[str] = None
    kind: IssueKind
    severity: IssueSeverity
    message: str
    price: Decimal
    cost: Decimal
    minimum_price: Optional[Decimal] = None

    @property
    def blocking(self) -> bool:
        return self.severity == IssueSeverity.ERROR


class ValidationResponse(BaseSchema):
    """Validation of the current edit buffer."""

    issues: list[PricingIssue]
    requires_confirmation: bool


# ===================
# BULK PRICING
# ===================

class PricingRule(BaseSchema):
    """Price derivation applied to every selected product."""

    mode: PricingMode
    value: Decimal = Field(..., ge=0)


class BulkPricingRequest(BaseSchema):
    """
    Selection plus rule for a bulk pricing operation.

    The rule and the discount change are independent; at least one
    of them is required.
    """

    product_ids: list[str] = Field(..., min_length=1)
    rule: Optional[PricingRule] = None
    max_discount_change: Optional[Decimal] = Field(None, ge=0, le=100)


class PricingPreview(BaseSchema):
    """One preview row shown before a bulk plan is staged."""

    product_id: str
    product_name: Optional[str] = None
    current_price: Decimal
    new_price: Decimal
    current_max_discount: Optional[Decimal] = None
    new_max_discount: Optional[Decimal] = None
    minimum_price: Decimal
    markup_percent: Decimal


class BulkPreviewResponse(BaseSchema):
    data: list[PricingPreview]
    total: int


class PendingChangesResponse(BaseSchema):
    data: list[PendingChange]
    total: int


# ===================
# BATCH
# ===================

class ItemOutcome(BaseSchema):
    """Result of persisting one change, keyed by product id."""

    product_id: str
    product_name: Optional[str] = None
    status: BatchItemStatus
    error: Optional[str] = None
    applied: Optional[ProductResponse] = Field(
        None,
        description="Product as returned by the catalog after a successful update"
    )

    @property
    def message(self) -> Optional[str]:
        """Failure text shaped as '<productName>: <reason>'."""
        if self.error is None:
            return None
        return f"{self.product_name or self.product_id}: {self.error}"


class BatchResult(BaseSchema):
    """Final tally of a batch."""

    total: int
    success: int
    failed: list[str]
    outcomes: list[ItemOutcome]


class BatchProgress(BaseSchema):
    """Snapshot of the running (or last) batch for progress rendering."""

    running: bool = False
    total: int = 0
    percent: float = 0
    completed: int = 0
    current_product_name: Optional[str] = None
    failed: list[str] = Field(default_factory=list)


class SaveRequest(BaseSchema):
    """Save the buffered changes."""

    confirm_override: bool = Field(
        False,
        description="Save even when staged prices have blocking issues"
    )


class PricingProductView(BaseSchema):
    """Catalog product merged with its staged edit and batch status."""

    id: str
    code: Optional[str] = None
    name: str
    cost: Decimal
    price: Decimal
    max_discount_percent: Optional[Decimal] = None
    staged_price: Decimal
    staged_max_discount_percent: Optional[Decimal] = None
    minimum_price: Decimal
    markup_percent: Decimal
    dirty: bool
    status: BatchItemStatus


class PricingProductListResponse(BaseSchema):
    data: list[PricingProductView]
    total: int
    has_changes: bool


class BatchStatusResponse(BaseSchema):
    progress: BatchProgress
    statuses: dict[str, BatchItemStatus]
