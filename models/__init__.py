"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema
from models.product import (
    ProductResponse,
    ProductPricingUpdate,
)
from models.unit import (
    UnitResponse,
    UnitListResponse,
    ProductUnitLink,
    AttachUnitRequest,
    ProductUnitPrice,
    ProductUnitsResponse,
    ConversionResponse,
)
from models.pricing import (
    PricingMode,
    IssueKind,
    IssueSeverity,
    DiscountStatus,
    BatchItemStatus,
    StagedPricing,
    PendingChange,
    StagePricingRequest,
    PricingIssue,
    ValidationResponse,
    PricingRule,
    BulkPricingRequest,
    PricingPreview,
    BulkPreviewResponse,
    PendingChangesResponse,
    ItemOutcome,
    BatchResult,
    BatchProgress,
    SaveRequest,
    PricingProductView,
    PricingProductListResponse,
    BatchStatusResponse,
)

__all__ = [
    # Base
    "BaseSchema",

    # Product
    "ProductResponse",
    "ProductPricingUpdate",

    # Unit
    "UnitResponse",
    "UnitListResponse",
    "ProductUnitLink",
    "AttachUnitRequest",
    "ProductUnitPrice",
    "ProductUnitsResponse",
    "ConversionResponse",

    # Pricing
    "PricingMode",
    "IssueKind",
    "IssueSeverity",
    "DiscountStatus",
    "BatchItemStatus",
    "StagedPricing",
    "PendingChange",
    "StagePricingRequest",
    "PricingIssue",
    "ValidationResponse",
    "PricingRule",
    "BulkPricingRequest",
    "PricingPreview",
    "BulkPreviewResponse",
    "PendingChangesResponse",
    "ItemOutcome",
    "BatchResult",
    "BatchProgress",
    "SaveRequest",
    "PricingProductView",
    "PricingProductListResponse",
    "BatchStatusResponse",
]
