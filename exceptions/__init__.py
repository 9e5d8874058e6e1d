"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    DuplicateError,
    ExternalServiceError,
    DatabaseError,

    # Catalog
    ProductNotFoundError,
    UnitNotFoundError,
    CatalogUnavailableError,

    # Pricing
    InvalidPriceError,
    InvalidDiscountError,
    InvalidPricingRuleError,
    PricingValidationError,
    NoPendingChangesError,
    BatchInProgressError,
    BatchOrchestrationError,

    # Unit assignment
    UnitAlreadyAttachedError,
    LastUnitRemovalError,
    UnitAssignmentInvariantError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "DuplicateError",
    "ExternalServiceError",
    "DatabaseError",

    # Catalog
    "ProductNotFoundError",
    "UnitNotFoundError",
    "CatalogUnavailableError",

    # Pricing
    "InvalidPriceError",
    "InvalidDiscountError",
    "InvalidPricingRuleError",
    "PricingValidationError",
    "NoPendingChangesError",
    "BatchInProgressError",
    "BatchOrchestrationError",

    # Unit assignment
    "UnitAlreadyAttachedError",
    "LastUnitRemovalError",
    "UnitAssignmentInvariantError",
]
