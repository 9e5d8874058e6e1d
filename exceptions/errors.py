"""
Custom exception classes for the application.

Every error exposes a stable code, an HTTP status and a details dict
so routes can render it without knowing the concrete type.
"""

from typing import Optional, Any
from datetime import datetime


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "PRODUCT_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.utcnow().isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ConflictError(AppError):
    """Conflict with existing resource or state (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class DuplicateError(ConflictError):
    """Duplicate resource (409)."""

    def __init__(
        self,
        resource: str,
        field: str,
        value: str
    ):
        super().__init__(
            code=f"{resource.upper()}_{field.upper()}_EXISTS",
            message=f"{resource} with this {field} already exists",
            details={field: value}
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""

    def __init__(
        self,
        service: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=f"{service.upper()}_ERROR",
            message=message,
            status_code=503,
            details={"service": service, **(details or {})}
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# CATALOG ERRORS
# ===================

class ProductNotFoundError(NotFoundError):
    """Product not found."""

    def __init__(self, product_id: str):
        super().__init__(
            resource="Product",
            identifier=product_id,
            code="PRODUCT_NOT_FOUND"
        )


class UnitNotFoundError(NotFoundError):
    """Unit of measure not found."""

    def __init__(self, unit_id: str):
        super().__init__(
            resource="Unit",
            identifier=unit_id,
            code="UNIT_NOT_FOUND"
        )


class CatalogUnavailableError(ExternalServiceError):
    """Product catalog cannot be reached at all."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            service="product_catalog",
            message=message,
            details=details
        )


# ===================
# PRICING ERRORS
# ===================

class InvalidPriceError(ValidationError):
    """Price must be zero or positive."""

    def __init__(self, product_id: str, price: Any):
        super().__init__(
            code="PRICING_INVALID_PRICE",
            message="Price must be greater than or equal to zero",
            details={"product_id": product_id, "provided": str(price)}
        )


class InvalidDiscountError(ValidationError):
    """Max discount must be within 0-100%."""

    def __init__(self, discount: Any, product_id: Optional[str] = None):
        super().__init__(
            code="PRICING_INVALID_DISCOUNT",
            message="Max discount percent must be between 0 and 100",
            details={"product_id": product_id, "provided": str(discount)}
        )


class InvalidPricingRuleError(ValidationError):
    """Bulk pricing request cannot be planned."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            code="PRICING_INVALID_RULE",
            message=message,
            details=details
        )


class PricingValidationError(ValidationError):
    """Staged prices have blocking issues and the save was not confirmed."""

    def __init__(self, issues: list[dict]):
        super().__init__(
            code="PRICING_CONFIRMATION_REQUIRED",
            message=f"{len(issues)} pricing issue(s) require confirmation before saving",
            details={"issues": issues}
        )


class NoPendingChangesError(ConflictError):
    """Save requested with a clean edit buffer."""

    def __init__(self):
        super().__init__(
            code="PRICING_NO_CHANGES",
            message="There are no pending pricing changes to save"
        )


class BatchInProgressError(ConflictError):
    """A batch is already running."""

    def __init__(self, total: int):
        super().__init__(
            code="PRICING_BATCH_IN_PROGRESS",
            message="A pricing batch is already being saved",
            details={"total": total}
        )


class BatchOrchestrationError(AppError):
    """Batch aborted before every item could be attempted (503)."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            code="PRICING_BATCH_FAILED",
            message=message,
            status_code=503,
            details=details
        )


# ===================
# UNIT ASSIGNMENT ERRORS
# ===================

class UnitAlreadyAttachedError(DuplicateError):
    """Unit is already linked to the product."""

    def __init__(self, product_id: str, unit_id: str):
        super().__init__(
            resource="Product unit",
            field="unit_id",
            value=unit_id
        )
        self.code = "PRODUCT_UNIT_EXISTS"
        self.details["product_id"] = product_id


class LastUnitRemovalError(ValidationError):
    """A product with units must keep at least one."""

    def __init__(self, product_id: str, unit_id: str):
        super().__init__(
            code="PRODUCT_UNIT_LAST_REMOVAL",
            message="Cannot remove the only unit linked to a product",
            details={"product_id": product_id, "unit_id": unit_id}
        )


class UnitAssignmentInvariantError(AppError):
    """Unit links ended in an impossible state (500)."""

    def __init__(self, product_id: str, reason: str):
        super().__init__(
            code="PRODUCT_UNIT_INVARIANT",
            message=f"Unit assignment invariant violated: {reason}",
            status_code=500,
            details={"product_id": product_id}
        )
