"""
Pricing validation.

Checks staged prices against product cost. Issues are advisory:
errors block a save until the operator confirms the override,
warnings are informational only.

The minimum effective price (price with the max discount applied)
is attached to issues for display but never validated.
"""

from decimal import Decimal
from typing import Optional
import structlog

from config import settings
from models.product import ProductResponse
from models.pricing import (
    PricingIssue,
    IssueKind,
    IssueSeverity,
    DiscountStatus,
)
from services.pricing_buffer import PricingEditBuffer
from utils.price_utils import Number, to_decimal, minimum_price, HUNDRED

logger = structlog.get_logger(__name__)


class PricingValidator:
    """Validation rules over the edit buffer."""

    def __init__(
        self,
        near_cost_margin_percent: Optional[Number] = None,
        discount_near_max_ratio: Optional[Number] = None
    ):
        if near_cost_margin_percent is None:
            near_cost_margin_percent = settings.near_cost_margin_percent
        if discount_near_max_ratio is None:
            discount_near_max_ratio = settings.discount_near_max_ratio

        self.near_cost_factor = 1 + to_decimal(near_cost_margin_percent) / HUNDRED
        self.discount_near_max_ratio = to_decimal(discount_near_max_ratio)

    def validate(
        self,
        buffer: PricingEditBuffer,
        persisted: list[ProductResponse]
    ) -> list[PricingIssue]:
        """
        Validate every product with staged edits.

        Args:
            buffer: Edit buffer
            persisted: Last known catalog state (source of cost)

        Returns:
            Issues in edit order; unknown products are skipped
        """
        by_id = {product.id: product for product in persisted}
        issues = []

        for product_id in buffer.dirty_ids:
            product = by_id.get(product_id)
            if product is None:
                continue

            issue = self._check_price(product, buffer.effective(product).price, buffer)
            if issue is not None:
                issues.append(issue)

        if issues:
            logger.info(
                "pricing_issues_found",
                errors=sum(1 for i in issues if i.blocking),
                warnings=sum(1 for i in issues if not i.blocking)
            )

        return issues

    def _check_price(
        self,
        product: ProductResponse,
        price: Decimal,
        buffer: PricingEditBuffer
    ) -> Optional[PricingIssue]:
        cost = product.cost
        floor = minimum_price(price, buffer.effective(product).max_discount_percent)

        if price < cost:
            return PricingIssue(
                product_id=product.id,
                product_name=product.name,
                kind=IssueKind.PRICE_BELOW_COST,
                severity=IssueSeverity.ERROR,
                message=f"Price {price:.2f} is below cost {cost:.2f}",
                price=price,
                cost=cost,
                minimum_price=floor
            )

        if cost > 0 and price <= cost * self.near_cost_factor:
            return PricingIssue(
                product_id=product.id,
                product_name=product.name,
                kind=IssueKind.PRICE_NEAR_COST,
                severity=IssueSeverity.WARNING,
                message=f"Price {price:.2f} is close to cost {cost:.2f}",
                price=price,
                cost=cost,
                minimum_price=floor
            )

        return None

    @staticmethod
    def requires_confirmation(issues: list[PricingIssue]) -> bool:
        """True when any issue blocks an unconfirmed save."""
        return any(issue.blocking for issue in issues)

    def check_discount(
        self,
        max_discount_percent: Optional[Number],
        applied_discount_percent: Number
    ) -> DiscountStatus:
        """
        Advisory status for a discount applied at sale time.

        No max discount (None or 0) means any discount is accepted.
        """
        if not max_discount_percent:
            return DiscountStatus.UNRESTRICTED

        limit = to_decimal(max_discount_percent)
        applied = to_decimal(applied_discount_percent)

        if applied > limit:
            return DiscountStatus.ABOVE_MAX
        if applied >= limit * self.discount_near_max_ratio:
            return DiscountStatus.NEAR_MAX
        return DiscountStatus.OK
