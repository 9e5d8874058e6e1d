"""
Bulk pricing planner.

Expands a product selection and a pricing rule into concrete pending
changes. Planning never touches the edit buffer: callers preview the
plan first and stage it explicitly.

Rules:
    percentage  new price = cost + cost × value/100  (markup on cost)
    fixed       new price = cost + value             (amount over cost)
    absolute    new price = value

An optional max discount change overwrites the discount of every
selected product regardless of the rule.
"""

from decimal import Decimal
from typing import Optional
import structlog

from models.product import ProductResponse
from models.pricing import (
    PricingMode,
    PricingRule,
    PendingChange,
    PricingPreview,
    BulkPricingRequest,
)
from exceptions import InvalidPricingRuleError, InvalidDiscountError
from utils.price_utils import Number, to_decimal, minimum_price, markup_percent, HUNDRED

logger = structlog.get_logger(__name__)


class BulkPricingPlanner:
    """Turns a selection plus rule into PendingChange items."""

    def new_price(self, product: ProductResponse, rule: PricingRule) -> Decimal:
        """Price a single product under a rule."""
        cost = product.cost
        value = rule.value

        if rule.mode == PricingMode.PERCENTAGE:
            return cost + cost * (value / HUNDRED)
        if rule.mode == PricingMode.FIXED:
            return cost + value
        if rule.mode == PricingMode.ABSOLUTE:
            return value

        raise InvalidPricingRuleError(f"Unknown pricing mode: {rule.mode}")

    def plan(
        self,
        selected_product_ids: list[str],
        rule: Optional[PricingRule],
        products: list[ProductResponse],
        max_discount_change: Optional[Number] = None
    ) -> list[PendingChange]:
        """
        Build pending changes for the selected products.

        Args:
            selected_product_ids: Products to change (unknown ids are skipped)
            rule: Price rule, or None to keep prices
            products: Current catalog state
            max_discount_change: New max discount for every selected product

        Returns:
            One PendingChange per known selected product, in selection order

        Raises:
            InvalidPricingRuleError: If neither a rule nor a discount change is given
            InvalidDiscountError: If the discount change is outside 0-100
        """
        if rule is None and max_discount_change is None:
            raise InvalidPricingRuleError("A pricing rule or a max discount change is required")

        new_discount = None
        if max_discount_change is not None:
            new_discount = to_decimal(max_discount_change)
            if new_discount < 0 or new_discount > HUNDRED:
                raise InvalidDiscountError(max_discount_change)

        by_id = {product.id: product for product in products}
        changes = []
        skipped = 0

        # dict.fromkeys keeps selection order and drops repeated ids
        for product_id in dict.fromkeys(selected_product_ids):
            product = by_id.get(product_id)
            if product is None:
                skipped += 1
                continue

            changes.append(PendingChange(
                product_id=product.id,
                product_name=product.name,
                old_price=product.price,
                new_price=self.new_price(product, rule) if rule else product.price,
                old_max_discount=product.max_discount_percent,
                new_max_discount=new_discount if new_discount is not None else product.max_discount_percent
            ))

        logger.info(
            "bulk_pricing_planned",
            selected=len(selected_product_ids),
            planned=len(changes),
            skipped=skipped,
            mode=rule.mode.value if rule else None,
            max_discount_change=str(new_discount) if new_discount is not None else None
        )

        return changes

    def plan_request(
        self,
        request: BulkPricingRequest,
        products: list[ProductResponse]
    ) -> list[PendingChange]:
        """Plan from an API request."""
        return self.plan(
            request.product_ids,
            request.rule,
            products,
            request.max_discount_change
        )

    def preview(
        self,
        changes: list[PendingChange],
        products: list[ProductResponse]
    ) -> list[PricingPreview]:
        """Rows showing the effect of a plan before it is staged."""
        by_id = {product.id: product for product in products}
        rows = []

        for change in changes:
            product = by_id.get(change.product_id)
            if product is None:
                continue

            rows.append(PricingPreview(
                product_id=change.product_id,
                product_name=change.product_name,
                current_price=change.old_price,
                new_price=change.new_price,
                current_max_discount=change.old_max_discount,
                new_max_discount=change.new_max_discount,
                minimum_price=minimum_price(change.new_price, change.new_max_discount),
                markup_percent=markup_percent(product.cost, change.new_price)
            ))

        return rows

    @staticmethod
    def filter_products(
        products: list[ProductResponse],
        category_id: Optional[str] = None,
        group_id: Optional[str] = None
    ) -> list[ProductResponse]:
        """Narrow selection candidates by category and/or group."""
        return [
            product for product in products
            if (category_id is None or product.category_id == category_id)
            and (group_id is None or product.group_id == group_id)
        ]


# Singleton instance for convenience
_bulk_pricing_planner: Optional[BulkPricingPlanner] = None


def get_bulk_pricing_planner() -> BulkPricingPlanner:
    """Get or create BulkPricingPlanner instance."""
    global _bulk_pricing_planner
    if _bulk_pricing_planner is None:
        _bulk_pricing_planner = BulkPricingPlanner()
    return _bulk_pricing_planner
