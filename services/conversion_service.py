"""
Unit conversion engine.

Derives how many sub units fit in a main unit from their package
quantities, and prices each unit from the primary unit price.

Ratios are floored to whole sub units (never "1 box = 2.5 cans").
An inconsistent pair (sub unit holding more base items than the main
unit) yields an invalid ratio value instead of raising.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional
import structlog

from models.unit import UnitResponse, ProductUnitPrice

logger = structlog.get_logger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class ConversionRatio:
    """Sub units per main unit, or an invalid marker with its reason."""
    value: Optional[int]
    reason: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.value is not None


def package_quantity(unit: UnitResponse) -> int:
    """Package quantity with missing or non-positive values read as 1."""
    qty = unit.package_quantity
    if qty is None or qty <= 0:
        return 1
    return qty


class ConversionEngine:
    """Conversion ratios and per-unit prices."""

    def ratio(self, main_unit: UnitResponse, sub_unit: UnitResponse) -> ConversionRatio:
        """
        floor(main.package_quantity / sub.package_quantity).

        Args:
            main_unit: Unit being subdivided
            sub_unit: Unit it is subdivided into

        Returns:
            ConversionRatio, invalid when the sub unit holds more base items
        """
        main_qty = package_quantity(main_unit)
        sub_qty = package_quantity(sub_unit)

        if sub_qty > main_qty:
            logger.debug(
                "conversion_ratio_invalid",
                main_unit=main_unit.symbol,
                sub_unit=sub_unit.symbol,
                main_qty=main_qty,
                sub_qty=sub_qty
            )
            return ConversionRatio(
                value=None,
                reason=(
                    f"{sub_unit.symbol} ({sub_qty}) cannot hold more items "
                    f"than {main_unit.symbol} ({main_qty})"
                )
            )

        return ConversionRatio(value=main_qty // sub_qty)

    def unit_price(
        self,
        base_price: Decimal,
        main_unit: UnitResponse,
        target_unit: UnitResponse
    ) -> Decimal:
        """
        Price of one target unit given the price of one main unit.

        Returns the base price for the main unit itself, and 0 when the
        base price is 0 or the conversion is invalid.
        """
        if target_unit.id == main_unit.id:
            return base_price

        if not base_price:
            return ZERO

        conversion = self.ratio(main_unit, target_unit)
        if not conversion.is_valid:
            return ZERO

        return Decimal(base_price) / conversion.value

    def describe(self, main_unit: UnitResponse, sub_unit: UnitResponse) -> Optional[str]:
        """Human-readable conversion, e.g. '1 CX = 12 UN'."""
        conversion = self.ratio(main_unit, sub_unit)
        if not conversion.is_valid:
            return None
        return f"1 {main_unit.symbol} = {conversion.value} {sub_unit.symbol}"

    def unit_prices(
        self,
        base_price: Decimal,
        units: list[UnitResponse],
        primary_unit_id: Optional[str]
    ) -> list[ProductUnitPrice]:
        """
        Price every unit linked to a product.

        Without a primary unit there is no pricing base, so every
        unit is priced at 0.
        """
        main_unit = next((u for u in units if u.id == primary_unit_id), None)

        prices = []
        for unit in units:
            is_primary = main_unit is not None and unit.id == main_unit.id

            if main_unit is None:
                factor, price, label = None, ZERO, None
            elif is_primary:
                factor, price, label = 1, base_price, None
            else:
                conversion = self.ratio(main_unit, unit)
                factor = conversion.value
                price = self.unit_price(base_price, main_unit, unit)
                label = self.describe(main_unit, unit)

            prices.append(ProductUnitPrice(
                unit_id=unit.id,
                symbol=unit.symbol,
                label=unit.label,
                package_quantity=unit.package_quantity,
                is_primary=is_primary,
                conversion_factor=factor,
                price=price,
                conversion_label=label
            ))

        return prices


# Singleton instance for convenience
_conversion_engine: Optional[ConversionEngine] = None


def get_conversion_engine() -> ConversionEngine:
    """Get or create ConversionEngine instance."""
    global _conversion_engine
    if _conversion_engine is None:
        _conversion_engine = ConversionEngine()
    return _conversion_engine
