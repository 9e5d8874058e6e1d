"""
Unit tests for ConversionEngine.

Run: pytest tests/unit/test_conversion_service.py -v
"""

import pytest
from decimal import Decimal

from services.conversion_service import (
    ConversionEngine,
    package_quantity,
    get_conversion_engine,
)
from tests.factories import UnitFactory


@pytest.fixture
def engine():
    return ConversionEngine()


@pytest.fixture
def box():
    return UnitFactory.build(id="cx", symbol="CX", package_quantity=12)


@pytest.fixture
def pack():
    return UnitFactory.build(id="pct", symbol="PCT", package_quantity=5)


@pytest.fixture
def single():
    return UnitFactory.build(id="un", symbol="UN", package_quantity=1)


class TestPackageQuantity:
    """Tests for package_quantity()"""

    @pytest.mark.parametrize("qty", [None, 0, -3])
    def test_missing_or_non_positive_reads_as_one(self, qty):
        """Should treat missing and non-positive quantities as 1."""
        assert package_quantity(UnitFactory.build(package_quantity=qty)) == 1

    def test_positive_quantity_kept(self):
        assert package_quantity(UnitFactory.build(package_quantity=24)) == 24


class TestRatio:
    """Tests for ConversionEngine.ratio()"""

    def test_box_of_twelve_to_single(self, engine, box, single):
        """Should give 12 singles per box."""
        conversion = engine.ratio(box, single)

        assert conversion.is_valid
        assert conversion.value == 12

    def test_ratio_is_floored(self, engine, box, pack):
        """12 / 5 should floor to 2 whole packs."""
        assert engine.ratio(box, pack).value == 2

    def test_same_unit_is_one(self, engine, box):
        assert engine.ratio(box, box).value == 1

    def test_sub_larger_than_main_is_invalid(self, engine, box, single):
        """Should mark the ratio invalid instead of raising."""
        conversion = engine.ratio(single, box)

        assert not conversion.is_valid
        assert conversion.value is None
        assert "CX" in conversion.reason

    def test_missing_quantities_convert_one_to_one(self, engine):
        main = UnitFactory.build(symbol="A", package_quantity=None)
        sub = UnitFactory.build(symbol="B", package_quantity=0)

        assert engine.ratio(main, sub).value == 1


class TestUnitPrice:
    """Tests for ConversionEngine.unit_price()"""

    def test_main_unit_keeps_base_price(self, engine, box):
        assert engine.unit_price(Decimal("120"), box, box) == Decimal("120")

    def test_sub_unit_price_divides_by_ratio(self, engine, box, single):
        """120 per box of 12 should be 10 per single."""
        assert engine.unit_price(Decimal("120"), box, single) == Decimal("10")

    def test_floored_ratio_used_for_price(self, engine, box, pack):
        """Box of 12 into packs of 5 prices each pack at 120 / 2."""
        assert engine.unit_price(Decimal("120"), box, pack) == Decimal("60")

    def test_zero_base_price_is_zero(self, engine, box, single):
        assert engine.unit_price(Decimal("0"), box, single) == Decimal("0")

    def test_invalid_conversion_is_zero(self, engine, box, single):
        assert engine.unit_price(Decimal("10"), single, box) == Decimal("0")


class TestDescribe:
    """Tests for ConversionEngine.describe()"""

    def test_label(self, engine, box, single):
        assert engine.describe(box, single) == "1 CX = 12 UN"

    def test_invalid_has_no_label(self, engine, box, single):
        assert engine.describe(single, box) is None


class TestUnitPrices:
    """Tests for ConversionEngine.unit_prices()"""

    def test_prices_every_unit_from_primary(self, engine, box, pack, single):
        prices = engine.unit_prices(Decimal("120"), [box, pack, single], "cx")

        by_id = {p.unit_id: p for p in prices}
        assert by_id["cx"].is_primary
        assert by_id["cx"].price == Decimal("120")
        assert by_id["cx"].conversion_factor == 1
        assert by_id["pct"].price == Decimal("60")
        assert by_id["un"].price == Decimal("10")
        assert by_id["un"].conversion_label == "1 CX = 12 UN"

    def test_invalid_unit_reported_without_factor(self, engine, box, single):
        prices = engine.unit_prices(Decimal("10"), [single, box], "un")

        larger = next(p for p in prices if p.unit_id == "cx")
        assert larger.conversion_factor is None
        assert larger.price == Decimal("0")

    def test_no_primary_prices_everything_at_zero(self, engine, box, single):
        prices = engine.unit_prices(Decimal("120"), [box, single], None)

        assert all(p.price == Decimal("0") for p in prices)
        assert not any(p.is_primary for p in prices)


def test_get_conversion_engine_is_singleton():
    assert get_conversion_engine() is get_conversion_engine()
