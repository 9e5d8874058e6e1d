"""
Unit tests for PricingEditBuffer.

Run: pytest tests/unit/test_pricing_buffer.py -v
"""

import pytest
from decimal import Decimal

from services.pricing_buffer import PricingEditBuffer
from models.pricing import PendingChange
from exceptions import InvalidPriceError, InvalidDiscountError
from tests.factories import ProductFactory


@pytest.fixture
def products():
    return [
        ProductFactory.build(id="p1", name="Alpha", cost=10, price=15, max_discount_percent=5),
        ProductFactory.build(id="p2", name="Beta", cost=20, price=30),
    ]


@pytest.fixture
def buffer(products):
    buf = PricingEditBuffer()
    buf.sync(products)
    return buf


class TestSync:
    """Tests for PricingEditBuffer.sync()"""

    def test_seeds_from_products(self, buffer):
        assert buffer.get("p1").price == Decimal("15")
        assert not buffer.has_changes

    def test_skipped_while_dirty(self, buffer, products):
        buffer.set_price("p1", 18)
        refreshed = [
            ProductFactory.build(id="p1", name="Alpha", cost=10, price=99),
            products[1],
        ]

        seeded = buffer.sync(refreshed)

        assert seeded is False
        assert buffer.get("p1").price == Decimal("18")

    def test_resyncs_when_clean(self, buffer):
        seeded = buffer.sync([ProductFactory.build(id="p1", price=99)])

        assert seeded is True
        assert buffer.get("p1").price == Decimal("99")
        assert buffer.get("p2") is None


class TestEdits:
    """Tests for set_price() and set_max_discount()"""

    def test_set_price_marks_dirty(self, buffer):
        buffer.set_price("p1", "17.50")

        assert buffer.is_dirty("p1")
        assert buffer.dirty_ids == ["p1"]
        assert buffer.get("p1").price == Decimal("17.50")

    def test_negative_price_rejected(self, buffer):
        with pytest.raises(InvalidPriceError) as exc_info:
            buffer.set_price("p1", -1)

        assert exc_info.value.status_code == 422
        assert not buffer.is_dirty("p1")

    def test_zero_price_allowed(self, buffer):
        buffer.set_price("p1", 0)

        assert buffer.get("p1").price == Decimal("0")

    @pytest.mark.parametrize("discount", [-0.1, 100.5])
    def test_discount_out_of_range_rejected(self, buffer, discount):
        with pytest.raises(InvalidDiscountError):
            buffer.set_max_discount("p1", discount)

    @pytest.mark.parametrize("discount", [0, 100])
    def test_discount_bounds_inclusive(self, buffer, discount):
        buffer.set_max_discount("p1", discount)

        assert buffer.get("p1").max_discount_percent == Decimal(str(discount))

    def test_effective_reads_unedited_fields_from_product(self, buffer, products):
        buffer.set_price("p1", 20)

        staged = buffer.effective(products[0])

        assert staged.price == Decimal("20")
        assert staged.max_discount_percent == Decimal("5")

    def test_stage_applies_only_changed_fields(self, buffer):
        buffer.stage([
            PendingChange(
                product_id="p2",
                old_price=Decimal("30"),
                new_price=Decimal("30"),
                old_max_discount=None,
                new_max_discount=Decimal("12")
            )
        ])

        assert buffer.is_dirty("p2")
        assert buffer.get("p2").max_discount_percent == Decimal("12")
        assert buffer.get("p2").price == Decimal("30")


class TestDiff:
    """Tests for PricingEditBuffer.diff()"""

    def test_diff_lists_changed_products(self, buffer, products):
        buffer.set_price("p1", 18)
        buffer.set_max_discount("p2", 10)

        changes = buffer.diff(products)

        assert [c.product_id for c in changes] == ["p1", "p2"]
        assert changes[0].old_price == Decimal("15")
        assert changes[0].new_price == Decimal("18")
        assert changes[0].product_name == "Alpha"
        assert changes[1].new_max_discount == Decimal("10")

    def test_edit_back_to_persisted_is_not_a_change(self, buffer, products):
        buffer.set_price("p1", 15)

        assert buffer.diff(products) == []

    def test_unknown_product_skipped(self, buffer, products):
        buffer.set_price("ghost", 5)

        assert buffer.diff(products) == []

    def test_to_update_carries_only_changed_fields(self, buffer, products):
        buffer.set_price("p1", 18)

        update = buffer.diff(products)[0].to_update()

        assert update.to_db() == {"price": 18.0}


class TestCommitAndDiscard:
    """Tests for commit() and discard()"""

    def test_commit_clears_dirty_and_mirrors_product(self, buffer):
        buffer.set_price("p1", 18)
        buffer.set_price("p2", 35)

        buffer.commit(ProductFactory.build(id="p1", cost=10, price=18))

        assert not buffer.is_dirty("p1")
        assert buffer.is_dirty("p2")
        assert buffer.get("p1").price == Decimal("18")

    def test_discard_drops_edits_and_reseeds(self, buffer, products):
        buffer.set_price("p1", 18)

        buffer.discard(products)

        assert not buffer.has_changes
        assert buffer.get("p1").price == Decimal("15")

    def test_diff_is_idempotent(self, buffer, products):
        buffer.set_price("p1", 18)
        buffer.set_max_discount("p2", 7)

        assert buffer.diff(products) == buffer.diff(products)

    def test_commit_keeps_edit_made_after_diff(self, buffer, products):
        buffer.set_price("p1", 18)
        sent = buffer.diff(products)[0]
        buffer.set_price("p1", 21)

        buffer.commit(ProductFactory.build(id="p1", cost=10, price=18, max_discount_percent=5), sent)

        assert buffer.is_dirty("p1")
        assert buffer.get("p1").price == Decimal("21")

    def test_commit_clears_only_fields_saved_as_sent(self, buffer, products):
        buffer.set_price("p1", 18)
        sent = buffer.diff(products)[0]
        buffer.set_max_discount("p1", 8)

        saved = ProductFactory.build(id="p1", name="Alpha", cost=10, price=18, max_discount_percent=5)
        buffer.commit(saved, sent)

        [change] = buffer.diff([saved])
        assert not change.price_changed
        assert change.new_max_discount == Decimal("8")

    def test_commit_with_matching_change_clears(self, buffer, products):
        buffer.set_price("p1", 18)
        sent = buffer.diff(products)[0]

        buffer.commit(ProductFactory.build(id="p1", cost=10, price=18, max_discount_percent=5), sent)

        assert not buffer.has_changes
