"""
Pricing edit buffer.

Holds staged price and max-discount edits per product until they are
saved. The buffer is only re-seeded from the catalog while it is
clean, so a catalog refresh never overwrites edits in progress.
"""

from threading import RLock
from typing import Optional
import structlog

from models.product import ProductResponse
from models.pricing import StagedPricing, PendingChange
from exceptions import InvalidPriceError, InvalidDiscountError
from utils.price_utils import Number, to_decimal, HUNDRED

logger = structlog.get_logger(__name__)

PRICE = "price"
MAX_DISCOUNT = "max_discount_percent"


class PricingEditBuffer:
    """
    Staged pricing edits keyed by product id.

    Each dirty product remembers which fields were edited; unedited
    fields always read through to the persisted product.

    Edits arrive from request handlers while a save runs in a worker
    thread, so reads and writes of the entries go through one lock.
    """

    def __init__(self):
        self._entries: dict[str, StagedPricing] = {}
        # product_id -> edited fields, in edit order
        self._dirty: dict[str, set[str]] = {}
        self._lock = RLock()

    @property
    def has_changes(self) -> bool:
        return bool(self._dirty)

    @property
    def dirty_ids(self) -> list[str]:
        return list(self._dirty.keys())

    def is_dirty(self, product_id: str) -> bool:
        return product_id in self._dirty

    def get(self, product_id: str) -> Optional[StagedPricing]:
        """Raw buffered entry, or None when the product was never seeded or edited."""
        return self._entries.get(product_id)

    def effective(self, product: ProductResponse) -> StagedPricing:
        """Staged values for a product, falling back to persisted ones for unedited fields."""
        with self._lock:
            entry = self._entries.get(product.id)
            fields = set(self._dirty.get(product.id, ()))

        price = entry.price if entry is not None and PRICE in fields else product.price
        max_discount = (
            entry.max_discount_percent
            if entry is not None and MAX_DISCOUNT in fields
            else product.max_discount_percent
        )
        return StagedPricing(price=price, max_discount_percent=max_discount)

    # ===================
    # SEEDING
    # ===================

    def sync(self, products: list[ProductResponse]) -> bool:
        """
        Seed the buffer from persisted products.

        Returns:
            True if seeded, False if skipped because local edits exist
        """
        with self._lock:
            if self.has_changes:
                logger.info("pricing_buffer_sync_skipped", dirty=len(self._dirty))
                return False

            self._entries = {
                product.id: StagedPricing(
                    price=product.price,
                    max_discount_percent=product.max_discount_percent
                )
                for product in products
            }
        logger.debug("pricing_buffer_synced", products=len(self._entries))
        return True

    # ===================
    # EDITS
    # ===================

    def set_price(self, product_id: str, price: Number):
        """
        Stage a new price.

        Raises:
            InvalidPriceError: If price is negative
        """
        value = to_decimal(price)
        if value < 0:
            raise InvalidPriceError(product_id, price)

        with self._lock:
            entry = self._entries.get(product_id) or StagedPricing(price=value)
            entry.price = value
            self._entries[product_id] = entry
            self._dirty.setdefault(product_id, set()).add(PRICE)

    def set_max_discount(self, product_id: str, max_discount_percent: Number):
        """
        Stage a new max discount percent.

        Raises:
            InvalidDiscountError: If outside 0-100
        """
        value = to_decimal(max_discount_percent)
        if value < 0 or value > HUNDRED:
            raise InvalidDiscountError(max_discount_percent, product_id)

        with self._lock:
            entry = self._entries.get(product_id) or StagedPricing()
            entry.max_discount_percent = value
            self._entries[product_id] = entry
            self._dirty.setdefault(product_id, set()).add(MAX_DISCOUNT)

    def stage(self, changes: list[PendingChange]):
        """Stage planned changes (e.g. from a bulk plan)."""
        for change in changes:
            if change.price_changed:
                self.set_price(change.product_id, change.new_price)
            if change.discount_changed and change.new_max_discount is not None:
                self.set_max_discount(change.product_id, change.new_max_discount)

        logger.info("pricing_changes_staged", count=len(changes), dirty=len(self._dirty))

    # ===================
    # DIFF / COMMIT
    # ===================

    def diff(self, persisted: list[ProductResponse]) -> list[PendingChange]:
        """
        Pending changes for dirty products that differ from persisted values.

        Products missing from the persisted set are skipped.
        """
        by_id = {product.id: product for product in persisted}

        changes = []
        with self._lock:
            dirty = list(self._dirty)

        for product_id in dirty:
            product = by_id.get(product_id)
            if product is None:
                continue

            staged = self.effective(product)
            if (
                staged.price == product.price
                and staged.max_discount_percent == product.max_discount_percent
            ):
                continue

            changes.append(PendingChange(
                product_id=product_id,
                product_name=product.name,
                old_price=product.price,
                new_price=staged.price,
                old_max_discount=product.max_discount_percent,
                new_max_discount=staged.max_discount_percent
            ))

        return changes

    def commit(self, product: ProductResponse, change: Optional[PendingChange] = None):
        """
        Mark a product as persisted: its entry now mirrors the catalog.

        With the change that was sent, only fields still staged at the
        sent value are cleared; a field edited again meanwhile stays dirty.
        """
        with self._lock:
            fields = self._dirty.pop(product.id, set())
            entry = self._entries.get(product.id)

            remaining = set()
            if change is not None and entry is not None:
                if PRICE in fields and entry.price != change.new_price:
                    remaining.add(PRICE)
                if MAX_DISCOUNT in fields and entry.max_discount_percent != change.new_max_discount:
                    remaining.add(MAX_DISCOUNT)

            self._entries[product.id] = StagedPricing(
                price=entry.price if PRICE in remaining else product.price,
                max_discount_percent=(
                    entry.max_discount_percent if MAX_DISCOUNT in remaining
                    else product.max_discount_percent
                )
            )
            if remaining:
                self._dirty[product.id] = remaining

        if remaining:
            logger.info("pricing_edit_kept_after_save", product_id=product.id, fields=sorted(remaining))

    def discard(self, products: Optional[list[ProductResponse]] = None):
        """Drop every staged edit, re-seeding from products when given."""
        with self._lock:
            dropped = len(self._dirty)
            self._dirty.clear()
            if products is not None:
                self.sync(products)
        logger.info("pricing_changes_discarded", dropped=dropped)
