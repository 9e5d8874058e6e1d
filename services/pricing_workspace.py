"""
Pricing workspace.

Owns everything the pricing screen works on: the catalog snapshot, the
edit buffer, the per-product batch statuses and the progress of the
last batch. The orchestrator receives the status board by reference,
so there is no shared module state between them.
"""

from typing import Optional
import structlog

from models.product import ProductResponse
from models.pricing import (
    PendingChange,
    PricingIssue,
    BulkPricingRequest,
    BatchItemStatus,
    BatchProgress,
    BatchResult,
    PricingProductView,
)
from services.product_service import ProductService, get_product_service
from services.pricing_buffer import PricingEditBuffer
from services.pricing_validator import PricingValidator
from services.bulk_pricing_service import BulkPricingPlanner, get_bulk_pricing_planner
from services.batch_update_service import (
    BatchStatusBoard,
    BatchUpdateOrchestrator,
    ProgressCallback,
    completed_items,
)
from integrations.notifications import NotificationSink, get_notification_sink
from exceptions import (
    ProductNotFoundError,
    PricingValidationError,
    NoPendingChangesError,
    BatchInProgressError,
)
from utils.price_utils import Number, minimum_price, markup_percent

logger = structlog.get_logger(__name__)


class PricingWorkspace:
    """Stateful pricing session over the product catalog."""

    def __init__(
        self,
        catalog: Optional[ProductService] = None,
        validator: Optional[PricingValidator] = None,
        planner: Optional[BulkPricingPlanner] = None,
        notifier: Optional[NotificationSink] = None,
        status_board: Optional[BatchStatusBoard] = None
    ):
        self.catalog = catalog or get_product_service()
        self.validator = validator or PricingValidator()
        self.planner = planner or get_bulk_pricing_planner()
        self.buffer = PricingEditBuffer()
        self.status_board = status_board or BatchStatusBoard()
        self.orchestrator = BatchUpdateOrchestrator(
            self.catalog,
            self.status_board,
            notifier if notifier is not None else get_notification_sink()
        )
        self.progress = BatchProgress()
        self._products: list[ProductResponse] = []
        self._loaded = False

    # ===================
    # SNAPSHOT
    # ===================

    @property
    def products(self) -> list[ProductResponse]:
        """Catalog snapshot, loaded on first use."""
        if not self._loaded:
            self.refresh()
        return self._products

    def refresh(self) -> list[ProductResponse]:
        """
        Reload the catalog snapshot.

        The edit buffer is re-seeded only when it has no edits.
        """
        self._products = self.catalog.get_all()
        self._loaded = True
        seeded = self.buffer.sync(self._products)
        logger.info("pricing_workspace_refreshed", products=len(self._products), seeded=seeded)
        return self._products

    def get_product(self, product_id: str) -> ProductResponse:
        for product in self.products:
            if product.id == product_id:
                return product
        raise ProductNotFoundError(product_id)

    def view(self, product: ProductResponse) -> PricingProductView:
        """Product merged with its staged values and batch status."""
        staged = self.buffer.effective(product)
        return PricingProductView(
            id=product.id,
            code=product.code,
            name=product.name,
            cost=product.cost,
            price=product.price,
            max_discount_percent=product.max_discount_percent,
            staged_price=staged.price,
            staged_max_discount_percent=staged.max_discount_percent,
            minimum_price=minimum_price(staged.price, staged.max_discount_percent),
            markup_percent=markup_percent(product.cost, staged.price),
            dirty=self.buffer.is_dirty(product.id),
            status=self.status_board.get(product.id)
        )

    def views(
        self,
        category_id: Optional[str] = None,
        group_id: Optional[str] = None
    ) -> list[PricingProductView]:
        products = self.planner.filter_products(self.products, category_id, group_id)
        return [self.view(product) for product in products]

    # ===================
    # EDITS
    # ===================

    def set_price(self, product_id: str, price: Number):
        self.get_product(product_id)
        self.buffer.set_price(product_id, price)

    def set_max_discount(self, product_id: str, max_discount_percent: Number):
        self.get_product(product_id)
        self.buffer.set_max_discount(product_id, max_discount_percent)

    def stage(self, changes: list[PendingChange]):
        self.buffer.stage(changes)

    def preview_bulk(self, request: BulkPricingRequest) -> list[PendingChange]:
        """Plan a bulk change without staging it."""
        return self.planner.plan_request(request, self.products)

    def apply_bulk(self, request: BulkPricingRequest) -> list[PendingChange]:
        """Plan a bulk change and stage it."""
        changes = self.preview_bulk(request)
        self.stage(changes)
        return changes

    def pending_changes(self) -> list[PendingChange]:
        return self.buffer.diff(self.products)

    def validate(self) -> list[PricingIssue]:
        return self.validator.validate(self.buffer, self.products)

    def discard(self):
        """Drop all staged edits and re-seed from the snapshot."""
        self.buffer.discard(self._products if self._loaded else None)

    # ===================
    # SAVE
    # ===================

    def save(
        self,
        confirm_override: bool = False,
        progress_callback: Optional[ProgressCallback] = None
    ) -> BatchResult:
        """
        Persist every pending change as one batch.

        Args:
            confirm_override: Save even when prices are below cost
            progress_callback: Forwarded (percent, product_name) updates

        Returns:
            BatchResult from the orchestrator

        Raises:
            NoPendingChangesError: If nothing differs from the catalog
            PricingValidationError: If blocking issues exist and were not confirmed
            BatchInProgressError: If a batch is already running
            BatchOrchestrationError: If the catalog is unreachable
        """
        changes = self.pending_changes()
        if not changes:
            raise NoPendingChangesError()

        issues = self.validate()
        if self.validator.requires_confirmation(issues) and not confirm_override:
            blocking = [issue for issue in issues if issue.blocking]
            logger.warning("pricing_save_blocked", issues=len(blocking))
            raise PricingValidationError([issue.model_dump(mode="json") for issue in blocking])

        total = len(changes)
        previous = self.progress
        progress = BatchProgress(running=True, total=total)
        self.progress = progress

        def on_progress(percent: float, product_name: Optional[str]):
            progress.percent = percent
            progress.completed = completed_items(percent, total)
            progress.current_product_name = product_name
            if progress_callback is not None:
                progress_callback(percent, product_name)

        try:
            result = self.orchestrator.execute(changes, on_progress)
        except BatchInProgressError:
            # the running batch keeps its progress
            self.progress = previous
            raise
        finally:
            progress.running = False

        progress.failed = result.failed
        self._fold(result, changes)

        return result

    def _fold(self, result: BatchResult, changes: list[PendingChange]):
        """Replace saved products in the snapshot and clear the edits that were sent."""
        applied = {
            outcome.product_id: outcome.applied
            for outcome in result.outcomes
            if outcome.status == BatchItemStatus.SAVED and outcome.applied is not None
        }
        if not applied:
            return

        self._products = [applied.get(product.id, product) for product in self._products]
        sent = {change.product_id: change for change in changes}
        for product_id, product in applied.items():
            self.buffer.commit(product, sent.get(product_id))

    def statuses(self) -> dict[str, BatchItemStatus]:
        return self.status_board.snapshot()


# Singleton instance for convenience
_pricing_workspace: Optional[PricingWorkspace] = None


def get_pricing_workspace() -> PricingWorkspace:
    """Get or create PricingWorkspace instance."""
    global _pricing_workspace
    if _pricing_workspace is None:
        _pricing_workspace = PricingWorkspace()
    return _pricing_workspace
