"""
Batch pricing updates.

Submits a list of pending changes to the product catalog as one
logical operation with independent per-item outcomes:

    pending -> saving -> saved | error

A rejected item never stops the rest of the batch. If the catalog is
unreachable the whole batch is aborted and reported once. There are
no retries; items that failed stay dirty for the next batch.

Per-item statuses remain visible for a short grace period after the
batch completes, then clear.
"""

import math
import time
from threading import Lock
from typing import Callable, Optional, Protocol
import structlog

from config import settings
from models.product import ProductResponse, ProductPricingUpdate
from models.pricing import (
    PendingChange,
    BatchItemStatus,
    ItemOutcome,
    BatchResult,
)
from integrations.notifications import NotificationSink
from exceptions import (
    AppError,
    CatalogUnavailableError,
    BatchInProgressError,
    BatchOrchestrationError,
)

logger = structlog.get_logger(__name__)

ProgressCallback = Callable[[float, Optional[str]], None]


class ProductCatalog(Protocol):
    """What the orchestrator needs from the catalog."""

    def update(self, product_id: str, data: ProductPricingUpdate) -> ProductResponse:
        ...


def completed_items(percent: float, total: int) -> int:
    """Items done for a progress percentage: ceil(percent/100 × total)."""
    # round() absorbs float noise such as 60.00000000000001
    return math.ceil(round(percent / 100 * total, 9))


class BatchStatusBoard:
    """
    Per-product batch status, keyed by product id.

    Statuses of a finished batch expire grace_seconds after it
    completes; unknown products read as NONE.
    """

    def __init__(
        self,
        grace_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        self.grace_seconds = settings.batch_status_grace_seconds if grace_seconds is None else grace_seconds
        self._clock = clock
        self._statuses: dict[str, BatchItemStatus] = {}
        self._completed_at: Optional[float] = None

    def start(self, product_ids: list[str]):
        """Mark every product of a new batch as saving."""
        self._statuses = {product_id: BatchItemStatus.SAVING for product_id in product_ids}
        self._completed_at = None

    def set(self, product_id: str, status: BatchItemStatus):
        self._statuses[product_id] = status

    def complete(self):
        """Start the grace period."""
        self._completed_at = self._clock()

    def abort(self):
        """Fail every item still saving and complete the batch."""
        for product_id, status in self._statuses.items():
            if status == BatchItemStatus.SAVING:
                self._statuses[product_id] = BatchItemStatus.ERROR
        self.complete()

    def _expire(self):
        if self._completed_at is None:
            return
        if self._clock() - self._completed_at >= self.grace_seconds:
            self._statuses = {}
            self._completed_at = None

    def get(self, product_id: str) -> BatchItemStatus:
        self._expire()
        return self._statuses.get(product_id, BatchItemStatus.NONE)

    def snapshot(self) -> dict[str, BatchItemStatus]:
        self._expire()
        return dict(self._statuses)


class BatchUpdateOrchestrator:
    """
    Executes pending changes against the catalog.

    One batch at a time; a second execute() while one is running is
    rejected.
    """

    def __init__(
        self,
        catalog: ProductCatalog,
        status_board: BatchStatusBoard,
        notifier: Optional[NotificationSink] = None
    ):
        self.catalog = catalog
        self.status_board = status_board
        self.notifier = notifier
        self._running_total: Optional[int] = None
        self._lock = Lock()

    @property
    def is_running(self) -> bool:
        return self._running_total is not None

    def execute(
        self,
        changes: list[PendingChange],
        progress_callback: Optional[ProgressCallback] = None
    ) -> BatchResult:
        """
        Persist every change and tally the outcomes.

        Args:
            changes: Pending changes to persist
            progress_callback: Called with (percent, product_name) as each item resolves

        Returns:
            BatchResult with success count and "<name>: <reason>" failures

        Raises:
            BatchInProgressError: If another batch is running
            BatchOrchestrationError: If the catalog is unreachable
        """
        total = len(changes)
        with self._lock:
            if self.is_running:
                raise BatchInProgressError(self._running_total)
            self._running_total = total

        logger.info("batch_update_started", total=total)

        self.status_board.start([change.product_id for change in changes])
        outcomes: list[ItemOutcome] = []

        try:
            for index, change in enumerate(changes, start=1):
                outcome = self._persist_one(change)
                self.status_board.set(change.product_id, outcome.status)
                outcomes.append(outcome)

                if progress_callback is not None:
                    progress_callback(index / total * 100, change.display_name)

        except CatalogUnavailableError as e:
            self.status_board.abort()
            logger.error(
                "batch_update_aborted",
                total=total,
                attempted=len(outcomes),
                error=e.message
            )
            self._notify("error", "Prices could not be saved: the product catalog is unavailable")
            raise BatchOrchestrationError(
                "Batch aborted: product catalog unavailable",
                details={"total": total, "reason": e.message}
            ) from e

        finally:
            self._running_total = None

        self.status_board.complete()

        success = sum(1 for outcome in outcomes if outcome.status == BatchItemStatus.SAVED)
        failed = [outcome.message for outcome in outcomes if outcome.status == BatchItemStatus.ERROR]

        logger.info("batch_update_complete", total=total, success=success, failed=len(failed))

        if failed:
            self._notify("warning", f"{success} of {total} products saved, {len(failed)} failed")
        else:
            self._notify("success", f"All {total} products saved")

        return BatchResult(
            total=total,
            success=success,
            failed=failed,
            outcomes=outcomes
        )

    def _persist_one(self, change: PendingChange) -> ItemOutcome:
        """Update one product; only an unreachable catalog propagates."""
        try:
            applied = self.catalog.update(change.product_id, change.to_update())
        except CatalogUnavailableError:
            raise
        except AppError as e:
            return self._failed(change, e.message)
        except Exception as e:
            return self._failed(change, str(e))

        logger.debug("batch_item_saved", product_id=change.product_id)

        return ItemOutcome(
            product_id=change.product_id,
            product_name=change.product_name,
            status=BatchItemStatus.SAVED,
            applied=applied
        )

    @staticmethod
    def _failed(change: PendingChange, reason: str) -> ItemOutcome:
        logger.warning("batch_item_failed", product_id=change.product_id, error=reason)
        return ItemOutcome(
            product_id=change.product_id,
            product_name=change.product_name,
            status=BatchItemStatus.ERROR,
            error=reason
        )

    def _notify(self, kind: str, message: str):
        if self.notifier is None:
            return
        try:
            self.notifier.notify(kind, message)
        except Exception as e:
            logger.warning("notification_failed", kind=kind, error=str(e))
