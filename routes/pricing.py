"""
Pricing API routes.

Edits are staged in the pricing workspace and only reach the catalog
on POST /save.
"""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from models.pricing import (
    StagePricingRequest,
    PricingProductView,
    PricingProductListResponse,
    PendingChangesResponse,
    ValidationResponse,
    BulkPricingRequest,
    BulkPreviewResponse,
    SaveRequest,
    BatchResult,
    BatchStatusResponse,
)
from services.pricing_workspace import get_pricing_workspace
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# PRODUCTS
# ===================

@router.get("/products", response_model=PricingProductListResponse)
async def list_pricing_products(
    category_id: Optional[str] = Query(None, description="Filter by category"),
    group_id: Optional[str] = Query(None, description="Filter by group")
):
    """Products with their staged prices, minimum price and batch status."""
    try:
        workspace = get_pricing_workspace()
        views = workspace.views(category_id, group_id)

        return PricingProductListResponse(
            data=views,
            total=len(views),
            has_changes=workspace.buffer.has_changes
        )

    except Exception as e:
        return handle_error(e)


@router.post("/refresh", response_model=PricingProductListResponse)
async def refresh_products():
    """
    Reload products from the catalog.

    Staged edits are kept; the buffer is only re-seeded when clean.
    """
    try:
        workspace = get_pricing_workspace()
        workspace.refresh()
        views = workspace.views()

        return PricingProductListResponse(
            data=views,
            total=len(views),
            has_changes=workspace.buffer.has_changes
        )

    except Exception as e:
        return handle_error(e)


@router.patch("/products/{product_id}", response_model=PricingProductView)
async def stage_product_pricing(product_id: str, data: StagePricingRequest):
    """
    Stage a price and/or max discount edit.

    Raises:
        404: Product not found
        422: Negative price or discount outside 0-100
    """
    try:
        workspace = get_pricing_workspace()

        if data.price is not None:
            workspace.set_price(product_id, data.price)
        if data.max_discount_percent is not None:
            workspace.set_max_discount(product_id, data.max_discount_percent)

        return workspace.view(workspace.get_product(product_id))

    except Exception as e:
        return handle_error(e)


# ===================
# PENDING CHANGES
# ===================

@router.get("/changes", response_model=PendingChangesResponse)
async def list_pending_changes():
    """Staged edits that differ from the catalog."""
    try:
        changes = get_pricing_workspace().pending_changes()
        return PendingChangesResponse(data=changes, total=len(changes))

    except Exception as e:
        return handle_error(e)


@router.delete("/changes", status_code=204)
async def discard_changes():
    """Drop every staged edit."""
    try:
        get_pricing_workspace().discard()
        return None  # 204 No Content

    except Exception as e:
        return handle_error(e)


@router.get("/validation", response_model=ValidationResponse)
async def validate_changes():
    """Issues found in the staged prices."""
    try:
        workspace = get_pricing_workspace()
        issues = workspace.validate()

        return ValidationResponse(
            issues=issues,
            requires_confirmation=workspace.validator.requires_confirmation(issues)
        )

    except Exception as e:
        return handle_error(e)


# ===================
# BULK
# ===================

@router.post("/bulk/preview", response_model=BulkPreviewResponse)
async def preview_bulk_pricing(data: BulkPricingRequest):
    """
    Preview a bulk rule without staging it.

    Raises:
        422: Neither rule nor discount change given
    """
    try:
        workspace = get_pricing_workspace()
        changes = workspace.preview_bulk(data)
        rows = workspace.planner.preview(changes, workspace.products)

        return BulkPreviewResponse(data=rows, total=len(rows))

    except Exception as e:
        return handle_error(e)


@router.post("/bulk/apply", response_model=PendingChangesResponse)
async def apply_bulk_pricing(data: BulkPricingRequest):
    """Plan a bulk rule and stage the resulting changes."""
    try:
        changes = get_pricing_workspace().apply_bulk(data)
        return PendingChangesResponse(data=changes, total=len(changes))

    except Exception as e:
        return handle_error(e)


# ===================
# SAVE
# ===================

# Plain def: runs in the threadpool so GET /status can report progress meanwhile
@router.post("/save", response_model=BatchResult)
def save_changes(data: Optional[SaveRequest] = None):
    """
    Save every pending change as one batch.

    Raises:
        409: Nothing to save, or a batch is already running
        422: Prices below cost without confirm_override
        503: Product catalog unavailable
    """
    try:
        confirm_override = data.confirm_override if data else False
        return get_pricing_workspace().save(confirm_override=confirm_override)

    except Exception as e:
        return handle_error(e)


@router.get("/status", response_model=BatchStatusResponse)
async def get_batch_status():
    """Progress of the running (or last) batch and per-product statuses."""
    try:
        workspace = get_pricing_workspace()
        return BatchStatusResponse(
            progress=workspace.progress,
            statuses=workspace.statuses()
        )

    except Exception as e:
        return handle_error(e)
