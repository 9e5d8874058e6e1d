"""
Product unit API routes.

Mounted under /api/products/{product_id}/units.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
import structlog

from models.unit import ProductUnitsResponse, AttachUnitRequest
from services.product_unit_service import get_product_unit_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter()


def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
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


@router.get("", response_model=ProductUnitsResponse)
async def list_product_units(product_id: str):
    """
    Units linked to a product, each priced from the primary unit.

    Raises:
        404: Product not found
    """
    try:
        return get_product_unit_service().get_unit_prices(product_id)

    except Exception as e:
        return handle_error(e)


@router.post("", response_model=ProductUnitsResponse, status_code=201)
async def attach_unit(product_id: str, data: AttachUnitRequest):
    """
    Link a unit to a product.

    The first unit of a product always becomes its primary unit.

    Raises:
        404: Product or unit not found
        409: Unit already linked
    """
    try:
        service = get_product_unit_service()
        return service.attach(product_id, data.unit_id, data.make_primary)

    except Exception as e:
        return handle_error(e)


@router.put("/{unit_id}/primary", response_model=ProductUnitsResponse)
async def set_primary_unit(product_id: str, unit_id: str):
    """Make a linked unit the product's primary unit."""
    try:
        return get_product_unit_service().set_primary(product_id, unit_id)

    except Exception as e:
        return handle_error(e)


@router.delete("/{unit_id}", response_model=ProductUnitsResponse)
async def detach_unit(product_id: str, unit_id: str):
    """
    Unlink a unit from a product.

    Removing the primary unit promotes the next linked unit.

    Raises:
        422: Unit is the product's only unit
    """
    try:
        return get_product_unit_service().detach(product_id, unit_id)

    except Exception as e:
        return handle_error(e)
