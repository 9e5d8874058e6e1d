"""
Unit API routes.

Read-only access to the unit catalog plus conversion lookups.
"""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
import structlog

from models.unit import UnitListResponse, ConversionResponse
from services.unit_service import get_unit_service
from services.conversion_service import get_conversion_engine
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


@router.get("", response_model=UnitListResponse)
async def list_units():
    """List all units of measure."""
    try:
        units = get_unit_service().get_all()
        return UnitListResponse(data=units, total=len(units))

    except Exception as e:
        return handle_error(e)


@router.get("/conversion", response_model=ConversionResponse)
async def get_conversion(
    main_unit_id: str = Query(..., description="Unit being subdivided"),
    sub_unit_id: str = Query(..., description="Unit it is subdivided into")
):
    """
    Conversion ratio between two units.

    An inconsistent pair is reported with is_valid=false, not as an error.

    Raises:
        404: Unit not found
    """
    try:
        service = get_unit_service()
        main_unit = service.get_by_id(main_unit_id)
        sub_unit = service.get_by_id(sub_unit_id)

        engine = get_conversion_engine()
        conversion = engine.ratio(main_unit, sub_unit)

        return ConversionResponse(
            main_unit_id=main_unit.id,
            sub_unit_id=sub_unit.id,
            is_valid=conversion.is_valid,
            ratio=conversion.value,
            label=engine.describe(main_unit, sub_unit),
            reason=conversion.reason
        )

    except Exception as e:
        return handle_error(e)
