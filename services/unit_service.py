"""
Unit catalog service.

Read-only access to the units of measure and their package
quantities. Units rarely change, so they are cached in-process
until clear_cache() is called.
"""

from typing import Optional
import structlog

from config import get_supabase_client
from models.unit import UnitResponse
from exceptions import UnitNotFoundError, DatabaseError

logger = structlog.get_logger(__name__)


class UnitService:
    """Units of measure, loaded from the units table."""

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "units"
        self._cache: dict[str, UnitResponse] = {}

    def _row_to_response(self, row: dict) -> UnitResponse:
        return UnitResponse(
            id=row["id"],
            symbol=row.get("value") or row.get("symbol") or "",
            label=row.get("label") or row.get("value") or "",
            package_quantity=row.get("package_quantity")
        )

    def get_all(self) -> list[UnitResponse]:
        """
        Get all units ordered by symbol.

        Returns:
            List of UnitResponse
        """
        if self._cache:
            return list(self._cache.values())

        logger.info("getting_units")

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .order("value")
                .execute()
            )

            units = [self._row_to_response(row) for row in result.data]
            self._cache = {unit.id: unit for unit in units}

            logger.info("units_retrieved", count=len(units))

            return units

        except Exception as e:
            logger.error("get_units_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def get_by_id(self, unit_id: str) -> UnitResponse:
        """
        Get a unit by ID.

        Raises:
            UnitNotFoundError: If the unit doesn't exist
        """
        unit = self.find(unit_id)
        if unit is None:
            raise UnitNotFoundError(unit_id)
        return unit

    def find(self, unit_id: str) -> Optional[UnitResponse]:
        """Get a unit by ID, or None."""
        if not self._cache:
            self.get_all()
        return self._cache.get(unit_id)

    def clear_cache(self):
        """Drop cached units (call after the unit catalog changes)."""
        self._cache.clear()
        logger.debug("unit_cache_cleared")


# Singleton instance for convenience
_unit_service: Optional[UnitService] = None


def get_unit_service() -> UnitService:
    """Get or create UnitService instance."""
    global _unit_service
    if _unit_service is None:
        _unit_service = UnitService()
    return _unit_service
