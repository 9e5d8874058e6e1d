"""
Unit tests for UnitService.

Run: pytest tests/unit/test_unit_service.py -v
"""

import pytest
from unittest.mock import MagicMock

from services.unit_service import UnitService
from exceptions import UnitNotFoundError, DatabaseError


class TestUnitServiceGetAll:
    """Tests for UnitService.get_all()"""

    def test_maps_value_to_symbol(self, mock_db, mock_supabase, sample_units_list):
        mock_supabase.set_table_data("units", sample_units_list)
        service = UnitService()

        units = service.get_all()

        assert [u.symbol for u in units] == ["CX", "PCT", "UN"]
        assert units[0].package_quantity == 12

    def test_results_are_cached(self, mock_db, mock_supabase, sample_units_list):
        mock_supabase.set_table_data("units", sample_units_list)
        service = UnitService()
        service.get_all()

        mock_supabase.set_table_data("units", [])

        assert len(service.get_all()) == 3

        service.clear_cache()
        assert service.get_all() == []

    def test_query_failure_raises_database_error(self, mock_db):
        service = UnitService()
        service.db = MagicMock()
        service.db.table.side_effect = Exception("relation does not exist")

        with pytest.raises(DatabaseError):
            service.get_all()


class TestUnitServiceGetById:
    """Tests for UnitService.get_by_id()"""

    def test_returns_unit(self, mock_db, mock_supabase, sample_units_list):
        mock_supabase.set_table_data("units", sample_units_list)
        service = UnitService()

        assert service.get_by_id("unit-pct").label == "Pack"

    def test_unknown_unit_raises(self, mock_db, mock_supabase, sample_units_list):
        mock_supabase.set_table_data("units", sample_units_list)
        service = UnitService()

        with pytest.raises(UnitNotFoundError) as exc_info:
            service.get_by_id("unit-missing")

        assert exc_info.value.code == "UNIT_NOT_FOUND"
