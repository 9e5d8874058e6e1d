"""
Business logic services.

Each service handles one domain area.
"""

from services.product_service import ProductService, get_product_service
from services.unit_service import UnitService, get_unit_service
from services.conversion_service import ConversionEngine, ConversionRatio, get_conversion_engine
from services.product_unit_service import (
    ProductUnitAssignment,
    ProductUnitService,
    get_product_unit_service,
)
from services.pricing_buffer import PricingEditBuffer
from services.pricing_validator import PricingValidator
from services.bulk_pricing_service import BulkPricingPlanner, get_bulk_pricing_planner
from services.batch_update_service import BatchStatusBoard, BatchUpdateOrchestrator
from services.pricing_workspace import PricingWorkspace, get_pricing_workspace

__all__ = [
    "ProductService",
    "get_product_service",
    "UnitService",
    "get_unit_service",
    "ConversionEngine",
    "ConversionRatio",
    "get_conversion_engine",
    "ProductUnitAssignment",
    "ProductUnitService",
    "get_product_unit_service",
    "PricingEditBuffer",
    "PricingValidator",
    "BulkPricingPlanner",
    "get_bulk_pricing_planner",
    "BatchStatusBoard",
    "BatchUpdateOrchestrator",
    "PricingWorkspace",
    "get_pricing_workspace",
]
