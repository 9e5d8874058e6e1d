"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.pricing import router as pricing_router
from routes.units import router as units_router
from routes.product_units import router as product_units_router

__all__ = [
    "pricing_router",
    "units_router",
    "product_units_router",
]
