"""
Test data factories.

Uses factory pattern to generate consistent test data.
"""

from typing import Optional
from uuid import uuid4

from models.product import ProductResponse
from models.unit import UnitResponse


class ProductFactory:
    """
    Factory for creating test Product data.

    Usage:
        # Create with defaults
        product = ProductFactory.create()

        # Create with overrides
        product = ProductFactory.create(name="Widget", cost=10, price=15)

        # Create multiple
        products = ProductFactory.create_batch(5)

        # As a model
        product = ProductFactory.build(cost=10, price=9)
    """

    _counter = 0

    @classmethod
    def _next_counter(cls) -> int:
        cls._counter += 1
        return cls._counter

    @classmethod
    def create(
        cls,
        id: Optional[str] = None,
        code: Optional[str] = None,
        name: Optional[str] = None,
        cost: float = 10.0,
        price: float = 15.0,
        max_discount_percent: Optional[float] = None,
        category_id: Optional[str] = None,
        group_id: Optional[str] = None,
        main_unit_id: Optional[str] = None,
        active: bool = True
    ) -> dict:
        """
        Create a single product dict.

        Returns:
            Product dict matching the products table
        """
        counter = cls._next_counter()

        return {
            "id": id or str(uuid4()),
            "code": code or f"P-{counter:04d}",
            "name": name or f"Test Product {counter}",
            "cost": cost,
            "price": price,
            "max_discount_percent": max_discount_percent,
            "category_id": category_id,
            "group_id": group_id,
            "main_unit_id": main_unit_id,
            "active": active
        }

    @classmethod
    def build(cls, **overrides) -> ProductResponse:
        """Create a ProductResponse."""
        return ProductResponse(**cls.create(**overrides))

    @classmethod
    def create_batch(cls, count: int, **overrides) -> list:
        """Create multiple products."""
        return [cls.create(**overrides) for _ in range(count)]

    @classmethod
    def build_batch(cls, count: int, **overrides) -> list[ProductResponse]:
        """Create multiple ProductResponse models."""
        return [cls.build(**overrides) for _ in range(count)]

    @classmethod
    def create_inactive(cls, **overrides) -> dict:
        """Create an inactive product."""
        return cls.create(active=False, **overrides)

    @classmethod
    def reset_counter(cls):
        """Reset the counter (call in test setup if needed)."""
        cls._counter = 0


class UnitFactory:
    """Factory for units of measure."""

    @classmethod
    def build(
        cls,
        id: Optional[str] = None,
        symbol: str = "UN",
        label: Optional[str] = None,
        package_quantity: Optional[int] = 1
    ) -> UnitResponse:
        """Create a UnitResponse."""
        return UnitResponse(
            id=id or str(uuid4()),
            symbol=symbol,
            label=label or symbol,
            package_quantity=package_quantity
        )

    @classmethod
    def row(
        cls,
        id: Optional[str] = None,
        value: str = "UN",
        label: Optional[str] = None,
        package_quantity: Optional[int] = 1
    ) -> dict:
        """Create a units table row."""
        return {
            "id": id or str(uuid4()),
            "value": value,
            "label": label or value,
            "package_quantity": package_quantity
        }


class ProductUnitFactory:
    """Factory for product_units_mapping rows."""

    @classmethod
    def row(cls, product_id: str, unit_id: str, is_main_unit: bool = False) -> dict:
        return {
            "product_id": product_id,
            "unit_id": unit_id,
            "is_main_unit": is_main_unit,
            "created_at": "2026-01-05T10:00:00Z"
        }
