"""
Product catalog service.

Reads priced products and writes partial pricing updates. Each
update is an independent call, so a batch can record one outcome
per product.
"""

from typing import Optional
import httpx
import structlog

from config import get_supabase_client, ConnectionError as SupabaseConnectionError
from models.product import ProductResponse, ProductPricingUpdate
from exceptions import (
    ProductNotFoundError,
    CatalogUnavailableError,
    DatabaseError
)

logger = structlog.get_logger(__name__)

# Failures meaning the catalog itself is unreachable, not that one row was rejected
TRANSPORT_ERRORS = (httpx.TransportError, SupabaseConnectionError)


class ProductService:
    """
    Product catalog operations used by pricing.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "products"

    # ===================
    # READ OPERATIONS
    # ===================

    def get_all(self, active_only: bool = True) -> list[ProductResponse]:
        """
        Get all products ordered by name.

        Args:
            active_only: Only return active products

        Returns:
            List of ProductResponse

        Raises:
            CatalogUnavailableError: If the catalog cannot be reached
        """
        logger.info("getting_products", active_only=active_only)

        try:
            query = self.db.table(self.table).select("*")
            if active_only:
                query = query.eq("active", True)
            result = query.order("name").execute()

            products = [ProductResponse(**row) for row in result.data]

            logger.info("products_retrieved", count=len(products))

            return products

        except TRANSPORT_ERRORS as e:
            logger.error("product_catalog_unreachable", error=str(e))
            raise CatalogUnavailableError(f"Product catalog unreachable: {e}")
        except Exception as e:
            logger.error("get_products_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def get_by_id(self, product_id: str) -> ProductResponse:
        """
        Get a single product by ID.

        Args:
            product_id: Product UUID

        Returns:
            ProductResponse

        Raises:
            ProductNotFoundError: If product doesn't exist
        """
        logger.debug("getting_product", product_id=product_id)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", product_id)
                .single()
                .execute()
            )

            if not result.data:
                raise ProductNotFoundError(product_id)

            return ProductResponse(**result.data)

        except ProductNotFoundError:
            raise
        except TRANSPORT_ERRORS as e:
            logger.error("product_catalog_unreachable", product_id=product_id, error=str(e))
            raise CatalogUnavailableError(f"Product catalog unreachable: {e}")
        except Exception as e:
            logger.error(
                "get_product_failed",
                product_id=product_id,
                error=str(e)
            )
            # Check if it's a "not found" from Supabase
            if "0 rows" in str(e) or "no rows" in str(e).lower():
                raise ProductNotFoundError(product_id)
            raise DatabaseError("select", str(e))

    # ===================
    # WRITE OPERATIONS
    # ===================

    def update(self, product_id: str, data: ProductPricingUpdate) -> ProductResponse:
        """
        Apply a partial pricing update to one product.

        Args:
            product_id: Product UUID
            data: Fields to update

        Returns:
            Updated ProductResponse

        Raises:
            ProductNotFoundError: If no row matched
            CatalogUnavailableError: If the catalog cannot be reached
            DatabaseError: If the row was rejected
        """
        update_data = data.to_db()
        logger.info("updating_product_pricing", product_id=product_id, fields=list(update_data.keys()))

        if not update_data:
            # Nothing to update, return existing
            return self.get_by_id(product_id)

        try:
            result = (
                self.db.table(self.table)
                .update(update_data)
                .eq("id", product_id)
                .execute()
            )
        except TRANSPORT_ERRORS as e:
            logger.error("product_catalog_unreachable", product_id=product_id, error=str(e))
            raise CatalogUnavailableError(f"Product catalog unreachable: {e}")
        except Exception as e:
            logger.error(
                "update_product_failed",
                product_id=product_id,
                error=str(e)
            )
            raise DatabaseError("update", str(e))

        if not result.data:
            raise ProductNotFoundError(product_id)

        product = ProductResponse(**result.data[0])

        logger.info(
            "product_pricing_updated",
            product_id=product_id,
            price=str(product.price),
            max_discount_percent=str(product.max_discount_percent)
        )

        return product

    # ===================
    # UTILITY METHODS
    # ===================

    def count(self, active_only: bool = True) -> int:
        """Count total products."""
        try:
            query = self.db.table(self.table).select("id", count="exact")
            if active_only:
                query = query.eq("active", True)
            result = query.execute()
            return result.count or 0
        except Exception as e:
            logger.error("count_products_failed", error=str(e))
            raise DatabaseError("count", str(e))


# Singleton instance for convenience
_product_service: Optional[ProductService] = None

def get_product_service() -> ProductService:
    """Get or create ProductService instance."""
    global _product_service
    if _product_service is None:
        _product_service = ProductService()
    return _product_service
