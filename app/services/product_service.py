"""Product service for read access to bookable services."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundException
from app.models.products import products


class ProductService:
    """Service for product lookups."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def list_products(self, active_only: bool = True) -> list[dict]:
        """Get products ordered by name."""
        query = select(products).order_by(products.c.name)
        if active_only:
            query = query.where(products.c.is_active.is_(True))

        result = await self.db.execute(query)
        return [dict(row) for row in result.mappings()]

    async def get_product(self, product_id: UUID) -> dict:
        """
        Get a product by ID.

        Raises:
            NotFoundException: If product not found
        """
        result = await self.db.execute(select(products).where(products.c.id == product_id))
        product = result.mappings().first()
        if not product:
            raise NotFoundException("Product not found")
        return dict(product)
