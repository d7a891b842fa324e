"""Product endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from app.dependencies import DatabaseSession
from app.schemas.products import ProductResponse
from app.services.product_service import ProductService

router = APIRouter()


@router.get(
    "/",
    response_model=list[ProductResponse],
    status_code=status.HTTP_200_OK,
    summary="List bookable services",
)
async def list_products(
    db: DatabaseSession,
    active_only: bool = Query(True, description="Only return active services"),
) -> list[ProductResponse]:
    """List services ordered by name."""
    service = ProductService(db)
    return [ProductResponse.model_validate(p) for p in await service.list_products(active_only)]


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    status_code=status.HTTP_200_OK,
    summary="Get service by ID",
)
async def get_product(product_id: UUID, db: DatabaseSession) -> ProductResponse:
    """Get a single service."""
    service = ProductService(db)
    return ProductResponse.model_validate(await service.get_product(product_id))
