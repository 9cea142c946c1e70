from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends

from shopassist.dependencies import get_catalog
from shopassist.models.schemas import Product
from shopassist.services.catalog import CatalogClient, CatalogUnavailable

logger = structlog.get_logger()

router = APIRouter(prefix="/api", tags=["products"])


@router.get("/test")
async def connection_test():
    return {
        "message": "Shopping assistant backend is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "apiStatus": "Ready",
    }


@router.get("/products", response_model=list[Product])
async def list_products(catalog: CatalogClient = Depends(get_catalog)):
    try:
        return await catalog.get_products()
    except CatalogUnavailable as exc:
        logger.error("products_listing_failed", error=str(exc))
        return []
