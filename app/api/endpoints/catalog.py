from fastapi import APIRouter, Depends

from app.api.deps import get_catalog_service
from app.models.catalog import format_price
from app.services.catalog import CatalogService

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("/indie", summary="Best rated indie games of the catalog")
async def get_indie_showcase(catalog: CatalogService = Depends(get_catalog_service)) -> dict:
    items = [{**entry.model_dump(), "price_label": format_price(entry.price)} for entry in catalog.indie_showcase()]
    return {"items": items}
