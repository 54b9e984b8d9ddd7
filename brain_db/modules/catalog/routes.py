from fastapi import APIRouter, Depends
from brain_db.database.supabase_client import get_supabase
from brain_db.modules.catalog.schemas import MaterialCategory, MaterialCategoryGroup, WfsLayer
from brain_db.modules.catalog.service import CatalogService
from supabase import Client
from typing import List, Optional

router = APIRouter(tags=["catalog"])


def get_catalog_service(supabase: Client = Depends(get_supabase)) -> CatalogService:
    return CatalogService(supabase)


@router.get("/material-categories", response_model=List[MaterialCategory])
async def list_material_categories(
    main_category: Optional[str] = None,
    service: CatalogService = Depends(get_catalog_service)
):
    return service.list_material_categories(main_category)


@router.get("/material-categories/tree", response_model=List[MaterialCategoryGroup])
async def material_category_tree(service: CatalogService = Depends(get_catalog_service)):
    """Categories grouped by main category"""
    return service.material_category_tree()


@router.get("/material-categories/{category_id}", response_model=MaterialCategory)
async def get_material_category(
    category_id: str,
    service: CatalogService = Depends(get_catalog_service)
):
    return service.get_material_category(category_id)


@router.get("/wfs-layers", response_model=List[WfsLayer])
async def list_wfs_layers(
    stream_id: Optional[str] = None,
    search: Optional[str] = None,
    service: CatalogService = Depends(get_catalog_service)
):
    """WFS layers with the region of their stream"""
    return service.list_wfs_layers(stream_id, search)
