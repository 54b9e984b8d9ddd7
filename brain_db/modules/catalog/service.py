from supabase import Client
from brain_db.modules.catalog.schemas import MaterialCategory, MaterialCategoryGroup, WfsLayer
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

WFS_LAYER_COLUMNS = (
    "id, name, titel, abstract, schluesselwoerter, inspire_thema_codes, geometrietyp, "
    "feature_typ, inspire_konformitaet, wfs_id, wfs_streams: wfs_id ( bundesland_oder_region )"
)
WFS_LAYER_LIMIT = 500


def group_categories(categories: List[MaterialCategory]) -> List[MaterialCategoryGroup]:
    """Group by main category, keeping the order the rows came in."""
    groups: Dict[str, List[MaterialCategory]] = {}
    for category in categories:
        groups.setdefault(category.main_category, []).append(category)
    return [MaterialCategoryGroup(main_category=main, categories=items) for main, items in groups.items()]


def normalize_layer(row: Dict[str, Any]) -> WfsLayer:
    stream = row.get("wfs_streams") or {}
    return WfsLayer(
        id=str(row["id"]),
        name=row.get("name"),
        title=row.get("titel") or row.get("name"),
        abstract=row.get("abstract"),
        schluesselwoerter=row.get("schluesselwoerter") or [],
        inspire_thema_codes=row.get("inspire_thema_codes") or [],
        geometrietyp=row.get("geometrietyp"),
        feature_typ=row.get("feature_typ"),
        inspire_konform=row.get("inspire_konformitaet") == "konform",
        bundesland_oder_region=stream.get("bundesland_oder_region") if isinstance(stream, dict) else None,
    )


class CatalogService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_material_categories(self, main_category: Optional[str] = None) -> List[MaterialCategory]:
        try:
            query = self.supabase.table("material_categories").select("*")
            if main_category:
                query = query.eq("main_category", main_category)
            result = query.order("main_category").order("sub_category").execute()
            return [MaterialCategory(**row) for row in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def material_category_tree(self) -> List[MaterialCategoryGroup]:
        return group_categories(self.list_material_categories())

    def get_material_category(self, category_id: str) -> MaterialCategory:
        try:
            result = self.supabase.table("material_categories").select("*").eq("id", category_id).limit(1).execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Material category not found")
            return MaterialCategory(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_wfs_layers(self, stream_id: Optional[str] = None, search: Optional[str] = None) -> List[WfsLayer]:
        try:
            query = self.supabase.table("wfs_layers").select(WFS_LAYER_COLUMNS)
            if stream_id:
                query = query.eq("wfs_id", stream_id)
            if search:
                query = query.or_(f"name.ilike.%{search}%,titel.ilike.%{search}%")
            result = query.limit(WFS_LAYER_LIMIT).execute()
            return [normalize_layer(row) for row in result.data or []]
        except Exception as e:
            logger.error(f"Loading WFS layers failed: {e}")
            raise HTTPException(status_code=500, detail=str(e))
