from pydantic import BaseModel
from typing import Optional, List


class MaterialCategory(BaseModel):
    id: str
    main_category: str
    sub_category: str
    label: str


class MaterialCategoryGroup(BaseModel):
    main_category: str
    categories: List[MaterialCategory]


class WfsLayer(BaseModel):
    id: str
    name: Optional[str] = None
    title: Optional[str] = None
    abstract: Optional[str] = None
    schluesselwoerter: List[str] = []
    inspire_thema_codes: List[str] = []
    geometrietyp: Optional[str] = None
    feature_typ: Optional[str] = None
    inspire_konform: bool = False
    bundesland_oder_region: Optional[str] = None
