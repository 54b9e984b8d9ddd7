from pydantic import BaseModel, Field
from typing import Optional, Dict, Any

_ALIASES = {"populate_by_name": True}


class ProductSaveRequest(BaseModel):
    product_id: Optional[str] = Field(None, alias="productId")
    data: Optional[Dict[str, Any]] = None
    update_type: Optional[str] = Field(None, alias="updateType")  # column_analysis | full
    column: Optional[str] = None
    source_type: Optional[str] = Field(None, alias="sourceType")
    source_url: Optional[str] = Field(None, alias="sourceUrl")

    model_config = _ALIASES


class ProductSaveAllRequest(BaseModel):
    product_id: Optional[str] = Field(None, alias="productId")
    produkt_data: Dict[str, Any] = Field(default_factory=dict, alias="produktData")
    parameter_data: Dict[str, Any] = Field(default_factory=dict, alias="parameterData")
    dokumente_data: Dict[str, Any] = Field(default_factory=dict, alias="dokumenteData")
    haendler_data: Dict[str, Any] = Field(default_factory=dict, alias="haendlerData")
    erfahrung_data: Dict[str, Any] = Field(default_factory=dict, alias="erfahrungData")
    source_type: str = Field("manufacturer", alias="sourceType")
    source_url: Optional[str] = Field(None, alias="sourceUrl")

    model_config = _ALIASES


class ProductSaveResponse(BaseModel):
    operation: str  # create | update
    product_id: str
    product: Dict[str, Any]


class TransferImagesRequest(BaseModel):
    product_id: Optional[str] = Field(None, alias="productId")
    capture_id: Optional[str] = Field(None, alias="captureId")

    model_config = _ALIASES


class TransferImagesResponse(BaseModel):
    screenshot_path: Optional[str] = None
    thumbnail_path: Optional[str] = None


class PriceUpdateResponse(BaseModel):
    product_id: str
    old_price: Optional[float] = None
    new_price: Optional[float] = None
    old_unit: Optional[str] = None
    new_unit: Optional[str] = None
    price_per_unit: Optional[float] = None
    source_url: str


class CaptureCreate(BaseModel):
    url: str
    title: Optional[str] = None
    screenshot_url: Optional[str] = None
    thumbnail_url: Optional[str] = None


class CaptureResponse(BaseModel):
    id: Any
    url: str
    title: Optional[str] = None
    screenshot_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    created_at: Optional[str] = None
