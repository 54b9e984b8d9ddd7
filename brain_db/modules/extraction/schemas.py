from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List

_ALIASES = {"populate_by_name": True}


class FieldData(BaseModel):
    value: Any = ""
    confidence: float = 0.0
    reasoning: Optional[str] = ""
    source: Optional[str] = None


class ScreenshotAnalysisRequest(BaseModel):
    url: Optional[str] = None
    screenshot_base64: Optional[str] = Field(None, alias="screenshotBase64")
    source_type: Optional[str] = Field(None, alias="sourceType")  # manufacturer | reseller
    prompt: Optional[str] = None

    model_config = _ALIASES


class UrlAnalysisRequest(BaseModel):
    url: Optional[str] = None
    source_type: Optional[str] = Field(None, alias="sourceType")
    prompt: Optional[str] = None
    search_queries: List[str] = Field(default_factory=list, alias="searchQueries")

    model_config = _ALIASES


class ColumnAnalysisRequest(BaseModel):
    url: Optional[str] = None
    column: Optional[str] = Field(None, alias="spalte")

    model_config = _ALIASES


class DataFusionRequest(BaseModel):
    web_data: Optional[Dict[str, Any]] = Field(None, alias="webData")
    ai_data: Optional[Dict[str, Any]] = Field(None, alias="aiData")

    model_config = _ALIASES


class ManufacturerRequest(BaseModel):
    product_name: Optional[str] = Field(None, alias="productName")
    retailer_name: Optional[str] = Field(None, alias="retailerName")

    model_config = _ALIASES


class RetailersRequest(BaseModel):
    product_name: Optional[str] = Field(None, alias="productName")
    manufacturer_name: Optional[str] = Field(None, alias="manufacturerName")
    country: Optional[str] = None

    model_config = _ALIASES


class UpdatePriceRequest(BaseModel):
    product_id: Optional[str] = Field(None, alias="productId")

    model_config = _ALIASES


class AnalysisResponse(BaseModel):
    data: Dict[str, FieldData]
    sources: List[Any] = []
    timestamp: str


class CombinedAnalysisResponse(BaseModel):
    openai: Dict[str, FieldData]
    perplexity: Dict[str, FieldData]
    fused: Dict[str, FieldData]
    sources: List[Any] = []
    timestamp: str


class DataFusionResponse(BaseModel):
    results: Dict[str, FieldData]
    fields_needing_review: List[str]
    overall_confidence: float
    timestamp: str


class ScrapeResponse(BaseModel):
    data: Dict[str, FieldData]
    images: List[str] = []
    documents: List[Dict[str, Any]] = []
    confidence_scores: Dict[str, float] = {}
    timestamp: str


class ManufacturerInfo(BaseModel):
    name: Optional[str] = None
    website: Optional[str] = None
    product_url: Optional[str] = None
    confidence: float = 0.0
    reasoning: str = ""


class RetailerInfo(BaseModel):
    name: str
    url: str
    price: Optional[Any] = None
