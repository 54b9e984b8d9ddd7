from fastapi import APIRouter, Depends, HTTPException
from brain_db.config import settings
from brain_db.core.http import get_http_client
from brain_db.modules.extraction.openai_analyzer import OpenAIAnalyzer, get_openai_client
from brain_db.modules.extraction.perplexity_analyzer import PerplexityAnalyzer
from brain_db.modules.extraction.schemas import (
    ScreenshotAnalysisRequest, UrlAnalysisRequest, ColumnAnalysisRequest, DataFusionRequest,
    ManufacturerRequest, RetailersRequest, UpdatePriceRequest,
    AnalysisResponse, CombinedAnalysisResponse, DataFusionResponse, ScrapeResponse,
    ManufacturerInfo, RetailerInfo
)
from brain_db.modules.extraction.service import ExtractionService
from brain_db.modules.extraction.web_scraper import WebScraper
from brain_db.modules.products.routes import get_product_service
from brain_db.modules.products.schemas import PriceUpdateResponse
from brain_db.modules.products.service import ProductService
from typing import Dict, Any, List, Optional
import httpx

router = APIRouter(prefix="/extraction", tags=["extraction"])


def get_openai_analyzer() -> Optional[OpenAIAnalyzer]:
    if not settings.openai_configured:
        return None
    return OpenAIAnalyzer(get_openai_client())


def get_perplexity_analyzer(http: httpx.AsyncClient = Depends(get_http_client)) -> Optional[PerplexityAnalyzer]:
    if not settings.perplexity_configured:
        return None
    return PerplexityAnalyzer(http)


def get_extraction_service(
    http: httpx.AsyncClient = Depends(get_http_client),
    openai: Optional[OpenAIAnalyzer] = Depends(get_openai_analyzer),
    perplexity: Optional[PerplexityAnalyzer] = Depends(get_perplexity_analyzer),
) -> ExtractionService:
    return ExtractionService(openai, perplexity, WebScraper(http))


def _require(value: Optional[str], message: str) -> str:
    if not value or not value.strip():
        raise HTTPException(status_code=400, detail=message)
    return value.strip()


@router.post("/ai-analysis", response_model=AnalysisResponse)
async def ai_analysis(
    request: ScreenshotAnalysisRequest,
    service: ExtractionService = Depends(get_extraction_service)
):
    """Extract product fields from a screenshot with OpenAI"""
    url = _require(request.url, "URL is required")
    screenshot = _require(request.screenshot_base64, "Screenshot base64 data is required")
    return await service.analyze_screenshot(url, screenshot, request.source_type, request.prompt)


@router.post("/perplexity-analysis", response_model=AnalysisResponse)
async def perplexity_analysis(
    request: UrlAnalysisRequest,
    service: ExtractionService = Depends(get_extraction_service)
):
    """Extract product fields from a URL with Perplexity web search"""
    url = _require(request.url, "URL is required")
    return await service.analyze_url(url, request.source_type, request.prompt, request.search_queries)


@router.post("/combined-analysis", response_model=CombinedAnalysisResponse)
async def combined_analysis(
    request: ScreenshotAnalysisRequest,
    service: ExtractionService = Depends(get_extraction_service)
):
    """Run OpenAI and Perplexity in parallel and fuse their fields by confidence"""
    url = _require(request.url, "URL is required")
    screenshot = _require(request.screenshot_base64, "Screenshot base64 data is required")
    return await service.combined_analysis(url, screenshot, request.source_type)


@router.post("/column-analysis")
async def column_analysis(
    request: ColumnAnalysisRequest,
    service: ExtractionService = Depends(get_extraction_service)
) -> Dict[str, Any]:
    url = _require(request.url, "URL is required")
    column = _require(request.column, "Column is required")
    return await service.column_analysis(url, column)


@router.post("/data-fusion", response_model=DataFusionResponse)
async def data_fusion(
    request: DataFusionRequest,
    service: ExtractionService = Depends(get_extraction_service)
):
    """Fuse scraped and AI-extracted fields"""
    if request.web_data is None:
        raise HTTPException(status_code=400, detail="Web scraping data is required")
    if request.ai_data is None:
        raise HTTPException(status_code=400, detail="AI analysis data is required")
    return service.fuse(request.web_data, request.ai_data)


@router.post("/web-scraping", response_model=ScrapeResponse)
async def web_scraping(
    request: UrlAnalysisRequest,
    service: ExtractionService = Depends(get_extraction_service)
):
    return await service.scrape(request.url, request.source_type)


@router.post("/find-manufacturer", response_model=ManufacturerInfo)
async def find_manufacturer(
    request: ManufacturerRequest,
    service: ExtractionService = Depends(get_extraction_service)
):
    if not request.product_name or not request.retailer_name:
        raise HTTPException(status_code=400, detail="productName and retailerName are required")
    return await service.find_manufacturer(request.product_name, request.retailer_name)


@router.post("/find-retailers")
async def find_retailers(
    request: RetailersRequest,
    service: ExtractionService = Depends(get_extraction_service)
) -> Dict[str, List[RetailerInfo]]:
    if not request.product_name or not request.manufacturer_name or not request.country:
        raise HTTPException(status_code=400, detail="productName, manufacturerName, and country are required")
    retailers = await service.find_retailers(request.product_name, request.manufacturer_name, request.country)
    return {"retailers": retailers}


@router.post("/update-primary-price", response_model=PriceUpdateResponse)
async def update_primary_price(
    request: UpdatePriceRequest,
    perplexity: Optional[PerplexityAnalyzer] = Depends(get_perplexity_analyzer),
    products: ProductService = Depends(get_product_service)
):
    """Refresh a product's retailer price from its primary URL"""
    product_id = _require(request.product_id, "Product ID is required")
    if perplexity is None:
        raise HTTPException(status_code=503, detail="Perplexity API key not configured. Set PERPLEXITY_API_KEY.")
    return await products.update_primary_price(product_id, perplexity)
