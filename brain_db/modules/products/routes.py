from fastapi import APIRouter, Depends
from brain_db.database.supabase_client import get_supabase_admin
from brain_db.modules.products.schemas import (
    ProductSaveRequest, ProductSaveAllRequest, ProductSaveResponse,
    TransferImagesRequest, TransferImagesResponse, CaptureCreate, CaptureResponse
)
from brain_db.modules.products.service import ProductService, CaptureService
from supabase import Client
from typing import List, Optional, Dict, Any

router = APIRouter(prefix="/products", tags=["products"])
captures_router = APIRouter(prefix="/captures", tags=["captures"])


def get_product_service(supabase: Client = Depends(get_supabase_admin)) -> ProductService:
    return ProductService(supabase)


def get_capture_service(supabase: Client = Depends(get_supabase_admin)) -> CaptureService:
    return CaptureService(supabase)


@router.post("/save", response_model=ProductSaveResponse)
async def save_product(
    request: ProductSaveRequest,
    service: ProductService = Depends(get_product_service)
):
    """Create a product or update it (fully or one column)"""
    return service.save(request)


@router.post("/save-all", response_model=ProductSaveResponse)
async def save_all(
    request: ProductSaveAllRequest,
    service: ProductService = Depends(get_product_service)
):
    """Save the data of all columns in one go"""
    return service.save_all(request)


@router.post("/transfer-images", response_model=TransferImagesResponse)
async def transfer_images(
    request: TransferImagesRequest,
    service: ProductService = Depends(get_product_service)
):
    return service.transfer_images(request.product_id, request.capture_id)


@router.get("")
async def list_products(
    search: Optional[str] = None,
    category: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    service: ProductService = Depends(get_product_service)
) -> List[Dict[str, Any]]:
    return service.list_products(search=search, category=category, limit=limit, offset=offset)


@router.get("/{product_id}")
async def get_product(
    product_id: str,
    service: ProductService = Depends(get_product_service)
) -> Dict[str, Any]:
    return service.get_product(product_id)


@captures_router.get("", response_model=List[CaptureResponse])
async def list_captures(
    limit: int = 50,
    offset: int = 0,
    service: CaptureService = Depends(get_capture_service)
):
    return service.list_captures(limit=limit, offset=offset)


@captures_router.post("", response_model=CaptureResponse, status_code=201)
async def create_capture(
    capture: CaptureCreate,
    service: CaptureService = Depends(get_capture_service)
):
    """Store a browser capture (URL plus screenshot)"""
    return service.create_capture(capture)


@captures_router.get("/{capture_id}", response_model=CaptureResponse)
async def get_capture(
    capture_id: str,
    service: CaptureService = Depends(get_capture_service)
):
    return service.get_capture(capture_id)
