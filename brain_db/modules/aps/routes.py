from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Form
from brain_db.core.http import get_http_client
from brain_db.core.token_cache import get_token_cache, TokenCache
from brain_db.modules.acc.urn import encode_urn
from brain_db.modules.aps.schemas import (
    ViewerTokenResponse, InternalTokenStatus, BucketCreate, TranslateRequest,
    TranslationStatus, UploadResponse
)
from brain_db.modules.aps.service import APSService
from typing import Dict, Any, Optional
import httpx

router = APIRouter(prefix="/aps", tags=["aps"])


def get_aps_service(
    http: httpx.AsyncClient = Depends(get_http_client),
    cache: TokenCache = Depends(get_token_cache),
) -> APSService:
    return APSService(http, cache)


@router.get("/viewer-token", response_model=ViewerTokenResponse)
async def viewer_token(service: APSService = Depends(get_aps_service)):
    """Token for the browser-side APS viewer"""
    return await service.viewer_token()


@router.get("/internal-token", response_model=InternalTokenStatus)
async def internal_token(service: APSService = Depends(get_aps_service)):
    """Token diagnostics without exposing the token itself"""
    if not service.configured:
        return InternalTokenStatus(configured=False)
    token = await service.viewer_token()
    return InternalTokenStatus(
        configured=True,
        token_length=len(token["access_token"]),
        expires_in=token["expires_in"],
    )


@router.post("/create-bucket", status_code=201)
async def create_bucket(
    bucket: BucketCreate,
    service: APSService = Depends(get_aps_service)
) -> Dict[str, Any]:
    if bucket.policy_key not in ("transient", "temporary", "persistent"):
        raise HTTPException(status_code=400, detail="policy_key must be transient, temporary or persistent")
    return await service.create_bucket(bucket.bucket_key, bucket.policy_key)


@router.post("/upload", response_model=UploadResponse, status_code=201)
async def upload(
    file: UploadFile = File(...),
    bucket_key: str = Form(...),
    object_key: Optional[str] = Form(None),
    service: APSService = Depends(get_aps_service)
):
    """Upload a model file to an OSS bucket and return its viewer URN"""
    key = object_key or file.filename
    if not key:
        raise HTTPException(status_code=400, detail="object_key or a file name is required")
    content = await file.read()
    result = await service.upload_object(bucket_key, key, content)
    object_id = result.get("objectId")
    return UploadResponse(
        bucket_key=bucket_key,
        object_key=key,
        object_id=object_id,
        urn=encode_urn(object_id) if object_id else None,
        size=result.get("size", len(content)),
    )


@router.post("/translate")
async def start_translation(
    request: TranslateRequest,
    service: APSService = Depends(get_aps_service)
) -> Dict[str, Any]:
    """Start an SVF2 translation job"""
    if not request.urn:
        raise HTTPException(status_code=400, detail="Missing URN parameter")
    job = await service.start_translation(request.urn.strip(), force=request.force)
    return {"job": job, "urn": request.urn.strip()}


@router.get("/translate", response_model=TranslationStatus)
async def translation_status(
    urn: Optional[str] = None,
    service: APSService = Depends(get_aps_service)
):
    if not urn:
        raise HTTPException(status_code=400, detail="Missing URN parameter")
    return await service.get_translation_status(urn.strip())
