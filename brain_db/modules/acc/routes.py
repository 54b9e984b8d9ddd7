from fastapi import APIRouter, Depends, HTTPException, Request
from brain_db.core.http import get_http_client
from brain_db.core.token_cache import get_token_cache, TokenCache
from brain_db.modules.acc.oauth import ACCOAuthService
from brain_db.modules.acc.schemas import (
    AuthorizeUrlResponse, TokenStatusResponse, ProjectContents, DerivativesRequest,
    ManifestInfo, ManifestResponse, ViewerTokenRequest, ViewerTokenResponse,
    ProcessedUrnResponse
)
from brain_db.modules.acc.service import ACCService
from brain_db.modules.acc.urn import process_derivative_urn, validate_urn, convert_region
from typing import Dict, Any, List, Optional
import httpx

router = APIRouter(prefix="/acc", tags=["acc"])
oauth_router = APIRouter(prefix="/auth", tags=["acc"])


def get_acc_oauth_service(
    http: httpx.AsyncClient = Depends(get_http_client),
    cache: TokenCache = Depends(get_token_cache),
) -> ACCOAuthService:
    return ACCOAuthService(http, cache)


def get_acc_service(
    http: httpx.AsyncClient = Depends(get_http_client),
    cache: TokenCache = Depends(get_token_cache),
    oauth: ACCOAuthService = Depends(get_acc_oauth_service),
) -> ACCService:
    return ACCService(http, cache, oauth)


def _origin(request: Request) -> str:
    return request.headers.get("origin") or str(request.base_url).rstrip("/")


@oauth_router.get("/acc-authorize-url", response_model=AuthorizeUrlResponse)
async def authorize_url(
    request: Request,
    oauth: ACCOAuthService = Depends(get_acc_oauth_service)
):
    """Autodesk login URL for the 3-legged flow"""
    return oauth.authorization_url(_origin(request))


@oauth_router.get("/callback")
async def oauth_callback(
    request: Request,
    code: Optional[str] = None,
    error: Optional[str] = None,
    oauth: ACCOAuthService = Depends(get_acc_oauth_service)
) -> Dict[str, Any]:
    """Exchange the authorization code for tokens"""
    if error:
        raise HTTPException(status_code=400, detail=f"Authorization failed: {error}")
    if not code:
        raise HTTPException(status_code=400, detail="Missing authorization code")
    await oauth.exchange_code(code, _origin(request))
    return {"message": "ACC authorization complete", **oauth.token_status()}


@router.get("/token-status", response_model=TokenStatusResponse)
async def token_status(oauth: ACCOAuthService = Depends(get_acc_oauth_service)):
    return oauth.token_status()


@router.post("/token/renew", response_model=TokenStatusResponse)
async def renew_token(oauth: ACCOAuthService = Depends(get_acc_oauth_service)):
    """Force a refresh with the stored refresh token"""
    return await oauth.renew()


@router.get("/projects")
async def list_projects(service: ACCService = Depends(get_acc_service)) -> List[Dict[str, Any]]:
    return await service.list_projects()


@router.get("/projects/{project_id}/contents", response_model=ProjectContents)
async def project_contents(
    project_id: str,
    folder_id: Optional[str] = None,
    service: ACCService = Depends(get_acc_service)
):
    """Top-level folders and items of a project (root folder unless folder_id is given)"""
    return await service.get_project_contents(project_id, folder_id)


@router.get("/projects/{project_id}/folders/{folder_id}/contents", response_model=ProjectContents)
async def folder_contents(
    project_id: str,
    folder_id: str,
    service: ACCService = Depends(get_acc_service)
):
    return await service.get_folder_contents(project_id, folder_id)


@router.get("/manifest", response_model=ManifestResponse)
async def manifest(
    urn: Optional[str] = None,
    service: ACCService = Depends(get_acc_service)
):
    """Manifest of a derivative URN and whether it is viewable"""
    if not urn or not urn.strip():
        raise HTTPException(status_code=400, detail="URN parameter is required")
    summary = await service.get_manifest(urn)
    return {"urn": urn.strip(), **summary}


@router.post("/translate")
async def translate(
    urn: Optional[str] = None,
    force: bool = False,
    service: ACCService = Depends(get_acc_service)
) -> Dict[str, Any]:
    if not urn or not urn.strip():
        raise HTTPException(status_code=400, detail="URN parameter is required")
    job = await service.start_translation(urn, force=force)
    return {"urn": urn.strip(), "job": job}


@router.post("/derivatives", response_model=ManifestInfo)
async def derivatives(
    request: DerivativesRequest,
    service: ACCService = Depends(get_acc_service)
):
    """Viewer URN for an ACC item"""
    if not request.file_id or not request.project_id:
        raise HTTPException(status_code=400, detail="fileId and projectId are required")
    info = await service.find_derivatives(request.project_id, request.file_id)
    if not info["is_translated"]:
        raise HTTPException(status_code=404, detail=info["error"] or "File has not been translated")
    return info


@router.post("/viewer-token", response_model=ViewerTokenResponse)
async def viewer_token(
    request: ViewerTokenRequest,
    service: ACCService = Depends(get_acc_service)
):
    """URN and token for the viewer, translating the model first when needed"""
    if not request.item_id or not request.project_id:
        raise HTTPException(status_code=400, detail="itemId and projectId are required")
    return await service.viewer_token(request.item_id, request.project_id)


@router.get("/urn", response_model=ProcessedUrnResponse)
async def process_urn(urn: Optional[str] = None):
    """Region-converted, base64 encoded form of an ACC URN"""
    if not urn or not urn.strip():
        raise HTTPException(status_code=400, detail="URN parameter is required")
    original = urn.strip()
    return ProcessedUrnResponse(
        original=original,
        processed=process_derivative_urn(original),
        is_valid=validate_urn(convert_region(original)),
    )
