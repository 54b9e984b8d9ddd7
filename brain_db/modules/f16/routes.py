from fastapi import APIRouter, Depends, HTTPException, Header, UploadFile, File
from brain_db.config import settings
from brain_db.database.supabase_client import get_supabase, get_supabase_admin
from brain_db.modules.acc.routes import get_acc_service
from brain_db.modules.acc.service import ACCService
from brain_db.modules.f16.schemas import (
    BlogPostCreate, BlogPostResponse, CommentCreate, CommentResponse,
    F16Settings, F16SettingsUpdate, StoredFile, BimModelResponse, PortalStatus
)
from brain_db.modules.f16.service import (
    BlogService, PortalSettingsService, PortalFileService, parse_model_path
)
from supabase import Client
from typing import Dict, List, Optional

router = APIRouter(prefix="/zepta/f16", tags=["f16"])
settings_router = APIRouter(prefix="/f16", tags=["f16"])

PORTAL_FEATURES = ["ACC Integration", "Blog & Logbuch", "Bemusterungs-Tool", "APS Viewer"]


def get_blog_service(supabase: Client = Depends(get_supabase)) -> BlogService:
    return BlogService(supabase)


def get_portal_settings_service(supabase: Client = Depends(get_supabase_admin)) -> PortalSettingsService:
    return PortalSettingsService(supabase)


def get_portal_file_service(supabase: Client = Depends(get_supabase_admin)) -> PortalFileService:
    return PortalFileService(supabase)


@router.get("/blog/posts")
async def list_posts(
    limit: int = 10,
    offset: int = 0,
    search: Optional[str] = None,
    service: BlogService = Depends(get_blog_service)
) -> Dict[str, List[BlogPostResponse]]:
    """Published posts, newest first"""
    return {"posts": service.list_posts(limit=limit, offset=offset, search=search)}


@router.post("/blog/posts", response_model=BlogPostResponse, status_code=201)
async def create_post(
    post: BlogPostCreate,
    service: BlogService = Depends(get_blog_service)
):
    return service.create_post(post)


@router.get("/blog/comments")
async def list_comments(
    post_id: Optional[str] = None,
    service: BlogService = Depends(get_blog_service)
) -> Dict[str, List[CommentResponse]]:
    """Approved comments of a post, oldest first"""
    return {"comments": service.list_comments(post_id)}


@router.post("/blog/comments", response_model=CommentResponse, status_code=201)
async def create_comment(
    comment: CommentCreate,
    service: BlogService = Depends(get_blog_service)
):
    return service.create_comment(comment)


@router.get("/files/list")
async def list_files(
    type: Optional[str] = None,
    x_user_id: Optional[str] = Header(None),
    service: PortalFileService = Depends(get_portal_file_service)
) -> Dict[str, List[StoredFile]]:
    return {"files": service.list_files(x_user_id, type)}


@router.post("/files/upload", response_model=StoredFile, status_code=201)
async def upload_file(
    file: UploadFile = File(...),
    x_user_id: Optional[str] = Header(None),
    service: PortalFileService = Depends(get_portal_file_service)
):
    """Upload an image or PDF into the user's folder"""
    content = await file.read()
    return service.upload_file(x_user_id, file.filename or "upload", file.content_type, content)


@router.get("/bim-model", response_model=BimModelResponse)
async def bim_model(
    settings_service: PortalSettingsService = Depends(get_portal_settings_service),
    acc: ACCService = Depends(get_acc_service)
):
    """Viewer URN and token for the project's configured BIM model"""
    location = parse_model_path(settings_service.get_settings().model_path)
    if not location:
        raise HTTPException(status_code=404, detail="F16 BIM model not found: no valid model path configured")
    viewer = await acc.viewer_token(location["item_id"], location["project_id"])
    return {**location, **viewer}


@router.get("/status", response_model=PortalStatus)
async def status():
    return {
        "status": "active",
        "project": settings.f16_project_id,
        "portal": "ZEPTA",
        "version": "1.0.0",
        "features": PORTAL_FEATURES,
        "integrations": {
            "supabase": bool(settings.supabase_url and settings.supabase_key),
            "acc": settings.acc_configured,
            "aps": settings.aps_configured,
            "nextcloud": settings.nextcloud_configured,
            "openai": settings.openai_configured,
            "perplexity": settings.perplexity_configured,
        },
    }


@settings_router.get("/settings", response_model=F16Settings)
async def get_settings(service: PortalSettingsService = Depends(get_portal_settings_service)):
    return service.get_settings()


@settings_router.put("/settings", response_model=F16Settings)
async def update_settings(
    update: F16SettingsUpdate,
    service: PortalSettingsService = Depends(get_portal_settings_service)
):
    return service.update_settings(update.model_path)
