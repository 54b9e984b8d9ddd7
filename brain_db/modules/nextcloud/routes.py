from fastapi import APIRouter, Depends, HTTPException
from brain_db.core.http import get_http_client
from brain_db.modules.nextcloud.schemas import NextcloudListing
from brain_db.modules.nextcloud.service import NextcloudService, DOCUMENT_EXTENSIONS, normalize_path
from typing import Optional
import httpx

router = APIRouter(prefix="/nextcloud", tags=["nextcloud"])


def get_nextcloud_service(http: httpx.AsyncClient = Depends(get_http_client)) -> NextcloudService:
    return NextcloudService(http)


@router.get("/folders", response_model=NextcloudListing)
async def folders(
    path: str = "/",
    recursive: bool = False,
    service: NextcloudService = Depends(get_nextcloud_service)
):
    """Folder and file listing of a Nextcloud path"""
    items = await service.get_folder_structure(path, recursive=recursive)
    return {"path": normalize_path(path), "count": len(items), "data": items}


@router.get("/subfolders", response_model=NextcloudListing)
async def subfolders(
    path: Optional[str] = None,
    service: NextcloudService = Depends(get_nextcloud_service)
):
    if not path:
        raise HTTPException(status_code=400, detail="Path parameter is required")
    items = await service.get_subfolders(path)
    return {"path": normalize_path(path), "count": len(items), "data": items}


@router.get("/documents", response_model=NextcloudListing)
async def documents(
    path: str = "/",
    extensions: Optional[str] = None,
    service: NextcloudService = Depends(get_nextcloud_service)
):
    """Folders and documents; extensions is a comma separated filter (pdf,dwg,...)"""
    allowed = [e.strip() for e in extensions.split(",") if e.strip()] if extensions else DOCUMENT_EXTENSIONS
    items = await service.list_documents(path, allowed)
    return {"path": normalize_path(path), "count": len(items), "data": items}
