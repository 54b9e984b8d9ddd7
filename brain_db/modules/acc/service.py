"""Autodesk Construction Cloud: Docs browsing, derivative lookup and viewer preparation."""
import logging
from typing import Any, Dict, List, Optional

import httpx
from fastapi import HTTPException

from brain_db.config import settings
from brain_db.core.http import ExternalServiceError, raise_for_upstream
from brain_db.core.token_cache import TokenCache
from brain_db.modules.acc.oauth import ACCOAuthService

logger = logging.getLogger(__name__)

SERVICE = "ACC"
FALLBACK_TOKEN_KEY = "acc:2legged"
FALLBACK_SCOPES = "data:read data:write bucket:create bucket:read bucket:delete account:read user-profile:read"

VIEWER_EXTENSIONS = {
    "dwg", "rvt", "ifc", "nwd", "nwc", "3ds", "obj", "stl", "fbx",
    "pdf", "jpg", "jpeg", "png", "tiff", "bmp",
}
CAD_EXTENSIONS = {"dwg", "rvt", "ifc", "nwd", "nwc"}
VIEWABLE_OUTPUTS = ("svf", "svf2")


def with_hub_prefix(project_id: str) -> str:
    """Data Management needs ACC project ids in the b.{GUID} form."""
    return project_id if project_id.startswith("b.") else f"b.{project_id}"


def _extension(name: Optional[str]) -> str:
    if not name or "." not in name:
        return ""
    return name.rsplit(".", 1)[-1].lower()


def is_viewer_compatible(name: Optional[str]) -> bool:
    return _extension(name) in VIEWER_EXTENSIONS


def file_status(name: Optional[str]) -> Dict[str, str]:
    # CAD formats are also viewer-compatible, so they report viewer-ready first
    if is_viewer_compatible(name):
        return {"status": "viewer-ready", "description": "Directly viewable"}
    if _extension(name) in CAD_EXTENSIONS:
        return {"status": "needs-translation", "description": "Translation required"}
    return {"status": "unknown", "description": "Unknown format"}


def derivative_id_from_versions(versions: List[Dict[str, Any]]) -> Optional[str]:
    """First derivatives.data.id found on a version; data may be an object or a list."""
    for version in versions:
        if version.get("type") != "versions":
            continue
        relationship = (version.get("relationships") or {}).get("derivatives") or {}
        data = relationship.get("data")
        if isinstance(data, dict) and data.get("id"):
            return data["id"]
        if isinstance(data, list):
            for derivative in data:
                if derivative.get("id"):
                    return derivative["id"]
    return None


def summarize_manifest(manifest: Dict[str, Any]) -> Dict[str, Any]:
    derivatives = manifest.get("derivatives") or []
    successful = [
        d for d in derivatives
        if d.get("status") == "success" and d.get("outputType") in VIEWABLE_OUTPUTS
    ]
    svf2 = [d for d in successful if d.get("outputType") == "svf2"]
    return {
        "manifest": manifest,
        "has_successful_derivatives": bool(successful),
        "svf2_derivatives": svf2,
        "is_ready": bool(successful),
    }


class ACCService:
    def __init__(self, http: httpx.AsyncClient, cache: TokenCache, oauth: Optional[ACCOAuthService] = None):
        self.http = http
        self.cache = cache
        self.oauth = oauth or ACCOAuthService(http, cache)
        self.base_url = settings.aps_base_url.rstrip("/")
        self.region = settings.aps_region

    def _headers(self, token: str, regional: bool = False) -> Dict[str, str]:
        headers = {"Authorization": f"Bearer {token}", "Accept": "application/json"}
        if regional:
            headers["x-ads-region"] = self.region
        return headers

    async def get_token(self) -> str:
        """3-legged token for Docs access, falling back to a 2-legged app token."""
        try:
            return await self.oauth.get_access_token()
        except (HTTPException, ExternalServiceError) as e:
            logger.warning(f"ACC: 3-legged OAuth unavailable ({e}), falling back to 2-legged")
        return await self._get_2legged_token()

    async def _get_2legged_token(self) -> str:
        cached = self.cache.get(FALLBACK_TOKEN_KEY)
        if cached:
            return cached.access_token
        if not self.oauth.configured:
            raise HTTPException(status_code=503, detail="ACC credentials not configured")
        response = await self.http.post(
            f"{self.base_url}/authentication/v2/token",
            data={
                "client_id": self.oauth.client_id,
                "client_secret": self.oauth.client_secret,
                "grant_type": "client_credentials",
                "scope": FALLBACK_SCOPES,
            },
            headers={"x-ads-region": self.region},
        )
        raise_for_upstream(response, SERVICE, "Token request")
        data = response.json()
        entry = self.cache.store(
            FALLBACK_TOKEN_KEY,
            data["access_token"],
            data.get("expires_in", 3600),
            buffer_seconds=settings.token_expiry_buffer_seconds,
        )
        logger.info("ACC: 2-legged token received")
        return entry.access_token

    async def _get_json(self, url: str, token: str, action: str, regional: bool = False) -> Dict[str, Any]:
        response = await self.http.get(url, headers=self._headers(token, regional))
        raise_for_upstream(response, SERVICE, action)
        return response.json()

    async def list_projects(self) -> List[Dict[str, Any]]:
        token = await self.get_token()
        if settings.acc_account_id:
            data = await self._get_json(
                f"{self.base_url}/construction/admin/v1/accounts/{settings.acc_account_id}/projects",
                token, "Projects request", regional=True,
            )
            return data.get("data") or data.get("results") or []

        # No account configured: collect projects from every visible hub
        hubs = await self._get_json(f"{self.base_url}/project/v1/hubs", token, "Hubs request")
        projects: List[Dict[str, Any]] = []
        for hub in hubs.get("data") or []:
            data = await self._get_json(
                f"{self.base_url}/project/v1/hubs/{hub['id']}/projects", token, "Hub projects request"
            )
            for project in data.get("data") or []:
                attributes = project.get("attributes") or {}
                projects.append({
                    "id": project.get("id"),
                    "name": attributes.get("name"),
                    "hub_id": hub["id"],
                })
        return projects

    async def find_root_folder(self, token: str, project_id: str) -> Optional[str]:
        """Walk the hubs until one knows the project, then read its rootFolder."""
        try:
            hubs = await self._get_json(f"{self.base_url}/project/v1/hubs", token, "Hubs request")
        except ExternalServiceError:
            return None
        for hub in hubs.get("data") or []:
            response = await self.http.get(
                f"{self.base_url}/project/v1/hubs/{hub['id']}/projects/{project_id}",
                headers=self._headers(token),
            )
            if not response.is_success:
                continue
            root = (((response.json().get("data") or {}).get("relationships") or {})
                    .get("rootFolder") or {}).get("data") or {}
            if root.get("id"):
                logger.info(f"ACC: root folder for {project_id} is {root['id']}")
                return root["id"]
        return None

    async def get_project_contents(self, project_id: str, folder_id: Optional[str] = None) -> Dict[str, Any]:
        token = await self.get_token()
        project_id = with_hub_prefix(project_id)
        target = folder_id
        if not target or target == "root":
            target = await self.find_root_folder(token, project_id)
            if not target:
                logger.warning(f"ACC: no root folder found for {project_id}, using 'root'")
                target = "root"
        return await self._folder_contents(token, project_id, target)

    async def get_folder_contents(self, project_id: str, folder_id: str) -> Dict[str, Any]:
        token = await self.get_token()
        return await self._folder_contents(token, with_hub_prefix(project_id), folder_id)

    async def _folder_contents(self, token: str, project_id: str, folder_id: str) -> Dict[str, Any]:
        data = await self._get_json(
            f"{self.base_url}/data/v1/projects/{project_id}/folders/{folder_id}/contents",
            token, "Project contents request",
        )
        entries = data.get("data") or []
        items = []
        for entry in entries:
            if entry.get("type") != "items":
                continue
            name = (entry.get("attributes") or {}).get("displayName")
            items.append({**entry, "file_status": file_status(name)})
        return {
            "project_id": project_id,
            "folder_id": folder_id,
            "folders": [e for e in entries if e.get("type") == "folders"],
            "items": items,
        }

    async def find_derivatives(self, project_id: str, item_id: str, token: Optional[str] = None) -> Dict[str, Any]:
        """Resolve the viewer URN from an item's version derivatives relationship."""
        token = token or await self.get_token()
        project_id = with_hub_prefix(project_id)
        item_url = f"{self.base_url}/data/v1/projects/{project_id}/items/{item_id}"

        derivative_id = None
        try:
            with_versions = await self._get_json(f"{item_url}?include=versions", token, "Item details request")
            derivative_id = derivative_id_from_versions(with_versions.get("included") or [])
            if not derivative_id:
                versions = await self._get_json(f"{item_url}/versions", token, "Item versions request")
                derivative_id = derivative_id_from_versions(versions.get("data") or [])
        except ExternalServiceError as e:
            logger.error(f"ACC: derivative lookup failed for {item_id}: {e}")
            return {"is_translated": False, "status": "failed", "urn": None, "manifest_url": None, "error": str(e)}

        if not derivative_id:
            return {
                "is_translated": False,
                "status": "not_found",
                "urn": None,
                "manifest_url": None,
                "error": "No version URN found in derivatives relationship",
            }
        return {
            "is_translated": True,
            "status": "success",
            "urn": derivative_id,
            "manifest_url": f"{self.base_url}/modelderivative/v2/designdata/{derivative_id}/manifest",
            "error": None,
        }

    async def fetch_manifest(self, urn: str, token: Optional[str] = None) -> Dict[str, Any]:
        token = token or await self.oauth.get_access_token()
        urn = urn.strip()
        logger.info(f"ACC: checking manifest for URN {urn}")
        return await self._get_json(
            f"{self.base_url}/modelderivative/v2/designdata/{urn}/manifest",
            token, "Manifest request", regional=True,
        )

    async def get_manifest(self, urn: str) -> Dict[str, Any]:
        return summarize_manifest(await self.fetch_manifest(urn))

    async def start_translation(self, urn: str, force: bool = False, token: Optional[str] = None) -> Dict[str, Any]:
        token = token or await self.oauth.get_access_token()
        headers = {**self._headers(token, regional=True), "Content-Type": "application/json"}
        if force:
            headers["x-ads-force"] = "true"
        job = {
            "input": {"urn": urn.strip()},
            "output": {
                "destination": {"region": self.region},
                "formats": [{"type": "svf2", "views": ["3d", "2d"]}],
            },
        }
        response = await self.http.post(
            f"{self.base_url}/modelderivative/v2/designdata/job", json=job, headers=headers
        )
        raise_for_upstream(response, SERVICE, "Translation request")
        logger.info(f"ACC: translation job started for {urn.strip()}")
        return response.json()

    async def viewer_token(self, item_id: str, project_id: str) -> Dict[str, Any]:
        """Viewer URN plus token; starts a forced translation when the model is not ready."""
        token = await self.get_token()
        info = await self.find_derivatives(project_id, item_id, token=token)
        if not info["is_translated"]:
            raise HTTPException(status_code=404, detail=info["error"] or "Derivatives not found")
        urn = info["urn"]

        try:
            manifest = await self.fetch_manifest(urn, token=token)
            if manifest.get("status") == "success":
                return {"urn": urn, "token": token, "status": "ready", "job": None}
        except ExternalServiceError as e:
            logger.info(f"ACC: no usable manifest for {urn} ({e.status_code}), translating")

        job = await self.start_translation(urn, force=True, token=token)
        return {"urn": urn, "token": token, "status": "translating", "job": job}
