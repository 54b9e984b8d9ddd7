"""Autodesk Platform Services: 2-legged token, OSS buckets/objects, Model Derivative jobs."""
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
from fastapi import HTTPException

from brain_db.config import settings
from brain_db.core.http import raise_for_upstream
from brain_db.core.token_cache import TokenCache

logger = logging.getLogger(__name__)

SERVICE = "APS"
TOKEN_KEY = "aps:2legged"
SCOPES = "data:read data:write data:create bucket:create bucket:read bucket:delete viewables:read"
DEFAULT_TOKEN_LIFETIME = 3600


def collect_manifest_messages(manifest: Dict[str, Any]) -> List[str]:
    """Messages from each derivative and its direct children, in manifest order."""
    messages: List[str] = []
    for derivative in manifest.get("derivatives") or []:
        for msg in derivative.get("messages") or []:
            messages.append(msg.get("message", ""))
        for child in derivative.get("children") or []:
            for msg in child.get("messages") or []:
                messages.append(msg.get("message", ""))
    return messages


class APSService:
    def __init__(
        self,
        http: httpx.AsyncClient,
        cache: TokenCache,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
    ):
        self.http = http
        self.cache = cache
        self.client_id = client_id if client_id is not None else settings.aps_client_id
        self.client_secret = client_secret if client_secret is not None else settings.aps_client_secret
        self.base_url = settings.aps_base_url.rstrip("/")
        self.region = settings.aps_region

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def _headers(self, token: str, json_body: bool = False) -> Dict[str, str]:
        headers = {"Authorization": f"Bearer {token}", "x-ads-region": self.region}
        if json_body:
            headers["Content-Type"] = "application/json"
        return headers

    async def get_token(self) -> str:
        if not self.configured:
            raise HTTPException(
                status_code=503,
                detail="APS credentials not configured. Set APS_CLIENT_ID and APS_CLIENT_SECRET."
            )
        cached = self.cache.get(TOKEN_KEY)
        if cached:
            logger.debug("Using cached APS token")
            return cached.access_token

        logger.info("Requesting new APS token")
        response = await self.http.post(
            f"{self.base_url}/authentication/v2/token",
            data={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "grant_type": "client_credentials",
                "scope": SCOPES,
            },
            headers={"x-ads-region": self.region},
        )
        raise_for_upstream(response, SERVICE, "Token request")
        data = response.json()
        entry = self.cache.store(
            TOKEN_KEY,
            data["access_token"],
            data.get("expires_in", DEFAULT_TOKEN_LIFETIME),
            buffer_seconds=settings.token_expiry_buffer_seconds,
        )
        logger.info(f"New APS token cached, expires in {entry.expires_in(self.cache.now())}s")
        return entry.access_token

    async def viewer_token(self) -> Dict[str, Any]:
        token = await self.get_token()
        entry = self.cache.get(TOKEN_KEY)
        expires_in = entry.expires_in(self.cache.now()) if entry else DEFAULT_TOKEN_LIFETIME
        return {"access_token": token, "expires_in": expires_in}

    async def create_bucket(self, bucket_key: str, policy_key: str = "transient") -> Dict[str, Any]:
        token = await self.get_token()
        response = await self.http.post(
            f"{self.base_url}/oss/v2/buckets",
            json={"bucketKey": bucket_key, "policyKey": policy_key},
            headers=self._headers(token, json_body=True),
        )
        raise_for_upstream(response, SERVICE, "Create bucket")
        logger.info(f"APS bucket created: {bucket_key} ({policy_key})")
        return response.json()

    async def list_buckets(self) -> List[Dict[str, Any]]:
        token = await self.get_token()
        response = await self.http.get(f"{self.base_url}/oss/v2/buckets", headers=self._headers(token))
        raise_for_upstream(response, SERVICE, "List buckets")
        return response.json().get("items", [])

    async def delete_bucket(self, bucket_key: str) -> None:
        token = await self.get_token()
        response = await self.http.delete(
            f"{self.base_url}/oss/v2/buckets/{bucket_key}", headers=self._headers(token)
        )
        raise_for_upstream(response, SERVICE, "Delete bucket")

    async def upload_object(self, bucket_key: str, object_key: str, content: bytes) -> Dict[str, Any]:
        """Signed S3 upload: fetch signed URL, PUT the bytes, then complete with the upload key."""
        token = await self.get_token()
        object_url = f"{self.base_url}/oss/v2/buckets/{bucket_key}/objects/{quote(object_key, safe='')}/signeds3upload"

        signed = await self.http.get(object_url, headers=self._headers(token))
        raise_for_upstream(signed, SERVICE, "Get signed URL")
        signed_data = signed.json()
        urls = signed_data.get("urls") or []
        if not urls:
            raise HTTPException(status_code=502, detail="No signed URL found in APS response")

        uploaded = await self.http.put(
            urls[0], content=content, headers={"Content-Type": "application/octet-stream"}
        )
        raise_for_upstream(uploaded, SERVICE, "Upload to signed URL")

        completed = await self.http.post(
            object_url,
            json={"uploadKey": signed_data.get("uploadKey")},
            headers=self._headers(token, json_body=True),
        )
        raise_for_upstream(completed, SERVICE, "Complete upload")
        logger.info(f"APS upload complete: {bucket_key}/{object_key} ({len(content)} bytes)")
        return completed.json()

    async def get_object_details(self, bucket_key: str, object_key: str) -> Dict[str, Any]:
        token = await self.get_token()
        response = await self.http.get(
            f"{self.base_url}/oss/v2/buckets/{bucket_key}/objects/{quote(object_key, safe='')}/details",
            headers=self._headers(token),
        )
        raise_for_upstream(response, SERVICE, "Get object details")
        return response.json()

    async def delete_object(self, bucket_key: str, object_key: str) -> None:
        token = await self.get_token()
        response = await self.http.delete(
            f"{self.base_url}/oss/v2/buckets/{bucket_key}/objects/{quote(object_key, safe='')}",
            headers=self._headers(token),
        )
        raise_for_upstream(response, SERVICE, "Delete object")

    async def get_translation_status(self, urn: str) -> Dict[str, Any]:
        token = await self.get_token()
        logger.info(f"Checking APS translation status for URN: {urn}")
        response = await self.http.get(
            f"{self.base_url}/modelderivative/v2/designdata/{urn}/manifest",
            headers=self._headers(token),
        )
        if response.status_code == 404:
            return {"status": "n/a", "progress": "", "messages": [], "manifest": None}
        raise_for_upstream(response, SERVICE, "Translation status")
        manifest = response.json()
        return {
            "status": manifest.get("status"),
            "progress": manifest.get("progress", ""),
            "messages": collect_manifest_messages(manifest),
            "manifest": manifest,
        }

    async def start_translation(self, urn: str, force: bool = False) -> Dict[str, Any]:
        token = await self.get_token()
        headers = self._headers(token, json_body=True)
        if force:
            headers["x-ads-force"] = "true"
        job = {
            "input": {"urn": urn},
            "output": {"formats": [{"type": "svf2", "views": ["2d", "3d"]}]},
        }
        logger.info(f"Starting APS translation for URN: {urn} (force={force})")
        response = await self.http.post(
            f"{self.base_url}/modelderivative/v2/designdata/job", json=job, headers=headers
        )
        raise_for_upstream(response, SERVICE, "Start translation")
        return response.json()
