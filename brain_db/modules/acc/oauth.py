"""3-legged OAuth for ACC Data Management access."""
import logging
import secrets
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx
from fastapi import HTTPException

from brain_db.config import settings
from brain_db.core.http import ExternalServiceError, raise_for_upstream
from brain_db.core.token_cache import TokenCache

logger = logging.getLogger(__name__)

SERVICE = "ACC OAuth"
TOKEN_KEY = "acc:3legged"
SCOPES = " ".join([
    "data:read",
    "data:write",
    "bucket:read",
    "bucket:create",
    "account:read",
    "user-profile:read",
])


class ACCOAuthService:
    def __init__(
        self,
        http: httpx.AsyncClient,
        cache: TokenCache,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
    ):
        self.http = http
        self.cache = cache
        self.client_id = client_id if client_id is not None else settings.aps_web_app_client_id
        self.client_secret = client_secret if client_secret is not None else settings.aps_web_app_client_secret
        self.base_url = settings.aps_base_url.rstrip("/")

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def _require_configured(self) -> None:
        if not self.configured:
            raise HTTPException(
                status_code=503,
                detail="ACC web app credentials not configured. Set APS_WEB_APP_CLIENT_ID and APS_WEB_APP_CLIENT_SECRET."
            )

    @staticmethod
    def redirect_uri(origin: Optional[str] = None) -> str:
        if settings.acc_redirect_uri:
            return settings.acc_redirect_uri
        if origin:
            return f"{origin.rstrip('/')}/auth/callback"
        return "http://localhost:3000/auth/callback"

    def authorization_url(self, origin: Optional[str] = None, state: Optional[str] = None) -> Dict[str, str]:
        self._require_configured()
        state = state or secrets.token_urlsafe(16)
        redirect_uri = self.redirect_uri(origin)
        params = urlencode({
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": redirect_uri,
            "scope": SCOPES,
            "state": state,
        })
        logger.info(f"ACC authorization URL generated (redirect: {redirect_uri})")
        return {
            "url": f"{self.base_url}/authentication/v2/authorize?{params}",
            "state": state,
            "redirect_uri": redirect_uri,
        }

    async def _token_request(self, form: Dict[str, str], action: str) -> Dict[str, Any]:
        self._require_configured()
        response = await self.http.post(
            f"{self.base_url}/authentication/v2/token",
            data={"client_id": self.client_id, "client_secret": self.client_secret, **form},
        )
        raise_for_upstream(response, SERVICE, action)
        tokens = response.json()
        self.cache.store(
            TOKEN_KEY,
            tokens["access_token"],
            tokens.get("expires_in", 3600),
            refresh_token=tokens.get("refresh_token"),
            buffer_seconds=settings.token_expiry_buffer_seconds,
            token_type=tokens.get("token_type", "Bearer"),
        )
        logger.info(f"ACC OAuth: {action} succeeded, tokens cached")
        return tokens

    async def exchange_code(self, code: str, origin: Optional[str] = None) -> Dict[str, Any]:
        logger.info(f"ACC OAuth: exchanging code (length {len(code)})")
        return await self._token_request(
            {"grant_type": "authorization_code", "code": code, "redirect_uri": self.redirect_uri(origin)},
            "Token exchange",
        )

    async def refresh(self, refresh_token: str) -> Dict[str, Any]:
        return await self._token_request(
            {"grant_type": "refresh_token", "refresh_token": refresh_token},
            "Token refresh",
        )

    async def get_access_token(self) -> str:
        """Cached token, refreshed with the stored refresh token once expired."""
        cached = self.cache.get(TOKEN_KEY)
        if cached:
            return cached.access_token

        stale = self.cache.peek(TOKEN_KEY)
        if stale and stale.refresh_token:
            logger.info("ACC OAuth: refreshing expired access token")
            try:
                tokens = await self.refresh(stale.refresh_token)
            except ExternalServiceError:
                logger.error("ACC OAuth: token refresh failed, clearing cache")
                self.clear()
                raise
            return tokens["access_token"]

        raise HTTPException(status_code=401, detail="No valid access token available. Please re-authenticate.")

    async def renew(self) -> Dict[str, Any]:
        stale = self.cache.peek(TOKEN_KEY)
        if not stale or not stale.refresh_token:
            raise HTTPException(status_code=401, detail="No refresh token available. Please re-authenticate.")
        await self.refresh(stale.refresh_token)
        return self.token_status()

    def clear(self) -> None:
        self.cache.clear(TOKEN_KEY)

    def token_status(self) -> Dict[str, Any]:
        status = self.cache.status(TOKEN_KEY)
        if not status["has_token"]:
            token_status = "not_found"
        elif status["is_valid"]:
            token_status = "valid"
        else:
            token_status = "expired"
        return {"token_status": token_status, **status}
