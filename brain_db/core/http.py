"""Shared httpx client and upstream error translation for vendor API calls."""
import logging
from typing import Optional

import httpx

from brain_db.config import settings

logger = logging.getLogger(__name__)

_client: Optional[httpx.AsyncClient] = None


class ExternalServiceError(Exception):
    """An upstream vendor API call failed."""

    def __init__(self, service: str, status_code: int, message: str, www_authenticate: Optional[str] = None):
        super().__init__(f"{service} request failed: {status_code} - {message}")
        self.service = service
        self.status_code = status_code
        self.message = message
        self.www_authenticate = www_authenticate

    @property
    def http_status(self) -> int:
        # Pass client errors through, anything else is a bad gateway
        if 400 <= self.status_code < 500:
            return self.status_code
        return 502


def get_http_client() -> httpx.AsyncClient:
    global _client
    if _client is None or _client.is_closed:
        _client = httpx.AsyncClient(timeout=settings.http_timeout_seconds)
    return _client


async def close_http_client() -> None:
    global _client
    if _client is not None and not _client.is_closed:
        await _client.aclose()
    _client = None


def raise_for_upstream(response: httpx.Response, service: str, action: str) -> None:
    """Raise ExternalServiceError for a non-2xx response, logging the body."""
    if response.is_success:
        return
    body = response.text
    www_authenticate = response.headers.get("www-authenticate")
    logger.error(
        "%s: %s failed: %s %s (WWW-Authenticate: %s)",
        service, action, response.status_code, body[:500], www_authenticate or "<none>",
    )
    raise ExternalServiceError(service, response.status_code, f"{action} failed: {body}", www_authenticate)
