"""Keyed in-memory cache for OAuth access tokens.

Entries expire by wall-clock time supplied by an injectable clock, so tests can
move time forward without sleeping. Nothing survives a process restart.
"""
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Any


@dataclass
class CachedToken:
    access_token: str
    expires_at: float
    refresh_token: Optional[str] = None
    token_type: str = "Bearer"

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at

    def expires_in(self, now: float) -> int:
        return max(0, int(self.expires_at - now))


class TokenCache:
    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, CachedToken] = {}

    def now(self) -> float:
        return self._clock()

    def get(self, key: str) -> Optional[CachedToken]:
        """Return the token for key only while it has not expired."""
        with self._lock:
            entry = self._entries.get(key)
        if entry is None or not entry.is_valid(self.now()):
            return None
        return entry

    def peek(self, key: str) -> Optional[CachedToken]:
        """Return the entry even if expired (its refresh token may still be usable)."""
        with self._lock:
            return self._entries.get(key)

    def store(
        self,
        key: str,
        access_token: str,
        expires_in: float,
        refresh_token: Optional[str] = None,
        buffer_seconds: float = 0,
        token_type: str = "Bearer",
    ) -> CachedToken:
        entry = CachedToken(
            access_token=access_token,
            expires_at=self.now() + float(expires_in) - float(buffer_seconds),
            refresh_token=refresh_token,
            token_type=token_type,
        )
        with self._lock:
            self._entries[key] = entry
        return entry

    def clear(self, key: Optional[str] = None) -> None:
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def status(self, key: str) -> Dict[str, Any]:
        entry = self.peek(key)
        if entry is None:
            return {"has_token": False, "is_valid": False, "expires_at": None,
                    "access_token_length": 0, "refresh_token_length": 0}
        now = self.now()
        return {
            "has_token": True,
            "is_valid": entry.is_valid(now),
            "expires_at": datetime.fromtimestamp(entry.expires_at, tz=timezone.utc).isoformat(),
            "expires_in": entry.expires_in(now),
            "access_token_length": len(entry.access_token),
            "refresh_token_length": len(entry.refresh_token or ""),
        }


token_cache = TokenCache()


def get_token_cache() -> TokenCache:
    return token_cache
