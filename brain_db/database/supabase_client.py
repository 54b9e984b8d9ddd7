from typing import Dict, Optional
from fastapi import HTTPException
from supabase import create_client, Client
from brain_db.config import settings

ANON_ROLE = "anon"
SERVICE_ROLE = "service_role"


class SupabaseClient:
    """One lazily created client per key role."""
    _clients: Dict[str, Client] = {}

    @classmethod
    def _for_role(cls, role: str, key: Optional[str]) -> Client:
        if not settings.supabase_url or not key:
            raise HTTPException(status_code=503, detail="Supabase is not configured")
        if role not in cls._clients:
            cls._clients[role] = create_client(settings.supabase_url, key)
        return cls._clients[role]

    @classmethod
    def get_client(cls) -> Client:
        return cls._for_role(ANON_ROLE, settings.supabase_key)

    @classmethod
    def get_service_client(cls) -> Client:
        """Bypasses RLS. Needed for auth.admin, storage uploads and the allowlist table.

        Without a service role key this is the anon client.
        """
        if not settings.supabase_service_role_key:
            return cls.get_client()
        return cls._for_role(SERVICE_ROLE, settings.supabase_service_role_key)

    @classmethod
    def reset(cls):
        cls._clients.clear()


def get_supabase() -> Client:
    return SupabaseClient.get_client()


def get_supabase_admin() -> Client:
    return SupabaseClient.get_service_client()
