"""
Core dependencies for route protection
"""

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from brain_db.database.supabase_client import get_supabase, get_supabase_admin
from brain_db.modules.auth.service import AuthService, AllowlistService
from supabase import Client
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_auth_service(
    supabase: Client = Depends(get_supabase),
    admin_client: Client = Depends(get_supabase_admin),
) -> AuthService:
    return AuthService(supabase, admin_client)


def get_allowlist_service(admin_client: Client = Depends(get_supabase_admin)) -> AllowlistService:
    return AllowlistService(admin_client)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    return auth_service.get_current_user(credentials.credentials)


def require_admin(
    user_data: dict = Depends(get_current_user),
    allowlist: AllowlistService = Depends(get_allowlist_service),
) -> dict:
    """Allow only users whose active allowlist row carries role 'admin'"""
    if not user_data.get("email") or not allowlist.is_admin(user_data["email"]):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required"
        )
    return user_data
