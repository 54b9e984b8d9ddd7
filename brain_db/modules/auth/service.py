import hashlib
import time
import logging
from supabase import Client
from brain_db.modules.auth.allowlist import normalize_email, parse_env_list, check_env_allowlist
from brain_db.modules.auth.schemas import (
    SignupRequest, SignupResponse, SigninCheckResponse, LoginRequest, TokenResponse,
    AllowlistValidateResponse, AllowlistUserResponse,
    AllowlistEntryCreate, AllowlistEntryUpdate, AllowlistEntryResponse
)
from brain_db.config import settings
from fastapi import HTTPException
from typing import Dict, Any, List, Optional

logger = logging.getLogger(__name__)

# In-memory cache for get_current_user to reduce Supabase auth calls (e.g. many parallel requests with same token)
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500

ALLOWLIST_TABLE = "auth_allowlist"


class AllowlistService:
    """Reads and maintains the auth_allowlist table. Needs the service role client."""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _find_row(self, email: str, columns: str = "*") -> Optional[Dict[str, Any]]:
        result = self.supabase.table(ALLOWLIST_TABLE)\
            .select(columns)\
            .eq("email", normalize_email(email))\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def check_env(self, email: str) -> bool:
        return check_env_allowlist(
            email,
            parse_env_list(settings.allowlist_emails),
            parse_env_list(settings.allowlist_domains),
        )

    def is_db_allowed(self, email: str) -> bool:
        """True only for an active row. Lookup errors propagate so callers never fail open."""
        row = self._find_row(email, "id, is_active")
        return bool(row and row.get("is_active"))

    def validate(self, email: str) -> AllowlistValidateResponse:
        """DB allowlist first, then the env-configured emails/domains."""
        email = normalize_email(email)
        if not email:
            raise HTTPException(status_code=400, detail="missing_email")
        try:
            if self.is_db_allowed(email):
                return AllowlistValidateResponse(allowed=True, source="db")
        except Exception as e:
            logger.error(f"Allowlist lookup failed for validate, using env fallback: {e}")
        return AllowlistValidateResponse(allowed=self.check_env(email), source="env")

    def get_user(self, email: str) -> AllowlistUserResponse:
        if not email or not email.strip():
            raise HTTPException(status_code=400, detail="Email parameter is required")
        try:
            row = self._find_row(email, "name, role, is_active")
        except Exception as e:
            logger.error(f"Allowlist lookup error: {e}")
            raise HTTPException(status_code=500, detail="Allowlist lookup failed")
        if not row or not row.get("is_active"):
            raise HTTPException(status_code=404, detail="User not found in allowlist")
        return AllowlistUserResponse(**row)

    def is_admin(self, email: str) -> bool:
        try:
            row = self._find_row(email, "role, is_active")
        except Exception as e:
            logger.error(f"Allowlist admin check failed: {e}")
            return False
        return bool(row and row.get("is_active") and row.get("role") == "admin")

    def list_entries(self, limit: int = 100, offset: int = 0) -> List[AllowlistEntryResponse]:
        try:
            result = self.supabase.table(ALLOWLIST_TABLE)\
                .select("*")\
                .order("email")\
                .limit(limit)\
                .offset(offset)\
                .execute()
            return [AllowlistEntryResponse(**row) for row in result.data]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def add_entry(self, entry: AllowlistEntryCreate) -> AllowlistEntryResponse:
        email = normalize_email(entry.email)
        try:
            if self._find_row(email, "id"):
                raise HTTPException(status_code=409, detail="Email already on allowlist")
            result = self.supabase.table(ALLOWLIST_TABLE).insert({
                "email": email,
                "name": entry.name,
                "role": entry.role,
                "is_active": entry.is_active,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to add allowlist entry")
            logger.info(f"Allowlist entry added: {email}")
            return AllowlistEntryResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_entry(self, entry_id: str, entry: AllowlistEntryUpdate) -> AllowlistEntryResponse:
        update_data = entry.model_dump(exclude_none=True)
        if not update_data:
            raise HTTPException(status_code=400, detail="No fields to update")
        try:
            result = self.supabase.table(ALLOWLIST_TABLE)\
                .update(update_data)\
                .eq("id", entry_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Allowlist entry not found")
            return AllowlistEntryResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_entry(self, entry_id: str) -> bool:
        try:
            result = self.supabase.table(ALLOWLIST_TABLE).delete().eq("id", entry_id).execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Allowlist entry not found")
            return True
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))


class AuthService:
    def __init__(self, supabase: Client, admin_client: Client):
        self.supabase = supabase
        self.admin = admin_client
        self.allowlist = AllowlistService(admin_client)

    def _require_db_allowlisted(self, email: str) -> None:
        try:
            allowed = self.allowlist.is_db_allowed(email)
        except Exception as e:
            logger.error(f"Allowlist check error: {e}")
            raise HTTPException(status_code=500, detail="Allowlist check failed")
        if not allowed:
            raise HTTPException(status_code=403, detail="Email not allowed")

    def signup(self, signup_data: SignupRequest) -> SignupResponse:
        """Create a confirmed user if the email is on the allowlist"""
        email = normalize_email(signup_data.email)
        if not self.allowlist.validate(email).allowed:
            raise HTTPException(status_code=403, detail="Email not allowed")
        try:
            auth_response = self.admin.auth.admin.create_user({
                "email": email,
                "password": signup_data.password,
                "email_confirm": True,
            })
        except Exception as e:
            raise HTTPException(status_code=400, detail=str(e))
        if not auth_response.user:
            raise HTTPException(status_code=400, detail="Failed to register user")
        logger.info(f"User signed up: {email}")
        return SignupResponse(
            user_id=auth_response.user.id,
            email=auth_response.user.email or email,
            message="User registered successfully"
        )

    def signin_check(self, email: str) -> SigninCheckResponse:
        """Confirm an allowlisted user exists; the actual sign-in happens client-side"""
        email = normalize_email(email)
        self._require_db_allowlisted(email)
        try:
            users = self.admin.auth.admin.list_users()
        except Exception as e:
            logger.error(f"User lookup failed: {e}")
            raise HTTPException(status_code=500, detail="User check failed")
        user = next((u for u in users if (u.email or "").lower() == email), None)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        return SigninCheckResponse(
            message="User exists and is allowed to sign in",
            user_id=user.id,
            email=user.email,
            email_confirmed_at=getattr(user, "email_confirmed_at", None),
        )

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Password sign-in for allowlisted users"""
        email = normalize_email(login_data.email)
        self._require_db_allowlisted(email)
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": email,
                "password": login_data.password
            })
        except Exception as e:
            error_message = str(e)
            if "invalid" in error_message.lower() or "credentials" in error_message.lower():
                raise HTTPException(status_code=401, detail="Invalid email or password")
            raise HTTPException(status_code=500, detail=f"Login failed: {error_message}")
        if not auth_response.user or not auth_response.session:
            raise HTTPException(status_code=401, detail="Invalid credentials")
        return TokenResponse(
            access_token=auth_response.session.access_token,
            refresh_token=auth_response.session.refresh_token,
            user_id=auth_response.user.id,
            email=auth_response.user.email or email
        )

    def reset_password(self, email: str, redirect_to: Optional[str] = None) -> None:
        email = normalize_email(email)
        options = {"redirect_to": redirect_to} if redirect_to else {}
        try:
            self.supabase.auth.reset_password_for_email(email, options)
        except Exception as e:
            logger.error(f"Password reset failed for {email}: {e}")
            raise HTTPException(status_code=400, detail=str(e))

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Get current user details from Supabase Auth token. Uses short TTL cache to reduce auth API calls."""
        try:
            cache_key = hashlib.sha256(token.encode()).hexdigest()
            now = time.monotonic()
            if cache_key in _AUTH_USER_CACHE:
                user_data, expiry = _AUTH_USER_CACHE[cache_key]
                if now < expiry:
                    return user_data
                del _AUTH_USER_CACHE[cache_key]
            user_response = self.supabase.auth.get_user(jwt=token)
            if not user_response or not user_response.user:
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            user = user_response.user
            user_data = {
                "id": user.id,
                "email": user.email,
                "user_metadata": user.user_metadata or {},
                "app_metadata": user.app_metadata or {},
            }
            if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
                _AUTH_USER_CACHE[cache_key] = (user_data, now + _AUTH_CACHE_TTL_SEC)
            return user_data
        except HTTPException:
            raise
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            raise HTTPException(status_code=401, detail="Authentication failed")
