from fastapi import APIRouter, Depends
from brain_db.modules.auth.schemas import (
    SignupRequest, SignupResponse, SigninCheckRequest, SigninCheckResponse,
    LoginRequest, TokenResponse, ResetPasswordRequest,
    AllowlistValidateRequest, AllowlistValidateResponse, AllowlistUserResponse,
    AllowlistEntryCreate, AllowlistEntryUpdate, AllowlistEntryResponse
)
from brain_db.modules.auth.service import AuthService, AllowlistService
from brain_db.core.dependencies import (
    get_auth_service, get_allowlist_service, get_current_user, require_admin
)
from typing import Dict, List

router = APIRouter(prefix="/auth", tags=["auth"])
admin_router = APIRouter(prefix="/admin/allowlist", tags=["admin"])


@router.post("/signup", response_model=SignupResponse, status_code=201)
async def signup(
    signup_data: SignupRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user (email must be allowlisted)"""
    return service.signup(signup_data)


@router.post("/signin", response_model=SigninCheckResponse)
async def signin(
    signin_data: SigninCheckRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Check that an allowlisted user exists before the client signs in"""
    return service.signin_check(signin_data.email)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return service.login(login_data)


@router.post("/reset-password")
async def reset_password(
    request: ResetPasswordRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Send a password reset email"""
    service.reset_password(request.email, request.redirect_to)
    return {"message": "Password reset email sent"}


@router.get("/status")
async def auth_status(current_user: Dict = Depends(get_current_user)):
    """Current authenticated user"""
    return {"authenticated": True, "user": current_user}


@router.get("/allowlist/validate", response_model=AllowlistValidateResponse)
async def validate_allowlist(
    email: str = "",
    service: AllowlistService = Depends(get_allowlist_service)
):
    """Check whether an email may sign up"""
    return service.validate(email)


@router.post("/allowlist/validate", response_model=AllowlistValidateResponse)
async def validate_allowlist_post(
    request: AllowlistValidateRequest,
    service: AllowlistService = Depends(get_allowlist_service)
):
    return service.validate(request.email)


@router.get("/allowlist/user", response_model=AllowlistUserResponse)
async def get_allowlist_user(
    email: str = "",
    service: AllowlistService = Depends(get_allowlist_service)
):
    """Name and role of an active allowlist entry"""
    return service.get_user(email)


@admin_router.get("", response_model=List[AllowlistEntryResponse])
async def list_allowlist(
    limit: int = 100,
    offset: int = 0,
    user_data: Dict = Depends(require_admin),
    service: AllowlistService = Depends(get_allowlist_service)
):
    return service.list_entries(limit=limit, offset=offset)


@admin_router.post("", response_model=AllowlistEntryResponse, status_code=201)
async def add_allowlist_entry(
    entry: AllowlistEntryCreate,
    user_data: Dict = Depends(require_admin),
    service: AllowlistService = Depends(get_allowlist_service)
):
    return service.add_entry(entry)


@admin_router.put("/{entry_id}", response_model=AllowlistEntryResponse)
async def update_allowlist_entry(
    entry_id: str,
    entry: AllowlistEntryUpdate,
    user_data: Dict = Depends(require_admin),
    service: AllowlistService = Depends(get_allowlist_service)
):
    return service.update_entry(entry_id, entry)


@admin_router.delete("/{entry_id}", status_code=204)
async def delete_allowlist_entry(
    entry_id: str,
    user_data: Dict = Depends(require_admin),
    service: AllowlistService = Depends(get_allowlist_service)
):
    service.delete_entry(entry_id)
    return None
