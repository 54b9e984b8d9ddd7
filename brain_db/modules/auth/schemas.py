from pydantic import BaseModel, EmailStr
from typing import Optional
from datetime import datetime


class SignupRequest(BaseModel):
    email: EmailStr
    password: str


class SignupResponse(BaseModel):
    user_id: str
    email: str
    message: str


class SigninCheckRequest(BaseModel):
    email: EmailStr
    password: Optional[str] = None


class SigninCheckResponse(BaseModel):
    message: str
    user_id: str
    email: str
    email_confirmed_at: Optional[datetime] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    user_id: str
    email: str


class ResetPasswordRequest(BaseModel):
    email: EmailStr
    redirect_to: Optional[str] = None


class AllowlistValidateRequest(BaseModel):
    email: str = ""


class AllowlistValidateResponse(BaseModel):
    allowed: bool
    source: Optional[str] = None  # "db" | "env"
    reason: Optional[str] = None


class AllowlistUserResponse(BaseModel):
    name: Optional[str] = None
    role: Optional[str] = None
    is_active: bool


class AllowlistEntryCreate(BaseModel):
    email: EmailStr
    name: Optional[str] = None
    role: str = "user"
    is_active: bool = True


class AllowlistEntryUpdate(BaseModel):
    name: Optional[str] = None
    role: Optional[str] = None
    is_active: Optional[bool] = None


class AllowlistEntryResponse(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    role: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
