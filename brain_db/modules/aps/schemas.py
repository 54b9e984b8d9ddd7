from pydantic import BaseModel
from typing import Optional, Dict, Any, List


class ViewerTokenResponse(BaseModel):
    access_token: str
    expires_in: int


class InternalTokenStatus(BaseModel):
    configured: bool
    token_length: int = 0
    expires_in: int = 0


class BucketCreate(BaseModel):
    bucket_key: str
    policy_key: str = "transient"  # transient | temporary | persistent


class TranslateRequest(BaseModel):
    urn: Optional[str] = None
    force: bool = False


class TranslationStatus(BaseModel):
    status: str
    progress: Optional[str] = ""
    messages: List[str] = []
    manifest: Optional[Dict[str, Any]] = None


class UploadResponse(BaseModel):
    bucket_key: str
    object_key: str
    object_id: Optional[str] = None
    urn: Optional[str] = None
    size: Optional[int] = None
