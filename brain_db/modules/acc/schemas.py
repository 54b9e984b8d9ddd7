from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List


class AuthorizeUrlResponse(BaseModel):
    url: str
    state: str
    redirect_uri: str


class TokenStatusResponse(BaseModel):
    token_status: str  # not_found | valid | expired
    has_token: bool
    is_valid: bool
    expires_at: Optional[str] = None
    expires_in: int = 0
    access_token_length: int = 0
    refresh_token_length: int = 0


class FileStatus(BaseModel):
    status: str  # viewer-ready | needs-translation | unknown
    description: str


class ProjectContents(BaseModel):
    project_id: str
    folder_id: str
    folders: List[Dict[str, Any]] = []
    items: List[Dict[str, Any]] = []


class DerivativesRequest(BaseModel):
    file_id: Optional[str] = Field(None, alias="fileId")
    project_id: Optional[str] = Field(None, alias="projectId")

    model_config = {"populate_by_name": True}


class ManifestInfo(BaseModel):
    is_translated: bool
    status: str  # success | not_found | failed
    urn: Optional[str] = None
    manifest_url: Optional[str] = None
    error: Optional[str] = None


class ManifestResponse(BaseModel):
    urn: str
    manifest: Dict[str, Any]
    has_successful_derivatives: bool
    svf2_derivatives: List[Dict[str, Any]] = []
    is_ready: bool


class ViewerTokenRequest(BaseModel):
    item_id: Optional[str] = Field(None, alias="itemId")
    project_id: Optional[str] = Field(None, alias="projectId")

    model_config = {"populate_by_name": True}


class ViewerTokenResponse(BaseModel):
    urn: str
    token: str
    status: str  # ready | translating
    job: Optional[Dict[str, Any]] = None


class ProcessedUrnResponse(BaseModel):
    original: str
    processed: str
    is_valid: bool
