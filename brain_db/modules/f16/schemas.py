from pydantic import BaseModel
from typing import Optional, List, Dict, Any


class BlogPostCreate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    excerpt: Optional[str] = None
    featured_image_url: Optional[str] = None
    tags: Optional[List[str]] = None
    author_id: Optional[str] = None
    author_name: Optional[str] = None
    author_email: Optional[str] = None


class BlogPostResponse(BaseModel):
    id: Any
    project_id: str
    title: str
    slug: str
    content: str
    excerpt: Optional[str] = None
    featured_image_url: Optional[str] = None
    tags: List[str] = []
    status: str
    published_at: Optional[str] = None
    author_id: Optional[str] = None
    author_name: Optional[str] = None
    author_email: Optional[str] = None


class CommentCreate(BaseModel):
    post_id: Optional[str] = None
    content: Optional[str] = None
    author_name: Optional[str] = None
    author_email: Optional[str] = None
    author_avatar_url: Optional[str] = None
    parent_id: Optional[str] = None


class CommentResponse(BaseModel):
    id: Any
    post_id: str
    parent_id: Optional[str] = None
    author_name: str
    author_email: Optional[str] = None
    author_avatar_url: Optional[str] = None
    content: str
    status: str
    created_at: Optional[str] = None


class F16Settings(BaseModel):
    project_id: str
    model_path: Optional[str] = None


class F16SettingsUpdate(BaseModel):
    model_path: Optional[str] = None


class StoredFile(BaseModel):
    name: str
    size: int = 0
    type: str = "unknown"
    path: Optional[str] = None
    url: str
    uploaded_at: Optional[str] = None
    is_image: bool = False
    is_pdf: bool = False


class BimModelResponse(BaseModel):
    project_id: str
    item_id: str
    urn: str
    token: str
    status: str  # ready | translating
    job: Optional[Dict[str, Any]] = None


class PortalStatus(BaseModel):
    status: str
    project: str
    portal: str
    version: str
    features: List[str]
    integrations: Dict[str, bool]
