from supabase import Client
from brain_db.config import settings
from brain_db.modules.f16.schemas import (
    BlogPostCreate, BlogPostResponse, CommentCreate, CommentResponse, F16Settings
)
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
from datetime import datetime, timezone
import re
import time
import logging

logger = logging.getLogger(__name__)

EXCERPT_LENGTH = 150
MAX_UPLOAD_BYTES = 10 * 1024 * 1024
ALLOWED_UPLOAD_TYPES = (
    "image/jpeg", "image/png", "image/gif", "image/webp", "image/svg+xml", "application/pdf",
)
_IMAGE_NAME = re.compile(r"\.(jpg|jpeg|png|gif|webp|svg)$", re.I)
_PDF_NAME = re.compile(r"\.pdf$", re.I)
_SLUG_SEPARATORS = re.compile(r"[^a-z0-9]+")
_UNSAFE_FILENAME = re.compile(r"[^a-zA-Z0-9.-]")


def slugify(title: str) -> str:
    return _SLUG_SEPARATORS.sub("-", title.lower()).strip("-")


def default_excerpt(content: str) -> str:
    return content[:EXCERPT_LENGTH] + "..."


def parse_model_path(model_path: Optional[str]) -> Optional[Dict[str, str]]:
    """'<project>/items/<item>' into its ACC project and item ids."""
    if not model_path or "/items/" not in model_path:
        return None
    project_id, item_id = model_path.split("/items/", 1)
    if not project_id or not item_id:
        return None
    return {"project_id": project_id, "item_id": item_id}


class BlogService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.project_id = settings.f16_project_id

    def list_posts(self, limit: int = 10, offset: int = 0, search: Optional[str] = None) -> List[BlogPostResponse]:
        try:
            query = self.supabase.table("f16_blog_posts")\
                .select("*")\
                .eq("status", "published")\
                .eq("project_id", self.project_id)
            if search:
                query = query.or_(f"title.ilike.%{search}%,content.ilike.%{search}%")
            result = query.order("published_at", desc=True).range(offset, offset + limit - 1).execute()
            return [BlogPostResponse(**row) for row in result.data or []]
        except Exception as e:
            logger.error(f"Loading blog posts failed: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch posts")

    def create_post(self, post: BlogPostCreate) -> BlogPostResponse:
        """Publish a post immediately; slug and excerpt are derived when not given."""
        if not post.title or not post.content:
            raise HTTPException(status_code=400, detail="Title and content are required")
        try:
            insert_data = {
                "title": post.title,
                "content": post.content,
                "excerpt": post.excerpt or default_excerpt(post.content),
                "featured_image_url": post.featured_image_url,
                "tags": post.tags or [],
                "project_id": self.project_id,
                "status": "published",
                "slug": slugify(post.title),
                "published_at": datetime.now(timezone.utc).isoformat(),
                "author_id": post.author_id,
                "author_name": post.author_name or "Anonym",
                "author_email": post.author_email,
            }
            result = self.supabase.table("f16_blog_posts").insert(insert_data).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create post")
            logger.info(f"Blog post created: {insert_data['slug']}")
            return BlogPostResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_comments(self, post_id: Optional[str]) -> List[CommentResponse]:
        if not post_id:
            raise HTTPException(status_code=400, detail="Post ID is required")
        try:
            result = self.supabase.table("f16_blog_comments")\
                .select("*")\
                .eq("post_id", post_id)\
                .eq("status", "approved")\
                .order("created_at")\
                .execute()
            return [CommentResponse(**row) for row in result.data or []]
        except Exception as e:
            logger.error(f"Loading comments for {post_id} failed: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch comments")

    def create_comment(self, comment: CommentCreate) -> CommentResponse:
        """New comments wait for moderation"""
        if not comment.post_id or not comment.content:
            raise HTTPException(status_code=400, detail="post_id and content are required")
        try:
            result = self.supabase.table("f16_blog_comments").insert({
                "post_id": comment.post_id,
                "author_name": comment.author_name or "Anonym",
                "author_email": comment.author_email,
                "author_avatar_url": comment.author_avatar_url,
                "content": comment.content,
                "status": "pending",
                "parent_id": comment.parent_id,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create comment")
            return CommentResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))


class PortalSettingsService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.project_id = settings.f16_project_id.lower()

    def _find(self) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("f16_settings").select("*").eq("project_id", self.project_id).limit(1).execute()
        return result.data[0] if result.data else None

    def get_settings(self) -> F16Settings:
        """Stored settings, falling back to the configured model path"""
        try:
            row = self._find()
        except Exception as e:
            logger.warning(f"Loading portal settings failed, using configuration: {e}")
            row = None
        model_path = (row or {}).get("model_path") or settings.f16_model_path
        return F16Settings(project_id=self.project_id, model_path=model_path)

    def update_settings(self, model_path: Optional[str]) -> F16Settings:
        try:
            row = self._find()
            data = {"model_path": model_path, "updated_at": datetime.now(timezone.utc).isoformat()}
            if row:
                self.supabase.table("f16_settings").update(data).eq("id", row["id"]).execute()
            else:
                self.supabase.table("f16_settings").insert({"project_id": self.project_id, **data}).execute()
            return F16Settings(project_id=self.project_id, model_path=model_path)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))


class PortalFileService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.bucket = settings.f16_storage_bucket

    def _storage(self):
        return self.supabase.storage.from_(self.bucket)

    def list_files(self, user_id: Optional[str], file_type: Optional[str] = None) -> List[Dict[str, Any]]:
        if not user_id:
            raise HTTPException(status_code=400, detail="User ID required")
        try:
            files = self._storage().list(user_id, {
                "limit": 100,
                "offset": 0,
                "sortBy": {"column": "created_at", "order": "desc"},
            }) or []
        except Exception as e:
            logger.error(f"Listing files for {user_id} failed: {e}")
            raise HTTPException(status_code=500, detail="Failed to list files")

        if file_type == "image":
            files = [f for f in files if _IMAGE_NAME.search(f["name"])]
        elif file_type == "pdf":
            files = [f for f in files if _PDF_NAME.search(f["name"])]

        listed = []
        for f in files:
            metadata = f.get("metadata") or {}
            path = f"{user_id}/{f['name']}"
            listed.append({
                "name": f["name"],
                "size": metadata.get("size") or 0,
                "type": metadata.get("mimetype") or "unknown",
                "path": path,
                "url": self._storage().get_public_url(path),
                "uploaded_at": f.get("created_at"),
                "is_image": bool(_IMAGE_NAME.search(f["name"])),
                "is_pdf": bool(_PDF_NAME.search(f["name"])),
            })
        return listed

    def upload_file(self, user_id: Optional[str], filename: str, content_type: Optional[str], content: bytes) -> Dict[str, Any]:
        if not user_id:
            raise HTTPException(status_code=400, detail="User ID required")
        if content_type not in ALLOWED_UPLOAD_TYPES:
            raise HTTPException(
                status_code=400,
                detail="File type not allowed. Only images (JPEG, PNG, GIF, WebP, SVG) and PDF files are supported."
            )
        if len(content) > MAX_UPLOAD_BYTES:
            raise HTTPException(status_code=400, detail="File too large. Maximum size is 10MB.")

        path = f"{user_id}/{int(time.time() * 1000)}-{_UNSAFE_FILENAME.sub('_', filename)}"
        try:
            self._storage().upload(path, content, {
                "content-type": content_type,
                "cache-control": "3600",
                "upsert": "false",
            })
        except Exception as e:
            logger.error(f"Uploading {path} failed: {e}")
            raise HTTPException(status_code=500, detail=f"Failed to upload file: {e}")
        logger.info(f"Portal file uploaded: {path} ({len(content)} bytes)")
        return {
            "name": filename,
            "size": len(content),
            "type": content_type,
            "path": path,
            "url": self._storage().get_public_url(path),
            "uploaded_at": datetime.now(timezone.utc).isoformat(),
            "is_image": content_type.startswith("image/"),
            "is_pdf": content_type == "application/pdf",
        }
