"""Nextcloud access over WebDAV."""
import logging
import posixpath
import xml.etree.ElementTree as ET
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import quote, unquote, urlparse

import httpx
from fastapi import HTTPException

from brain_db.config import settings
from brain_db.core.http import raise_for_upstream

logger = logging.getLogger(__name__)

SERVICE = "Nextcloud"
DAV_NS = "{DAV:}"
PROPFIND_BODY = """<?xml version="1.0" encoding="utf-8"?>
<d:propfind xmlns:d="DAV:">
  <d:prop>
    <d:displayname/>
    <d:resourcetype/>
    <d:getcontentlength/>
    <d:getcontenttype/>
    <d:getlastmodified/>
    <d:getetag/>
  </d:prop>
</d:propfind>"""
DOCUMENT_EXTENSIONS = (
    "pdf", "dwg", "dxf", "jpg", "jpeg", "png", "gif",
    "doc", "docx", "xls", "xlsx", "txt", "zip", "rar", "7z",
)


def normalize_path(path: Optional[str]) -> str:
    """'/'-rooted path without a trailing slash ('/' for the root)."""
    cleaned = "/" + "/".join(p for p in (path or "").split("/") if p)
    return cleaned


def path_hierarchy(path: str) -> Dict[str, str]:
    """Main and sub category from the first two path segments."""
    parts = [p for p in path.split("/") if p]
    if not parts:
        return {"main_category": "Root", "sub_category": "Allgemein"}
    if len(parts) == 1:
        return {"main_category": parts[0], "sub_category": "Allgemein"}
    return {"main_category": parts[0], "sub_category": parts[1]}


def file_extension(name: str) -> str:
    return name.rsplit(".", 1)[-1].lower() if "." in name else ""


def dav_root(url: str, username: str) -> str:
    """WebDAV root for the user; URLs that already point into remote.php are kept."""
    url = url.rstrip("/")
    if "/remote.php/" in url:
        return url
    return f"{url}/remote.php/dav/files/{quote(username)}"


def parse_propfind(xml_text: str, root_path: str) -> List[Dict[str, Any]]:
    """Multistatus entries as dicts with a path relative to the WebDAV root."""
    entries = []
    # hrefs are compared decoded, while the root keeps the quoted username
    root_path = unquote(root_path)
    tree = ET.fromstring(xml_text)
    for response in tree.findall(f"{DAV_NS}response"):
        href = unquote(response.findtext(f"{DAV_NS}href", default=""))
        href_path = urlparse(href).path if href.startswith("http") else href
        relative = href_path[len(root_path):] if href_path.startswith(root_path) else href_path
        prop = response.find(f"{DAV_NS}propstat/{DAV_NS}prop")
        if prop is None:
            continue
        is_folder = prop.find(f"{DAV_NS}resourcetype/{DAV_NS}collection") is not None
        length = prop.findtext(f"{DAV_NS}getcontentlength")
        entries.append({
            "path": normalize_path(relative),
            "is_folder": is_folder,
            "size": int(length) if length and length.isdigit() else None,
            "content_type": prop.findtext(f"{DAV_NS}getcontenttype"),
            "last_modified": prop.findtext(f"{DAV_NS}getlastmodified"),
        })
    return entries


def to_item(entry: Dict[str, Any]) -> Dict[str, Any]:
    name = posixpath.basename(entry["path"]) or "/"
    return {
        "id": name,
        "label": name,
        **path_hierarchy(entry["path"]),
        "path": entry["path"],
        "type": "folder" if entry["is_folder"] else "file",
        "size": entry["size"],
        "last_modified": entry["last_modified"],
        "has_children": entry["is_folder"],
        "content_type": entry["content_type"],
        "file_extension": None if entry["is_folder"] else file_extension(name),
        "children": None,
    }


def sort_items(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    # Folders first, then by label
    return sorted(items, key=lambda i: (i["type"] != "folder", i["label"].lower()))


class NextcloudService:
    def __init__(
        self,
        http: httpx.AsyncClient,
        url: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ):
        self.http = http
        url = url if url is not None else settings.nextcloud_url
        self.username = username if username is not None else settings.nextcloud_username
        self.password = password if password is not None else settings.nextcloud_password
        if not (url and self.username and self.password):
            raise HTTPException(status_code=503, detail="Nextcloud credentials not configured")
        self.root_url = dav_root(url, self.username)
        self.root_path = urlparse(self.root_url).path.rstrip("/")

    def _url(self, path: str) -> str:
        return self.root_url + quote(normalize_path(path))

    async def _request(self, method: str, path: str, action: str, **kwargs) -> httpx.Response:
        response = await self.http.request(
            method, self._url(path), auth=(self.username, self.password), **kwargs
        )
        raise_for_upstream(response, SERVICE, action)
        return response

    async def list_directory(self, path: str = "/") -> List[Dict[str, Any]]:
        path = normalize_path(path)
        logger.info(f"Nextcloud: listing {path}")
        response = await self._request(
            "PROPFIND", path, "List directory",
            content=PROPFIND_BODY,
            headers={"Depth": "1", "Content-Type": "application/xml"},
        )
        entries = parse_propfind(response.text, self.root_path)
        # The folder itself comes back as one of the entries
        return [to_item(e) for e in entries if e["path"] != path]

    async def get_folder_structure(self, path: str = "/", recursive: bool = False) -> List[Dict[str, Any]]:
        items = await self.list_directory(path)
        if recursive:
            for item in items:
                if item["type"] != "folder":
                    continue
                children = await self.get_folder_structure(item["path"], recursive=True)
                item["children"] = children
                item["has_children"] = bool(children)
        return sort_items(items)

    async def get_subfolders(self, path: str) -> List[Dict[str, Any]]:
        items = await self.list_directory(path)
        return sort_items([i for i in items if i["type"] == "folder"])

    async def list_documents(self, path: str = "/", extensions: Iterable[str] = DOCUMENT_EXTENSIONS) -> List[Dict[str, Any]]:
        """Folders plus files whose extension is in the given set."""
        allowed = {e.lower().lstrip(".") for e in extensions}
        items = await self.list_directory(path)
        return sort_items([
            i for i in items if i["type"] == "folder" or i["file_extension"] in allowed
        ])

    async def get_file_contents(self, path: str) -> bytes:
        response = await self._request("GET", path, "Download file")
        return response.content

    async def upload_file(self, path: str, content: bytes) -> None:
        await self._request("PUT", path, "Upload file", content=content)
        logger.info(f"Nextcloud: uploaded {normalize_path(path)} ({len(content)} bytes)")

    async def create_folder(self, path: str) -> None:
        await self._request("MKCOL", path, "Create folder")
        logger.info(f"Nextcloud: created folder {normalize_path(path)}")

    async def delete_item(self, path: str) -> None:
        if normalize_path(path) == "/":
            raise HTTPException(status_code=400, detail="Refusing to delete the Nextcloud root")
        await self._request("DELETE", path, "Delete item")
        logger.info(f"Nextcloud: deleted {normalize_path(path)}")
