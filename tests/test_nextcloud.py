import asyncio

import httpx
import pytest
from fastapi import HTTPException

from brain_db.config import settings
from brain_db.modules.nextcloud.service import (
    NextcloudService, dav_root, normalize_path, parse_propfind, path_hierarchy
)

ROOT = "/remote.php/dav/files/brain"

PROPFIND = f"""<?xml version="1.0"?>
<d:multistatus xmlns:d="DAV:">
  <d:response>
    <d:href>{ROOT}/Projekte/</d:href>
    <d:propstat><d:prop><d:resourcetype><d:collection/></d:resourcetype></d:prop></d:propstat>
  </d:response>
  <d:response>
    <d:href>{ROOT}/Projekte/F16/</d:href>
    <d:propstat><d:prop>
      <d:resourcetype><d:collection/></d:resourcetype>
      <d:getlastmodified>Mon, 01 Apr 2024 10:00:00 GMT</d:getlastmodified>
    </d:prop></d:propstat>
  </d:response>
  <d:response>
    <d:href>{ROOT}/Projekte/Datenbl%C3%A4tter.pdf</d:href>
    <d:propstat><d:prop>
      <d:resourcetype/>
      <d:getcontentlength>2048</d:getcontentlength>
      <d:getcontenttype>application/pdf</d:getcontenttype>
    </d:prop></d:propstat>
  </d:response>
  <d:response>
    <d:href>{ROOT}/Projekte/notizen.md</d:href>
    <d:propstat><d:prop><d:resourcetype/><d:getcontentlength>12</d:getcontentlength></d:prop></d:propstat>
  </d:response>
</d:multistatus>"""


@pytest.fixture
def nextcloud_configured(monkeypatch):
    monkeypatch.setattr(settings, "nextcloud_url", "https://cloud.test")
    monkeypatch.setattr(settings, "nextcloud_username", "brain")
    monkeypatch.setattr(settings, "nextcloud_password", "pw")


def test_normalize_path():
    assert normalize_path(None) == "/"
    assert normalize_path("Projekte//F16/") == "/Projekte/F16"


def test_path_hierarchy_defaults():
    assert path_hierarchy("/") == {"main_category": "Root", "sub_category": "Allgemein"}
    assert path_hierarchy("/Projekte") == {"main_category": "Projekte", "sub_category": "Allgemein"}
    assert path_hierarchy("/Projekte/F16/Pläne") == {"main_category": "Projekte", "sub_category": "F16"}


def test_dav_root():
    assert dav_root("https://cloud.test/", "brain") == f"https://cloud.test{ROOT}"
    assert dav_root(f"https://cloud.test{ROOT}", "other") == f"https://cloud.test{ROOT}"


def test_parse_propfind():
    entries = parse_propfind(PROPFIND, ROOT)
    assert [e["path"] for e in entries] == [
        "/Projekte", "/Projekte/F16", "/Projekte/Datenblätter.pdf", "/Projekte/notizen.md",
    ]
    assert entries[1]["is_folder"] is True
    assert entries[2]["size"] == 2048
    assert entries[2]["content_type"] == "application/pdf"


def test_folders_route(client, nextcloud_configured, vendor_routes, vendor_requests):
    vendor_routes[("PROPFIND", "/Projekte")] = lambda r: httpx.Response(207, text=PROPFIND)
    body = client.get("/api/nextcloud/folders", params={"path": "Projekte"}).json()
    assert body["path"] == "/Projekte"
    assert body["count"] == 3
    assert [i["label"] for i in body["data"]] == ["F16", "Datenblätter.pdf", "notizen.md"]
    assert body["data"][0]["type"] == "folder"
    assert body["data"][1]["main_category"] == "Projekte"
    assert vendor_requests[0].headers["depth"] == "1"
    assert vendor_requests[0].headers["authorization"].startswith("Basic ")


def test_documents_route_filters_extensions(client, nextcloud_configured, vendor_routes):
    vendor_routes[("PROPFIND", "/Projekte")] = lambda r: httpx.Response(207, text=PROPFIND)
    body = client.get("/api/nextcloud/documents", params={"path": "/Projekte", "extensions": "pdf"}).json()
    assert [i["label"] for i in body["data"]] == ["F16", "Datenblätter.pdf"]


def test_subfolders_requires_path(client, nextcloud_configured):
    response = client.get("/api/nextcloud/subfolders")
    assert response.status_code == 400
    assert response.json()["detail"] == "Path parameter is required"


def test_not_configured_is_503(client, monkeypatch):
    monkeypatch.setattr(settings, "nextcloud_url", None)
    assert client.get("/api/nextcloud/folders").status_code == 503


def test_write_operations(http_client, vendor_routes, vendor_requests):
    vendor_routes[("MKCOL", "/Projekte/Neu")] = lambda r: httpx.Response(201)
    vendor_routes[("PUT", "/Projekte/Neu/plan.pdf")] = lambda r: httpx.Response(201)
    vendor_routes[("GET", "/Projekte/Neu/plan.pdf")] = lambda r: httpx.Response(200, content=b"%PDF")
    vendor_routes[("DELETE", "/Projekte/Neu")] = lambda r: httpx.Response(204)
    service = NextcloudService(http_client, url="https://cloud.test", username="brain", password="pw")

    asyncio.run(service.create_folder("Projekte/Neu"))
    asyncio.run(service.upload_file("/Projekte/Neu/plan.pdf", b"%PDF"))
    assert asyncio.run(service.get_file_contents("/Projekte/Neu/plan.pdf")) == b"%PDF"
    asyncio.run(service.delete_item("/Projekte/Neu"))

    assert [r.method for r in vendor_requests] == ["MKCOL", "PUT", "GET", "DELETE"]
    assert vendor_requests[1].content == b"%PDF"
    assert str(vendor_requests[0].url) == f"https://cloud.test{ROOT}/Projekte/Neu"


def test_delete_root_is_refused(http_client, vendor_requests):
    service = NextcloudService(http_client, url="https://cloud.test", username="brain", password="pw")
    with pytest.raises(HTTPException) as exc:
        asyncio.run(service.delete_item("/"))
    assert exc.value.status_code == 400
    assert vendor_requests == []


def test_listing_with_email_username(http_client, vendor_routes):
    root = "/remote.php/dav/files/max%40buero.de"
    listing = f"""<?xml version="1.0"?>
<d:multistatus xmlns:d="DAV:">
  <d:response>
    <d:href>{root}/Projekte/</d:href>
    <d:propstat><d:prop><d:resourcetype><d:collection/></d:resourcetype></d:prop></d:propstat>
  </d:response>
  <d:response>
    <d:href>/remote.php/dav/files/max@buero.de/Projekte/F16/</d:href>
    <d:propstat><d:prop><d:resourcetype><d:collection/></d:resourcetype></d:prop></d:propstat>
  </d:response>
</d:multistatus>"""
    vendor_routes[("PROPFIND", "/Projekte")] = lambda r: httpx.Response(207, text=listing)
    service = NextcloudService(http_client, url="https://cloud.test", username="max@buero.de", password="pw")

    folders = asyncio.run(service.get_subfolders("/Projekte"))

    assert service.root_path == root
    assert [f["path"] for f in folders] == ["/Projekte/F16"]
    assert folders[0]["main_category"] == "Projekte"
