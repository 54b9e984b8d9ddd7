import httpx
import pytest

from brain_db.config import settings
from brain_db.modules.acc.oauth import TOKEN_KEY
from brain_db.modules.f16.service import default_excerpt, parse_model_path, slugify


def post(**overrides):
    row = {"title": "Baustart", "content": "Heute ging es los.", "project_id": "F16", "status": "published",
           "slug": "baustart", "published_at": "2024-03-01T08:00:00+00:00", "tags": []}
    row.update(overrides)
    return row


def test_slugify():
    assert slugify("Richtfest am 12. Mai!") == "richtfest-am-12-mai"
    assert slugify("  Über  uns  ") == "ber-uns"


def test_default_excerpt():
    assert default_excerpt("x" * 200) == "x" * 150 + "..."


def test_parse_model_path():
    assert parse_model_path("b.123/items/urn:item") == {"project_id": "b.123", "item_id": "urn:item"}
    assert parse_model_path("no-items-here") is None
    assert parse_model_path(None) is None


def test_list_posts(client, fake_supabase):
    fake_supabase.seed(
        "f16_blog_posts",
        post(id="1"),
        post(id="2", title="Richtfest", published_at="2024-05-01T08:00:00+00:00"),
        post(id="3", status="draft"),
        post(id="4", project_id="OTHER"),
    )
    posts = client.get("/api/zepta/f16/blog/posts").json()["posts"]
    assert [p["id"] for p in posts] == ["2", "1"]
    found = client.get("/api/zepta/f16/blog/posts", params={"search": "richt"}).json()["posts"]
    assert [p["id"] for p in found] == ["2"]
    paged = client.get("/api/zepta/f16/blog/posts", params={"limit": 1, "offset": 1}).json()["posts"]
    assert [p["id"] for p in paged] == ["1"]


def test_create_post_derives_slug_and_excerpt(client, fake_supabase):
    response = client.post("/api/zepta/f16/blog/posts", json={"title": "Richtfest am 12. Mai!", "content": "y" * 160})
    assert response.status_code == 201
    body = response.json()
    assert body["slug"] == "richtfest-am-12-mai"
    assert body["excerpt"] == "y" * 150 + "..."
    assert body["author_name"] == "Anonym"
    assert body["status"] == "published"
    assert body["project_id"] == "F16"


def test_create_post_requires_title_and_content(client):
    response = client.post("/api/zepta/f16/blog/posts", json={"title": "Nur Titel"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Title and content are required"


def test_comments(client, fake_supabase):
    fake_supabase.seed(
        "f16_blog_comments",
        {"id": "c1", "post_id": "1", "author_name": "A", "content": "Toll", "status": "approved",
         "created_at": "2024-03-02T10:00:00+00:00"},
        {"id": "c2", "post_id": "1", "author_name": "B", "content": "Spam", "status": "pending",
         "created_at": "2024-03-01T10:00:00+00:00"},
    )
    assert [c["id"] for c in client.get("/api/zepta/f16/blog/comments", params={"post_id": "1"}).json()["comments"]] == ["c1"]
    response = client.get("/api/zepta/f16/blog/comments")
    assert response.status_code == 400
    assert response.json()["detail"] == "Post ID is required"

    created = client.post("/api/zepta/f16/blog/comments", json={"post_id": "1", "content": "Super"}).json()
    assert created["status"] == "pending"
    assert created["author_name"] == "Anonym"


def test_upload_and_list_files(client, fake_supabase):
    headers = {"x-user-id": "user-1"}
    response = client.post(
        "/api/zepta/f16/files/upload",
        files={"file": ("Plan Erdgeschoss.pdf", b"%PDF-1.4", "application/pdf")},
        headers=headers,
    )
    assert response.status_code == 201
    uploaded = response.json()
    assert uploaded["path"].startswith("user-1/")
    assert uploaded["path"].endswith("-Plan_Erdgeschoss.pdf")
    assert uploaded["is_pdf"] is True

    client.post("/api/zepta/f16/files/upload", files={"file": ("foto.png", b"png", "image/png")}, headers=headers)

    files = client.get("/api/zepta/f16/files/list", headers=headers).json()["files"]
    assert len(files) == 2
    images = client.get("/api/zepta/f16/files/list", params={"type": "image"}, headers=headers).json()["files"]
    assert [f["is_image"] for f in images] == [True]
    assert images[0]["url"].startswith(f"https://storage.test/{settings.f16_storage_bucket}/user-1/")


def test_upload_rejects_wrong_type(client):
    response = client.post(
        "/api/zepta/f16/files/upload",
        files={"file": ("run.sh", b"echo", "text/x-sh")},
        headers={"x-user-id": "user-1"},
    )
    assert response.status_code == 400


def test_upload_rejects_large_file(client):
    response = client.post(
        "/api/zepta/f16/files/upload",
        files={"file": ("big.png", b"0" * (10 * 1024 * 1024 + 1), "image/png")},
        headers={"x-user-id": "user-1"},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "File too large. Maximum size is 10MB."


def test_files_require_user(client):
    response = client.get("/api/zepta/f16/files/list")
    assert response.status_code == 400
    assert response.json()["detail"] == "User ID required"


def test_settings_fall_back_to_configuration(client, fake_supabase, monkeypatch):
    monkeypatch.setattr(settings, "f16_model_path", "b.1/items/from-env")
    assert client.get("/api/f16/settings").json() == {"project_id": "f16", "model_path": "b.1/items/from-env"}

    client.put("/api/f16/settings", json={"model_path": "b.1/items/from-db"})
    assert client.get("/api/f16/settings").json()["model_path"] == "b.1/items/from-db"
    client.put("/api/f16/settings", json={"model_path": "b.1/items/again"})
    assert len(fake_supabase.tables["f16_settings"]) == 1


def test_bim_model_without_path(client, monkeypatch):
    monkeypatch.setattr(settings, "f16_model_path", None)
    assert client.get("/api/zepta/f16/bim-model").status_code == 404


def test_bim_model_resolves_viewer_token(client, fake_supabase, token_cache, vendor_routes):
    fake_supabase.seed("f16_settings", {"id": "s1", "project_id": "f16", "model_path": "b.1234/items/item-1"})
    token_cache.store(TOKEN_KEY, "three-legged", expires_in=3600)
    vendor_routes[("GET", "/items/item-1")] = lambda r: httpx.Response(200, json={"included": [
        {"type": "versions", "relationships": {"derivatives": {"data": {"id": "dXJu"}}}},
    ]})
    vendor_routes[("GET", "/manifest")] = lambda r: httpx.Response(200, json={"status": "success"})
    body = client.get("/api/zepta/f16/bim-model").json()
    assert body == {
        "project_id": "b.1234", "item_id": "item-1", "urn": "dXJu",
        "token": "three-legged", "status": "ready", "job": None,
    }


def test_status(client, monkeypatch):
    monkeypatch.setattr(settings, "openai_api_key", "sk")
    monkeypatch.setattr(settings, "perplexity_api_key", None)
    body = client.get("/api/zepta/f16/status").json()
    assert body["portal"] == "ZEPTA"
    assert body["integrations"]["openai"] is True
    assert body["integrations"]["perplexity"] is False
