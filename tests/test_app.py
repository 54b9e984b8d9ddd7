import logging

import pytest
from fastapi import HTTPException

from brain_db.config import settings
from brain_db.database import supabase_client
from brain_db.database.supabase_client import SupabaseClient, get_supabase, get_supabase_admin


def test_health_and_ready(client):
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/ready").json()["status"] == "ready"


def test_security_headers(client):
    response = client.get("/")
    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "SAMEORIGIN"


def test_log_error(client, caplog):
    with caplog.at_level(logging.ERROR, logger="brain_db.client"):
        response = client.post("/api/log-error", json={
            "message": "TypeError: x is undefined",
            "url": "https://brain.zepta.de/capture",
            "stack": "at Capture (capture.tsx:12)",
        })
    assert response.json() == {"logged": True}
    assert any("TypeError: x is undefined" in r.getMessage() for r in caplog.records)


@pytest.fixture
def supabase_clients(monkeypatch):
    created = []

    def fake_create_client(url, key):
        created.append(key)
        return {"url": url, "key": key}

    monkeypatch.setattr(supabase_client, "create_client", fake_create_client)
    monkeypatch.setattr(settings, "supabase_url", "https://db.test")
    monkeypatch.setattr(settings, "supabase_key", "anon-key")
    SupabaseClient.reset()
    yield created
    SupabaseClient.reset()


def test_clients_are_created_once_per_role(supabase_clients, monkeypatch):
    monkeypatch.setattr(settings, "supabase_service_role_key", "service-key")
    assert get_supabase()["key"] == "anon-key"
    assert get_supabase_admin()["key"] == "service-key"
    get_supabase()
    get_supabase_admin()
    assert supabase_clients == ["anon-key", "service-key"]


def test_admin_client_falls_back_to_anon(supabase_clients, monkeypatch):
    monkeypatch.setattr(settings, "supabase_service_role_key", None)
    assert get_supabase_admin()["key"] == "anon-key"


def test_unconfigured_supabase_is_503(supabase_clients, monkeypatch):
    monkeypatch.setattr(settings, "supabase_url", "")
    with pytest.raises(HTTPException) as exc:
        get_supabase()
    assert exc.value.status_code == 503
