import asyncio
import json

import httpx
import pytest
from fastapi import HTTPException

from brain_db.config import settings
from brain_db.core.http import ExternalServiceError
from brain_db.modules.aps.service import APSService, collect_manifest_messages


def token_response(request):
    return httpx.Response(200, json={"access_token": "aps-token", "expires_in": 3600})


@pytest.fixture
def aps_configured(monkeypatch):
    monkeypatch.setattr(settings, "aps_client_id", "client")
    monkeypatch.setattr(settings, "aps_client_secret", "secret")


def test_token_is_cached(http_client, token_cache, vendor_routes, vendor_requests):
    vendor_routes[("POST", "/authentication/v2/token")] = token_response
    service = APSService(http_client, token_cache, client_id="client", client_secret="secret")

    assert asyncio.run(service.get_token()) == "aps-token"
    assert asyncio.run(service.get_token()) == "aps-token"
    assert len(vendor_requests) == 1
    form = vendor_requests[0].content.decode()
    assert "grant_type=client_credentials" in form
    assert "viewables%3Aread" in form


def test_token_refetched_after_expiry_buffer(http_client, token_cache, vendor_routes, vendor_requests):
    vendor_routes[("POST", "/authentication/v2/token")] = token_response
    service = APSService(http_client, token_cache, client_id="client", client_secret="secret")
    asyncio.run(service.get_token())
    token_cache.clock.now += 3600 - settings.token_expiry_buffer_seconds
    asyncio.run(service.get_token())
    assert len(vendor_requests) == 2


def test_missing_credentials_is_503(http_client, token_cache):
    service = APSService(http_client, token_cache, client_id="", client_secret="")
    with pytest.raises(HTTPException) as exc:
        asyncio.run(service.get_token())
    assert exc.value.status_code == 503


def test_signed_upload_flow(http_client, token_cache, vendor_routes, vendor_requests):
    vendor_routes[("POST", "/authentication/v2/token")] = token_response
    vendor_routes[("GET", "/signeds3upload")] = lambda r: httpx.Response(
        200, json={"urls": ["https://s3.test/put-here"], "uploadKey": "key-1"}
    )
    vendor_routes[("PUT", "s3.test/put-here")] = lambda r: httpx.Response(200)
    vendor_routes[("POST", "/signeds3upload")] = lambda r: httpx.Response(
        200, json={"objectId": "urn:adsk.objects:os.object:bucket/model.rvt", "size": 4}
    )
    service = APSService(http_client, token_cache, client_id="client", client_secret="secret")

    result = asyncio.run(service.upload_object("bucket", "model.rvt", b"data"))

    assert result["objectId"].endswith("model.rvt")
    put = next(r for r in vendor_requests if r.method == "PUT")
    assert put.content == b"data"
    complete = [r for r in vendor_requests if r.method == "POST" and "signeds3upload" in str(r.url)][0]
    assert json.loads(complete.content) == {"uploadKey": "key-1"}


def test_collect_manifest_messages():
    manifest = {"derivatives": [
        {"messages": [{"message": "top"}], "children": [{"messages": [{"message": "child"}]}]},
        {"children": [{}]},
    ]}
    assert collect_manifest_messages(manifest) == ["top", "child"]


def test_translation_status_route(client, aps_configured, vendor_routes):
    vendor_routes[("POST", "/authentication/v2/token")] = token_response
    vendor_routes[("GET", "/manifest")] = lambda r: httpx.Response(
        200, json={"status": "inprogress", "progress": "40% complete", "derivatives": []}
    )
    response = client.get("/api/aps/translate", params={"urn": "dXJu"})
    assert response.status_code == 200
    assert response.json()["status"] == "inprogress"
    assert response.json()["progress"] == "40% complete"


def test_translation_status_without_manifest(client, aps_configured, vendor_routes):
    vendor_routes[("POST", "/authentication/v2/token")] = token_response
    response = client.get("/api/aps/translate", params={"urn": "dXJu"})
    assert response.json()["status"] == "n/a"


def test_translate_requires_urn(client):
    assert client.get("/api/aps/translate").status_code == 400


def test_upstream_error_shape(client, aps_configured, vendor_routes):
    vendor_routes[("POST", "/authentication/v2/token")] = lambda r: httpx.Response(
        401, json={"developerMessage": "bad client"}, headers={"WWW-Authenticate": "Bearer"}
    )
    response = client.get("/api/aps/viewer-token")
    assert response.status_code == 401
    body = response.json()
    assert body["service"] == "APS"
    assert body["upstream_status"] == 401


def test_upstream_server_error_is_bad_gateway(client, aps_configured, vendor_routes):
    vendor_routes[("POST", "/authentication/v2/token")] = lambda r: httpx.Response(500, text="boom")
    assert client.get("/api/aps/viewer-token").status_code == 502


def test_internal_token_hides_token(client, aps_configured, vendor_routes):
    vendor_routes[("POST", "/authentication/v2/token")] = token_response
    body = client.get("/api/aps/internal-token").json()
    assert body["configured"] is True
    assert body["token_length"] == len("aps-token")
    assert "aps-token" not in str(body)


def test_bucket_listing_and_deletion(http_client, token_cache, vendor_routes, vendor_requests):
    vendor_routes[("POST", "/authentication/v2/token")] = token_response
    vendor_routes[("GET", "/oss/v2/buckets")] = lambda r: httpx.Response(
        200, json={"items": [{"bucketKey": "brain-models", "policyKey": "transient"}]}
    )
    vendor_routes[("DELETE", "/oss/v2/buckets/brain-models")] = lambda r: httpx.Response(200)
    service = APSService(http_client, token_cache, client_id="client", client_secret="secret")

    assert asyncio.run(service.list_buckets())[0]["bucketKey"] == "brain-models"
    asyncio.run(service.delete_bucket("brain-models"))
    assert vendor_requests[-1].method == "DELETE"
    assert vendor_requests[-1].headers["authorization"] == "Bearer aps-token"


def test_object_details_quotes_key(http_client, token_cache, vendor_routes, vendor_requests):
    vendor_routes[("POST", "/authentication/v2/token")] = token_response
    vendor_routes[("GET", "/objects/Haus%20A.rvt/details")] = lambda r: httpx.Response(
        200, json={"objectKey": "Haus A.rvt", "size": 1024}
    )
    vendor_routes[("DELETE", "/objects/Haus%20A.rvt")] = lambda r: httpx.Response(200)
    service = APSService(http_client, token_cache, client_id="client", client_secret="secret")

    assert asyncio.run(service.get_object_details("bucket", "Haus A.rvt"))["size"] == 1024
    asyncio.run(service.delete_object("bucket", "Haus A.rvt"))
    assert vendor_requests[-1].method == "DELETE"


def test_delete_missing_bucket_raises_upstream_error(http_client, token_cache, vendor_routes):
    vendor_routes[("POST", "/authentication/v2/token")] = token_response
    service = APSService(http_client, token_cache, client_id="client", client_secret="secret")
    with pytest.raises(ExternalServiceError) as exc:
        asyncio.run(service.delete_bucket("missing"))
    assert exc.value.http_status == 404
