"""Tests for the Supabase storage client."""

import json

import httpx
import pytest

from app.core.exceptions import StorageError
from app.services.storage_service import StorageService

BASE = "https://test-project.supabase.co/storage/v1"


def _storage(handler) -> StorageService:
    return StorageService(bucket="contracts", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_upload_posts_bytes_with_service_key():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"Key": "contracts/u1/1_nda.pdf"})

    path = await _storage(handler).upload_bytes("u1/1_nda.pdf", b"%PDF", "application/pdf")

    assert path == "u1/1_nda.pdf"
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == f"{BASE}/object/contracts/u1/1_nda.pdf"
    assert request.headers["Authorization"] == "Bearer test-service-role-key"
    assert request.headers["apikey"] == "test-service-role-key"
    assert request.headers["Content-Type"] == "application/pdf"
    assert request.content == b"%PDF"


@pytest.mark.asyncio
async def test_path_is_url_quoted():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={})

    await _storage(handler).upload_bytes("u1/1_lease deed.pdf", b"x", "application/pdf")

    assert seen[0].url.raw_path == b"/storage/v1/object/contracts/u1/1_lease%20deed.pdf"


@pytest.mark.asyncio
async def test_upload_failure_raises():
    storage = _storage(lambda request: httpx.Response(400, text="Bucket not found"))

    with pytest.raises(StorageError, match="Bucket not found"):
        await storage.upload_bytes("u1/x.pdf", b"x", "application/pdf")


@pytest.mark.asyncio
async def test_network_error_raises_storage_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(StorageError, match="timed out"):
        await _storage(handler).download_text("u1/x.pdf")


@pytest.mark.asyncio
async def test_download_decodes_with_replacement():
    storage = _storage(lambda request: httpx.Response(200, content=b"Clause 1 \xff ok"))

    assert await storage.download_text("u1/x.txt") == "Clause 1 � ok"


@pytest.mark.asyncio
async def test_download_failure_raises():
    storage = _storage(lambda request: httpx.Response(404, json={"error": "not_found"}))

    with pytest.raises(StorageError, match="Failed to download file"):
        await storage.download_text("u1/missing.pdf")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "signed_path, expected",
    [
        ("/object/sign/contracts/u1/x.pdf?token=t", f"{BASE}/object/sign/contracts/u1/x.pdf?token=t"),
        ("/storage/v1/object/sign/contracts/u1/x.pdf?token=t", f"{BASE}/object/sign/contracts/u1/x.pdf?token=t"),
        ("https://cdn.example.com/x.pdf?token=t", "https://cdn.example.com/x.pdf?token=t"),
    ],
)
async def test_signed_url_made_absolute(signed_path, expected):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"signedURL": signed_path})

    result = await _storage(handler).create_signed_url("u1/x.pdf", expires_in=600)

    assert result == {"signed_url": expected, "storage_path": "u1/x.pdf", "expires_in": 600}
    assert json.loads(seen[0].content) == {"expiresIn": 600}


@pytest.mark.asyncio
async def test_signed_url_missing_in_response():
    storage = _storage(lambda request: httpx.Response(200, json={}))

    with pytest.raises(StorageError, match="signedURL"):
        await storage.create_signed_url("u1/x.pdf")


@pytest.mark.asyncio
async def test_delete_sends_prefixes():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    await _storage(handler).delete_object("u1/x.pdf")

    assert seen[0].method == "DELETE"
    assert str(seen[0].url) == f"{BASE}/object/contracts"
    assert json.loads(seen[0].content) == {"prefixes": ["u1/x.pdf"]}
