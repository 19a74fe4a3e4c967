"""Unit tests for the HTTP and R2 slip stores."""

from unittest.mock import MagicMock

import httpx
import pytest
from botocore.exceptions import ClientError

from app.config import settings
from app.core.errors import ArtifactUnavailable
from app.services.storage_service import HttpBlobStore, R2BlobStore, object_key


def _store(status_code=200, exc=None, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        if exc is not None:
            raise exc
        return httpx.Response(status_code)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpBlobStore(client=client, base_url="https://files.example.com/uploads")


@pytest.mark.asyncio
async def test_http_store_present():
    seen = []
    store = _store(200, seen=seen)
    assert await store.exists("slips/a.jpg") is True
    assert seen[0].method == "HEAD"
    assert str(seen[0].url) == "https://files.example.com/uploads/slips/a.jpg"
    await store.aclose()


@pytest.mark.asyncio
@pytest.mark.parametrize("code", [404, 410, 403])
async def test_http_store_missing(code):
    store = _store(code)
    assert await store.exists("https://cdn.example.com/a.jpg") is False
    await store.aclose()


@pytest.mark.asyncio
async def test_http_store_server_error_is_unavailable():
    store = _store(503)
    with pytest.raises(ArtifactUnavailable):
        await store.exists("a.jpg")
    await store.aclose()


@pytest.mark.asyncio
async def test_http_store_transport_error_is_unavailable():
    store = _store(exc=httpx.ConnectError("connection refused"))
    with pytest.raises(ArtifactUnavailable):
        await store.exists("a.jpg")
    await store.aclose()


def _client_error(code):
    return ClientError({"Error": {"Code": code, "Message": "x"}}, "HeadObject")


@pytest.mark.asyncio
async def test_r2_store_present():
    client = MagicMock()
    store = R2BlobStore(client=client, bucket="slips")
    assert await store.exists("2025/a.jpg") is True
    client.head_object.assert_called_once_with(Bucket="slips", Key="2025/a.jpg")


@pytest.mark.asyncio
@pytest.mark.parametrize("code", ["404", "NoSuchKey", "NotFound"])
async def test_r2_store_missing(code):
    client = MagicMock()
    client.head_object.side_effect = _client_error(code)
    assert await R2BlobStore(client=client, bucket="slips").exists("a.jpg") is False


@pytest.mark.asyncio
async def test_r2_store_other_error_is_unavailable():
    client = MagicMock()
    client.head_object.side_effect = _client_error("AccessDenied")
    with pytest.raises(ArtifactUnavailable):
        await R2BlobStore(client=client, bucket="slips").exists("a.jpg")


def test_object_key_from_public_url(monkeypatch):
    monkeypatch.setattr(settings, "STORAGE_PUBLIC_BASE_URL", "https://files.example.com/uploads")
    assert object_key("https://files.example.com/uploads/2025/a.jpg") == "2025/a.jpg"
    assert object_key("/2025/a.jpg") == "2025/a.jpg"
