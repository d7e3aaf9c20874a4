from __future__ import annotations

import asyncio
import json

import aiohttp
import pytest

from conftest import FakeResponse, FakeSession
from docsync.errors import AuthError, FetchError, TransportError
from docsync.http import HttpFetcher
from docsync.store import DocumentStoreClient, fetch_auth_token


def test_auth_token_is_read_from_access_field():
    session = FakeSession(lambda method, url, **kw: FakeResponse(200, {"access": "tok", "refresh": "r"}))
    token = asyncio.run(fetch_auth_token(session, "user", "pw", auth_url="https://id.test/token/"))
    assert token == "tok"
    assert session.requests[0]["url"] == "https://id.test/token/"


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(401, {"detail": "bad credentials"}),
        FakeResponse(200, {"no": "token"}),
        FakeResponse(200, "<html>maintenance</html>"),
        aiohttp.ClientConnectionError("refused"),
    ],
)
def test_auth_failures_raise_auth_error(response):
    session = FakeSession(lambda method, url, **kw: response)
    with pytest.raises(AuthError):
        asyncio.run(fetch_auth_token(session, "user", "pw"))


def test_missing_credentials_raise_without_request():
    session = FakeSession(lambda method, url, **kw: FakeResponse(200, {"access": "tok"}))
    with pytest.raises(AuthError):
        asyncio.run(fetch_auth_token(session, None, "pw"))
    assert session.requests == []


def test_create_documents_posts_json_with_bearer_token():
    created = [{"id": 1, "canonical_url": "https://store/1"}]
    session = FakeSession(lambda method, url, **kw: FakeResponse(201, created))
    client = DocumentStoreClient(session, "tok", api_url="https://api.test/api")
    assert asyncio.run(client.create_documents([{"file_url": "u"}])) == created
    req = session.requests[0]
    assert (req["method"], req["url"]) == ("POST", "https://api.test/api/documents/")
    assert req["headers"]["Authorization"] == "Bearer tok"
    assert json.loads(req["data"]) == [{"file_url": "u"}]


def test_non_success_status_is_transport_error_with_body():
    session = FakeSession(lambda method, url, **kw: FakeResponse(429, "slow down"))
    client = DocumentStoreClient(session, "tok", api_url="https://api.test/api/")
    with pytest.raises(TransportError) as exc:
        asyncio.run(client.create_documents([{"file_url": "u"}]))
    assert exc.value.status == 429
    assert exc.value.body == "slow down"


def test_connection_failure_is_transport_error():
    session = FakeSession(lambda method, url, **kw: aiohttp.ClientConnectionError("reset"))
    client = DocumentStoreClient(session, "tok")
    with pytest.raises(TransportError):
        asyncio.run(client.get_page(client.documents_url(7)))


def test_fetcher_turns_http_errors_into_fetch_error():
    def respond(method, url, **kw):
        if url.endswith("ok"):
            return FakeResponse(200, b"%PDF-bytes")
        if url.endswith("404"):
            return FakeResponse(404, "not here")
        return aiohttp.ClientConnectionError("dns")

    fetcher = HttpFetcher(FakeSession(respond))
    assert asyncio.run(fetcher.get_bytes("https://x.test/ok")) == b"%PDF-bytes"
    for url in ("https://x.test/404", "https://x.test/down"):
        with pytest.raises(FetchError):
            asyncio.run(fetcher.get_text(url))
