from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import pytest

from docsync.errors import FetchError, TransportError
from docsync.sources.base import SourceAdapter


class FakeFetcher:
    """Serves canned bodies by URL; an Exception value is raised instead."""

    def __init__(self, pages: Optional[Dict[str, Union[str, bytes, Exception]]] = None) -> None:
        self.pages = dict(pages or {})
        self.calls: List[str] = []

    def _lookup(self, url: str) -> Union[str, bytes]:
        self.calls.append(url)
        if url not in self.pages:
            raise FetchError(f"HTTP 404 fetching {url}", url=url)
        body = self.pages[url]
        if isinstance(body, Exception):
            raise body
        return body

    async def get_text(self, url: str) -> str:
        body = self._lookup(url)
        return body.decode("utf-8") if isinstance(body, bytes) else body

    async def get_bytes(self, url: str) -> bytes:
        body = self._lookup(url)
        return body.encode("utf-8") if isinstance(body, str) else body


class StaticSource(SourceAdapter):
    def __init__(self, name: str, urls: Sequence[str] = (), *, min_count: int = 0, error: Optional[Exception] = None):
        self.name = name
        self.urls = list(urls)
        self.min_count = min_count
        self.error = error
        self.calls = 0

    async def fetch_candidates(self) -> List[str]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.urls)


class FakeStoreClient:
    """In-memory stand-in for DocumentStoreClient.

    ``create_script`` holds one entry per expected POST: ``"ok"`` echoes a
    document per item, an int returns that many items, a list is returned
    verbatim as the response body, an Exception is raised.
    Without a script every POST succeeds.
    """

    def __init__(
        self,
        *,
        create_script: Optional[List[Union[str, int, list, Exception]]] = None,
        pages: Optional[Dict[str, Any]] = None,
        user_id: int = 7,
        events: Optional[List[Any]] = None,
    ) -> None:
        self.create_script = list(create_script) if create_script is not None else None
        self.pages = pages if pages is not None else {self.documents_url(user_id): {"results": [], "next": None}}
        self.user_id = user_id
        self.created: List[List[Dict[str, Any]]] = []
        self.page_calls: List[str] = []
        self.events = events if events is not None else []
        self._seq = 0

    async def create_documents(self, items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        self.events.append(("post", len(items)))
        self.created.append(items)
        step: Union[str, int, list, Exception] = "ok"
        if self.create_script is not None:
            step = self.create_script.pop(0)
        if isinstance(step, Exception):
            raise step
        if isinstance(step, list):
            return step
        n = len(items) if step == "ok" else int(step)
        out = []
        for _ in range(n):
            self._seq += 1
            out.append({"id": self._seq, "canonical_url": f"https://store.test/documents/{self._seq}", "status": "pending"})
        return out

    async def current_user_id(self) -> int:
        self.events.append(("me",))
        return self.user_id

    def documents_url(self, user_id: int, page: int = 1) -> str:
        return f"https://store.test/api/documents/?user={user_id}&page={page}"

    async def get_page(self, url: str) -> Dict[str, Any]:
        self.events.append(("get", url))
        self.page_calls.append(url)
        page = self.pages[url]
        if isinstance(page, Exception):
            raise page
        return page


class RecordingSuspend:
    def __init__(self, events: Optional[List[Any]] = None) -> None:
        self.durations: List[float] = []
        self.events = events if events is not None else []

    async def __call__(self, seconds: float) -> None:
        self.durations.append(seconds)
        self.events.append(("sleep", seconds))


class FakeResponse:
    def __init__(self, status: int, body: Union[str, bytes, Any]) -> None:
        self.status = status
        if isinstance(body, (dict, list)):
            body = json.dumps(body)
        self._body = body.encode("utf-8") if isinstance(body, str) else body

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None

    async def text(self) -> str:
        return self._body.decode("utf-8")

    async def read(self) -> bytes:
        return self._body


class FakeSession:
    """Minimal aiohttp.ClientSession double: one canned response (or error) per call."""

    def __init__(self, responder: Callable[..., Any]) -> None:
        self.responder = responder
        self.requests: List[Dict[str, Any]] = []

    def _respond(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.requests.append({"method": method, "url": url, **kwargs})
        result = self.responder(method, url, **kwargs)
        if isinstance(result, Exception):
            raise result
        return result

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._respond("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._respond("POST", url, **kwargs)

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        return self._respond(method, url, **kwargs)


@pytest.fixture
def events() -> List[Any]:
    return []


@pytest.fixture
def recording_suspend(events) -> RecordingSuspend:
    return RecordingSuspend(events)


def transport_error(status: int = 500, body: str = "boom") -> TransportError:
    return TransportError(status, body, url="https://store.test/api/documents/")
