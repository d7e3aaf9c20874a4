from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from .errors import AuthError, TransportError


DEFAULT_AUTH_URL = "https://accounts.muckrock.com/api/token/"
DEFAULT_API_URL = "https://api.www.documentcloud.org/api/"


async def fetch_auth_token(
    session: aiohttp.ClientSession,
    username: Optional[str],
    password: Optional[str],
    *,
    auth_url: str = DEFAULT_AUTH_URL,
) -> str:
    """Exchange account credentials for a bearer token."""
    log = logging.getLogger(__name__)
    if not username or not password:
        raise AuthError("Credentials missing: set DOCSYNC_USERNAME and DOCSYNC_PASSWORD")
    try:
        async with session.post(auth_url, data={"username": username, "password": password}) as resp:
            body = await resp.text()
            if resp.status >= 400:
                raise AuthError(f"Token request rejected (HTTP {resp.status}): {body[:300]}")
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        raise AuthError(f"Token request to {auth_url} failed: {e}") from e
    try:
        token = json.loads(body).get("access")
    except (json.JSONDecodeError, AttributeError) as e:
        raise AuthError(f"Token response is not a JSON object: {body[:300]}") from e
    if not token:
        raise AuthError("Token response carries no 'access' token")
    log.info("Obtained remote store token for %s", username)
    return str(token)


class DocumentStoreClient:
    """Thin bearer-token client for the document-hosting REST API."""

    def __init__(self, session: aiohttp.ClientSession, token: str, *, api_url: str = DEFAULT_API_URL) -> None:
        self._session = session
        self._token = token
        self.api_url = api_url if api_url.endswith("/") else api_url + "/"
        self._log = logging.getLogger(__name__)

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self._token}"}

    async def _request(self, method: str, url: str, *, payload: Any = None) -> Any:
        headers = self._headers()
        kwargs: Dict[str, Any] = {"headers": headers}
        if payload is not None:
            headers["Content-Type"] = "application/json"
            kwargs["data"] = json.dumps(payload)
        try:
            async with self._session.request(method, url, **kwargs) as resp:
                body = await resp.text()
                if resp.status >= 400:
                    raise TransportError(resp.status, body, url=url)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            # status 0: no HTTP response at all
            raise TransportError(0, str(e), url=url) from e
        try:
            return json.loads(body)
        except json.JSONDecodeError as e:
            raise TransportError(resp.status, body, url=url) from e

    async def create_documents(self, items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        data = await self._request("POST", self.api_url + "documents/", payload=items)
        if not isinstance(data, list):
            raise TransportError(200, json.dumps(data)[:500], url=self.api_url + "documents/")
        return data

    async def current_user_id(self) -> int:
        data = await self._request("GET", self.api_url + "users/me/")
        return int(data["id"])

    def documents_url(self, user_id: int, page: int = 1) -> str:
        return f"{self.api_url}documents/?user={user_id}&page={page}"

    async def get_page(self, url: str) -> Dict[str, Any]:
        data = await self._request("GET", url)
        if not isinstance(data, dict):
            raise TransportError(200, str(data)[:500], url=url)
        return data
