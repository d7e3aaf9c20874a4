from __future__ import annotations

import asyncio
import logging
from typing import Optional

import aiohttp

from .errors import FetchError


USER_AGENT = "docsync/1.0"


class HttpFetcher:
    """GET helper used by source adapters and the link extractor.

    Any transport problem or HTTP status >= 400 surfaces as ``FetchError`` so a
    caller can absorb it per source.
    """

    def __init__(self, session: aiohttp.ClientSession, *, timeout: float = 60.0) -> None:
        self._session = session
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._log = logging.getLogger(__name__)

    async def get_text(self, url: str, *, encoding: Optional[str] = None) -> str:
        data = await self.get_bytes(url)
        try:
            return data.decode(encoding or "utf-8", errors="replace")
        except LookupError as e:
            raise FetchError(f"Unknown encoding {encoding!r} for {url}", url=url) from e

    async def get_bytes(self, url: str) -> bytes:
        self._log.debug("GET %s", url)
        try:
            async with self._session.get(
                url, timeout=self._timeout, headers={"User-Agent": USER_AGENT}
            ) as resp:
                body = await resp.read()
                if resp.status >= 400:
                    snippet = body[:300].decode("utf-8", errors="replace")
                    raise FetchError(f"HTTP {resp.status} fetching {url}: {snippet}", url=url)
                return body
        except aiohttp.ClientError as e:
            raise FetchError(f"Request to {url} failed: {e}", url=url) from e
        except asyncio.TimeoutError as e:
            raise FetchError(f"Request to {url} timed out", url=url) from e
