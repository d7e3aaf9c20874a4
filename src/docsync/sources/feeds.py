from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from .base import SourceAdapter, TextFetcher
from ..errors import FetchError


def _dig(data: Any, dotted: Optional[str]) -> Any:
    if not dotted:
        return data
    for key in dotted.split("."):
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def urls_from_feed(data: Any, *, records_key: Optional[str], field: str, url_key: str = "url") -> List[str]:
    """Collect sub-document URLs from a list of records.

    Each record's ``field`` may be missing, null, a single entry or a list of
    entries; entries are URL strings or objects carrying the URL under ``url_key``.
    """
    records = _dig(data, records_key)
    if records is None:
        raise FetchError(f"Feed has no records at {records_key!r}")
    if not isinstance(records, list):
        raise FetchError(f"Feed records at {records_key!r} are not a list")
    urls: List[str] = []
    for rec in records:
        if not isinstance(rec, dict):
            continue
        entries = rec.get(field) or []
        if not isinstance(entries, list):
            entries = [entries]
        for entry in entries:
            if isinstance(entry, dict):
                entry = entry.get(url_key)
            if isinstance(entry, str) and entry.strip():
                urls.append(entry.strip())
    return urls


@dataclass
class JsonFeedSource(SourceAdapter):
    fetcher: TextFetcher
    url: str
    field: str
    records_key: Optional[str] = None
    url_key: str = "url"
    name: str = "json"
    min_count: int = 0

    async def fetch_candidates(self) -> List[str]:
        log = logging.getLogger(__name__)
        body = await self.fetcher.get_text(self.url)
        try:
            data = json.loads(body)
        except json.JSONDecodeError as e:
            raise FetchError(f"Invalid JSON from {self.url}: {e}", url=self.url) from e
        urls = urls_from_feed(data, records_key=self.records_key, field=self.field, url_key=self.url_key)
        log.info("JSON source %s: %d urls from %s", self.name, len(urls), self.url)
        return urls
