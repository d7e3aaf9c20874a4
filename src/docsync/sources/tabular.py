from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass
from typing import List

from .base import SourceAdapter, TextFetcher
from ..errors import FetchError


def urls_from_csv(body: str, column: int, *, header: bool = True) -> List[str]:
    try:
        rows = list(csv.reader(io.StringIO(body)))
    except csv.Error as e:
        raise FetchError(f"Malformed CSV: {e}") from e
    if header:
        rows = rows[1:]
    urls: List[str] = []
    for row in rows:
        if len(row) <= column:
            continue
        cell = row[column].strip()
        if cell:
            urls.append(cell)
    return urls


@dataclass
class CsvSource(SourceAdapter):
    fetcher: TextFetcher
    url: str
    column: int
    header: bool = True
    name: str = "csv"
    min_count: int = 0

    async def fetch_candidates(self) -> List[str]:
        log = logging.getLogger(__name__)
        body = await self.fetcher.get_text(self.url)
        urls = urls_from_csv(body, self.column, header=self.header)
        log.info("CSV source %s: %d urls from %s", self.name, len(urls), self.url)
        return urls
