from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List
from urllib.parse import urldefrag, urljoin

from bs4 import BeautifulSoup

from .base import SourceAdapter, TextFetcher


def anchors_with_suffix(html: str, base_url: str, suffix: str = ".pdf") -> List[str]:
    soup = BeautifulSoup(html, "html.parser")
    wanted = suffix.lower()
    out: List[str] = []
    for a in soup.find_all("a", href=True):
        href = urldefrag(urljoin(base_url, a["href"].strip()))[0]
        if href.lower().endswith(wanted):
            out.append(href)
    return out


@dataclass
class HtmlPageSource(SourceAdapter):
    fetcher: TextFetcher
    url: str
    suffix: str = ".pdf"
    name: str = "html"
    min_count: int = 0

    async def fetch_candidates(self) -> List[str]:
        log = logging.getLogger(__name__)
        html = await self.fetcher.get_text(self.url)
        urls = anchors_with_suffix(html, self.url, self.suffix)
        log.info("HTML source %s: %d '%s' links on %s", self.name, len(urls), self.suffix, self.url)
        return urls
