"""Secondary discovery: document URLs cited inside already-known PDFs.

Discovery is exactly one hop deep. URLs found here join the candidate pool but
are never fetched and scanned themselves.
"""
from __future__ import annotations

import io
import logging
import re
from typing import Callable, Iterable, List, Optional, Protocol, Set

from pypdf import PdfReader

from .canonical import UrlCanonicalizer
from .errors import DecodeError, FetchError


PDF_URL_RE = re.compile(r"https?://[^\s\"'<>()\[\]{}\\]+?\.pdf", re.IGNORECASE)


class BytesFetcher(Protocol):
    async def get_bytes(self, url: str) -> bytes:  # pragma: no cover
        ...


class Decoder(Protocol):
    def decode(self, data: bytes) -> str:  # pragma: no cover
        ...


class PdfDecoder:
    """Turn a PDF into scannable text.

    Output is the decompressed content stream of every page, the URI of every
    link annotation and the extracted page text, newline separated.
    """

    def decode(self, data: bytes) -> str:
        try:
            reader = PdfReader(io.BytesIO(data))
            parts: List[str] = []
            for page in reader.pages:
                contents = page.get_contents()
                if contents is not None:
                    parts.append(contents.get_data().decode("latin-1"))
                parts.extend(self._annotation_uris(page))
                parts.append(page.extract_text() or "")
        except Exception as e:  # pypdf raises many types on malformed input
            raise DecodeError(f"Cannot decode PDF: {e}") from e
        return "\n".join(parts)

    @staticmethod
    def _annotation_uris(page) -> List[str]:
        uris: List[str] = []
        annots = page.get("/Annots")
        if annots is None:
            return uris
        for ref in annots.get_object():
            annot = ref.get_object()
            action = annot.get("/A")
            if action is None:
                continue
            uri = action.get_object().get("/URI")
            if uri:
                uris.append(str(uri))
        return uris


def extract_links(text: str, canonicalize: Optional[Callable[[str], str]] = None) -> Set[str]:
    canon = canonicalize or UrlCanonicalizer()
    return {canon(m.group(0)) for m in PDF_URL_RE.finditer(text)}


class LinkExtractor:
    def __init__(
        self,
        fetcher: BytesFetcher,
        *,
        decoder: Optional[Decoder] = None,
        canonicalize: Optional[Callable[[str], str]] = None,
        index_patterns: Iterable[str] = (),
        max_documents: Optional[int] = None,
    ) -> None:
        self.fetcher = fetcher
        self.decoder = decoder or PdfDecoder()
        self.canonicalize = canonicalize or UrlCanonicalizer()
        self.index_patterns = [re.compile(p) for p in index_patterns]
        self.max_documents = max_documents
        self._log = logging.getLogger(__name__)

    def select(self, urls: Iterable[str]) -> List[str]:
        """Pick the index documents (those expected to cite others) out of ``urls``."""
        picked: List[str] = []
        seen: Set[str] = set()
        for u in urls:
            if u in seen or not any(p.search(u) for p in self.index_patterns):
                continue
            seen.add(u)
            picked.append(u)
            if self.max_documents is not None and len(picked) >= self.max_documents:
                break
        return picked

    async def extract(self, urls: Iterable[str]) -> Set[str]:
        found: Set[str] = set()
        for url in urls:
            try:
                data = await self.fetcher.get_bytes(url)
                text = self.decoder.decode(data)
            except (FetchError, DecodeError) as e:
                self._log.warning("Skipping index document %s: %s", url, e)
                continue
            links = extract_links(text, self.canonicalize)
            self._log.info("Index document %s cites %d pdf urls", url, len(links))
            found |= links
        return found
