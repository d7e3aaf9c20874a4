from __future__ import annotations

import asyncio
import io

import pytest
from pypdf import PdfWriter
from pypdf.annotations import Link

from conftest import FakeFetcher
from docsync.errors import DecodeError
from docsync.links import LinkExtractor, PdfDecoder, extract_links


class _TextDecoder:
    def decode(self, data: bytes) -> str:
        if data.startswith(b"BAD"):
            raise DecodeError("not a pdf")
        return data.decode("utf-8")


def test_extract_links_is_a_deduplicated_canonical_scan():
    text = (
        "(see https://oip.nypdonline.org/files/a.pdf) and https://nypdonline.org/files/a.pdf\n"
        "HTTP://example.org/x/B.PDF, not https://example.org/page.html"
    )
    assert extract_links(text) == {"https://nypdonline.org/files/a.pdf", "HTTP://example.org/x/B.PDF"}


def test_extractor_selects_index_documents_by_pattern():
    ex = LinkExtractor(FakeFetcher(), index_patterns=[r"Index.*\.pdf$"], max_documents=2)
    urls = [
        "https://x.test/Index-2020.pdf",
        "https://x.test/other.pdf",
        "https://x.test/Index-2020.pdf",
        "https://x.test/Index-2021.pdf",
        "https://x.test/Index-2022.pdf",
    ]
    assert ex.select(urls) == ["https://x.test/Index-2020.pdf", "https://x.test/Index-2021.pdf"]


def test_extractor_skips_documents_it_cannot_fetch_or_decode():
    fetcher = FakeFetcher(
        {
            "https://x.test/i1.pdf": b"cites https://x.test/a.pdf and https://x.test/b.pdf",
            "https://x.test/i2.pdf": b"BAD bytes https://x.test/never.pdf",
            "https://x.test/i3.pdf": b"again https://x.test/a.pdf",
        }
    )
    ex = LinkExtractor(fetcher, decoder=_TextDecoder())
    found = asyncio.run(ex.extract(["https://x.test/i1.pdf", "https://x.test/i2.pdf", "https://x.test/gone.pdf", "https://x.test/i3.pdf"]))
    assert found == {"https://x.test/a.pdf", "https://x.test/b.pdf"}
    assert fetcher.calls[-1] == "https://x.test/i3.pdf"


def _pdf_with_link(url: str) -> bytes:
    writer = PdfWriter()
    writer.add_blank_page(width=612, height=792)
    writer.add_annotation(page_number=0, annotation=Link(rect=(50, 550, 200, 650), url=url))
    buf = io.BytesIO()
    writer.write(buf)
    return buf.getvalue()


def test_pdf_decoder_exposes_link_annotations():
    text = PdfDecoder().decode(_pdf_with_link("https://oip.nypdonline.org/files/cited.pdf"))
    assert extract_links(text) == {"https://nypdonline.org/files/cited.pdf"}


def test_pdf_decoder_rejects_garbage():
    with pytest.raises(DecodeError):
        PdfDecoder().decode(b"this is not a pdf document at all")
