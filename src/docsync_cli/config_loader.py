from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

import yaml

from docsync.canonical import DEFAULT_HOST_ALIASES
from docsync.config import SyncConfig
from docsync.http import HttpFetcher
from docsync.sources import CsvSource, HtmlPageSource, JsonFeedSource, SourceAdapter


def load_config(path: Path) -> SyncConfig:
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Sources file {path} must be a mapping")
    return config_from_dict(data)


def config_from_dict(data: Dict[str, Any]) -> SyncConfig:
    sources = list(data.get("sources") or [])
    for item in sources:
        # fail on typos at load time rather than mid-run
        _check_source(item)
    links = data.get("link_extraction") or {}
    corrections = data.get("corrections") or {}
    aliases = data.get("host_aliases")
    return SyncConfig(
        sources=sources,
        tags=[str(t) for t in (data.get("tags") or [])],
        host_aliases=dict(DEFAULT_HOST_ALIASES if aliases is None else aliases),
        index_patterns=list(links.get("index_patterns") or []),
        max_index_documents=links.get("max_documents"),
        extra_urls=list(corrections.get("extra_urls") or []),
        skip_urls=list(corrections.get("skip_urls") or []),
    )


def _check_source(item: Dict[str, Any]) -> None:
    t = (item.get("type") or "").lower()
    if t not in ("csv", "json", "html"):
        raise ValueError(f"Unknown source type: {t}")
    if not item.get("url"):
        raise ValueError(f"Source of type {t} needs a 'url'")
    if t == "csv" and "column" not in item:
        raise ValueError("csv source needs a 'column'")
    if t == "json" and not item.get("field"):
        raise ValueError("json source needs a 'field'")


def build_adapters(cfg: SyncConfig, fetcher: HttpFetcher) -> List[SourceAdapter]:
    srcs: List[SourceAdapter] = []
    for item in cfg.sources:
        t = (item.get("type") or "").lower()
        name = item.get("name") or f"{t}:{item['url']}"
        min_count = int(item.get("min_count") or 0)
        if t == "csv":
            srcs.append(
                CsvSource(
                    fetcher=fetcher,
                    url=item["url"],
                    column=int(item["column"]),
                    header=bool(item.get("header", True)),
                    name=name,
                    min_count=min_count,
                )
            )
        elif t == "json":
            srcs.append(
                JsonFeedSource(
                    fetcher=fetcher,
                    url=item["url"],
                    field=item["field"],
                    records_key=item.get("records_key"),
                    url_key=item.get("url_key", "url"),
                    name=name,
                    min_count=min_count,
                )
            )
        elif t == "html":
            srcs.append(
                HtmlPageSource(
                    fetcher=fetcher,
                    url=item["url"],
                    suffix=item.get("suffix", ".pdf"),
                    name=name,
                    min_count=min_count,
                )
            )
        else:
            raise ValueError(f"Unknown source type: {t}")
    return srcs
