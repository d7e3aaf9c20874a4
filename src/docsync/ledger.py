from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from .errors import LedgerCorrupt


@dataclass
class DocumentRecord:
    source_url: str
    permanent_url: Optional[str] = None
    alternate_urls: List[str] = field(default_factory=list)
    title: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    # keys we do not model are carried through untouched on save
    extra: Dict[str, Any] = field(default_factory=dict)

    def urls(self) -> List[str]:
        return [self.source_url, *self.alternate_urls]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DocumentRecord":
        src = data.get("source_url")
        if not isinstance(src, str) or not src:
            raise LedgerCorrupt(f"Ledger record without source_url: {data!r}")
        alts = data.get("alternate_urls") or []
        tags = data.get("tags") or []
        if not isinstance(alts, list) or not isinstance(tags, list):
            raise LedgerCorrupt(f"Ledger record with malformed list field: {src}")
        known = {"source_url", "permanent_url", "alternate_urls", "title", "tags"}
        return cls(
            source_url=src,
            permanent_url=data.get("permanent_url"),
            alternate_urls=[str(u) for u in alts],
            title=data.get("title"),
            tags=[str(t) for t in tags],
            extra={k: v for k, v in data.items() if k not in known},
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"source_url": self.source_url, "permanent_url": self.permanent_url}
        if self.alternate_urls:
            out["alternate_urls"] = list(self.alternate_urls)
        if self.title is not None:
            out["title"] = self.title
        if self.tags:
            out["tags"] = list(self.tags)
        out.update(self.extra)
        return out


class Ledger:
    """Append-only catalog of every document already ingested into the remote store."""

    def __init__(self, path: Path, records: Optional[List[DocumentRecord]] = None) -> None:
        self.path = path
        self.records: List[DocumentRecord] = list(records or [])
        self._log = logging.getLogger(__name__)

    @classmethod
    def load(cls, path: Path) -> "Ledger":
        log = logging.getLogger(__name__)
        if not path.exists():
            log.warning("Ledger %s not found; starting with an empty catalog", path)
            return cls(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise LedgerCorrupt(f"Cannot read ledger {path}: {e}") from e
        if not isinstance(data, dict) or not isinstance(data.get("documents"), list):
            raise LedgerCorrupt(f"Ledger {path} has no 'documents' list")
        records: List[DocumentRecord] = []
        for item in data["documents"]:
            if not isinstance(item, dict):
                raise LedgerCorrupt(f"Ledger {path} contains a non-object entry: {item!r}")
            records.append(DocumentRecord.from_dict(item))
        log.info("Loaded ledger %s: %d documents", path, len(records))
        return cls(path, records)

    def known_urls(self, canonicalize: Optional[Callable[[str], str]] = None) -> Set[str]:
        """Every source and alternate URL, optionally in ``canonicalize`` form.

        Records written before canonicalization existed may hold raw spellings,
        so membership tests against canonical candidates pass the canonicalizer.
        """
        known: Set[str] = set()
        for rec in self.records:
            urls = rec.urls()
            known.update(urls)
            if canonicalize is not None:
                known.update(canonicalize(u) for u in urls)
        return known

    def append(self, records: Iterable[DocumentRecord]) -> List[DocumentRecord]:
        known = self.known_urls()
        added: List[DocumentRecord] = []
        for rec in records:
            clash = [u for u in rec.urls() if u in known]
            if clash:
                self._log.warning("Refusing duplicate ledger entry %s: already holds %s", rec.source_url, clash[0])
                continue
            self.records.append(rec)
            known.update(rec.urls())
            added.append(rec)
        return added

    def save(self) -> None:
        payload = {"documents": [r.to_dict() for r in self.records]}
        text = json.dumps(payload, indent="\t", ensure_ascii=False) + "\n"
        directory = self.path.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=str(directory))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.path)
        except BaseException:
            try:
                os.unlink(tmp)
            except FileNotFoundError:
                pass
            raise
        self._log.info("Saved ledger %s: %d documents", self.path, len(self.records))

    def backfill_alternates(self, pattern: str, old_prefix: str, new_prefix: str) -> int:
        """Record ``new_prefix`` spellings of matching source URLs as alternates.

        Returns how many records gained an alternate URL.
        """
        rx = re.compile(pattern)
        owned = {r.source_url for r in self.records}
        for r in self.records:
            owned.update(r.alternate_urls)
        changed = 0
        for rec in self.records:
            if not rx.match(rec.source_url) or not rec.source_url.startswith(old_prefix):
                continue
            alt = new_prefix + rec.source_url[len(old_prefix):]
            if alt in owned:
                continue
            rec.alternate_urls.append(alt)
            owned.add(alt)
            changed += 1
        return changed
