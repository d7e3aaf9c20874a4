from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import AbstractSet, Callable, Dict, Iterable, List, Optional, Sequence, Set

from .canonical import UrlCanonicalizer
from .errors import FetchError
from .links import LinkExtractor
from .metrics import secondary_links_total, source_candidates, source_degraded_total
from .sources.base import SourceAdapter


@dataclass(frozen=True)
class Corrections:
    """Hand-curated fixes for upstream data mistakes.

    ``extra_urls`` are good documents discovery misses; ``skip_urls`` must never
    be ingested even when a source offers them.
    """

    extra_urls: Sequence[str] = ()
    skip_urls: Sequence[str] = ()


@dataclass
class AggregationResult:
    candidates: List[str] = field(default_factory=list)
    counts: Dict[str, int] = field(default_factory=dict)
    degraded: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    secondary: int = 0

    @property
    def is_degraded(self) -> bool:
        return bool(self.degraded)


class Aggregator:
    def __init__(
        self,
        adapters: Sequence[SourceAdapter],
        *,
        extractor: Optional[LinkExtractor] = None,
        corrections: Optional[Corrections] = None,
        canonicalize: Optional[Callable[[str], str]] = None,
    ) -> None:
        self.adapters = list(adapters)
        self.extractor = extractor
        self.corrections = corrections or Corrections()
        self.canonicalize = canonicalize or UrlCanonicalizer()
        self._log = logging.getLogger(__name__)

    def skip_set(self) -> Set[str]:
        return {self.canonicalize(u) for u in self.corrections.skip_urls}

    async def aggregate(self) -> AggregationResult:
        result = AggregationResult()
        raw: List[str] = []
        for adapter in self.adapters:
            crashed = False
            try:
                urls = await adapter.fetch_candidates()
            except FetchError as e:
                self._log.error("Source %s failed: %s", adapter.name, e)
                result.failed.append(adapter.name)
                urls = []
            except Exception:
                # a broken adapter must not cost the other sources their run
                self._log.exception("Source %s crashed", adapter.name)
                result.failed.append(adapter.name)
                crashed = True
                urls = []
            count = len(urls)
            result.counts[adapter.name] = count
            source_candidates.labels(source=adapter.name).set(count)
            if count < adapter.min_count or crashed:
                self._log.warning(
                    "Source %s degraded: %d urls, expected at least %d", adapter.name, count, adapter.min_count
                )
                result.degraded.append(adapter.name)
                source_degraded_total.labels(source=adapter.name).inc()
            raw.extend(urls)

        if self.extractor is not None:
            index_docs = self.extractor.select(self.canonicalize(u) for u in raw)
            if index_docs:
                found = await self.extractor.extract(index_docs)
                result.secondary = len(found)
                secondary_links_total.inc(len(found))
                raw.extend(sorted(found))

        raw.extend(self.corrections.extra_urls)
        result.candidates = self._finalize(raw)
        self._log.info(
            "Aggregated %d unique candidates (%d from secondary discovery)", len(result.candidates), result.secondary
        )
        return result

    def _finalize(self, urls: Iterable[str]) -> List[str]:
        skip = self.skip_set()
        seen: Set[str] = set()
        out: List[str] = []
        for u in urls:
            c = self.canonicalize(u)
            if not c or c in seen:
                continue
            seen.add(c)
            if c in skip:
                self._log.debug("Skip list drops %s", c)
                continue
            out.append(c)
        return out


def select_new(candidates: Iterable[str], known: AbstractSet[str], skip: AbstractSet[str] = frozenset()) -> List[str]:
    """Candidates neither in the ledger (source or alternate URLs) nor skip-listed, first-seen order."""
    out: List[str] = []
    seen: Set[str] = set()
    for c in candidates:
        if c in known or c in skip or c in seen:
            continue
        seen.add(c)
        out.append(c)
    return out
