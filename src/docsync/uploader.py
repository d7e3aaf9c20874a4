from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence
from urllib.parse import unquote, urlsplit

from .errors import IntegrityError, TransportError
from .ledger import DocumentRecord
from .metrics import documents_uploaded_total, upload_chunks_total
from .store import DocumentStoreClient
from .throttle import DEFAULT_REQUEST_DELAY, Suspend, suspend as default_suspend


# Largest batch the remote store accepts in one creation request.
MAX_CHUNK_SIZE = 25


@dataclass(frozen=True)
class NewDocument:
    source_url: str
    title: str
    tags: Sequence[str] = ()
    access: str = "public"

    @classmethod
    def from_url(cls, url: str, tags: Sequence[str] = ()) -> "NewDocument":
        return cls(source_url=url, title=title_from_url(url), tags=tuple(tags))

    def to_request(self) -> Dict[str, Any]:
        return {
            "access": self.access,
            "data": {"_tag": list(self.tags)},
            "file_url": self.source_url,
            "source": self.source_url,
            "title": self.title,
        }


@dataclass
class UploadOutcome:
    records: List[DocumentRecord] = field(default_factory=list)
    error: Optional[Exception] = None
    chunks_sent: int = 0

    @property
    def aborted(self) -> bool:
        return self.error is not None


def title_from_url(url: str) -> str:
    path = urlsplit(url).path
    return unquote(path.rstrip("/").rsplit("/", 1)[-1]) or url


def chunked(items: Sequence[Any], size: int) -> Iterator[Sequence[Any]]:
    if size <= 0:
        raise ValueError("chunk size must be positive")
    for i in range(0, len(items), size):
        yield items[i : i + size]


class BatchUploader:
    """Submits documents in rate-limited chunks, stopping at the first bad chunk.

    Every record returned exists in the remote store: a failed or partially
    accepted chunk ends the run without rollback or retry.
    """

    def __init__(
        self,
        client: Optional[DocumentStoreClient],
        *,
        chunk_size: int = MAX_CHUNK_SIZE,
        request_delay: float = DEFAULT_REQUEST_DELAY,
        suspend: Suspend = default_suspend,
        dry_run: bool = False,
    ) -> None:
        if not 0 < chunk_size <= MAX_CHUNK_SIZE:
            raise ValueError(f"chunk_size must be between 1 and {MAX_CHUNK_SIZE}")
        if client is None and not dry_run:
            raise ValueError("A store client is required unless running dry")
        self.client = client
        self.chunk_size = chunk_size
        self.request_delay = request_delay
        self.dry_run = dry_run
        self._suspend = suspend
        self._log = logging.getLogger(__name__)

    async def upload(self, documents: Sequence[NewDocument], outcome: Optional[UploadOutcome] = None) -> UploadOutcome:
        """Send ``documents`` chunk by chunk, stopping at the first failed chunk.

        Confirmed records are added to ``outcome`` as each chunk succeeds, so a
        caller holding it keeps them even if this coroutine raises.
        """
        outcome = outcome if outcome is not None else UploadOutcome()
        for n, chunk in enumerate(chunked(documents, self.chunk_size)):
            if n > 0:
                await self._suspend(self.request_delay)
            try:
                confirmed = await self._submit(chunk, offset=len(outcome.records))
            except (TransportError, IntegrityError) as e:
                upload_chunks_total.labels(outcome="failed").inc()
                self._log.error(
                    "Upload aborted at chunk %d (%d documents kept): %s", n + 1, len(outcome.records), e
                )
                outcome.error = e
                break
            outcome.chunks_sent += 1
            outcome.records.extend(confirmed)
            upload_chunks_total.labels(outcome="ok").inc()
            documents_uploaded_total.inc(len(confirmed))
        self._log.info("Uploaded %d of %d documents", len(outcome.records), len(documents))
        return outcome

    async def _submit(self, chunk: Sequence[NewDocument], *, offset: int) -> List[DocumentRecord]:
        payload = [d.to_request() for d in chunk]
        if self.dry_run:
            self._log.info("[dry-run] would create %d documents", len(payload))
            created: List[Any] = [{"canonical_url": f"dry-run://{offset + i + 1}"} for i in range(len(payload))]
        else:
            client = self.client
            if client is None:
                raise ValueError("A store client is required unless running dry")
            try:
                created = await client.create_documents(payload)
            except TransportError as e:
                self._log.error("error: %s", e.body)
                raise
            if len(created) != len(payload):
                self._log.error("length mismatch - %d / %d", len(created), len(payload))
                self._log.error("data: %s", json.dumps(created, indent="\t"))
                self._log.error("docs: %s", json.dumps(payload, indent="\t"))
                raise IntegrityError(expected=len(payload), actual=len(created))
        records: List[DocumentRecord] = []
        for doc, item in zip(chunk, created):
            permanent = item.get("canonical_url") if isinstance(item, dict) else None
            if not permanent:
                self._log.error("no canonical_url for %s in response item: %r", doc.source_url, item)
                raise IntegrityError(
                    expected=len(payload),
                    actual=len(records),
                    message=f"item {len(records) + 1} of {len(payload)} carries no canonical_url",
                )
            records.append(
                DocumentRecord(
                    source_url=doc.source_url,
                    permanent_url=str(permanent),
                    title=doc.title,
                    tags=list(doc.tags),
                )
            )
        return records
