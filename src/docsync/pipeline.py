from __future__ import annotations

import logging
from enum import IntFlag
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import aiohttp

from .aggregator import Aggregator, Corrections, select_new
from .canonical import UrlCanonicalizer
from .config import Settings, SyncConfig
from .errors import AuthError, LedgerCorrupt
from .http import HttpFetcher
from .ledger import Ledger
from .links import LinkExtractor
from .metrics import last_exit_status
from .sources.base import SourceAdapter
from .store import DocumentStoreClient, fetch_auth_token
from .throttle import Suspend, suspend as default_suspend
from .uploader import BatchUploader, NewDocument, UploadOutcome
from .validator import UNREACHABLE, Validator


class ExitStatus(IntFlag):
    """Process exit status; each failure class owns one bit."""

    OK = 0
    AUTH_ERROR = 2
    DEGRADED_SOURCE = 4
    VALIDATOR_UNREACHABLE = 8
    VALIDATOR_FAILURES = 16
    UPLOAD_ABORTED = 32
    LEDGER_CORRUPT = 64


AdapterFactory = Callable[[HttpFetcher], Sequence[SourceAdapter]]


class Pipeline:
    """Validate -> aggregate -> dedup -> upload -> record, one run at a time."""

    def __init__(
        self,
        settings: Settings,
        config: SyncConfig,
        adapter_factory: AdapterFactory,
        *,
        suspend: Suspend = default_suspend,
    ) -> None:
        self.settings = settings
        self.config = config
        self.adapter_factory = adapter_factory
        self.canonicalize = UrlCanonicalizer(config.host_aliases)
        self._suspend = suspend
        self._log = logging.getLogger(__name__)

    async def run(self) -> ExitStatus:
        timeout = aiohttp.ClientTimeout(total=self.settings.http_timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            return await self.run_with_session(session)

    async def run_with_session(self, session: aiohttp.ClientSession) -> ExitStatus:
        try:
            token = await fetch_auth_token(
                session, self.settings.username, self.settings.password, auth_url=self.settings.auth_url
            )
        except AuthError as e:
            self._log.error("Authentication failed, nothing ingested: %s", e)
            return self._finish(ExitStatus.AUTH_ERROR)
        client = DocumentStoreClient(session, token, api_url=self.settings.api_url)
        fetcher = HttpFetcher(session, timeout=self.settings.http_timeout)
        return await self.execute(client, fetcher)

    async def execute(self, client: DocumentStoreClient, fetcher: HttpFetcher) -> ExitStatus:
        status = ExitStatus.OK
        s = self.settings

        validator = Validator(client, user_id=s.user_id, request_delay=s.request_delay, suspend=self._suspend)
        failures = await validator.validate()
        if failures == UNREACHABLE:
            status |= ExitStatus.VALIDATOR_UNREACHABLE
        elif failures > 0:
            status |= ExitStatus.VALIDATOR_FAILURES

        try:
            ledger = Ledger.load(Path(s.ledger_path))
        except LedgerCorrupt as e:
            self._log.error("Ledger unreadable, aborting run: %s", e)
            return self._finish(status | ExitStatus.LEDGER_CORRUPT)
        known = ledger.known_urls(self.canonicalize)

        aggregator = self.build_aggregator(fetcher)
        result = await aggregator.aggregate()
        if result.is_degraded:
            status |= ExitStatus.DEGRADED_SOURCE

        new_urls = select_new(result.candidates, known, aggregator.skip_set())
        if s.max_new_documents is not None and len(new_urls) > s.max_new_documents:
            self._log.info("Capping this run at %d of %d new documents", s.max_new_documents, len(new_urls))
            new_urls = new_urls[: s.max_new_documents]
        self._log.info("%d new documents out of %d candidates", len(new_urls), len(result.candidates))

        docs = [NewDocument.from_url(u, self.config.tags) for u in new_urls]
        uploader = BatchUploader(
            client,
            chunk_size=s.chunk_size,
            request_delay=s.request_delay,
            suspend=self._suspend,
            dry_run=s.dry_run,
        )
        outcome = UploadOutcome()
        try:
            await uploader.upload(docs, outcome)
        finally:
            # confirmed uploads are recorded even when the upload step crashes
            if s.dry_run:
                self._log.info("[dry-run] ledger left untouched (%d documents would be added)", len(outcome.records))
            else:
                ledger.append(outcome.records)
                ledger.save()
        if outcome.aborted:
            status |= ExitStatus.UPLOAD_ABORTED
        return self._finish(status)

    def build_aggregator(self, fetcher: HttpFetcher) -> Aggregator:
        extractor: Optional[LinkExtractor] = None
        if self.config.index_patterns:
            extractor = LinkExtractor(
                fetcher,
                canonicalize=self.canonicalize,
                index_patterns=self.config.index_patterns,
                max_documents=self.config.max_index_documents,
            )
        return Aggregator(
            self.adapter_factory(fetcher),
            extractor=extractor,
            corrections=Corrections(extra_urls=self.config.extra_urls, skip_urls=self.config.skip_urls),
            canonicalize=self.canonicalize,
        )

    def _finish(self, status: ExitStatus) -> ExitStatus:
        last_exit_status.set(int(status))
        if status:
            self._log.warning("Run finished with status %d (%s)", int(status), describe(status))
        else:
            self._log.info("Run finished cleanly")
        return status


def describe(status: ExitStatus) -> str:
    names: List[str] = [m.name for m in ExitStatus if m and m in status and m.name]
    return "|".join(names) or "OK"


async def run_pipeline(settings: Settings, config: SyncConfig, adapter_factory: AdapterFactory) -> ExitStatus:
    return await Pipeline(settings, config, adapter_factory).run()
