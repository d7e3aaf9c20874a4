from __future__ import annotations

import logging
from typing import Optional

from .errors import TransportError
from .metrics import validator_failures
from .store import DocumentStoreClient
from .throttle import DEFAULT_REQUEST_DELAY, Suspend, suspend as default_suspend


SUCCESS_STATUS = "success"
UNREACHABLE = -1


class Validator:
    """Counts previously ingested documents that never reached the success state.

    Read only; the result is a diagnostic and never stops ingestion.
    """

    def __init__(
        self,
        client: DocumentStoreClient,
        *,
        user_id: Optional[int] = None,
        request_delay: float = DEFAULT_REQUEST_DELAY,
        suspend: Suspend = default_suspend,
    ) -> None:
        self.client = client
        self.user_id = user_id
        self.request_delay = request_delay
        self._suspend = suspend
        self._log = logging.getLogger(__name__)

    async def validate(self) -> int:
        """Return the number of documents not in ``success`` state, or -1 if the store could not be checked."""
        try:
            user_id = self.user_id
            if user_id is None:
                user_id = await self.client.current_user_id()
                await self._suspend(self.request_delay)
            url: Optional[str] = self.client.documents_url(user_id)
            failures = 0
            checked = 0
            first = True
            while url:
                if not first:
                    await self._suspend(self.request_delay)
                first = False
                page = await self.client.get_page(url)
                for doc in page.get("results") or []:
                    checked += 1
                    status = doc.get("status")
                    if status != SUCCESS_STATUS:
                        failures += 1
                        self._log.warning(
                            "Document not processed: %s status=%s",
                            doc.get("canonical_url") or doc.get("id"),
                            status,
                        )
                url = page.get("next")
        except TransportError as e:
            self._log.error("Validation could not reach the remote store: %s", e)
            return UNREACHABLE
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            self._log.error("Validation got an unexpected response: %s", e)
            return UNREACHABLE
        validator_failures.set(failures)
        self._log.info("Validated %d documents: %d not in '%s' state", checked, failures, SUCCESS_STATUS)
        return failures
