from __future__ import annotations

from typing import Optional


class DocSyncError(RuntimeError):
    pass


class AuthError(DocSyncError):
    pass


class FetchError(DocSyncError):
    def __init__(self, message: str, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.url = url


class DecodeError(DocSyncError):
    pass


class TransportError(DocSyncError):
    """Remote store answered with a non-success HTTP status."""

    def __init__(self, status: int, body: str, url: Optional[str] = None) -> None:
        super().__init__(f"HTTP {status} from {url or 'remote store'}: {body[:500]}")
        self.status = status
        self.body = body
        self.url = url


class IntegrityError(DocSyncError):
    """Remote store accepted a batch but did not confirm every item in it.

    ``actual`` counts the usable items returned for ``expected`` submitted ones.
    """

    def __init__(self, expected: int, actual: int, message: Optional[str] = None) -> None:
        super().__init__(message or f"length mismatch - {actual} / {expected}")
        self.expected = expected
        self.actual = actual


class LedgerCorrupt(DocSyncError):
    pass
