from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Protocol


class TextFetcher(Protocol):
    async def get_text(self, url: str) -> str:  # pragma: no cover
        ...


class SourceAdapter(ABC):
    """One external origin of candidate document URLs.

    ``min_count`` is the calibrated low-water mark: fewer results than this is
    taken as a sign the upstream silently broke.
    """

    name: str
    min_count: int

    @abstractmethod
    async def fetch_candidates(self) -> List[str]:
        """Return raw candidate URLs; raise FetchError when the source is unusable."""
        raise NotImplementedError
