from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

# The remote store allows 10 requests/second.
DEFAULT_REQUEST_DELAY = 0.1

Suspend = Callable[[float], Awaitable[None]]


async def suspend(seconds: float) -> None:
    """The single point where the pipeline waits to stay under the rate limit."""
    if seconds > 0:
        await asyncio.sleep(seconds)
