# backend/app/core/timeouts.py

import asyncio
from typing import Awaitable, Optional, TypeVar

from backend.app.config import settings
from backend.app.core.errors import ExternalCallTimeout

T = TypeVar("T")


async def bounded(awaitable: Awaitable[T], what: str, timeout: Optional[float] = None) -> T:
    """Await an external call, giving up after `timeout` seconds.

    Cancellation of the enclosing task propagates into the call as usual.
    """
    limit = settings.EXTERNAL_CALL_TIMEOUT if timeout is None else timeout
    try:
        return await asyncio.wait_for(awaitable, timeout=limit)
    except asyncio.TimeoutError as e:
        raise ExternalCallTimeout(f"{what} timed out after {limit}s") from e
