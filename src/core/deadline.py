"""
Deadline helper for backend calls.

Bounds a single awaitable with asyncio.wait_for and reports expiry as
BackendUnavailableError, so callers treat a slow backend like an
unreachable one.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Optional, TypeVar

from core.errors import BackendUnavailableError

T = TypeVar("T")


async def call_with_deadline(call: Awaitable[T], *, timeout: Optional[float], context: str) -> T:
    # Non-positive or missing timeout means "no deadline".
    if timeout is None or timeout <= 0:
        return await call

    try:
        return await asyncio.wait_for(call, timeout=timeout)
    except asyncio.TimeoutError as e:
        raise BackendUnavailableError(f"{context} timed out after {timeout:g}s") from e
