"""Internal async helpers shared by async modules."""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable


async def _maybe_await(value: Any) -> Any:
    """Await awaitables and return non-awaitable values unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


async def _call_port(fn: Callable[..., Any], *args: Any) -> Any:
    """Await async port methods; run blocking ones in a worker thread."""
    if inspect.iscoroutinefunction(fn):
        return await fn(*args)
    return await _maybe_await(await asyncio.to_thread(fn, *args))
