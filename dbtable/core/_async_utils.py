"""Internal async helpers for drivers and sinks that may be sync or async."""

from __future__ import annotations

import inspect
from typing import Any


async def _maybe_await(value: Any) -> Any:
    """Await awaitables and return non-awaitable values unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


async def _close_quietly(obj: Any) -> None:
    """Call `obj.close()` when present, awaiting async implementations."""

    close = getattr(obj, "close", None)
    if callable(close):
        await _maybe_await(close())
