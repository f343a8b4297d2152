from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable, TypeVar

T = TypeVar("T")

# ── core helper ────────────────────────────────────────────────────────── #


async def maybe_async(fn: Callable[..., T], *args, **kwargs) -> T:          # noqa: N802
    """
    Await *fn* whether it is a coroutine or a plain blocking function.
    Plain calls (smtplib, requests) are off‑loaded to the default thread‑pool
    so the block loop keeps its single cooperative task.
    """
    if asyncio.iscoroutinefunction(fn):
        return await fn(*args, **kwargs)                                     # type: ignore[misc]
    result = await asyncio.to_thread(fn, *args, **kwargs)
    if inspect.isawaitable(result):
        return await result                                                  # type: ignore[return-value]
    return result


def value_of(obj: Any) -> Any:
    """Unwrap a decoded ScaleObj (or anything with `.value`) to its Python value."""
    return getattr(obj, "value", obj)
