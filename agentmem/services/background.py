"""
Fire-and-forget task helpers.

Background work (compaction, summary refresh, request logging) must never
surface errors to the request that scheduled it; failures are logged here.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Optional, Set

import agentmem.config as config

logger = config.logger

_pending: Set[asyncio.Task] = set()


def _on_done(task: asyncio.Task) -> None:
    _pending.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning(f"Background task {task.get_name()} failed: {exc}")


def spawn(coro: Awaitable, *, name: Optional[str] = None) -> Optional[asyncio.Task]:
    """Schedule ``coro`` on the running loop; returns None outside a loop."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.warning(f"No running event loop; dropping background task {name or ''}".rstrip())
        close = getattr(coro, "close", None)
        if close is not None:
            close()
        return None
    task = loop.create_task(coro, name=name)
    _pending.add(task)
    task.add_done_callback(_on_done)
    return task


def pending_count() -> int:
    return len(_pending)


async def drain(timeout: Optional[float] = None) -> None:
    """Wait for outstanding background tasks (used on shutdown and in tests)."""
    while _pending:
        tasks = list(_pending)
        done, not_done = await asyncio.wait(tasks, timeout=timeout)
        for task in done:
            _pending.discard(task)
        if not_done:
            for task in not_done:
                task.cancel()
            await asyncio.gather(*not_done, return_exceptions=True)
            for task in not_done:
                _pending.discard(task)
            return
