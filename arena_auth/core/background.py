"""Detached best-effort tasks whose failures are only logged."""

import asyncio
from collections.abc import Coroutine
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

# Strong references so pending tasks are not garbage collected
_pending: set[asyncio.Task[Any]] = set()


def _on_done(task: asyncio.Task[Any]) -> None:
    _pending.discard(task)
    if task.cancelled():
        logger.warning("background_task_cancelled", task=task.get_name())
        return
    exc = task.exception()
    if exc is not None:
        logger.warning("background_task_failed", task=task.get_name(), error=str(exc))


def spawn(coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task[Any]:
    """Run ``coro`` detached from the caller; errors never reach the caller."""
    task = asyncio.create_task(coro, name=name)
    _pending.add(task)
    task.add_done_callback(_on_done)
    return task


def pending_count() -> int:
    """Number of detached tasks still running."""
    return len(_pending)


async def drain() -> None:
    """Wait for every detached task, e.g. on shutdown."""
    while _pending:
        await asyncio.gather(*list(_pending), return_exceptions=True)
