"""Tests for detached background tasks."""

import asyncio

from arena_auth.core import background


async def test_background_failure_is_absorbed():
    async def fail() -> None:
        raise RuntimeError("directory down")

    async def succeed() -> str:
        await asyncio.sleep(0)
        return "done"

    failing = background.spawn(fail(), name="failing")
    succeeding = background.spawn(succeed(), name="succeeding")
    assert background.pending_count() == 2

    await background.drain()

    assert background.pending_count() == 0
    assert isinstance(failing.exception(), RuntimeError)
    assert succeeding.result() == "done"
