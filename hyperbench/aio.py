"""Small asyncio helpers shared by clients and adapters."""

import asyncio
import contextlib


async def cancel_task(task: asyncio.Task[None]) -> None:
    """Cancel a background task and wait for it to finish."""
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task
