"""Concurrent fan-out helpers."""

import asyncio
from typing import Awaitable, TypeVar

T = TypeVar("T")


async def gather_or_cancel(*aws: Awaitable[T]) -> list[T]:
    """Run awaitables concurrently and return their results in order.

    If any of them raises, the others are cancelled and awaited before the
    error propagates, so nothing keeps running after the caller has moved on
    (and closed the connection the siblings were using).
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
