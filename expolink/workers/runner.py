"""
Running async service code from synchronous Celery tasks.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any, TypeVar

T = TypeVar("T")


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """
    Run a coroutine on a fresh event loop.

    Forked workers inherit the parent's pooled connections and a closed
    loop, so the pool is disposed and a new loop created for every call.
    """
    from expolink.core.database import async_engine
    async_engine.sync_engine.dispose()

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()
