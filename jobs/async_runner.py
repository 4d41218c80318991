"""
Async runner for dramatiq actors.

Actors are synchronous; each worker thread keeps one event loop and runs
the distribution coroutines on it, so engines and redis clients created
inside a run never cross loops.
"""

import asyncio
import threading
from collections.abc import Coroutine
from typing import Any, TypeVar

from loguru import logger

T = TypeVar("T")

_thread_local = threading.local()


def get_event_loop() -> asyncio.AbstractEventLoop:
    """Event loop owned by the calling thread, created on first use."""
    loop = getattr(_thread_local, "loop", None)
    if loop is None or loop.is_closed():
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        _thread_local.loop = loop
        logger.debug(f"Event loop created for {threading.current_thread().name}")
    return loop


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run coro to completion on the thread's loop and return its result."""
    return get_event_loop().run_until_complete(coro)
