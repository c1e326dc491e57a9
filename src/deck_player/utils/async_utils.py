"""Thread-pool bridge that keeps file-system work off the event loop."""

from __future__ import annotations

import asyncio
import atexit
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any, Callable, TypeVar

T = TypeVar("T")

_executor: ThreadPoolExecutor | None = None


def _io_executor() -> ThreadPoolExecutor:
    global _executor
    if _executor is None:
        _executor = ThreadPoolExecutor(
            max_workers=4, thread_name_prefix="deck-player-io"
        )
        atexit.register(_executor.shutdown, wait=False, cancel_futures=True)
    return _executor


async def run_blocking(func: Callable[..., T], /, *args: Any, **kwargs: Any) -> T:
    """Await `func(*args, **kwargs)` executed on the shared IO pool."""
    if not callable(func):
        raise TypeError("func must be callable")
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(_io_executor(), partial(func, *args, **kwargs))
