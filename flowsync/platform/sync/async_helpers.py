"""Async helper utilities for CPU-bound work."""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Callable, Optional, TypeVar

from flowsync.core.config import settings

# Shared thread pool for CPU-bound operations (image transcoding)
_cpu_executor: Optional[ThreadPoolExecutor] = None

T = TypeVar("T")


def get_cpu_executor() -> ThreadPoolExecutor:
    """Get or create the shared CPU executor."""
    global _cpu_executor

    if _cpu_executor is None:
        _cpu_executor = ThreadPoolExecutor(
            max_workers=settings.SYNC_THREAD_POOL_SIZE, thread_name_prefix="flowsync-cpu"
        )
    return _cpu_executor


async def run_in_thread_pool(func: Callable[..., T], *args, **kwargs) -> T:
    """Run a synchronous function in the shared thread pool.

    The caller still awaits the result, so work stays sequential from the
    point of view of the event loop's own operations.
    """
    loop = asyncio.get_running_loop()
    if kwargs:
        func = partial(func, **kwargs)
    return await loop.run_in_executor(get_cpu_executor(), func, *args)
