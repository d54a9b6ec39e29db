"""Simple asyncio-aware helpers for running blocking work in an executor."""
from __future__ import annotations

import asyncio
from concurrent.futures import Executor, ThreadPoolExecutor
from functools import partial
from typing import Any, Callable, Optional, TypeVar

T = TypeVar("T")


async def run_in_executor(
    func: Callable[..., T], *args: Any, executor: Optional[Executor] = None, **kwargs: Any
) -> T:
    """Run ``func`` off the event loop thread and await the result.

    A private single-use pool is created when ``executor`` is not given.
    """

    loop = asyncio.get_running_loop()
    call = partial(func, *args, **kwargs)
    if executor is not None:
        return await loop.run_in_executor(executor, call)
    with ThreadPoolExecutor(max_workers=1) as pool:
        return await loop.run_in_executor(pool, call)
