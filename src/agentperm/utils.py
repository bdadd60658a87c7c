"""Helpers bridging synchronous and asynchronous evaluation."""

from __future__ import annotations

import asyncio
import concurrent.futures
import inspect
from typing import Any, Awaitable, TypeVar, Union

T = TypeVar("T")


async def _drain_tasks() -> None:
    # Finished tasks may have started others, so repeat until none are left
    current = asyncio.current_task()
    while True:
        pending = [task for task in asyncio.all_tasks() if task is not current]
        if not pending:
            return
        await asyncio.gather(*pending, return_exceptions=True)


async def _await_compat(x: Awaitable[T]) -> T:
    # asyncio.run() cancels leftover tasks on exit; let them finish first
    try:
        return await x
    finally:
        await _drain_tasks()


async def maybe_await(x: Union[T, Awaitable[T]]) -> T:
    """Await *x* if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(x):
        return await x
    return x  # type: ignore[return-value]


def run_sync(x: Union[T, Awaitable[T]]) -> T:
    """Resolve *x* from synchronous code.

    Non-awaitables are returned as is. Without a running event loop the
    awaitable runs on a fresh one; when called from inside a running loop
    it runs on a private loop in a worker thread, blocking the caller.

    Tasks the awaitable leaves running (children of a concurrent composite
    that had already decided) run to completion before the loop closes.
    """
    if not inspect.isawaitable(x):
        return x  # type: ignore[return-value]

    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(_await_compat(x))

    with concurrent.futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix="agentperm-sync") as pool:
        return pool.submit(asyncio.run, _await_compat(x)).result()


def is_async_callable(func: Any) -> bool:
    """True for coroutine functions, including callables whose ``__call__`` is one."""
    if inspect.iscoroutinefunction(func):
        return True
    call = getattr(func, "__call__", None)
    return call is not None and inspect.iscoroutinefunction(call)


__all__ = [
    "is_async_callable",
    "maybe_await",
    "run_sync",
]
