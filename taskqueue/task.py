from __future__ import annotations

import asyncio
import functools
import inspect
from collections.abc import Callable
from typing import Any

from .models import TaskFn


def run_sync(fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> TaskFn:
    """Adapt a blocking function into a task that runs in the default thread pool."""

    async def _call() -> Any:
        return await asyncio.to_thread(fn, *args, **kwargs)

    _call.__name__ = getattr(fn, "__name__", "sync_task")
    return _call


def bind(fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> TaskFn:
    """Bind arguments to a coroutine function, producing a zero-argument task."""
    return functools.partial(fn, *args, **kwargs)


async def invoke(task: TaskFn) -> Any:
    """Call a task and await what it returns."""
    aw = task()
    if not inspect.isawaitable(aw):
        raise TypeError(
            f"Task {getattr(task, '__name__', task)!r} returned {type(aw).__name__}, "
            "expected an awaitable"
        )
    return await aw
