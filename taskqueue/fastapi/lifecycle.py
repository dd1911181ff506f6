from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ..config import QueueOptions
from ..task_queue import TaskQueue

logger = logging.getLogger("taskqueue.lifecycle")

QUEUE_STATE_KEY = "taskqueue_queue"


def setup_task_queue(
    app: FastAPI,
    *,
    options: QueueOptions | None = None,
    queue: TaskQueue | None = None,
    include_router: bool = True,
    prefix: str = "/api/v1",
    drain_timeout: float = 30.0,
) -> TaskQueue:
    """Attach a TaskQueue to a FastAPI application.

    On shutdown the queue is paused, running tasks get up to
    ``drain_timeout`` seconds to finish, and whatever is still waiting is
    cleared.
    """
    if queue is not None and options is not None:
        raise ValueError("Provide `queue` or `options`, not both")

    if queue is None:
        queue = TaskQueue(options)
    setattr(app.state, QUEUE_STATE_KEY, queue)

    @asynccontextmanager
    async def _lifespan(app_: FastAPI):
        logger.info(f"Task queue {queue.name!r} ready ({queue!r})")
        try:
            yield
        finally:
            logger.info("Shutting down task queue...")
            queue.pause()

            if queue.running:
                try:
                    await asyncio.wait_for(_drained(queue), timeout=drain_timeout)
                except asyncio.TimeoutError:
                    logger.warning(
                        f"{queue.running} tasks still running after {drain_timeout}s drain"
                    )

            discarded = queue.clear()
            if discarded:
                logger.warning(f"Discarded {discarded} waiting tasks on shutdown")

            logger.info("Task queue shutdown complete")

    # Compose with existing lifespan
    if app.router.lifespan_context is None:
        app.router.lifespan_context = _lifespan
    else:
        existing = app.router.lifespan_context

        @asynccontextmanager
        async def _composed(app_: FastAPI):
            async with existing(app_):
                async with _lifespan(app_):
                    yield

        app.router.lifespan_context = _composed

    # Include router
    if include_router:
        from .router import get_router

        app.include_router(get_router(), prefix=prefix)

    return queue


async def _drained(queue: TaskQueue) -> None:
    """Wait until no task is running (waiting tasks stay parked while paused)."""
    while queue.running:
        next_done = asyncio.get_running_loop().create_future()

        def _wake(_event, fut=next_done):
            if not fut.done():
                fut.set_result(None)

        queue.events.next.once(_wake)
        await next_done
