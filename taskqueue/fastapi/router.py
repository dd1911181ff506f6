from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ..task_queue import TaskQueue
from .deps import get_task_queue
from .schemas import (
    PendingTask,
    PendingTasksResponse,
    QueueActionResponse,
    QueueStatusResponse,
)


def _action(queue: TaskQueue, action: str, discarded: int = 0) -> QueueActionResponse:
    return QueueActionResponse(
        action=action,
        paused=queue.paused,
        size=queue.size,
        running=queue.running,
        discarded=discarded,
    )


def get_router() -> APIRouter:
    """Get FastAPI router for queue admin endpoints."""
    router = APIRouter(prefix="/queue", tags=["Queue"])

    @router.get("", response_model=QueueStatusResponse)
    async def get_status(queue: TaskQueue = Depends(get_task_queue)) -> QueueStatusResponse:
        """Get queue status and counters."""
        return QueueStatusResponse(**queue.stats().to_dict())

    @router.get("/pending", response_model=PendingTasksResponse)
    async def list_pending(
        limit: int = Query(50, ge=1, le=500),
        queue: TaskQueue = Depends(get_task_queue),
    ) -> PendingTasksResponse:
        """List waiting tasks in the order they will start."""
        entries = queue.pending()
        return PendingTasksResponse(
            items=[
                PendingTask(task_id=e.id, priority=e.priority, state=e.state.value)
                for e in entries[:limit]
            ],
            total=len(entries),
        )

    @router.post("/pause", response_model=QueueActionResponse)
    async def pause_queue(queue: TaskQueue = Depends(get_task_queue)) -> QueueActionResponse:
        """Stop starting new tasks."""
        queue.pause()
        return _action(queue, "pause")

    @router.post("/start", response_model=QueueActionResponse)
    async def start_queue(queue: TaskQueue = Depends(get_task_queue)) -> QueueActionResponse:
        """Resume a paused queue."""
        queue.start()
        return _action(queue, "start")

    @router.post("/clear", response_model=QueueActionResponse)
    async def clear_queue(queue: TaskQueue = Depends(get_task_queue)) -> QueueActionResponse:
        """Drop all waiting tasks. Their futures are left pending."""
        discarded = queue.clear()
        return _action(queue, "clear", discarded)

    @router.get("/_health")
    async def health_check(queue: TaskQueue = Depends(get_task_queue)):
        """Health check endpoint."""
        return {"status": "healthy", "service": "taskqueue", "queue": queue.name}

    return router
