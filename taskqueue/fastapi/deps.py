from fastapi import Request

from ..task_queue import TaskQueue
from .lifecycle import QUEUE_STATE_KEY


def get_task_queue(request: Request) -> TaskQueue:
    """Dependency to get TaskQueue from app state."""
    queue = getattr(request.app.state, QUEUE_STATE_KEY, None)
    if queue is None:
        raise RuntimeError("TaskQueue not initialized. Did you call setup_task_queue()?")
    return queue
