"""
taskqueue - Bounded priority task queue for asyncio.

Usage:
    from taskqueue import TaskQueue

    queue = TaskQueue(concurrency=2, timeout_ms=8000)
    queue.events.completed.connect(lambda e: print(e.result))

    result = await queue.submit(lambda: fetch("a"), priority=1)
    await queue.on_idle()
"""

from .config import QueueOptions
from .events import QueueEvent, QueueEvents, Signal
from .exceptions import ConfigError, TaskQueueError, TimeoutError
from .fastapi.lifecycle import setup_task_queue
from .models import QueueStats, TaskEntry, TaskState
from .task import bind, run_sync
from .task_queue import TaskQueue
from .version import __version__
from .waiting import WaitingList

__all__ = [
    # Version
    "__version__",
    # Core
    "TaskQueue",
    "QueueOptions",
    "WaitingList",
    # Models
    "TaskEntry",
    "TaskState",
    "QueueStats",
    # Events
    "QueueEvent",
    "QueueEvents",
    "Signal",
    # Tasks
    "run_sync",
    "bind",
    # FastAPI
    "setup_task_queue",
    # Exceptions
    "TaskQueueError",
    "TimeoutError",
    "ConfigError",
]
