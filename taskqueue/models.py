from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .util.ids import new_task_id
from .util.time import now_utc

TaskFn = Callable[[], Awaitable[Any]]


class TaskState(str, Enum):
    """Task lifecycle states."""

    waiting = "waiting"
    running = "running"
    done = "done"
    failed = "failed"
    timeout = "timeout"
    cancelled = "cancelled"
    discarded = "discarded"

    def is_terminal(self) -> bool:
        """Check if state is terminal (no further transitions)."""
        return self not in (self.waiting, self.running)


@dataclass(order=True)
class TaskEntry:
    """A submitted task and the future bound to its caller.

    Entries sort by ``(priority, seq)`` so equal priorities stay FIFO.
    """

    priority: int
    seq: int
    task: TaskFn = field(compare=False)
    future: asyncio.Future[Any] = field(compare=False, repr=False)
    id: str = field(default_factory=new_task_id, compare=False)
    state: TaskState = field(default=TaskState.waiting, compare=False)
    created_at: datetime = field(default_factory=now_utc, compare=False)
    started_at: datetime | None = field(default=None, compare=False)
    finished_at: datetime | None = field(default=None, compare=False)

    def mark(self, state: TaskState) -> None:
        """Move entry to a new state, stamping start/finish times."""
        self.state = state
        if state == TaskState.running:
            self.started_at = now_utc()
        elif state.is_terminal():
            self.finished_at = now_utc()


@dataclass
class QueueStats:
    """Point-in-time view of a queue."""

    name: str
    size: int
    running: int
    concurrency: int | None
    paused: bool
    timeout_ms: int
    submitted: int = 0
    completed: int = 0
    failed: int = 0
    timed_out: int = 0

    @property
    def idle(self) -> bool:
        return self.size == 0 and self.running == 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dict."""
        d = asdict(self)
        d["idle"] = self.idle
        return d
