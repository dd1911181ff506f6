from __future__ import annotations

from pydantic import BaseModel, Field


class QueueStatusResponse(BaseModel):
    """Queue status and counters."""

    name: str
    size: int = Field(ge=0)
    running: int = Field(ge=0)
    concurrency: int | None = None
    paused: bool
    idle: bool
    timeout_ms: int = 0
    submitted: int = 0
    completed: int = 0
    failed: int = 0
    timed_out: int = 0


class PendingTask(BaseModel):
    """A task still waiting to start."""

    task_id: str
    priority: int
    state: str


class PendingTasksResponse(BaseModel):
    """Waiting tasks in dispatch order."""

    items: list[PendingTask]
    total: int


class QueueActionResponse(BaseModel):
    """Result of a pause/start/clear request."""

    action: str
    paused: bool
    size: int
    running: int
    discarded: int = 0
