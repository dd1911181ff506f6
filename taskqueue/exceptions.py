from __future__ import annotations


class TaskQueueError(Exception):
    """Base exception for taskqueue library."""

    pass


class TimeoutError(TaskQueueError):
    """Raised when a task exceeds the queue timeout."""

    def __init__(self, message: str = "Operation timed out", timeout_ms: int | None = None):
        super().__init__(message)
        self.timeout_ms = timeout_ms


class ConfigError(TaskQueueError, ValueError):
    """Raised when queue options are invalid."""

    pass
