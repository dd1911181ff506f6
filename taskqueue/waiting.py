from __future__ import annotations

import asyncio
import heapq
from collections.abc import Awaitable, Callable
from typing import Any

from .models import TaskEntry


class WaitingList:
    """Priority heap of not-yet-started entries."""

    def __init__(self) -> None:
        self._heap: list[TaskEntry] = []
        self._counter = 0

    def push(
        self,
        task: Callable[[], Awaitable[Any]],
        future: asyncio.Future[Any],
        priority: int = 0,
    ) -> TaskEntry:
        """Add a task; returns the new entry."""
        # Counter keeps FIFO order for equal priority
        entry = TaskEntry(priority=priority, seq=self._counter, task=task, future=future)
        heapq.heappush(self._heap, entry)
        self._counter += 1
        return entry

    def pop(self) -> TaskEntry:
        """Remove and return the highest priority entry."""
        if not self._heap:
            raise IndexError("pop from empty waiting list")
        return heapq.heappop(self._heap)

    def peek(self) -> TaskEntry | None:
        return self._heap[0] if self._heap else None

    def clear(self) -> list[TaskEntry]:
        """Drop every entry, returning them in dispatch order."""
        dropped = sorted(self._heap)
        self._heap = []
        return dropped

    def snapshot(self) -> list[TaskEntry]:
        """Entries in dispatch order without removing them."""
        return sorted(self._heap)

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)
