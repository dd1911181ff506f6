from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Literal

from .util.time import iso, now_utc

logger = logging.getLogger("taskqueue.events")

EventType = Literal["enqueued", "started", "completed", "failed", "empty", "idle", "next"]


@dataclass
class QueueEvent:
    """Event emitted during queue processing."""

    etype: EventType
    task_id: str | None = None
    priority: int | None = None
    result: Any = None
    error: BaseException | None = None
    timestamp: str = field(default_factory=lambda: iso(now_utc()))


Listener = Callable[[QueueEvent], None]


class Signal:
    """Callback registry for a single event type."""

    def __init__(self, etype: EventType) -> None:
        self.etype = etype
        self._listeners: list[tuple[Listener, bool]] = []

    def connect(self, listener: Listener) -> Listener:
        """Register a listener. Returns it, so this works as a decorator."""
        self._listeners.append((listener, False))
        return listener

    def once(self, listener: Listener) -> Listener:
        """Register a listener that is removed after its first call."""
        self._listeners.append((listener, True))
        return listener

    def disconnect(self, listener: Listener) -> None:
        """Remove a listener; missing listeners are ignored."""
        self._listeners = [(cb, once) for cb, once in self._listeners if cb is not listener]

    def emit(self, event: QueueEvent) -> None:
        """Call every listener in registration order."""
        for item in list(self._listeners):
            if item not in self._listeners:
                # disconnected by an earlier listener
                continue
            listener, once = item
            if once:
                self._listeners.remove(item)
            try:
                listener(event)
            except Exception:
                logger.exception(f"Listener {listener!r} failed on {self.etype} event")

    def __len__(self) -> int:
        return len(self._listeners)


class QueueEvents:
    """Typed signals for every queue lifecycle event."""

    def __init__(self, on_event: Listener | None = None) -> None:
        self.enqueued = Signal("enqueued")
        self.started = Signal("started")
        self.completed = Signal("completed")
        self.failed = Signal("failed")
        self.empty = Signal("empty")
        self.idle = Signal("idle")
        self.next = Signal("next")
        self._on_event = on_event

    def signal(self, etype: EventType) -> Signal:
        return getattr(self, etype)

    def emit(self, event: QueueEvent) -> None:
        """Route an event to its signal and the catch-all sink."""
        self.signal(event.etype).emit(event)
        if self._on_event:
            try:
                self._on_event(event)
            except Exception:
                logger.exception(f"on_event sink failed on {event.etype} event")
