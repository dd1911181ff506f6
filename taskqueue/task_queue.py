from __future__ import annotations

import asyncio
import functools
import logging
from typing import Any

from .config import QueueOptions
from .events import Listener, QueueEvent, QueueEvents
from .exceptions import ConfigError
from .exceptions import TimeoutError as TaskTimeoutError
from .models import QueueStats, TaskEntry, TaskFn, TaskState
from .task import invoke
from .util.time import elapsed_ms
from .waiting import WaitingList

logger = logging.getLogger("taskqueue.queue")


class _DeadlineExpired(Exception):
    """This queue's own deadline passed; never leaves the module."""


class TaskQueue:
    """Runs async tasks with a concurrency limit, priorities and timeouts.

    Tasks are zero-argument callables returning an awaitable. ``submit``
    returns an ``asyncio.Future`` bound to the task's outcome. Lower
    priority values start first; equal priorities start in submission order.

    All state is mutated from the event loop thread only, so no locking is
    needed. Dispatch never awaits.
    """

    def __init__(
        self,
        options: QueueOptions | None = None,
        *,
        on_event: Listener | None = None,
        **settings: Any,
    ):
        if options is not None and settings:
            raise ConfigError("Pass either `options` or keyword settings, not both")
        self.options = options or QueueOptions(**settings)
        self.events = QueueEvents(on_event)

        self._waiting = WaitingList()
        self._running = 0
        self._paused = not self.options.auto_start
        self._runners: set[asyncio.Task[None]] = set()

        self._submitted = 0
        self._completed = 0
        self._failed = 0
        self._timed_out = 0

    # -- public API --------------------------------------------------------

    def submit(self, task: TaskFn, priority: int = 0) -> asyncio.Future[Any]:
        """Queue a task. Must be called with a running event loop."""
        if not callable(task):
            raise TypeError(f"task must be callable, got {type(task).__name__}")
        if isinstance(priority, bool) or not isinstance(priority, int):
            raise TypeError(f"priority must be an int, got {priority!r}")

        future = asyncio.get_running_loop().create_future()
        entry = self._waiting.push(task, future, priority)
        self._submitted += 1
        logger.debug(f"[{self.name}] Enqueued {entry.id} with priority {priority}")
        self._emit("enqueued", entry)

        if not self._paused:
            self._dispatch()
        return future

    def pause(self) -> None:
        """Stop starting new tasks. Running tasks are not interrupted."""
        if not self._paused:
            self._paused = True
            logger.info(f"[{self.name}] Queue paused ({len(self._waiting)} waiting)")

    def start(self) -> None:
        """Resume a paused queue. No-op if already running."""
        if not self._paused:
            return

        self._paused = False
        logger.info(f"[{self.name}] Queue started ({len(self._waiting)} waiting)")
        had_waiting = bool(self._waiting)
        self._dispatch()
        # Everything waiting may have been cancelled by its caller
        if had_waiting and self.idle:
            self._emit("idle")

    def clear(self) -> int:
        """Drop all waiting tasks.

        Their futures are left pending and never settle; callers holding
        them must not rely on ``clear`` to reject them.
        """
        dropped = self._waiting.clear()
        for entry in dropped:
            entry.mark(TaskState.discarded)

        if dropped:
            logger.info(f"[{self.name}] Cleared {len(dropped)} waiting tasks")
            self._emit("empty")
            if self._running == 0:
                self._emit("idle")
        return len(dropped)

    def on_empty(self) -> asyncio.Future[None]:
        """Future resolved once nothing is waiting (tasks may still run)."""
        return self._when(self.events.empty, lambda: not self._waiting)

    def on_idle(self) -> asyncio.Future[None]:
        """Future resolved once nothing is waiting or running."""
        return self._when(self.events.idle, lambda: self.idle)

    def pending(self) -> list[TaskEntry]:
        """Waiting entries in the order they will start."""
        return self._waiting.snapshot()

    def stats(self) -> QueueStats:
        """Get current queue counters."""
        return QueueStats(
            name=self.name,
            size=len(self._waiting),
            running=self._running,
            concurrency=self.options.concurrency,
            paused=self._paused,
            timeout_ms=self.options.timeout_ms,
            submitted=self._submitted,
            completed=self._completed,
            failed=self._failed,
            timed_out=self._timed_out,
        )

    @property
    def name(self) -> str:
        return self.options.name

    @property
    def size(self) -> int:
        """Number of waiting tasks."""
        return len(self._waiting)

    @property
    def running(self) -> int:
        """Number of in-flight tasks."""
        return self._running

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def concurrency(self) -> int | None:
        return self.options.concurrency

    @property
    def timeout_ms(self) -> int:
        return self.options.timeout_ms

    @property
    def idle(self) -> bool:
        return not self._waiting and self._running == 0

    def __len__(self) -> int:
        return len(self._waiting)

    def __repr__(self) -> str:
        return (
            f"<TaskQueue {self.name!r} waiting={len(self._waiting)} "
            f"running={self._running} paused={self._paused}>"
        )

    # -- dispatch ------------------------------------------------------------

    def _dispatch(self) -> None:
        while not self._paused and self.options.allows(self._running) and self._waiting:
            entry = self._waiting.pop()
            if entry.future.cancelled():
                entry.mark(TaskState.cancelled)
                logger.debug(f"[{self.name}] Skipping {entry.id}, cancelled before start")
            else:
                self._start(entry)

            if not self._waiting:
                self._emit("empty")

    def _start(self, entry: TaskEntry) -> None:
        self._running += 1
        entry.mark(TaskState.running)
        logger.debug(f"[{self.name}] Starting {entry.id} ({self._running} running)")
        self._emit("started", entry)

        runner = asyncio.get_running_loop().create_task(
            self._run(entry), name=f"taskqueue-{self.name}-{entry.id}"
        )
        self._runners.add(runner)
        runner.add_done_callback(self._runners.discard)

    async def _run(self, entry: TaskEntry) -> None:
        try:
            result = await self._execute(entry)
        except _DeadlineExpired:
            err = TaskTimeoutError(
                f"Task {entry.id} exceeded timeout of {self.options.timeout_ms}ms",
                timeout_ms=self.options.timeout_ms,
            )
            self._settle(entry, TaskState.timeout, error=err)
        except asyncio.CancelledError:
            self._settle(entry, TaskState.cancelled)
            raise
        except Exception as e:
            self._settle(entry, TaskState.failed, error=e)
        except BaseException as e:
            # KeyboardInterrupt, SystemExit: free the slot, then propagate
            self._settle(entry, TaskState.failed, error=e)
            raise
        else:
            self._settle(entry, TaskState.done, result=result)

    async def _execute(self, entry: TaskEntry) -> Any:
        timeout = self.options.timeout_seconds
        if timeout is None:
            return await invoke(entry.task)

        inner = asyncio.ensure_future(invoke(entry.task))
        try:
            # asyncio.wait does not cancel `inner` when the deadline passes
            done, _ = await asyncio.wait({inner}, timeout=timeout)
        except asyncio.CancelledError:
            inner.cancel()
            raise

        if inner in done:
            return inner.result()

        if self.options.cancel_on_timeout:
            inner.cancel()
        else:
            # Still running; its outcome is no longer observed
            inner.add_done_callback(functools.partial(self._discard_late, entry))
        raise _DeadlineExpired()

    def _settle(
        self,
        entry: TaskEntry,
        state: TaskState,
        *,
        result: Any = None,
        error: BaseException | None = None,
    ) -> None:
        self._running -= 1
        entry.mark(state)
        future = entry.future

        if state == TaskState.done:
            self._completed += 1
            if not future.done():
                future.set_result(result)
            logger.debug(
                f"[{self.name}] Task {entry.id} completed in "
                f"{elapsed_ms(entry.started_at, entry.finished_at):.1f}ms"
            )
            self._emit("completed", entry, result=result)
        elif state == TaskState.cancelled:
            future.cancel()
            logger.info(f"[{self.name}] Task {entry.id} was cancelled")
        else:
            if state == TaskState.timeout:
                self._timed_out += 1
                logger.warning(f"[{self.name}] {error}")
            else:
                self._failed += 1
                logger.debug(f"[{self.name}] Task {entry.id} failed: {error!r}")
            if not future.done():
                future.set_exception(error)
            self._emit("failed", entry, error=error)

        if not self._paused:
            self._dispatch()
        if self.idle:
            self._emit("idle")
        self._emit("next", entry)

    def _discard_late(self, entry: TaskEntry, inner: asyncio.Future[Any]) -> None:
        if inner.cancelled():
            return
        err = inner.exception()
        if err is not None:
            logger.debug(f"[{self.name}] Late failure of timed out task {entry.id}: {err!r}")
        else:
            logger.debug(f"[{self.name}] Discarding late result of timed out task {entry.id}")

    # -- helpers ---------------------------------------------------------------

    def _emit(
        self,
        etype: str,
        entry: TaskEntry | None = None,
        *,
        result: Any = None,
        error: BaseException | None = None,
    ) -> None:
        self.events.emit(
            QueueEvent(
                etype=etype,
                task_id=entry.id if entry else None,
                priority=entry.priority if entry else None,
                result=result,
                error=error,
            )
        )

    def _when(self, signal, predicate) -> asyncio.Future[None]:
        future = asyncio.get_running_loop().create_future()
        if predicate():
            future.set_result(None)
            return future

        def _resolve(_event: QueueEvent) -> None:
            if not future.done():
                future.set_result(None)

        signal.once(_resolve)
        return future
