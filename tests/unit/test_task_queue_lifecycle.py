import asyncio
import logging

import pytest

from taskqueue.models import TaskState
from taskqueue.task_queue import TaskQueue


@pytest.mark.asyncio
async def test_auto_start_false_begins_paused(recorder):
    q = TaskQueue(auto_start=False)
    assert q.paused
    fut = q.submit(recorder.task("a"))
    await asyncio.sleep(0.01)
    assert recorder.started == [] and not fut.done()

    q.start()
    assert await fut == "a result"


@pytest.mark.asyncio
async def test_submissions_after_start_dispatch_immediately(recorder):
    q = TaskQueue(auto_start=False)
    q.start()
    q.submit(recorder.task("a"))
    assert q.running == 1


@pytest.mark.asyncio
async def test_start_on_running_queue_is_noop(queue, recorder):
    started = []
    queue.events.started.connect(started.append)
    queue.submit(recorder.task("a", delay=0.01))

    queue.start()
    queue.start()

    assert not queue.paused
    assert len(started) == 1
    await queue.on_idle()


@pytest.mark.asyncio
async def test_pause_lets_running_finish_but_starts_nothing(recorder):
    q = TaskQueue(concurrency=1)
    a = q.submit(recorder.task("a", delay=0.02))
    b = q.submit(recorder.task("b"))
    q.pause()

    assert await a == "a result"
    await asyncio.sleep(0.02)
    assert recorder.started == ["a"]
    assert q.size == 1 and q.running == 0
    assert not b.done()

    q.start()
    assert await b == "b result"


@pytest.mark.asyncio
async def test_clear_drops_waiting_without_settling(recorder):
    q = TaskQueue(auto_start=False)
    futs = [q.submit(recorder.task(f"t{i}")) for i in range(3)]
    entries = q.pending()

    assert q.clear() == 3
    assert q.size == 0
    assert all(e.state == TaskState.discarded for e in entries)

    await asyncio.sleep(0.02)
    assert not any(f.done() for f in futs)
    assert recorder.started == []
    assert q.clear() == 0


@pytest.mark.asyncio
async def test_clear_while_running_keeps_running_tasks(recorder):
    q = TaskQueue(concurrency=1)
    a = q.submit(recorder.task("a", delay=0.02))
    q.submit(recorder.task("b"))
    q.submit(recorder.task("c"))

    assert q.clear() == 2
    assert await a == "a result"
    await q.on_idle()
    assert recorder.started == ["a"]


@pytest.mark.asyncio
async def test_on_empty_and_on_idle_resolve_immediately_when_idle(queue):
    empty = queue.on_empty()
    idle = queue.on_idle()
    assert empty.done() and idle.done()
    await empty
    await idle


@pytest.mark.asyncio
async def test_on_empty_resolves_before_on_idle(recorder):
    q = TaskQueue(concurrency=1)
    q.submit(recorder.task("a", delay=0.02))
    q.submit(recorder.task("b", delay=0.02))

    empty = q.on_empty()
    idle = q.on_idle()
    assert not empty.done() and not idle.done()

    await empty
    assert q.size == 0
    assert q.running == 1
    assert not idle.done()

    await idle
    assert q.running == 0
    assert recorder.finished == ["a", "b"]


@pytest.mark.asyncio
async def test_on_idle_waits_while_paused_with_work(recorder):
    q = TaskQueue(auto_start=False)
    q.submit(recorder.task("a"))
    idle = q.on_idle()

    await asyncio.sleep(0.02)
    assert not idle.done()

    q.start()
    await idle
    assert q.idle


@pytest.mark.asyncio
async def test_on_idle_not_resolved_between_tasks(recorder):
    q = TaskQueue(concurrency=1)
    observed = []

    def _on_idle(_event):
        observed.append((q.size, q.running))

    q.events.idle.connect(_on_idle)
    for name in ("a", "b", "c"):
        q.submit(recorder.task(name))
    await q.on_idle()

    assert observed == [(0, 0)]


@pytest.mark.asyncio
async def test_clear_resolves_idle_waiters_when_nothing_runs(recorder):
    q = TaskQueue(auto_start=False)
    q.submit(recorder.task("a"))
    idle = q.on_idle()
    empty = q.on_empty()

    q.clear()
    await asyncio.wait_for(idle, timeout=1)
    await asyncio.wait_for(empty, timeout=1)


@pytest.mark.asyncio
async def test_start_with_only_cancelled_work_reports_idle(recorder):
    q = TaskQueue(auto_start=False)
    fut = q.submit(recorder.task("a"))
    idle = q.on_idle()
    fut.cancel()

    q.start()
    await asyncio.wait_for(idle, timeout=1)
    assert recorder.started == []


@pytest.mark.asyncio
async def test_event_sequence_for_single_task():
    seen = []
    q = TaskQueue(concurrency=1, on_event=lambda e: seen.append(e.etype))

    async def task():
        return 1

    assert await q.submit(task) == 1
    await q.on_idle()
    assert seen == ["enqueued", "started", "empty", "completed", "idle", "next"]


@pytest.mark.asyncio
async def test_event_payloads(recorder):
    q = TaskQueue()
    completed, failed = [], []
    q.events.completed.connect(completed.append)
    q.events.failed.connect(failed.append)

    ok = q.submit(recorder.task("ok", result=42), priority=3)
    bad = q.submit(recorder.task("bad", exc=RuntimeError("x")))
    await ok
    with pytest.raises(RuntimeError):
        await bad

    assert completed[0].result == 42 and completed[0].priority == 3
    assert completed[0].task_id.startswith("task_")
    assert str(failed[0].error) == "x"
    assert failed[0].timestamp.endswith("+00:00")


@pytest.mark.asyncio
async def test_broken_listener_does_not_break_dispatch(recorder, caplog):
    q = TaskQueue()

    def _boom(_event):
        raise RuntimeError("listener boom")

    q.events.started.connect(_boom)
    with caplog.at_level(logging.ERROR, logger="taskqueue.events"):
        assert await q.submit(recorder.task("a")) == "a result"
    assert any("failed on started event" in r.message for r in caplog.records)


@pytest.mark.asyncio
async def test_stats_snapshot(recorder):
    q = TaskQueue(concurrency=1, timeout_ms=1000, name="stats")
    q.submit(recorder.task("a", delay=0.01))
    q.submit(recorder.task("b"))

    s = q.stats()
    assert (s.name, s.size, s.running, s.concurrency, s.paused) == ("stats", 1, 1, 1, False)
    assert not s.idle

    await q.on_idle()
    d = q.stats().to_dict()
    assert d["completed"] == 2 and d["submitted"] == 2 and d["idle"] is True
    assert "stats" in repr(q)
