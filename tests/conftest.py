# tests/conftest.py
import asyncio
import typing as t

import pytest

from taskqueue.task_queue import TaskQueue


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def queue():
    return TaskQueue(concurrency=2)


class Recorder:
    """Builds tasks that log start/finish and track peak concurrency."""

    def __init__(self):
        self.started: list[str] = []
        self.finished: list[str] = []
        self.active = 0
        self.peak = 0

    def task(self, name: str, delay: float = 0.0, result: t.Any = None, exc: Exception | None = None):
        async def _run():
            self.started.append(name)
            self.active += 1
            self.peak = max(self.peak, self.active)
            try:
                await asyncio.sleep(delay)
                if exc is not None:
                    raise exc
                return result if result is not None else f"{name} result"
            finally:
                self.active -= 1
                self.finished.append(name)

        return _run


@pytest.fixture()
def recorder():
    return Recorder()
