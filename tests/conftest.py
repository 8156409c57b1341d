from __future__ import annotations

import copy
import logging as py_logging
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

_CRITICAL_TEST_FILES = {
    "test_tab_registry.py",
    "test_session_restore.py",
    "test_session_persistence.py",
}


@pytest.hookimpl(trylast=True)
def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    del config
    for item in items:
        path = Path(str(getattr(item, "path", item.fspath)))
        name = path.name

        if "integration" in path.parts:
            item.add_marker(pytest.mark.integration)
            item.add_marker(pytest.mark.slow)

        if name in _CRITICAL_TEST_FILES:
            item.add_marker(pytest.mark.critical_regression)


class FakeTimer:
    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self.callback = callback
        self.started = False
        self.cancelled = False
        self.fired = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        self.fired = True
        self.callback()


class FakeTimerFactory:
    def __init__(self) -> None:
        self.timers: list[FakeTimer] = []

    def __call__(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[FakeTimer]:
        return [timer for timer in self.timers if timer.started and not timer.cancelled and not timer.fired]

    def fire_pending(self) -> int:
        pending = self.pending
        for timer in pending:
            timer.fire()
        return len(pending)


class MemorySessionStore:
    def __init__(self, record: object | None = None) -> None:
        self.record = record
        self.saved: list[dict[str, object]] = []
        self.load_calls = 0
        self.load_error: Exception | None = None
        self.save_error: Exception | None = None

    def load(self) -> object | None:
        self.load_calls += 1
        if self.load_error is not None:
            raise self.load_error
        return copy.deepcopy(self.record)

    def save(self, record: dict[str, object]) -> None:
        if self.save_error is not None:
            raise self.save_error
        self.saved.append(copy.deepcopy(record))
        self.record = copy.deepcopy(record)


@pytest.fixture
def timers() -> FakeTimerFactory:
    return FakeTimerFactory()


@pytest.fixture
def store() -> MemorySessionStore:
    return MemorySessionStore()


@pytest.fixture
def tab_logs(caplog: pytest.LogCaptureFixture, monkeypatch: pytest.MonkeyPatch) -> pytest.LogCaptureFixture:
    monkeypatch.setattr(py_logging.getLogger("forgetabs"), "propagate", True)
    caplog.set_level(py_logging.DEBUG, logger="forgetabs")
    return caplog


@pytest.fixture(autouse=True)
def _reset_package_logger() -> Iterator[None]:
    yield
    logger = py_logging.getLogger("forgetabs")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(py_logging.NOTSET)
