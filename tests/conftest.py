"""Shared fixtures for buildcache tests."""

import logging
from datetime import UTC, datetime, timedelta

import pytest

from buildcache.adapters import MemoryStorageAdapter, NoopMetricsAdapter, TarArchiveAdapter
from buildcache.core import CacheService


class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


class RecordingLogger:
    """LoggerPort that keeps every call for assertions."""

    def __init__(self):
        self.records: list[tuple[str, str, dict]] = []

    def debug(self, message, **kwargs):
        self.records.append(("debug", message, kwargs))

    def info(self, message, **kwargs):
        self.records.append(("info", message, kwargs))

    def warning(self, message, **kwargs):
        self.records.append(("warning", message, kwargs))

    def error(self, message, **kwargs):
        self.records.append(("error", message, kwargs))

    def log_operation(self, op, key, sizes=None, durations=None, **kwargs):
        self.records.append(("info", f"{op} complete", {"key": key, **kwargs}))

    def messages(self, level: str) -> list[str]:
        return [message for lvl, message, _ in self.records if lvl == level]


@pytest.fixture(autouse=True)
def reset_buildcache_logger():
    """Drop handlers the CLI attached so they do not point at a closed stream."""
    yield
    logger = logging.getLogger("buildcache")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)


@pytest.fixture
def clock():
    return FixedClock(datetime(2024, 6, 1, 12, 0, tzinfo=UTC))


@pytest.fixture
def logger():
    return RecordingLogger()


@pytest.fixture
def storage(clock):
    return MemoryStorageAdapter(clock=clock)


@pytest.fixture
def service(storage, clock, logger):
    return CacheService(
        storage=storage,
        archiver=TarArchiveAdapter(),
        clock=clock,
        logger=logger,
        metrics=NoopMetricsAdapter(),
    )


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """A build workspace with a node_modules tree, used as the working directory."""
    root = tmp_path / "workspace"
    modules = root / "node_modules" / "left-pad"
    modules.mkdir(parents=True)
    (modules / "index.js").write_text("module.exports = pad;\n")
    (modules / "package.json").write_text('{"name": "left-pad"}\n')
    (root / "node_modules" / ".bin").mkdir()
    (root / "node_modules" / ".bin" / "pad").write_text("#!/bin/sh\n")
    (root / "node_modules" / ".bin" / "pad").chmod(0o755)
    monkeypatch.chdir(root)
    return root
