from __future__ import annotations

import fnmatch
import logging
import os
import sys

import pytest


def _ensure_project_root_on_path() -> None:
    # When running via the venv's pytest entrypoint, the CWD is not guaranteed to
    # be on sys.path. Ensure the repository root (containing `redis_cleanup/`) is importable.
    project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    if project_root not in sys.path:
        sys.path.insert(0, project_root)


_ensure_project_root_on_path()

from redis_cleanup.reporting import Reporter  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch, tmp_path):
    # Keep a developer's REDIS_URL / .env out of the tests.
    for name in (
        "REDIS_URL",
        "REDIS_CLEANUP_LOG_LEVEL",
        "REDIS_CLEANUP_LOG_DIR",
        "REDIS_CLEANUP_LOG_BACKUP_COUNT",
        "REDIS_CLEANUP_MANAGED_PREFIXES",
        "REDIS_CLEANUP_SOCKET_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)

    # setup_logging() replaces root handlers; put pytest's back afterwards.
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for h in root.handlers:
        if h not in handlers:
            h.close()
    root.handlers = handlers
    root.setLevel(level)


class FakeStore:
    """In-memory KeyStore. TTLs are frozen (no clock) so tests stay deterministic."""

    def __init__(self, ttls: dict[str, int] | None = None):
        self.values: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.calls: list[tuple] = []
        self.fail_on: dict[str, Exception] = {}
        self.closed = False
        for key, ttl in (ttls or {}).items():
            self.put(key, ttl)

    def put(self, key: str, ttl: int = -1, value: str = "1") -> None:
        self.values[key] = value
        if ttl >= 0:
            self.ttls[key] = ttl

    def _call(self, op: str, *args) -> None:
        self.calls.append((op, *args))
        if op in self.fail_on:
            raise self.fail_on[op]

    def keys(self, pattern: str) -> list[str]:
        self._call("keys", pattern)
        # Reverse insertion order so callers can't rely on the store's ordering.
        return [k for k in reversed(list(self.values)) if fnmatch.fnmatchcase(k, pattern)]

    def ttl(self, key: str) -> int:
        self._call("ttl", key)
        if key not in self.values:
            return -2
        return self.ttls.get(key, -1)

    def delete(self, key: str) -> None:
        self._call("delete", key)
        self.values.pop(key, None)
        self.ttls.pop(key, None)

    def set(self, key: str, value: str) -> None:
        self._call("set", key, value)
        self.values[key] = value
        self.ttls.pop(key, None)

    def set_ex(self, key: str, value: str, seconds: int) -> None:
        self._call("set_ex", key, value, seconds)
        self.values[key] = value
        self.ttls[key] = seconds

    def snapshot(self) -> tuple[dict[str, str], dict[str, int]]:
        return dict(self.values), dict(self.ttls)

    def close(self) -> None:
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class RecordingReporter(Reporter):
    def __init__(self):
        self.events: list[tuple] = []

    def cleanup_started(self, pattern, commit):
        self.events.append(("cleanup_started", pattern, commit))

    def keys_retrieved(self, count):
        self.events.append(("keys_retrieved", count))

    def keys_sorted(self, count):
        self.events.append(("keys_sorted", count))

    def key_classified(self, key, ttl, decision, index, total):
        self.events.append(("classified", key, ttl, decision, index, total))

    def key_deleted(self, key):
        self.events.append(("deleted", key))

    def seed_started(self, prefix, num_keys, threshold, ttl):
        self.events.append(("seed_started", prefix, num_keys, threshold, ttl))

    def key_created(self, key, ttl, index, total):
        self.events.append(("created", key, ttl, index, total))

    def of(self, kind: str) -> list[tuple]:
        return [e for e in self.events if e[0] == kind]


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()
