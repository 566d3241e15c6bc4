"""Shared fixtures for cumon tests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from result import Ok, Result

from cumon.config import Config
from cumon.errors import UsageError
from cumon.models.history import HistoryEntry
from cumon.models.usage import UsageMetric, UsageSnapshot

START = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime = START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


class FakeHistory:
    """In-memory stand-in for HistoryStore."""

    def __init__(self) -> None:
        self.recorded: list[tuple[float, float]] = []

    def record(self, session: float, weekly: float) -> Result[list[HistoryEntry], str]:
        self.recorded.append((session, weekly))
        return Ok([])

    def load(self) -> list[HistoryEntry]:
        return []

    def session_series(self) -> list[float]:
        return [s for s, _ in self.recorded]

    def weekly_series(self) -> list[float]:
        return [w for _, w in self.recorded]


class ScriptedClient:
    """UsageClient fake that returns queued results in order."""

    def __init__(self, *results: Result[UsageSnapshot, UsageError]) -> None:
        self.results = list(results)
        self.calls = 0

    async def fetch(self) -> Result[UsageSnapshot, UsageError]:
        self.calls += 1
        return self.results.pop(0)


def make_snapshot(
    session: float | None = 10.0,
    weekly: float | None = 20.0,
    sonnet: float | None = None,
    opus: float | None = None,
) -> UsageSnapshot:
    def metric(value: float | None) -> UsageMetric | None:
        return None if value is None else UsageMetric(utilization=value)

    return UsageSnapshot(
        five_hour=metric(session),
        seven_day=metric(weekly),
        seven_day_sonnet=metric(sonnet),
        seven_day_opus=metric(opus),
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tmp_claude_dir(tmp_path: Path) -> Path:
    claude_dir = tmp_path / ".claude"
    claude_dir.mkdir()
    return claude_dir


@pytest.fixture
def test_config(tmp_claude_dir: Path) -> Config:
    """Config pointing at a temporary Claude directory."""
    return Config(claude_dir=tmp_claude_dir)


@pytest.fixture
def snapshot_factory():  # type: ignore[no-untyped-def]
    return make_snapshot


@pytest.fixture
def fake_history() -> FakeHistory:
    return FakeHistory()


@pytest.fixture
def scripted_client():  # type: ignore[no-untyped-def]
    return ScriptedClient
