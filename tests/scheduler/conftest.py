"""
Scheduler Test Fixtures.

- Mocked clock at a fixed time
- Recording jobs that log every invocation into a shared list
- Scheduler wired to a fresh database
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import pytest

from chainsync.scheduler import (
    Context,
    JobKind,
    JobScope,
    PersistenceAdapter,
    Scheduler,
)


FIXED_DATETIME = datetime(2026, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


class MockClock:
    """
    Mock clock for deterministic time control.

    Starts at a fixed time and advances only when explicitly ticked.
    """

    def __init__(self, start_time: datetime = FIXED_DATETIME):
        self._current = start_time

    def __call__(self) -> datetime:
        return self._current

    def now(self) -> datetime:
        return self._current

    def tick(self, seconds: float = 1) -> None:
        """Advance time by specified seconds."""
        self._current += timedelta(seconds=seconds)

    def set(self, time: datetime) -> None:
        self._current = time


class RecordingJob:
    """
    Job that records each call as (name, context, scope).

    Raises RuntimeError when `fail` is set.
    """

    def __init__(
        self,
        name: str,
        kind: JobKind = JobKind.GENERIC,
        calls: Optional[list] = None,
        fail: bool = False,
        on_execute: Optional[Callable[[Context, Optional[JobScope]], None]] = None,
    ):
        self.name = name
        self.kind = kind
        self.calls = calls if calls is not None else []
        self.fail = fail
        self.on_execute = on_execute

    def execute(self, context: Context, scope: Optional[JobScope] = None) -> None:
        self.calls.append((self.name, context, scope))
        if self.on_execute is not None:
            self.on_execute(context, scope)
        if self.fail:
            raise RuntimeError(f"{self.name} failed")


@pytest.fixture
def mock_clock() -> MockClock:
    return MockClock()


@pytest.fixture
def calls() -> list:
    """Shared call log for ordering assertions."""
    return []


@pytest.fixture
def scheduler(persistence: PersistenceAdapter, mock_clock: MockClock) -> Scheduler:
    return Scheduler(
        persistence=persistence,
        source="test",
        idle_interval=0.01,
        clock=mock_clock,
    )


@pytest.fixture
def chains(persistence: PersistenceAdapter):
    """Two known chains, registered in this order."""
    return [
        persistence.add_chain("Ethereum", "Mainnet", "Ethereum"),
        persistence.add_chain("xDai", "Mainnet", "xDai"),
    ]
