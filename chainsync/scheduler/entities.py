"""
Scheduler Domain Entities.

- Context: immutable (source, chain, network) passed to every job invocation
- JobScope: store connection + chain id shared by the steps of one pipeline run
- JobEntry: a job bound to a cadence and a context, with its run-state
- StatusRecord: persisted liveness/outcome snapshot for one job name
- ChainRecord / EndpointRecord / EndpointHistoryWindow: store rows

JobEntry is owned by the Scheduler. Observers get JobEntrySnapshot copies.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional


class JobKind(str, Enum):
    """
    How a job is bound to contexts at registration.

    - GENERIC: one entry, invoked without a chain/network
    - PER_CONTEXT: one entry per (chain, network) pair known to the store
    """

    GENERIC = "GENERIC"
    PER_CONTEXT = "PER_CONTEXT"


class ExecutionOrder(str, Enum):
    """Order in which the due entries of one tick are executed."""

    REVERSE_REGISTRATION = "reverse"
    REGISTRATION = "registration"


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Context:
    """Identifies the partition of work a job invocation acts on."""

    source: str
    chain: Optional[str] = None
    network: Optional[str] = None

    @property
    def is_generic(self) -> bool:
        return self.chain is None and self.network is None

    def __str__(self) -> str:
        if self.is_generic:
            return self.source
        return f"{self.source}:{self.chain}/{self.network}"


@dataclass(frozen=True)
class JobScope:
    """
    Store scope shared by every step of one composite invocation.

    connection is an open sqlite3.Connection owned by the composite job
    (autocommit); steps must not close it.
    """

    connection: Any
    chain_id: int


@dataclass(frozen=True)
class JobEntrySnapshot:
    """Point-in-time copy of a JobEntry for dashboards and tests."""

    job_name: str
    context: Context
    cadence: timedelta
    last_run_at: Optional[datetime]
    next_run_at: Optional[datetime]
    last_success: Optional[bool]


@dataclass
class JobEntry:
    """
    Binds a job to a cadence and a context.

    last_run_at is None until the entry has run when it was registered
    with run_immediately; otherwise it starts at registration time so the
    first run happens one cadence later.

    Invariant: next_run_at == last_run_at + cadence whenever last_run_at
    is set, and None otherwise.
    """

    job: Any
    context: Context
    cadence: timedelta
    last_run_at: Optional[datetime] = None
    last_success: Optional[bool] = None

    @classmethod
    def create(
        cls,
        job: Any,
        context: Context,
        cadence: timedelta,
        run_immediately: bool,
        now: datetime,
    ) -> "JobEntry":
        """Create an entry, deferring the first run unless run_immediately."""
        if cadence <= timedelta(0):
            raise ValueError(f"cadence must be positive, got {cadence}")
        return cls(
            job=job,
            context=context,
            cadence=cadence,
            last_run_at=None if run_immediately else now,
        )

    @property
    def name(self) -> str:
        return self.job.name

    @property
    def next_run_at(self) -> Optional[datetime]:
        if self.last_run_at is None:
            return None
        return self.last_run_at + self.cadence

    def is_due(self, now: datetime) -> bool:
        """Due strictly after a full cadence has elapsed since the last run."""
        if self.last_run_at is None:
            return True
        return (now - self.last_run_at) > self.cadence

    def mark_ran(self, finished_at: datetime, success: bool) -> None:
        self.last_run_at = finished_at
        self.last_success = success

    def snapshot(self) -> JobEntrySnapshot:
        return JobEntrySnapshot(
            job_name=self.name,
            context=self.context,
            cadence=self.cadence,
            last_run_at=self.last_run_at,
            next_run_at=self.next_run_at,
            last_success=self.last_success,
        )


@dataclass
class StatusRecord:
    """
    Externally observable status of one named job.

    One row per job name; entries of the same job for different contexts
    share it.
    """

    name: str
    is_running: bool = False
    last_success: Optional[bool] = None
    next_run_at: Optional[datetime] = None
    last_updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class ChainRecord:
    """A (chain, network) pair known to the store."""

    id: int
    blockchain_name: str
    network_name: str
    display_name: str

    def context(self, source: str) -> Context:
        return Context(source=source, chain=self.blockchain_name, network=self.network_name)


@dataclass
class EndpointRecord:
    """
    A data-source endpoint whose traffic share is governed by weight.

    network_family groups endpoints serving the same logical network.
    last_score is None until the weight job has scored the endpoint once.
    """

    id: int
    name: str
    chain_id: int
    network_family: str
    latest_block_number: int = 0
    weight: int = 100
    last_score: Optional[Decimal] = None
    enabled: bool = True


@dataclass(frozen=True)
class EndpointHistoryWindow:
    """Request counts for one endpoint over the trailing window."""

    total_requests: int = 0
    successful_requests: int = 0


@dataclass(frozen=True)
class EndpointWindow:
    """An endpoint together with its aggregated history window."""

    endpoint: EndpointRecord
    window: EndpointHistoryWindow = field(default_factory=EndpointHistoryWindow)
