"""
Job Scheduler Core Module.

Periodic jobs bound to (chain, network) contexts, run sequentially by a
single control loop, with per-job status records in the store.
"""

from .entities import (
    Context,
    JobScope,
    JobKind,
    ExecutionOrder,
    JobEntry,
    JobEntrySnapshot,
    StatusRecord,
    ChainRecord,
    EndpointRecord,
    EndpointHistoryWindow,
    EndpointWindow,
    utcnow,
)
from .errors import (
    SchedulerError,
    ContextNotFoundError,
    StatusNotFoundError,
    PipelineStepError,
    JobLoadError,
)
from .persistence import PersistenceAdapter
from .status import StatusRecorder
from .jobs import ScheduledJob, ChainSyncJob
from .scheduler import Scheduler, SchedulerState, DEFAULT_IDLE_INTERVAL

__all__ = [
    # Entities
    "Context",
    "JobScope",
    "JobKind",
    "ExecutionOrder",
    "JobEntry",
    "JobEntrySnapshot",
    "StatusRecord",
    "ChainRecord",
    "EndpointRecord",
    "EndpointHistoryWindow",
    "EndpointWindow",
    "utcnow",
    # Errors
    "SchedulerError",
    "ContextNotFoundError",
    "StatusNotFoundError",
    "PipelineStepError",
    "JobLoadError",
    # Persistence
    "PersistenceAdapter",
    "StatusRecorder",
    # Jobs
    "ScheduledJob",
    "ChainSyncJob",
    # Scheduler
    "Scheduler",
    "SchedulerState",
    "DEFAULT_IDLE_INTERVAL",
]
