"""
StatusRecorder: keeps the system_status row of each job in step with
the scheduler's view of it.

Lifecycle of one record:
1. snapshot() when a JobEntry is registered
2. mark_running() when a run starts
3. mark_finished() when it ends, success or not
Records are never deleted here.
"""

import logging
from datetime import datetime
from typing import Optional

from .entities import StatusRecord
from .persistence import PersistenceAdapter


logger = logging.getLogger(__name__)


class StatusRecorder:
    """Side-effecting adapter between the scheduler and system_status."""

    def __init__(self, persistence: PersistenceAdapter):
        self.persistence = persistence

    def snapshot(self, name: str, next_run_at: Optional[datetime]) -> StatusRecord:
        """Write the initial record for a newly registered entry."""
        return self.persistence.upsert_status(
            name,
            is_running=False,
            last_success=None,
            next_run_at=next_run_at,
        )

    def mark_running(self, name: str) -> None:
        self.persistence.mark_status_running(name)

    def mark_finished(
        self,
        name: str,
        success: bool,
        next_run_at: Optional[datetime],
    ) -> StatusRecord:
        record = self.persistence.upsert_status(
            name,
            is_running=False,
            last_success=success,
            next_run_at=next_run_at,
        )
        logger.debug(f"Status for {name}: success={success}, next_run_at={next_run_at}")
        return record
