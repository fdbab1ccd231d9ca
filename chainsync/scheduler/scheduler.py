"""
Scheduler for recurring chain sync jobs.

- Registers one JobEntry per known context (or one for generic jobs)
- Each tick: collect due entries, run them one at a time
- Records every run's outcome in system_status, success or not
- Sleeps a fixed interval when nothing is due

What Scheduler MUST NOT do:
- Run two jobs at the same time
- Let a job failure escape the per-entry boundary
- Retry a failed entry before its next cadence
"""

import logging
import threading
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Optional, Union

from ..infra.logging_config import source_logger
from .entities import (
    Context,
    ExecutionOrder,
    JobEntry,
    JobEntrySnapshot,
    JobKind,
    utcnow,
)
from .jobs import ScheduledJob
from .persistence import PersistenceAdapter
from .status import StatusRecorder


logger = logging.getLogger(__name__)

DEFAULT_IDLE_INTERVAL = 2.0


class SchedulerState(str, Enum):
    """Scheduler lifecycle states."""

    STOPPED = "STOPPED"
    RUNNING = "RUNNING"
    STOPPING = "STOPPING"


def _as_timedelta(cadence: Union[timedelta, float, int]) -> timedelta:
    if isinstance(cadence, timedelta):
        return cadence
    return timedelta(seconds=cadence)


class Scheduler:
    """
    Owns the job entries and the control loop that runs them.

    Due entries of one tick run sequentially, by default in reverse
    registration order. The loop survives any job failure; it ends only
    when stop() is called or the process exits.
    """

    def __init__(
        self,
        persistence: PersistenceAdapter,
        source: str,
        idle_interval: float = DEFAULT_IDLE_INTERVAL,
        order: ExecutionOrder = ExecutionOrder.REVERSE_REGISTRATION,
        clock: Callable[[], datetime] = utcnow,
        status_recorder: Optional[StatusRecorder] = None,
    ):
        """
        Initialize Scheduler.

        Args:
            persistence: Store used for contexts and status records
            source: Opaque tag passed to every job in its Context
            idle_interval: Seconds between due-checks when nothing is due
            order: Execution order of the due entries of one tick
            clock: Returns the current aware datetime (injectable for tests)
            status_recorder: Override for status bookkeeping
        """
        self.persistence = persistence
        self.source = source
        self.idle_interval = idle_interval
        self.order = order
        self.clock = clock
        self.status = status_recorder or StatusRecorder(persistence)
        self._log = source_logger(source, __name__)

        self._entries: list[JobEntry] = []
        self._lock = threading.Lock()
        self._idle = False
        self._state = SchedulerState.STOPPED
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state == SchedulerState.RUNNING

    @property
    def is_idle(self) -> bool:
        return self._idle

    # =========================================================================
    # Registration
    # =========================================================================

    def schedule(
        self,
        job: ScheduledJob,
        cadence: Union[timedelta, float, int],
        run_immediately: bool = False,
    ) -> list[JobEntrySnapshot]:
        """
        Register a job at a fixed cadence.

        Per-context jobs get one entry per chain known to the store right
        now; generic jobs get a single entry. Each new entry writes an
        initial status record.

        Args:
            job: The job to run
            cadence: Minimum time between two runs of the same entry
            run_immediately: Due on the first tick instead of one cadence
                after registration

        Returns:
            Snapshots of the entries created
        """
        cadence = _as_timedelta(cadence)
        now = self.clock()

        if job.kind == JobKind.GENERIC:
            contexts = [Context(source=self.source)]
        else:
            contexts = [chain.context(self.source) for chain in self.persistence.list_chains()]
            if not contexts:
                logger.warning(f"No chains known, {job.name} was not scheduled")

        created = []
        for context in contexts:
            entry = JobEntry.create(
                job=job,
                context=context,
                cadence=cadence,
                run_immediately=run_immediately,
                now=now,
            )
            self.status.snapshot(entry.name, entry.next_run_at)
            with self._lock:
                self._entries.append(entry)
            created.append(entry.snapshot())
            logger.info(
                f"[{context}] Scheduled {entry.name} every {cadence} "
                f"({'now' if run_immediately else f'first run at {entry.next_run_at}'})"
            )

        return created

    def snapshot(self) -> list[JobEntrySnapshot]:
        """Copies of all entries, in registration order."""
        with self._lock:
            return [entry.snapshot() for entry in self._entries]

    # =========================================================================
    # Single Tick
    # =========================================================================

    def due_entries(self, now: datetime) -> list[JobEntry]:
        """Entries due at `now`, in execution order."""
        with self._lock:
            due = [entry for entry in self._entries if entry.is_due(now)]

        if self.order == ExecutionOrder.REVERSE_REGISTRATION:
            due.reverse()
        return due

    def run_pending(self) -> list[JobEntrySnapshot]:
        """
        Run every entry that is due now, one after another.

        Logs one "Sleeping..." line when the scheduler goes idle and one
        "Resuming..." line when work shows up again.

        Returns:
            Snapshots of the entries that ran, in the order they ran
        """
        due = self.due_entries(self.clock())

        if not due:
            if not self._idle:
                self._idle = True
                self._log.info("Sleeping...")
            return []

        if self._idle:
            self._idle = False
            self._log.info("Resuming...")

        executed = []
        for entry in due:
            if self._stop_event.is_set():
                self._log.info("Stop requested, leaving remaining due jobs")
                break
            self._execute_entry(entry)
            executed.append(entry.snapshot())

        return executed

    def _execute_entry(self, entry: JobEntry) -> bool:
        """
        Run one entry and record its outcome.

        Any exception from the job or from the run-start status write is
        logged and recorded as a failed run.
        """
        context = entry.context
        started_at = self.clock()
        success = False

        try:
            logger.info(f"[{context}] Starting {entry.name}")
            self.status.mark_running(entry.name)
            entry.job.execute(context)
            success = True
        except Exception:
            logger.exception(f"[{context}] {entry.name} failed")
        finally:
            finished_at = self.clock()
            with self._lock:
                entry.mark_ran(finished_at, success)

            try:
                self.status.mark_finished(entry.name, success, entry.next_run_at)
            except Exception:
                logger.exception(f"[{context}] Could not record status for {entry.name}")

            elapsed = (finished_at - started_at).total_seconds()
            logger.info(f"[{context}] Finished {entry.name} in {elapsed:.2f} seconds")

        return success

    # =========================================================================
    # Control Loop
    # =========================================================================

    def start(self, blocking: bool = False) -> None:
        """
        Start the control loop.

        Args:
            blocking: If True, run in current thread. If False, run in background.
        """
        if self._state != SchedulerState.STOPPED:
            raise RuntimeError(f"Cannot start scheduler in {self._state.value} state")

        self._stop_event.clear()
        self._state = SchedulerState.RUNNING

        if blocking:
            self._loop()
        else:
            self._thread = threading.Thread(target=self._loop, name="chainsync-scheduler", daemon=True)
            self._thread.start()

    def stop(self, timeout: float = 30.0) -> None:
        """
        Ask the loop to stop after the job currently running.

        Jobs are never interrupted mid-run.

        Args:
            timeout: Maximum seconds to wait for the loop thread
        """
        if self._state == SchedulerState.STOPPED:
            return

        logger.info("Stopping scheduler...")
        self._state = SchedulerState.STOPPING
        self._stop_event.set()

        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning("Scheduler thread did not stop within timeout")
                return
            self._thread = None
            self._state = SchedulerState.STOPPED
            logger.info("Scheduler stopped")

    def _loop(self) -> None:
        """Main control loop."""
        self._log.info(f"Scheduler loop started with {len(self._entries)} entries")

        try:
            while not self._stop_event.is_set():
                try:
                    executed = self.run_pending()
                    if not executed:
                        self._stop_event.wait(self.idle_interval)
                except Exception as e:
                    logger.error(f"Error in scheduler loop: {e}", exc_info=True)
                    self._stop_event.wait(self.idle_interval)
        finally:
            self._state = SchedulerState.STOPPED
            self._log.info("Scheduler loop ended")
