"""
Scheduled job contract and the chain sync pipeline.

A job is anything exposing:
- name: stable name, also the key of its status record
- kind: JobKind.GENERIC or JobKind.PER_CONTEXT
- execute(context, scope=None): one run; failures are raised, never swallowed

ChainSyncJob is itself such a job, owning an ordered list of steps that
follow the same contract.
"""

import logging
from typing import Iterable, Optional, Protocol, runtime_checkable

from .entities import Context, JobKind, JobScope
from .errors import PipelineStepError
from .persistence import PersistenceAdapter


logger = logging.getLogger(__name__)


@runtime_checkable
class ScheduledJob(Protocol):
    """Protocol for units of work run by the Scheduler."""

    name: str
    kind: JobKind

    def execute(self, context: Context, scope: Optional[JobScope] = None) -> None:
        """
        Run the job once.

        Args:
            context: Source tag plus, for per-context jobs, chain and network
            scope: Shared store scope when run as a pipeline step, else None

        Raises:
            Exception: Any failure; the scheduler records it as lastSuccess=false
        """
        ...


class ChainSyncJob:
    """
    Ordered pipeline of sync steps for one (chain, network) pair.

    Each invocation:
    1. Opens one store session
    2. Resolves the chain id for the context
    3. Runs every step in registration order on that session

    A failing step aborts the remaining steps. The next invocation starts
    again from the first step.
    """

    kind = JobKind.PER_CONTEXT

    def __init__(
        self,
        persistence: PersistenceAdapter,
        steps: Optional[Iterable[ScheduledJob]] = None,
        name: str = "Blockchain Sync",
    ):
        self.persistence = persistence
        self.name = name
        self._steps: list[ScheduledJob] = []
        for step in steps or ():
            self.add(step)

    def add(self, step: ScheduledJob) -> "ChainSyncJob":
        """Append a step; returns self for chaining."""
        if step is self:
            raise ValueError("A pipeline cannot contain itself")
        self._steps.append(step)
        return self

    @property
    def steps(self) -> tuple[ScheduledJob, ...]:
        return tuple(self._steps)

    def execute(self, context: Context, scope: Optional[JobScope] = None) -> None:
        if context.is_generic:
            raise ValueError(f"{self.name} needs a chain and network, got {context}")

        with self.persistence.session() as conn:
            chain_id = self.persistence.get_chain_id(context.chain, context.network, conn=conn)
            step_scope = JobScope(connection=conn, chain_id=chain_id)

            for step in self._steps:
                logger.debug(f"[{context}] {self.name}: running {step.name}")
                try:
                    step.execute(context, step_scope)
                except Exception as e:
                    raise PipelineStepError(self.name, step.name, context) from e
