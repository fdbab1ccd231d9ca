"""
Scheduler-specific exceptions.

Job-level failures are any exception raised from a job's execute();
the classes here only add context where the scheduler itself raises.
"""


class SchedulerError(Exception):
    """Base exception for all scheduler errors."""
    pass


class ContextNotFoundError(SchedulerError):
    """Raised when the store has no row for a (chain, network) pair."""

    def __init__(self, chain: str, network: str):
        self.chain = chain
        self.network = network
        super().__init__(f"Unknown chain/network: {chain}/{network}")


class StatusNotFoundError(SchedulerError):
    """Raised when a requested status record does not exist."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Status record not found: {name}")


class PipelineStepError(SchedulerError):
    """
    Raised when a child step of a composite job fails.

    The remaining steps of that invocation are not run. The original
    exception is available as __cause__.
    """

    def __init__(self, pipeline: str, step: str, context: object):
        self.pipeline = pipeline
        self.step = step
        self.context = context
        super().__init__(f"{pipeline}: step '{step}' failed for {context}")


class JobLoadError(SchedulerError):
    """Raised when a job class cannot be resolved from a dotted path."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Cannot load job '{path}': {reason}")
