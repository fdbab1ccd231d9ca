"""
Resolve sync steps from "package.module:ClassName" paths.

Steps are instantiated without arguments, or with the store adapter when
their constructor takes a `persistence` parameter.
"""

import importlib
import inspect
import logging
from typing import Iterable

from ..scheduler.errors import JobLoadError
from ..scheduler.jobs import ScheduledJob
from ..scheduler.persistence import PersistenceAdapter

logger = logging.getLogger(__name__)


def load_job(path: str, persistence: PersistenceAdapter) -> ScheduledJob:
    """
    Import and instantiate one job class.

    Raises:
        JobLoadError: If the path is malformed, the import or construction
            fails, or the object does not satisfy the job contract
    """
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise JobLoadError(path, "expected 'module:ClassName'")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise JobLoadError(path, str(e)) from e

    cls = getattr(module, attr, None)
    if cls is None:
        raise JobLoadError(path, f"module has no attribute '{attr}'")

    try:
        params = inspect.signature(cls).parameters
    except (TypeError, ValueError) as e:
        raise JobLoadError(path, f"'{attr}' is not callable: {e}") from e

    try:
        job = cls(persistence=persistence) if "persistence" in params else cls()
    except Exception as e:
        raise JobLoadError(path, f"construction failed: {e}") from e

    if not isinstance(job, ScheduledJob):
        raise JobLoadError(path, "object has no name, kind and execute()")

    logger.debug(f"Loaded job {job.name} from {path}")
    return job


def load_jobs(paths: Iterable[str], persistence: PersistenceAdapter) -> list[ScheduledJob]:
    return [load_job(path, persistence) for path in paths]
