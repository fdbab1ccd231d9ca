"""
Store state for API integration.

Singleton access to the PersistenceAdapter the routers read from.
When the API runs inside the scheduler process, __main__ hands over the
scheduler's adapter with set_store(); standalone, the lifespan opens one
from settings.
"""

from pathlib import Path
from typing import Optional

from chainsync.scheduler.persistence import PersistenceAdapter


_store: Optional[PersistenceAdapter] = None


def init_store(db_path: str | Path) -> PersistenceAdapter:
    """Open the store singleton if it is not open yet."""
    global _store

    if _store is None:
        _store = PersistenceAdapter(db_path)
    return _store


def set_store(persistence: Optional[PersistenceAdapter]) -> None:
    global _store
    _store = persistence


def get_store() -> PersistenceAdapter:
    """
    Get the store singleton.

    Raises:
        RuntimeError: If the store was not initialized
    """
    if _store is None:
        raise RuntimeError(
            "Store not initialized. "
            "Ensure init_store() or set_store() is called during startup."
        )
    return _store


def is_initialized() -> bool:
    return _store is not None
