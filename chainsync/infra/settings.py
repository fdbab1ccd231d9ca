"""
Configuration for chainsync.

Values come from the environment, optionally seeded from a .env file.

Environment Variables:
- CHAINSYNC_DB_PATH: SQLite database path (default: data/chainsync.db)
- CHAINSYNC_SOURCE: Source tag passed to every job (default: default)
- CHAINSYNC_IDLE_INTERVAL: Seconds between due-checks when idle (default: 2.0)
- CHAINSYNC_SYNC_INTERVAL_SECONDS: Chain sync cadence (default: 300)
- CHAINSYNC_WEIGHT_INTERVAL_SECONDS: Endpoint weight cadence (default: 3600)
- CHAINSYNC_SYNC_STEPS: Comma separated module:Class sync steps (default: none)
- CHAINSYNC_EXECUTION_ORDER: reverse | registration (default: reverse)
- CHAINSYNC_API_ENABLED: Serve the status API (default: false)
- CHAINSYNC_API_HOST / CHAINSYNC_API_PORT: API bind (default: 127.0.0.1:8010)
- LOG_LEVEL: Logging level (default: INFO)
- LOG_DIR: Directory for daily log files (default: logs)
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from ..scheduler.entities import ExecutionOrder

logger = logging.getLogger(__name__)


def _get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean value from environment variable."""
    val = os.getenv(key, "").lower()
    if val in ("true", "1", "yes", "on"):
        return True
    elif val in ("false", "0", "no", "off"):
        return False
    return default


def _get_env_int(key: str, default: int) -> int:
    """Get integer value from environment variable."""
    val = os.getenv(key)
    if val is not None:
        try:
            return int(val)
        except ValueError:
            logger.warning(f"[Settings] Invalid integer for {key}: {val}, using default: {default}")
    return default


def _get_env_float(key: str, default: float) -> float:
    """Get float value from environment variable."""
    val = os.getenv(key)
    if val is not None:
        try:
            return float(val)
        except ValueError:
            logger.warning(f"[Settings] Invalid number for {key}: {val}, using default: {default}")
    return default


def _get_env_list(key: str) -> tuple[str, ...]:
    val = os.getenv(key, "")
    return tuple(item.strip() for item in val.split(",") if item.strip())


def _get_env_order(key: str, default: ExecutionOrder) -> ExecutionOrder:
    val = os.getenv(key)
    if val is None:
        return default
    try:
        return ExecutionOrder(val.strip().lower())
    except ValueError:
        logger.warning(f"[Settings] Invalid execution order for {key}: {val}, using default: {default.value}")
        return default


@dataclass(frozen=True)
class Settings:
    db_path: Path
    source: str
    idle_interval: float
    sync_interval_seconds: int
    weight_interval_seconds: int
    sync_steps: tuple[str, ...]
    execution_order: ExecutionOrder
    api_enabled: bool
    api_host: str
    api_port: int
    log_level: str
    log_dir: Path


def load_settings(env_file: Optional[str | Path] = None) -> Settings:
    """
    Build Settings from the environment.

    Args:
        env_file: Explicit .env file; when None, python-dotenv searches for one.
            Existing environment variables always win.
    """
    load_dotenv(env_file)

    return Settings(
        db_path=Path(os.getenv("CHAINSYNC_DB_PATH", "data/chainsync.db")),
        source=os.getenv("CHAINSYNC_SOURCE", "default"),
        idle_interval=_get_env_float("CHAINSYNC_IDLE_INTERVAL", 2.0),
        sync_interval_seconds=_get_env_int("CHAINSYNC_SYNC_INTERVAL_SECONDS", 300),
        weight_interval_seconds=_get_env_int("CHAINSYNC_WEIGHT_INTERVAL_SECONDS", 3600),
        sync_steps=_get_env_list("CHAINSYNC_SYNC_STEPS"),
        execution_order=_get_env_order("CHAINSYNC_EXECUTION_ORDER", ExecutionOrder.REVERSE_REGISTRATION),
        api_enabled=_get_env_bool("CHAINSYNC_API_ENABLED", False),
        api_host=os.getenv("CHAINSYNC_API_HOST", "127.0.0.1"),
        api_port=_get_env_int("CHAINSYNC_API_PORT", 8010),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        log_dir=Path(os.getenv("LOG_DIR", "logs")),
    )
