"""
chainsync process entry point.

    python -m chainsync [--log-level LEVEL] [--once] [--env-file PATH]

Registers the endpoint weight job and, when sync steps are configured,
the chain sync pipeline for every known chain, then runs the scheduler
loop until SIGINT/SIGTERM. A stop request takes effect after the job
currently running.
"""

import argparse
import logging
import signal
import sys
import threading
from datetime import timedelta
from typing import Optional

from chainsync import __version__
from chainsync.infra.job_loader import load_jobs
from chainsync.infra.logging_config import setup_logging
from chainsync.infra.settings import Settings, load_settings
from chainsync.scheduler import ChainSyncJob, PersistenceAdapter, Scheduler
from chainsync.weighting import EndpointWeightAdjustor


logger = logging.getLogger("chainsync")


def build_scheduler(settings: Settings, persistence: PersistenceAdapter) -> Scheduler:
    """Create the scheduler and register the configured jobs."""
    scheduler = Scheduler(
        persistence=persistence,
        source=settings.source,
        idle_interval=settings.idle_interval,
        order=settings.execution_order,
    )

    steps = load_jobs(settings.sync_steps, persistence)
    if steps:
        scheduler.schedule(
            ChainSyncJob(persistence, steps),
            timedelta(seconds=settings.sync_interval_seconds),
            run_immediately=True,
        )
    else:
        logger.warning("CHAINSYNC_SYNC_STEPS is empty, chain sync is not scheduled")

    scheduler.schedule(
        EndpointWeightAdjustor(persistence),
        timedelta(seconds=settings.weight_interval_seconds),
        run_immediately=True,
    )
    return scheduler


def start_api(settings: Settings, persistence: PersistenceAdapter) -> threading.Thread:
    """Serve the status API from a daemon thread on the scheduler's store."""
    import uvicorn

    from chainsync.api._store_state import set_store
    from chainsync.api.main import app

    set_store(persistence)
    thread = threading.Thread(
        target=uvicorn.run,
        args=(app,),
        kwargs={"host": settings.api_host, "port": settings.api_port, "log_level": "warning"},
        name="chainsync-api",
        daemon=True,
    )
    thread.start()
    logger.info(f"Status API listening on http://{settings.api_host}:{settings.api_port}")
    return thread


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="chainsync", description="Periodic chain sync scheduler")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    parser.add_argument("--env-file", default=None, help="Load settings from this .env file")
    parser.add_argument("--once", action="store_true", help="Run the jobs due now once and exit")
    parser.add_argument("--version", action="version", version=f"chainsync {__version__}")
    args = parser.parse_args(argv)

    settings = load_settings(args.env_file)
    setup_logging(args.log_level or settings.log_level, settings.log_dir)
    logger.info(f"chainsync {__version__} starting (source={settings.source}, db={settings.db_path})")

    persistence = PersistenceAdapter(settings.db_path)
    scheduler = build_scheduler(settings, persistence)

    if args.once:
        scheduler.run_pending()
        return 0

    if settings.api_enabled:
        start_api(settings, persistence)

    def signal_handler(signum, frame):
        logger.info(f"{signal.Signals(signum).name} received, stopping after the current job")
        scheduler.stop()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    scheduler.start(blocking=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
