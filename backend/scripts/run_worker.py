#!/usr/bin/env python3
"""
Standalone render worker process.

Runs a render worker and the stall recovery scan against the configured
STORAGE_PATH. Several worker processes may share one store directory; set
RUN_WORKER_IN_PROCESS=false on the API when running workers separately.

Run with: python backend/scripts/run_worker.py
"""

import asyncio
import logging
import signal
import sys
from pathlib import Path

# Add backend to Python path
backend_path = Path(__file__).parent.parent
sys.path.insert(0, str(backend_path))

from app.config import settings
from app.main import create_worker
from app.services.cleanup_scheduler import recover_stalled_jobs

logger = logging.getLogger("run_worker")


async def recover_periodically(stop: asyncio.Event) -> None:
    """Scan for stalled jobs every JOB_STALLED_INTERVAL seconds until stopped."""
    while not stop.is_set():
        try:
            await recover_stalled_jobs()
        except Exception:
            logger.exception("Stall recovery failed")
        try:
            await asyncio.wait_for(stop.wait(), timeout=settings.JOB_STALLED_INTERVAL)
        except asyncio.TimeoutError:
            pass


async def main() -> None:
    worker = create_worker()
    stop = asyncio.Event()

    def request_stop() -> None:
        logger.info("Shutdown requested; finishing current job")
        stop.set()
        worker.stop()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, request_stop)

    logger.info(f"Worker {worker.token} using store at {settings.STORAGE_PATH}")
    await asyncio.gather(worker.run_forever(), recover_periodically(stop))


if __name__ == "__main__":
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(main())
