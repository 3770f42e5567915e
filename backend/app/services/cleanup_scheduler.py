"""
Cleanup Scheduler Service

Runs the job queue's maintenance on a timer:
- stalled job recovery every JOB_STALLED_INTERVAL seconds
- pruning of old finished jobs and their output folders every
  CLEANUP_INTERVAL_MINUTES minutes

Uses APScheduler's AsyncIOScheduler so the jobs run on the API event loop.
"""

import logging
import shutil
from pathlib import Path
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from app.config import settings
from .job_queue import JobQueue
from .service_factory import get_job_queue, get_outputs_path

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()

STALLED_JOB_ID = "recover_stalled_jobs"
PRUNE_JOB_ID = "prune_finished_jobs"


async def recover_stalled_jobs(queue: Optional[JobQueue] = None) -> dict:
    """
    Requeue or fail active jobs whose worker stopped renewing its lock.

    Returns:
        dict: Counts of requeued and failed jobs
    """
    queue = queue or get_job_queue()
    summary = queue.recover_stalled()
    if summary["requeued"] or summary["failed"]:
        logger.info(
            f"Stall recovery: {summary['requeued']} requeued, "
            f"{summary['failed']} failed"
        )
    return summary


async def prune_finished_jobs(
    queue: Optional[JobQueue] = None,
    outputs_path: Optional[Path] = None,
) -> dict:
    """
    Delete finished jobs beyond the retention limits, with their outputs.

    Returns:
        dict: Summary of cleanup operation with counts
    """
    queue = queue or get_job_queue()
    outputs_path = Path(outputs_path) if outputs_path else get_outputs_path()
    cleanup_summary = {
        "jobs_pruned": 0,
        "folders_deleted": 0,
        "errors": 0,
    }

    pruned = queue.prune_finished(settings.KEEP_COMPLETED_JOBS, settings.KEEP_FAILED_JOBS)
    cleanup_summary["jobs_pruned"] = len(pruned)

    for job_id in pruned:
        job_folder = outputs_path / job_id
        if not job_folder.exists():
            continue
        try:
            shutil.rmtree(job_folder)
            cleanup_summary["folders_deleted"] += 1
            logger.info(f"Cleaned up output folder: {job_folder}")
        except OSError as e:
            cleanup_summary["errors"] += 1
            logger.error(f"Failed to clean up folder {job_folder}: {e}")

    logger.info(
        f"Cleanup completed: {cleanup_summary['jobs_pruned']} jobs pruned, "
        f"{cleanup_summary['folders_deleted']} folders deleted, "
        f"{cleanup_summary['errors']} errors"
    )
    return cleanup_summary


def start_cleanup_scheduler():
    """
    Schedule the maintenance jobs and start the scheduler.

    Safe to call multiple times - will not add duplicate jobs.
    """
    if scheduler.running:
        logger.debug("Scheduler already running")
        return

    if not scheduler.get_job(STALLED_JOB_ID):
        scheduler.add_job(
            recover_stalled_jobs,
            "interval",
            seconds=settings.JOB_STALLED_INTERVAL,
            id=STALLED_JOB_ID,
            name="Recover stalled render jobs",
            replace_existing=True,
        )
        logger.info(f"Scheduled stall recovery: every {settings.JOB_STALLED_INTERVAL}s")

    if not scheduler.get_job(PRUNE_JOB_ID):
        scheduler.add_job(
            prune_finished_jobs,
            "interval",
            minutes=settings.CLEANUP_INTERVAL_MINUTES,
            id=PRUNE_JOB_ID,
            name="Prune finished render jobs",
            replace_existing=True,
        )
        logger.info(
            f"Scheduled pruning: every {settings.CLEANUP_INTERVAL_MINUTES} minute(s), "
            f"keeping {settings.KEEP_COMPLETED_JOBS} completed / "
            f"{settings.KEEP_FAILED_JOBS} failed"
        )

    scheduler.start()
    logger.info("Cleanup scheduler started")


def stop_cleanup_scheduler():
    """Stop the cleanup scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Cleanup scheduler stopped")


def get_scheduler_status() -> dict:
    """
    Get current scheduler status for health checks.

    Returns:
        dict: Scheduler status including running state and job info
    """
    stalled_job = scheduler.get_job(STALLED_JOB_ID)
    prune_job = scheduler.get_job(PRUNE_JOB_ID)
    return {
        "running": scheduler.running,
        "stall_recovery_scheduled": stalled_job is not None,
        "pruning_scheduled": prune_job is not None,
        "next_stall_check": str(stalled_job.next_run_time) if stalled_job else None,
        "next_prune": str(prune_job.next_run_time) if prune_job else None,
        "stalled_interval_seconds": settings.JOB_STALLED_INTERVAL,
        "cleanup_interval_minutes": settings.CLEANUP_INTERVAL_MINUTES,
    }
