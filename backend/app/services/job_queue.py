"""
Render job queue.

Implements the job lifecycle on top of JobStore:

    queued -> active -> completed
    queued -> active -> failed
    active -> queued   (retry after backoff, or recovery from a stalled worker)

A worker claims a job by creating its lock file, then renews the lock with
every progress report. Locks that are not renewed within the lock duration
are treated as stalled workers and the job is returned to the queue, up to
max_stalled_count times. Progress is kept across retries so the reported
value never decreases.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Union

from pydantic import ValidationError

from app.middleware.error_handler import InvalidSettingsError, LockLostError
from app.models.job_record import ErrorKind, JobResult, JobStatus, RenderJob
from app.models.layer_settings import LayerSettings
from .job_store import JobStore

logger = logging.getLogger(__name__)

STALLED_ERROR_MESSAGE = "Job stalled more than the allowable limit"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobQueue:
    """
    Durable at-least-once queue of render jobs.

    Args:
        store: Job status store shared by API and workers
        attempts: Total attempts before a failing job is marked failed
        backoff_delay_ms: Delay before the second attempt, doubled afterwards
        lock_duration: Seconds a claim stays valid without a heartbeat
        max_stalled_count: Stall recoveries allowed before the job fails
        clock: Returns the current UTC time (injectable for tests)
    """

    def __init__(
        self,
        store: JobStore,
        *,
        attempts: int = 3,
        backoff_delay_ms: int = 2000,
        lock_duration: float = 120,
        max_stalled_count: int = 1,
        clock: Callable[[], datetime] = utcnow,
    ):
        if attempts < 1:
            raise ValueError("attempts must be at least 1")
        self.store = store
        self.attempts = attempts
        self.backoff_delay_ms = backoff_delay_ms
        self.lock_duration = timedelta(seconds=lock_duration)
        self.max_stalled_count = max_stalled_count
        self.clock = clock

    def backoff_delay(self, attempts_made: int) -> timedelta:
        """Exponential delay before the next attempt after attempts_made failures."""
        return timedelta(milliseconds=self.backoff_delay_ms * 2 ** (attempts_made - 1))

    def submit(
        self,
        settings: Union[LayerSettings, dict],
        requester: str,
        total_frames: int,
        size: int,
    ) -> RenderJob:
        """
        Validate settings and enqueue a new job.

        Raises:
            InvalidSettingsError: Settings, frame count or size out of bounds
        """
        if not isinstance(settings, LayerSettings):
            try:
                settings = LayerSettings.model_validate(settings)
            except ValidationError as e:
                raise InvalidSettingsError(
                    e.errors(include_url=False, include_context=False)
                ) from e

        problems = []
        if total_frames < 2:
            problems.append({"loc": ["totalFrames"], "msg": "must be at least 2"})
        if size < 1:
            problems.append({"loc": ["size"], "msg": "must be at least 1"})
        if not requester:
            problems.append({"loc": ["requester"], "msg": "must not be empty"})
        if problems:
            raise InvalidSettingsError(problems)

        now = self.clock()
        job = RenderJob(
            id=str(uuid.uuid4()),
            settings=settings.to_attributes(),
            requester=requester,
            total_frames=total_frames,
            size=size,
            max_attempts=self.attempts,
            available_at=now,
            created_at=now,
        )
        self.store.create_job(job)
        logger.info(
            f"Job queued: {job.id}, frames={total_frames}, size={size}, "
            f"requester={requester}"
        )
        return job

    def get_job(self, job_id: str) -> Optional[RenderJob]:
        return self.store.get_job(job_id)

    def claim_next(self, token: str) -> Optional[RenderJob]:
        """
        Claim the oldest queued job whose retry delay has elapsed.

        Returns:
            The job, now active and locked by token, or None if none is ready
        """
        now = self.clock()
        for candidate in self.store.list_jobs(JobStatus.QUEUED):
            if candidate.available_at > now:
                continue

            with self.store.transaction():
                if not self.store.acquire_lock(candidate.id, token):
                    continue
                try:
                    job = self.store.get_job(candidate.id)
                    if job is None or job.status != JobStatus.QUEUED:
                        self.store.release_lock(candidate.id, token)
                        continue

                    job = self.store.save_job(
                        job.model_copy(
                            update={
                                "status": JobStatus.ACTIVE,
                                "started_at": now,
                                "attempt_timestamps": [*job.attempt_timestamps, now],
                                "lock_expires_at": now + self.lock_duration,
                            }
                        )
                    )
                except Exception:
                    self.store.release_lock(candidate.id, token)
                    raise
            logger.info(
                f"Job claimed: {job.id} by {token} "
                f"(attempt {job.attempts_made + 1}/{job.max_attempts})"
            )
            return job
        return None

    def _owned_job(self, job_id: str, token: str) -> RenderJob:
        job = self.store.get_job(job_id)
        if (
            job is None
            or job.status != JobStatus.ACTIVE
            or self.store.lock_owner(job_id) != token
        ):
            raise LockLostError(job_id)
        return job

    def heartbeat(self, job_id: str, token: str, progress: Optional[int] = None) -> RenderJob:
        """
        Renew the job lock and optionally report progress.

        Progress never decreases while the job is active.

        Raises:
            LockLostError: token no longer owns the job
        """
        with self.store.transaction():
            job = self._owned_job(job_id, token)
            updates = {"lock_expires_at": self.clock() + self.lock_duration}
            if progress is not None:
                updates["progress"] = max(job.progress, min(100, max(0, int(progress))))
            return self.store.save_job(job.model_copy(update=updates))

    def complete(self, job_id: str, token: str, result: JobResult) -> RenderJob:
        """Mark an owned job completed with its artifact identifiers."""
        with self.store.transaction():
            job = self._owned_job(job_id, token)
            job = self.store.save_job(
                job.model_copy(
                    update={
                        "status": JobStatus.COMPLETED,
                        "progress": 100,
                        "result": result,
                        "error": None,
                        "error_kind": None,
                        "attempts_made": job.attempts_made + 1,
                        "finished_at": self.clock(),
                        "lock_expires_at": None,
                    }
                )
            )
            self.store.release_lock(job_id, token)
        logger.info(f"Job completed: {job_id}")
        return job

    def fail(
        self,
        job_id: str,
        token: str,
        error: str,
        kind: ErrorKind,
        retryable: bool = True,
    ) -> RenderJob:
        """
        Record a failed attempt.

        Retryable failures return the job to the queue after an exponential
        backoff until attempts are exhausted; the job is then failed.
        """
        with self.store.transaction():
            job = self._owned_job(job_id, token)
            now = self.clock()
            attempts_made = job.attempts_made + 1
            updates = {
                "attempts_made": attempts_made,
                "error": error,
                "error_kind": kind,
                "lock_expires_at": None,
            }

            if retryable and attempts_made < job.max_attempts:
                delay = self.backoff_delay(attempts_made)
                updates.update(
                    status=JobStatus.QUEUED,
                    available_at=now + delay,
                )
                logger.warning(
                    f"Job attempt failed: {job_id} ({attempts_made}/{job.max_attempts}), "
                    f"retrying in {delay.total_seconds():.1f}s - {error}"
                )
            else:
                updates.update(status=JobStatus.FAILED, finished_at=now)
                logger.error(f"Job failed: {job_id} [{kind.value}] - {error}")

            job = self.store.save_job(job.model_copy(update=updates))
            self.store.release_lock(job_id, token)
        return job

    def recover_stalled(self) -> dict:
        """
        Return active jobs with expired locks to the queue.

        Jobs recovered more than max_stalled_count times are failed. Lock
        files left on queued jobs by an interrupted claim are released once
        the job has been claimable for longer than the lock duration.

        Returns:
            dict: Counts of requeued and failed jobs
        """
        summary = {"requeued": 0, "failed": 0}
        now = self.clock()

        for candidate in self.store.list_jobs(JobStatus.ACTIVE):
            if candidate.lock_expires_at is not None and candidate.lock_expires_at > now:
                continue

            with self.store.transaction():
                job = self.store.get_job(candidate.id)
                if job is None or job.status != JobStatus.ACTIVE:
                    continue
                if job.lock_expires_at is not None and job.lock_expires_at > now:
                    continue

                self.store.release_lock(job.id)
                stalled_count = job.stalled_count + 1
                updates = {"stalled_count": stalled_count, "lock_expires_at": None}

                if stalled_count > self.max_stalled_count:
                    updates.update(
                        status=JobStatus.FAILED,
                        error=STALLED_ERROR_MESSAGE,
                        error_kind=ErrorKind.STALLED,
                        finished_at=now,
                    )
                    summary["failed"] += 1
                    logger.error(f"Stalled job failed: {job.id} (stalled {stalled_count}x)")
                else:
                    updates.update(status=JobStatus.QUEUED, available_at=now)
                    summary["requeued"] += 1
                    logger.warning(f"Stalled job requeued: {job.id} (stalled {stalled_count}x)")

                self.store.save_job(job.model_copy(update=updates))

        # A claim interrupted between locking and activating leaves a queued
        # record with a lock file that no heartbeat will ever renew.
        for candidate in self.store.list_jobs(JobStatus.QUEUED):
            if now - candidate.available_at <= self.lock_duration:
                continue

            with self.store.transaction():
                owner = self.store.lock_owner(candidate.id)
                if owner is None:
                    continue
                job = self.store.get_job(candidate.id)
                if job is None or job.status != JobStatus.QUEUED:
                    continue

                self.store.release_lock(job.id, owner)
                summary["requeued"] += 1
                logger.warning(f"Orphaned lock released: {job.id} (held by {owner})")

        return summary

    def prune_finished(self, keep_completed: int, keep_failed: int) -> list[str]:
        """
        Delete the oldest terminal jobs beyond the retention counts.

        Returns:
            list[str]: IDs of deleted jobs
        """
        pruned = []
        for status, keep in ((JobStatus.COMPLETED, keep_completed), (JobStatus.FAILED, keep_failed)):
            jobs = sorted(
                self.store.list_jobs(status),
                key=lambda j: j.finished_at or j.created_at,
            )
            excess = jobs[: max(0, len(jobs) - keep)]
            for job in excess:
                if self.store.delete_job(job.id):
                    pruned.append(job.id)
        if pruned:
            logger.info(f"Pruned {len(pruned)} finished jobs")
        return pruned
