"""
Job Status Store

Durable, file-backed storage of render job records.

Layout: {base_path}/jobs/{job_id}/metadata.json holds the record and
{base_path}/jobs/{job_id}/lock names the worker that owns an active job.
Records are replaced atomically so readers never observe a partial write,
and lock files are created exclusively so several worker processes can
share one store directory.
"""

import logging
import os
import re
import shutil
import tempfile
import threading
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from app.models.job_record import JobStatus, RenderJob

logger = logging.getLogger(__name__)

METADATA_FILENAME = "metadata.json"
LOCK_FILENAME = "lock"

_JOB_ID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def is_valid_job_id(job_id: str) -> bool:
    """Job IDs are UUIDs; anything else could escape the jobs directory."""
    return bool(_JOB_ID_PATTERN.match(job_id or ""))


class JobStore:
    """
    Manages render job records on the filesystem.

    Handles:
    - Creating, reading and atomically replacing job records
    - Listing jobs by status in submission order
    - Exclusive per-job lock files for workers
    - Deleting pruned jobs
    """

    def __init__(self, base_path: str):
        """
        Initialize JobStore with base storage path.

        Args:
            base_path: Root directory; records live under {base_path}/jobs
        """
        self.base_path = Path(base_path)
        self.jobs_path = self.base_path / "jobs"
        self.jobs_path.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()

    def _job_dir(self, job_id: str) -> Path:
        if not is_valid_job_id(job_id):
            raise ValueError(f"Invalid job id: {job_id!r}")
        return self.jobs_path / job_id

    def _write(self, job: RenderJob) -> None:
        job_dir = self._job_dir(job.id)
        job_dir.mkdir(parents=True, exist_ok=True)
        payload = job.model_dump_json(by_alias=True, indent=2)

        fd, tmp_path = tempfile.mkstemp(dir=job_dir, prefix=".metadata.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                f.write(payload)
            os.replace(tmp_path, job_dir / METADATA_FILENAME)
        except OSError:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def transaction(self) -> threading.RLock:
        """Re-entrant lock serialising read-modify-write cycles in this process."""
        return self._lock

    def create_job(self, job: RenderJob) -> RenderJob:
        """
        Persist a new job record.

        Raises:
            FileExistsError: If a record with the same id exists
        """
        with self._lock:
            if (self._job_dir(job.id) / METADATA_FILENAME).exists():
                raise FileExistsError(f"Job already exists: {job.id}")
            self._write(job)
        logger.info(f"Created job {job.id} for requester {job.requester}")
        return job

    def get_job(self, job_id: str) -> Optional[RenderJob]:
        """
        Load a job record.

        Returns:
            RenderJob if the record exists and parses, None otherwise
        """
        if not is_valid_job_id(job_id):
            return None

        metadata_path = self.jobs_path / job_id / METADATA_FILENAME
        with self._lock:
            if not metadata_path.exists():
                return None
            try:
                return RenderJob.model_validate_json(metadata_path.read_text())
            except ValidationError as e:
                logger.error(f"Failed to parse job record {job_id}: {e}")
                return None
            except OSError as e:
                logger.error(f"Failed to read job record {job_id}: {e}")
                return None

    def save_job(self, job: RenderJob) -> RenderJob:
        """Atomically replace a job record."""
        with self._lock:
            self._write(job)
        return job

    def list_jobs(self, status: Optional[JobStatus] = None) -> list[RenderJob]:
        """List jobs, oldest submission first, optionally filtered by status."""
        jobs = []
        with self._lock:
            for job_dir in self.jobs_path.iterdir():
                if not job_dir.is_dir() or not is_valid_job_id(job_dir.name):
                    continue
                job = self.get_job(job_dir.name)
                if job is None:
                    continue
                if status is None or job.status == status:
                    jobs.append(job)
        return sorted(jobs, key=lambda j: j.created_at)

    def delete_job(self, job_id: str) -> bool:
        """Remove a job record and its lock."""
        with self._lock:
            job_dir = self._job_dir(job_id)
            if not job_dir.exists():
                return False
            shutil.rmtree(job_dir)
        logger.info(f"Deleted job {job_id}")
        return True

    def acquire_lock(self, job_id: str, token: str) -> bool:
        """
        Create the job's lock file for a worker token.

        Returns:
            bool: True if this call created the lock, False if it is held
        """
        lock_path = self._job_dir(job_id) / LOCK_FILENAME
        try:
            fd = os.open(lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            return False
        with os.fdopen(fd, "w") as f:
            f.write(token)
        return True

    def lock_owner(self, job_id: str) -> Optional[str]:
        """Return the token holding the job's lock, if any."""
        lock_path = self._job_dir(job_id) / LOCK_FILENAME
        try:
            return lock_path.read_text()
        except FileNotFoundError:
            return None

    def release_lock(self, job_id: str, token: Optional[str] = None) -> bool:
        """
        Delete the job's lock file.

        Args:
            job_id: Job whose lock to release
            token: If given, only release when this token owns the lock
        """
        if token is not None and self.lock_owner(job_id) != token:
            return False
        lock_path = self._job_dir(job_id) / LOCK_FILENAME
        try:
            lock_path.unlink()
        except FileNotFoundError:
            return False
        return True
