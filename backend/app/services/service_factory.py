"""
Service factory for the job store, queue and publisher.

Builds singletons from configuration so the API routes, the scheduler and
the in-process worker share one view of the job store. STORAGE_BACKEND
selects where published artifacts go.
"""

import logging
from pathlib import Path
from typing import Optional

from app.config import settings
from publish_engine import MetadataBuilder
from .job_queue import JobQueue
from .job_store import JobStore
from .local_content_store import LocalContentStore
from .pinata_storage import PinataStorage
from .publisher import Publisher
from .storage_backend import StorageBackend

logger = logging.getLogger(__name__)

# Singleton instances
_job_store: Optional[JobStore] = None
_job_queue: Optional[JobQueue] = None
_storage_backend: Optional[StorageBackend] = None
_publisher: Optional[Publisher] = None


def get_outputs_path() -> Path:
    """Directory holding local copies of published artifacts."""
    return Path(settings.STORAGE_PATH) / "outputs"


def get_job_store() -> JobStore:
    global _job_store
    if _job_store is None:
        _job_store = JobStore(settings.STORAGE_PATH)
        logger.info(f"Initialized JobStore at {settings.STORAGE_PATH}")
    return _job_store


def get_job_queue() -> JobQueue:
    """Get the job queue configured from the JOB_* settings."""
    global _job_queue
    if _job_queue is None:
        _job_queue = JobQueue(
            get_job_store(),
            attempts=settings.JOB_ATTEMPTS,
            backoff_delay_ms=settings.JOB_BACKOFF_DELAY_MS,
            lock_duration=settings.JOB_LOCK_DURATION,
            max_stalled_count=settings.JOB_MAX_STALLED_COUNT,
        )
    return _job_queue


def get_storage_backend() -> StorageBackend:
    """
    Get the configured content-addressed storage backend.

    Returns:
        StorageBackend: LocalContentStore if STORAGE_BACKEND=local,
                        PinataStorage if STORAGE_BACKEND=pinata

    Raises:
        ValueError: If the pinata backend is selected without PINATA_JWT
    """
    global _storage_backend
    if _storage_backend is not None:
        return _storage_backend

    if settings.STORAGE_BACKEND == "pinata":
        logger.info(f"Initializing PinataStorage ({settings.PINATA_API_URL})")
        _storage_backend = PinataStorage(
            jwt=settings.PINATA_JWT,
            api_url=settings.PINATA_API_URL,
        )
    else:
        logger.info("Initializing LocalContentStore (STORAGE_BACKEND=local)")
        _storage_backend = LocalContentStore(settings.STORAGE_PATH)

    return _storage_backend


def get_publisher() -> Publisher:
    global _publisher
    if _publisher is None:
        _publisher = Publisher(
            get_storage_backend(),
            MetadataBuilder(
                name_prefix=settings.NFT_NAME_PREFIX,
                description=settings.NFT_DESCRIPTION,
            ),
            attempts=settings.PUBLISH_ATTEMPTS,
            backoff_delay_ms=settings.PUBLISH_BACKOFF_DELAY_MS,
        )
    return _publisher


def reset_services() -> None:
    """
    Reset the service singletons (for testing purposes).

    The next getter call rebuilds the service from current settings.
    """
    global _job_store, _job_queue, _storage_backend, _publisher
    _job_store = None
    _job_queue = None
    _storage_backend = None
    _publisher = None
    logger.info("Service singletons reset")
