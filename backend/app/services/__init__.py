"""Service layer: job store and queue, render worker, publishing and maintenance."""

from .job_queue import JobQueue
from .job_store import JobStore
from .local_content_store import LocalContentStore
from .pinata_storage import PinataStorage
from .publisher import PublishedArtifact, Publisher
from .render_worker import RenderWorker
from .service_factory import (
    get_job_queue,
    get_job_store,
    get_publisher,
    get_storage_backend,
    reset_services,
)
from .storage_backend import StorageBackend

__all__ = [
    "JobQueue",
    "JobStore",
    "LocalContentStore",
    "PinataStorage",
    "PublishedArtifact",
    "Publisher",
    "RenderWorker",
    "StorageBackend",
    "get_job_queue",
    "get_job_store",
    "get_publisher",
    "get_storage_backend",
    "reset_services",
]
