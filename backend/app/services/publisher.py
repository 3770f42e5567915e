"""
Publisher - uploads an encoded animation and its metadata document.

Uploads are retried with exponential backoff inside the publisher, so a
flaky storage backend does not force a re-render. Exhausted retries raise
PublishFailureError, which fails the job with the publish error kind.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional

from app.middleware.error_handler import PublishFailureError
from app.models.job_record import JobResult
from publish_engine import MetadataBuilder, StorageUploadError
from .storage_backend import StorageBackend

logger = logging.getLogger(__name__)

ANIMATION_CONTENT_TYPE = "image/gif"
ANIMATION_FILENAME = "animation.gif"
METADATA_CONTENT_TYPE = "application/json"
METADATA_FILENAME = "metadata.json"

ProgressCallback = Callable[[str], Awaitable[None]]


@dataclass(frozen=True)
class PublishedArtifact:
    """Result of publishing one animation."""

    result: JobResult
    metadata: dict[str, Any]
    metadata_bytes: bytes


class Publisher:
    """
    Publishes artifacts to a content-addressed storage backend.

    Args:
        backend: Storage backend
        metadata_builder: Builds the metadata document
        attempts: Upload attempts per object
        backoff_delay_ms: Delay after the first failed upload, doubled afterwards
        sleep: Awaitable sleep (injectable for tests)
    """

    def __init__(
        self,
        backend: StorageBackend,
        metadata_builder: MetadataBuilder,
        attempts: int = 3,
        backoff_delay_ms: int = 1000,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.backend = backend
        self.metadata_builder = metadata_builder
        self.attempts = max(1, attempts)
        self.backoff_delay_ms = backoff_delay_ms
        self._sleep = sleep

    async def publish(self, data: bytes, content_type: str, filename: str) -> str:
        """
        Upload bytes and return their content identifier.

        Raises:
            PublishFailureError: All upload attempts failed
        """
        last_error: Optional[StorageUploadError] = None
        for attempt in range(1, self.attempts + 1):
            try:
                return await self.backend.upload(data, content_type, filename)
            except StorageUploadError as e:
                last_error = e
                logger.warning(
                    f"[PUBLISH] Upload attempt {attempt}/{self.attempts} failed "
                    f"for {filename}: {e}"
                )
                if attempt < self.attempts:
                    await self._sleep(self.backoff_delay_ms * 2 ** (attempt - 1) / 1000)

        raise PublishFailureError(f"{filename}: {last_error}")

    async def publish_artifact(
        self,
        animation: bytes,
        attributes: dict[str, Any],
        created_at: datetime,
        frame_count: int,
        size: int,
        frame_delay_ms: int,
        on_stage: Optional[ProgressCallback] = None,
    ) -> PublishedArtifact:
        """
        Upload the animation, then a metadata document that references it.

        Args:
            on_stage: Awaited with "animation" and "metadata" after each upload

        Returns:
            PublishedArtifact with URIs and content identifiers
        """
        animation_cid = await self.publish(animation, ANIMATION_CONTENT_TYPE, ANIMATION_FILENAME)
        animation_uri = self.backend.content_uri(animation_cid)
        if on_stage is not None:
            await on_stage("animation")

        metadata = self.metadata_builder.build_metadata(
            animation_uri=animation_uri,
            attributes=attributes,
            created_at=created_at,
            frame_count=frame_count,
            size=size,
            frame_delay_ms=frame_delay_ms,
        )
        metadata_bytes = self.metadata_builder.serialize(metadata)
        metadata_cid = await self.publish(metadata_bytes, METADATA_CONTENT_TYPE, METADATA_FILENAME)
        if on_stage is not None:
            await on_stage("metadata")

        logger.info(
            f"[PUBLISH] Published {animation_uri} with metadata {metadata_cid} "
            f"to {self.backend.backend_name}"
        )
        return PublishedArtifact(
            result=JobResult(
                image_url=animation_uri,
                metadata_url=self.backend.content_uri(metadata_cid),
                animation_cid=animation_cid,
                metadata_cid=metadata_cid,
                frame_count=frame_count,
            ),
            metadata=metadata,
            metadata_bytes=metadata_bytes,
        )
