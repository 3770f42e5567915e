"""Pydantic models for persisted render job records."""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class JobStatus(str, Enum):
    """Lifecycle states of a render job."""

    QUEUED = "queued"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"


class ErrorKind(str, Enum):
    """Category of the error that failed a job."""

    RENDER = "render"
    PUBLISH = "publish"
    DEPENDENCY_UNAVAILABLE = "dependency_unavailable"
    STALLED = "stalled"


class JobResult(BaseModel):
    """Identifiers of a published artifact."""

    image_url: str = Field(..., alias="imageUrl")
    metadata_url: str = Field(..., alias="metadataUrl")
    animation_cid: str = Field(..., alias="animationCid")
    metadata_cid: str = Field(..., alias="metadataCid")
    frame_count: int = Field(..., alias="frameCount")

    model_config = {"populate_by_name": True}


class RenderJob(BaseModel):
    """
    Render job record as held by the job store.

    The record is created on submission and afterwards mutated only by the
    worker that holds the job's lock (or by stall recovery once that lock
    has expired).
    """

    id: str = Field(..., alias="jobId")
    settings: dict[str, Any] = Field(..., description="LayerSettings in wire format")
    requester: str = Field(..., description="Opaque wallet or user reference")
    total_frames: int = Field(..., alias="totalFrames")
    size: int
    status: JobStatus = JobStatus.QUEUED
    progress: int = Field(default=0, ge=0, le=100)
    result: Optional[JobResult] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = Field(default=None, alias="errorKind")

    attempts_made: int = Field(default=0, alias="attemptsMade")
    max_attempts: int = Field(..., alias="maxAttempts")
    attempt_timestamps: list[datetime] = Field(default_factory=list, alias="attemptTimestamps")
    stalled_count: int = Field(default=0, alias="stalledCount")
    available_at: datetime = Field(..., alias="availableAt")
    lock_expires_at: Optional[datetime] = Field(default=None, alias="lockExpiresAt")

    created_at: datetime = Field(..., alias="createdAt")
    started_at: Optional[datetime] = Field(default=None, alias="startedAt")
    finished_at: Optional[datetime] = Field(default=None, alias="finishedAt")

    model_config = {"populate_by_name": True}
