"""Pydantic model for render job status response."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .job_record import ErrorKind, JobResult, JobStatus, RenderJob


class StatusResponse(BaseModel):
    """
    Response body for GET /api/status/{job_id} endpoint.

    Attributes:
        job_id: Job ID returned on submission
        status: queued, active, completed or failed
        progress: Completion percentage (0-100), monotonic while active
        result: Published artifact identifiers once completed
        error: Error message of the last failed attempt
        error_kind: render, publish, dependency_unavailable or stalled
        attempts_made: Finished attempts so far
    """

    job_id: str = Field(..., alias="jobId")
    status: JobStatus
    progress: int = Field(..., ge=0, le=100)
    result: Optional[JobResult] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = Field(None, alias="errorKind")
    attempts_made: int = Field(..., alias="attemptsMade")
    created_at: datetime = Field(..., alias="createdAt")
    started_at: Optional[datetime] = Field(None, alias="startedAt")
    finished_at: Optional[datetime] = Field(None, alias="finishedAt")

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "examples": [
                {
                    "jobId": "550e8400-e29b-41d4-a716-446655440000",
                    "status": "active",
                    "progress": 42,
                    "result": None,
                    "error": None,
                    "errorKind": None,
                    "attemptsMade": 0,
                    "createdAt": "2026-01-01T00:00:00Z",
                    "startedAt": "2026-01-01T00:00:01Z",
                    "finishedAt": None,
                }
            ]
        },
    }

    @classmethod
    def from_job(cls, job: RenderJob) -> "StatusResponse":
        return cls(
            job_id=job.id,
            status=job.status,
            progress=job.progress,
            result=job.result,
            error=job.error,
            error_kind=job.error_kind,
            attempts_made=job.attempts_made,
            created_at=job.created_at,
            started_at=job.started_at,
            finished_at=job.finished_at,
        )
