"""Pydantic model for render job submission response."""

from pydantic import BaseModel, Field


class RenderResponse(BaseModel):
    """
    Response body for POST /api/render endpoint.

    Returned after the job has been validated and enqueued.
    """

    job_id: str = Field(..., alias="jobId", description="Job ID for status polling")
    status: str = Field(..., description="Job status at submission: queued")
    message: str = Field(..., description="Human-readable status message")
    status_url: str = Field(..., alias="statusUrl", description="Status endpoint for this job")

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "examples": [
                {
                    "jobId": "550e8400-e29b-41d4-a716-446655440000",
                    "status": "queued",
                    "message": "Render job queued",
                    "statusUrl": "/api/status/550e8400-e29b-41d4-a716-446655440000",
                }
            ]
        },
    }
