"""
Render endpoints for job submission and status tracking.

Provides POST /api/render for submitting render jobs and
GET /api/status/{job_id} for checking job status.
"""

import logging

from fastapi import APIRouter, HTTPException

from app.config import settings
from app.middleware.error_handler import InvalidSettingsError, JobNotFoundError
from app.models import RenderRequest, RenderResponse, StatusResponse
from app.services.rate_limiter import render_rate_limiter
from app.services.service_factory import get_job_queue

logger = logging.getLogger(__name__)

router = APIRouter()

MIN_TOTAL_FRAMES = 2
MIN_RENDER_SIZE = 16


def _check_dimensions(total_frames: int, size: int) -> None:
    """
    Raises:
        InvalidSettingsError: If frame count or canvas size is out of range
    """
    problems = []
    if not MIN_TOTAL_FRAMES <= total_frames <= settings.MAX_TOTAL_FRAMES:
        problems.append({
            "loc": ["totalFrames"],
            "msg": f"must be between {MIN_TOTAL_FRAMES} and {settings.MAX_TOTAL_FRAMES}",
        })
    if not MIN_RENDER_SIZE <= size <= settings.MAX_RENDER_SIZE:
        problems.append({
            "loc": ["size"],
            "msg": f"must be between {MIN_RENDER_SIZE} and {settings.MAX_RENDER_SIZE}",
        })
    if problems:
        raise InvalidSettingsError(problems)


@router.post(
    "/render",
    response_model=RenderResponse,
    summary="Submit Render Job",
    description="""
Validate layer settings and queue a looping animation render.

Invalid settings are rejected with 422 and never queued. Accepted jobs are
processed by a render worker; poll GET /api/status/{job_id} for progress.

Job status transitions: `queued` → `active` → `completed` | `failed`
""",
    responses={
        200: {"description": "Render job queued"},
        422: {"description": "Invalid settings, frame count or size"},
        429: {"description": "Rate limit exceeded for this requester"},
        500: {"description": "Internal server error"},
    },
)
async def submit_render(request: RenderRequest) -> RenderResponse:
    """
    Submit a render job for processing.

    Raises:
        HTTPException 422: If the settings are invalid
        HTTPException 429: If the requester exceeded the rate limit
        HTTPException 500: On internal errors
    """
    total_frames = request.total_frames
    if total_frames is None:
        total_frames = settings.RENDER_TOTAL_FRAMES
    size = request.size
    if size is None:
        size = settings.RENDER_SIZE

    logger.info(
        f"Render submission received: requester={request.wallet_address}, "
        f"frames={total_frames}, size={size}"
    )

    try:
        _check_dimensions(total_frames, size)
        render_rate_limiter.check_rate_limit(request.wallet_address)
        job = get_job_queue().submit(
            request.settings,
            requester=request.wallet_address,
            total_frames=total_frames,
            size=size,
        )

    except InvalidSettingsError as e:
        logger.warning(f"Rejected render submission: {e.details}")
        raise HTTPException(
            status_code=e.status_code,
            detail={"error": e.message, **e.details},
        )

    except HTTPException:
        raise

    except Exception as e:
        logger.exception(f"Render submission failed: {e}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to submit render job: {str(e)}",
        )

    return RenderResponse(
        job_id=job.id,
        status=job.status.value,
        message="Render job queued",
        status_url=f"/api/status/{job.id}",
    )


@router.get(
    "/status/{job_id}",
    response_model=StatusResponse,
    summary="Get Job Status",
    description="""
Get the current status of a render job.

Status values:
- **queued**: Waiting for a worker (also while waiting to retry)
- **active**: A worker is rendering or uploading; see `progress`
- **completed**: `result` holds the published artifact identifiers
- **failed**: `error` and `errorKind` describe the final failure
""",
    responses={
        200: {"description": "Job status retrieved successfully"},
        404: {"description": "Job not found"},
    },
)
async def get_job_status(job_id: str) -> StatusResponse:
    """
    Get current status of a render job.

    Raises:
        JobNotFoundError: If job_id not found (404 via ErrorHandlerMiddleware)
    """
    logger.debug(f"Status request: job_id={job_id}")

    job = get_job_queue().get_job(job_id)
    if job is None:
        logger.warning(f"Job not found: {job_id}")
        raise JobNotFoundError(job_id)

    return StatusResponse.from_job(job)
