"""
Download endpoint for retrieving published artifacts.

Provides GET /api/download/{jobId} for downloading the animation or its
metadata document from the local output copy.
"""

import logging

from fastapi import APIRouter, Query
from fastapi.responses import FileResponse, JSONResponse

from app.models import DownloadErrorResponse, JobStatus
from app.services.job_store import is_valid_job_id
from app.services.service_factory import get_job_queue, get_outputs_path

logger = logging.getLogger(__name__)

router = APIRouter()

DOWNLOAD_FILES = {
    "animation": ("animation.gif", "image/gif"),
    "metadata": ("metadata.json", "application/json"),
}


def _error(status_code: int, error: str, job_id: str, status, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=DownloadErrorResponse(
            error=error,
            jobId=job_id,
            status=status,
            message=message,
        ).model_dump(),
    )


@router.get(
    "/download/{jobId}",
    summary="Download Render Output",
    description="""
Download the animation or metadata document of a completed job.

**Query Parameters:**
- `file`: `animation` (GIF, default) or `metadata` (JSON)

**Response:**
- **200**: File download with appropriate Content-Type
- **404**: Job not found, invalid UUID, or job failed
- **409**: Job not complete yet

**Security:** Job IDs are validated as UUIDs to prevent path traversal attacks.
""",
    responses={
        200: {"description": "File download successful"},
        404: {"description": "Job not found or failed", "model": DownloadErrorResponse},
        409: {"description": "Job not complete yet", "model": DownloadErrorResponse},
    },
)
async def download_job_output(
    jobId: str,
    file: str = Query(
        default="animation",
        description="Type of file to download",
        pattern="^(animation|metadata)$",
    ),
):
    """
    Download an artifact of a completed job.

    Raises:
        404: If job not found, invalid UUID, or job failed
        409: If job not complete yet
    """
    logger.info(f"Download request: jobId={jobId}, file={file}")

    if not is_valid_job_id(jobId):
        logger.warning(f"Invalid jobId format: {jobId}")
        return _error(404, "invalid_job_id", jobId, None, "Invalid job ID format. Must be a valid UUID.")

    job = get_job_queue().get_job(jobId)
    if job is None:
        logger.warning(f"Job not found: {jobId}")
        return _error(404, "not_found", jobId, None, f"Job not found: {jobId}")

    status = job.status.value

    if job.status == JobStatus.FAILED:
        logger.warning(f"Download attempted for failed job: {jobId}")
        return _error(
            404, "failed", jobId, status,
            f"Render failed: {job.error or 'Unknown error'}. File not available.",
        )

    if job.status != JobStatus.COMPLETED:
        logger.info(f"Download attempted for incomplete job: {jobId}, status={status}")
        return _error(
            409, "not_complete", jobId, status,
            f"Job is not complete yet. Current status: {status}",
        )

    filename, media_type = DOWNLOAD_FILES[file]
    file_path = get_outputs_path() / jobId / filename

    if not file_path.exists():
        logger.error(f"Output file not found: {file_path}")
        return _error(
            404, "file_not_found", jobId, status,
            f"Output file not found. The {file} file may have been cleaned up.",
        )

    logger.info(f"Serving download: {file_path}")
    download_name = f"{jobId}_{filename}"
    return FileResponse(
        path=str(file_path),
        media_type=media_type,
        filename=download_name,
        headers={"Content-Disposition": f'attachment; filename="{download_name}"'},
    )
