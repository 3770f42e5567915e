"""
Centralized error handling middleware for FastAPI.

Provides consistent error responses and logging for all API routes, and the
error taxonomy shared by the job queue and render worker.
"""

import logging
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class PipelineError(Exception):
    """Base exception for render pipeline errors."""

    def __init__(self, message: str, status_code: int = 500, details: Any = None):
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class InvalidSettingsError(PipelineError):
    """Raised when submitted settings are out of bounds. Never enqueued."""

    def __init__(self, errors: list[dict]):
        super().__init__(
            message="Invalid render settings",
            status_code=422,
            details={"errors": errors},
        )


class JobNotFoundError(PipelineError):
    """Raised when job ID is not found."""

    def __init__(self, job_id: str):
        super().__init__(
            message=f"Job not found: {job_id}",
            status_code=404,
            details={"job_id": job_id},
        )


class RenderFailureError(PipelineError):
    """Raised when compositing or encoding fails. Retried by the queue."""

    def __init__(self, job_id: str, reason: str):
        super().__init__(
            message=f"Render failed: {reason}",
            status_code=500,
            details={"job_id": job_id, "reason": reason},
        )


class PublishFailureError(PipelineError):
    """Raised when the storage backend rejects or cannot receive an upload."""

    def __init__(self, reason: str):
        super().__init__(
            message=f"Publish failed: {reason}",
            status_code=502,
            details={"reason": reason},
        )


class DependencyUnavailableError(PipelineError):
    """Raised when a required rendering capability is missing. Not retried."""

    def __init__(self, dependency: str, reason: str):
        super().__init__(
            message=f"Required dependency '{dependency}' is not available: {reason}",
            status_code=503,
            details={"dependency": dependency},
        )


class LockLostError(PipelineError):
    """Raised when a worker no longer holds the lock of the job it is processing."""

    def __init__(self, job_id: str):
        super().__init__(
            message=f"Lock lost for job {job_id}",
            status_code=409,
            details={"job_id": job_id},
        )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Middleware that catches unhandled exceptions and returns consistent error responses.
    """

    async def dispatch(self, request: Request, call_next):
        try:
            response = await call_next(request)
            return response

        except PipelineError as e:
            logger.error(
                f"PipelineError: {e.message}",
                extra={"status_code": e.status_code, "details": e.details},
            )
            return JSONResponse(
                status_code=e.status_code,
                content={
                    "error": e.message,
                    "details": e.details,
                },
            )

        except Exception as e:
            # Log full stack trace for unexpected errors
            logger.exception(f"Unhandled exception: {str(e)}")
            return JSONResponse(
                status_code=500,
                content={
                    "error": "Internal server error",
                    "message": str(e) if logger.isEnabledFor(logging.DEBUG) else None,
                },
            )
