"""Pydantic models for API request/response schemas and job records."""

from .download_response import DownloadErrorResponse
from .job_record import ErrorKind, JobResult, JobStatus, RenderJob
from .layer_settings import ContourLayer, FlowFieldLayer, FlowLinesLayer, LayerSettings
from .render_request import PreviewRequest, RenderRequest
from .render_response import RenderResponse
from .status_response import StatusResponse

__all__ = [
    "ContourLayer",
    "DownloadErrorResponse",
    "ErrorKind",
    "FlowFieldLayer",
    "FlowLinesLayer",
    "JobResult",
    "JobStatus",
    "LayerSettings",
    "PreviewRequest",
    "RenderJob",
    "RenderRequest",
    "RenderResponse",
    "StatusResponse",
]
