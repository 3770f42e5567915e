"""FastAPI middleware and the pipeline error taxonomy."""

from .error_handler import (
    ErrorHandlerMiddleware,
    PipelineError,
    InvalidSettingsError,
    JobNotFoundError,
    RenderFailureError,
    PublishFailureError,
    DependencyUnavailableError,
    LockLostError,
)

__all__ = [
    "ErrorHandlerMiddleware",
    "PipelineError",
    "InvalidSettingsError",
    "JobNotFoundError",
    "RenderFailureError",
    "PublishFailureError",
    "DependencyUnavailableError",
    "LockLostError",
]
