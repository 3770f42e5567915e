"""
Application configuration using Pydantic Settings.

All environment variables are accessed through this config object.
Never use os.getenv() directly in business logic.
"""

from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application Configuration
    ALLOWED_ORIGINS: List[str] = Field(
        default=["http://localhost:3000"],
        description="CORS allowed origins",
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Root log level for the API and worker processes",
    )
    RATE_LIMIT_REQUESTS: int = Field(
        default=10,
        description="Render submissions allowed per requester per window",
    )
    RATE_LIMIT_WINDOW: int = Field(
        default=3600,
        description="Rate limit time window in seconds",
    )

    # Storage Configuration
    STORAGE_PATH: str = Field(
        default="/tmp/gen1",
        description="Root directory for job records, outputs and local content",
    )

    # Render Configuration
    RENDER_SIZE: int = Field(
        default=512,
        description="Default canvas width and height in pixels",
    )
    RENDER_TOTAL_FRAMES: int = Field(
        default=1000,
        description="Default frames per loop",
    )
    RENDER_FRAME_DELAY_MS: int = Field(
        default=33,
        description="Per-frame delay of the encoded animation (about 30 fps)",
    )
    MAX_RENDER_SIZE: int = Field(
        default=1024,
        description="Largest canvas a request may ask for",
    )
    MAX_TOTAL_FRAMES: int = Field(
        default=2000,
        description="Largest loop length a request may ask for",
    )
    PROGRESS_REPORT_EVERY: int = Field(
        default=25,
        description="Frames rendered between progress reports and lock renewals",
    )

    # Queue Configuration
    JOB_ATTEMPTS: int = Field(
        default=3,
        description="Total attempts per job before it is marked failed",
    )
    JOB_BACKOFF_DELAY_MS: int = Field(
        default=2000,
        description="Retry delay after the first failure, doubled per attempt",
    )
    JOB_LOCK_DURATION: int = Field(
        default=120,
        description=(
            "Seconds a worker's lock stays valid without a progress report. "
            "Must exceed the time to render PROGRESS_REPORT_EVERY frames at "
            "MAX_RENDER_SIZE, or the encode and upload steps."
        ),
    )
    JOB_STALLED_INTERVAL: int = Field(
        default=30,
        description="Seconds between scans for expired job locks",
    )
    JOB_MAX_STALLED_COUNT: int = Field(
        default=1,
        description="Times a job may be recovered from a stalled worker",
    )
    WORKER_POLL_INTERVAL: float = Field(
        default=1.0,
        description="Seconds an idle worker waits before polling the queue",
    )
    RUN_WORKER_IN_PROCESS: bool = Field(
        default=True,
        description="Run a render worker inside the API process",
    )

    # Retention Configuration
    KEEP_COMPLETED_JOBS: int = Field(
        default=100,
        description="Completed job records kept after pruning",
    )
    KEEP_FAILED_JOBS: int = Field(
        default=500,
        description="Failed job records kept after pruning",
    )
    CLEANUP_INTERVAL_MINUTES: int = Field(
        default=60,
        description="Minutes between retention pruning runs",
    )

    # Publishing Configuration
    STORAGE_BACKEND: Literal["local", "pinata"] = Field(
        default="local",
        description="Content-addressed storage backend",
    )
    PINATA_JWT: str = Field(
        default="",
        description="Pinata API JWT (required for the pinata backend)",
    )
    PINATA_API_URL: str = Field(
        default="https://api.pinata.cloud",
        description="Pinata API base URL",
    )
    PUBLISH_ATTEMPTS: int = Field(
        default=3,
        description="Upload attempts per artifact before the job fails",
    )
    PUBLISH_BACKOFF_DELAY_MS: int = Field(
        default=1000,
        description="Delay after the first failed upload, doubled per attempt",
    )
    NFT_NAME_PREFIX: str = Field(
        default="Gen1 NFT",
        description="Name prefix of published metadata documents",
    )
    NFT_DESCRIPTION: str = Field(
        default="Generative Gen1 NFT",
        description="Description of published metadata documents",
    )


# Global settings instance
settings = Settings()
