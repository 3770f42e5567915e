"""
Gen1 Render API

Main FastAPI application entry point.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.middleware import ErrorHandlerMiddleware
from app.routes import download, preview, render
from app.services.cleanup_scheduler import (
    get_scheduler_status,
    start_cleanup_scheduler,
    stop_cleanup_scheduler,
)
from app.services.render_worker import RenderWorker
from app.services.service_factory import get_job_queue, get_outputs_path, get_publisher

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

worker: Optional[RenderWorker] = None


def create_worker() -> RenderWorker:
    """Build a render worker wired to the configured queue and publisher."""
    return RenderWorker(
        get_job_queue(),
        get_publisher(),
        str(get_outputs_path()),
        frame_delay_ms=settings.RENDER_FRAME_DELAY_MS,
        progress_every=settings.PROGRESS_REPORT_EVERY,
        poll_interval=settings.WORKER_POLL_INTERVAL,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown events."""
    global worker

    # Startup
    start_cleanup_scheduler()
    worker_task = None
    if settings.RUN_WORKER_IN_PROCESS:
        worker = create_worker()
        worker_task = asyncio.create_task(worker.run_forever())
        logger.info("In-process render worker started")

    yield

    # Shutdown
    if worker is not None:
        worker.stop()
        if worker_task is not None:
            await worker_task
        worker = None
    stop_cleanup_scheduler()

app = FastAPI(
    title="Gen1 Render API",
    description="Procedural looping animation renderer with content-addressed publishing",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Error handling middleware
app.add_middleware(ErrorHandlerMiddleware)

# Register routers
app.include_router(render.router, prefix="/api", tags=["Render"])
app.include_router(preview.router, prefix="/api", tags=["Preview"])
app.include_router(download.router, prefix="/api", tags=["Download"])


@app.get("/")
async def root():
    """Health check endpoint"""
    return {
        "status": "ok",
        "service": "Gen1 Render API",
        "version": "1.0.0",
    }


@app.get("/health")
async def health_check():
    """
    Detailed health check endpoint.

    Reports the in-process worker, the maintenance scheduler and the
    configured storage backend.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": "1.0.0",
        "storageBackend": settings.STORAGE_BACKEND,
        "worker": worker.status() if worker is not None else None,
        "scheduler": get_scheduler_status(),
    }
