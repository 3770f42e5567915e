"""
Background render worker.

Claims queued jobs one at a time, renders every frame of the loop in index
order, encodes the animation, publishes it and records the result in the
job store. Frames are rendered in batches on a thread executor; between
batches the worker reports progress, which also renews its job lock, and
yields to the event loop.
"""

import asyncio
import logging
import uuid
from pathlib import Path
from typing import Optional

from app.middleware.error_handler import (
    DependencyUnavailableError,
    LockLostError,
    PublishFailureError,
    RenderFailureError,
)
from app.models.job_record import ErrorKind, RenderJob
from app.models.layer_settings import LayerSettings
from render_engine.batch_renderer import render_frames
from render_engine.encoder import AnimationEncoder
from render_engine.exceptions import EncoderUnavailableError
from .job_queue import JobQueue
from .publisher import Publisher

logger = logging.getLogger(__name__)

# Progress sub-ranges: drawing, encoding, then the two uploads.
RENDER_PROGRESS_START = 0
RENDER_PROGRESS_END = 80
ENCODE_PROGRESS_END = 85
ANIMATION_UPLOAD_PROGRESS = 92
METADATA_UPLOAD_PROGRESS = 99

_STAGE_PROGRESS = {
    "animation": ANIMATION_UPLOAD_PROGRESS,
    "metadata": METADATA_UPLOAD_PROGRESS,
}


def render_progress(frames_done: int, total_frames: int) -> int:
    """Progress percentage after frames_done of total_frames are drawn."""
    span = RENDER_PROGRESS_END - RENDER_PROGRESS_START
    return RENDER_PROGRESS_START + int(span * frames_done / total_frames)


def _render_batch(
    encoder: AnimationEncoder,
    settings: LayerSettings,
    start: int,
    stop: int,
    total_frames: int,
    size: int,
) -> int:
    """Render frames [start, stop) and feed them to the encoder in order."""
    frames = render_frames(settings, start, stop, total_frames, size)
    for frame in frames:
        encoder.add_frame(frame)
    return len(frames)


class RenderWorker:
    """
    Serial render worker.

    Args:
        queue: Job queue to claim work from
        publisher: Publishes finished animations
        outputs_path: Directory for local copies of published artifacts
        frame_delay_ms: Per-frame delay of encoded animations
        progress_every: Frames rendered between progress reports
        poll_interval: Seconds to wait when the queue is empty
        worker_id: Lock token; generated when omitted
    """

    def __init__(
        self,
        queue: JobQueue,
        publisher: Publisher,
        outputs_path: str,
        *,
        frame_delay_ms: int = 33,
        progress_every: int = 25,
        poll_interval: float = 1.0,
        worker_id: Optional[str] = None,
    ):
        self.queue = queue
        self.publisher = publisher
        self.outputs_path = Path(outputs_path)
        self.frame_delay_ms = frame_delay_ms
        self.progress_every = max(1, progress_every)
        self.poll_interval = poll_interval
        self.token = worker_id or f"worker_{uuid.uuid4()}"
        self.current_job_id: Optional[str] = None
        self.jobs_processed = 0
        self._stopping = asyncio.Event()

    async def run_forever(self) -> None:
        """Process jobs until stop() is called."""
        logger.info(f"[WORKER] {self.token} started")
        while not self._stopping.is_set():
            try:
                processed = await self.run_once()
            except Exception:
                logger.exception(f"[WORKER] {self.token} failed to poll queue")
                processed = False

            if not processed:
                try:
                    await asyncio.wait_for(self._stopping.wait(), timeout=self.poll_interval)
                except asyncio.TimeoutError:
                    pass
        logger.info(f"[WORKER] {self.token} stopped")

    def stop(self) -> None:
        self._stopping.set()

    async def run_once(self) -> bool:
        """
        Claim and process one job.

        Returns:
            bool: True if a job was processed, False if none was ready
        """
        job = self.queue.claim_next(self.token)
        if job is None:
            return False
        await self.process_job(job)
        return True

    def status(self) -> dict:
        return {
            "workerId": self.token,
            "running": not self._stopping.is_set(),
            "currentJobId": self.current_job_id,
            "jobsProcessed": self.jobs_processed,
        }

    async def process_job(self, job: RenderJob) -> None:
        """Render, encode and publish a claimed job, recording the outcome."""
        self.current_job_id = job.id
        logger.info(
            f"[WORKER] Processing job {job.id}: {job.total_frames} frames at "
            f"{job.size}x{job.size} for {job.requester}"
        )

        try:
            settings = LayerSettings.model_validate(job.settings)
            animation, frame_count = await self._render(job, settings)

            async def on_stage(stage: str) -> None:
                self.queue.heartbeat(job.id, self.token, _STAGE_PROGRESS[stage])

            published = await self.publisher.publish_artifact(
                animation=animation,
                attributes=job.settings,
                created_at=job.created_at,
                frame_count=frame_count,
                size=job.size,
                frame_delay_ms=self.frame_delay_ms,
                on_stage=on_stage,
            )
            self._save_outputs(job.id, animation, published.metadata_bytes)
            self.queue.complete(job.id, self.token, published.result)

        except LockLostError:
            logger.warning(f"[WORKER] Lost lock on job {job.id}; abandoning it")

        except DependencyUnavailableError as e:
            self._fail(job, e.message, ErrorKind.DEPENDENCY_UNAVAILABLE, retryable=False)

        except PublishFailureError as e:
            self._fail(job, e.message, ErrorKind.PUBLISH, retryable=False)

        except RenderFailureError as e:
            self._fail(job, e.message, ErrorKind.RENDER, retryable=True)

        except Exception as e:
            logger.exception(f"[WORKER] Unexpected error in job {job.id}")
            self._fail(job, str(e), ErrorKind.RENDER, retryable=True)

        finally:
            self.current_job_id = None
            self.jobs_processed += 1

    async def _render(self, job: RenderJob, settings: LayerSettings) -> tuple[bytes, int]:
        loop = asyncio.get_running_loop()
        total = job.total_frames

        try:
            encoder = AnimationEncoder(delay_ms=self.frame_delay_ms)
            frames_done = 0
            for start in range(0, total, self.progress_every):
                stop = min(start + self.progress_every, total)
                frames_done += await loop.run_in_executor(
                    None, _render_batch, encoder, settings, start, stop, total, job.size
                )
                self.queue.heartbeat(job.id, self.token, render_progress(frames_done, total))
                logger.debug(f"[WORKER] Job {job.id}: {frames_done}/{total} frames")

            animation = await loop.run_in_executor(None, encoder.finish)
            self.queue.heartbeat(job.id, self.token, ENCODE_PROGRESS_END)

        except (LockLostError, DependencyUnavailableError):
            raise
        except EncoderUnavailableError as e:
            raise DependencyUnavailableError("GIF encoder", str(e)) from e
        except Exception as e:
            logger.exception(f"[WORKER] Render failed for job {job.id}")
            raise RenderFailureError(job.id, str(e)) from e

        return animation, encoder.frame_count

    def _fail(self, job: RenderJob, error: str, kind: ErrorKind, retryable: bool) -> None:
        try:
            self.queue.fail(job.id, self.token, error, kind, retryable=retryable)
        except LockLostError:
            logger.warning(f"[WORKER] Lost lock on job {job.id} before recording failure")

    def _save_outputs(self, job_id: str, animation: bytes, metadata: bytes) -> Optional[Path]:
        """
        Keep local copies of the published artifact for download.

        Returns:
            Path: Output directory, or None if writing failed
        """
        output_dir = self.outputs_path / job_id
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
            (output_dir / "animation.gif").write_bytes(animation)
            (output_dir / "metadata.json").write_bytes(metadata)
        except OSError as e:
            logger.error(f"[WORKER] Failed to save outputs for {job_id}: {e}")
            return None
        logger.info(f"[WORKER] Saved outputs: {output_dir}")
        return output_dir
