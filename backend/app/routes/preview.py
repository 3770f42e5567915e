"""
Preview endpoint rendering single frames of the live renderer.

Lets a client check settings before submitting a full render.
"""

import io
import logging

from fastapi import APIRouter, HTTPException
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response
from pydantic import ValidationError

from app.config import settings
from app.models import LayerSettings, PreviewRequest
from render_engine.live_preview import LivePreview

logger = logging.getLogger(__name__)

router = APIRouter()


def _render_png(preview: LivePreview, counter: int) -> bytes:
    buffer = io.BytesIO()
    preview.frame_at(counter).to_image().save(buffer, format="PNG")
    return buffer.getvalue()


@router.post(
    "/preview",
    summary="Render Preview Frame",
    description="""
Render one frame of the live preview as PNG.

`frame` is the live frame counter; with `framesPerLoop` equal to a batch
job's `totalFrames`, the preview frame matches that job's frame of the
same index.
""",
    responses={
        200: {"content": {"image/png": {}}, "description": "Rendered frame"},
        422: {"description": "Invalid settings or size"},
    },
)
async def render_preview(request: PreviewRequest) -> Response:
    try:
        layer_settings = LayerSettings.model_validate(request.settings)
    except ValidationError as e:
        raise HTTPException(
            status_code=422,
            detail={
                "error": "Invalid render settings",
                "errors": e.errors(include_url=False, include_context=False),
            },
        )

    if request.size > settings.MAX_RENDER_SIZE:
        raise HTTPException(
            status_code=422,
            detail=f"size must be at most {settings.MAX_RENDER_SIZE}",
        )

    preview = LivePreview(layer_settings, request.size, request.frames_per_loop)
    png = await run_in_threadpool(_render_png, preview, request.frame)
    logger.debug(f"Rendered preview frame {request.frame} at {request.size}px")

    return Response(content=png, media_type="image/png")
