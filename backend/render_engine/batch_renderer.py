"""
Finite-loop rendering.

Frames are produced strictly in index order. Only indices 0..total_frames-1
are rendered for an animation; index total_frames reproduces frame 0 and is
left to the player's repeat.
"""

import logging
from typing import Iterator

from app.models.layer_settings import LayerSettings
from .compositor import Frame, render_frame
from .loop_scheduler import batch_times, loop_time

logger = logging.getLogger(__name__)


def render_loop_frame(
    settings: LayerSettings, frame_index: int, total_frames: int, size: int
) -> Frame:
    """Render a single frame of a loop; frame_index may equal total_frames."""
    return render_frame(settings, loop_time(frame_index, total_frames), size)


def render_frames(
    settings: LayerSettings, start: int, stop: int, total_frames: int, size: int
) -> list[Frame]:
    """
    Render frames [start, stop) of a loop.

    Used by the worker to render one progress batch per executor call.
    """
    return [
        render_loop_frame(settings, index, total_frames, size)
        for index in range(start, min(stop, total_frames))
    ]


def iter_loop_frames(settings: LayerSettings, total_frames: int, size: int) -> Iterator[Frame]:
    """Yield every encoded frame of the loop in order."""
    logger.debug(f"Rendering loop: {total_frames} frames at {size}x{size}")
    for _, t in batch_times(total_frames):
        yield render_frame(settings, t, size)
