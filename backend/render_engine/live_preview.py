"""Interactive preview renderer driven by an unbounded frame counter."""

from typing import Optional

from app.models.layer_settings import LayerSettings
from .compositor import Frame, render_frame
from .loop_scheduler import LiveClock, live_time


class LivePreview:
    """
    Continuously running renderer.

    Advances time at the same per-frame rate as a batch loop of
    frames_per_loop frames, so both show the same motion.
    """

    def __init__(
        self,
        settings: LayerSettings,
        size: int,
        frames_per_loop: int,
        clock: Optional[LiveClock] = None,
    ):
        self.settings = settings
        self.size = size
        self.clock = clock or LiveClock(frames_per_loop)

    @property
    def frames_per_loop(self) -> int:
        return self.clock.frames_per_loop

    def next_frame(self) -> Frame:
        """Render the current counter value and advance the clock."""
        return render_frame(self.settings, self.clock.tick(), self.size)

    def frame_at(self, counter: int) -> Frame:
        """Render the frame the preview shows at a given counter value."""
        return render_frame(
            self.settings, live_time(counter, self.frames_per_loop), self.size
        )
