"""
Mapping from frame indices to animation time.

One loop advances the field phase (t * PHASE_RATE) by exactly 2*pi, so the
frame at index total_frames equals frame 0. The background gradient axis
turns by t / 100 radians, which also completes one turn per loop.

The live preview counts frames without bound while the batch renderer walks
a finite range, but both advance t by the same step per frame.
"""

import math
from typing import Iterator

from .field_engine import PHASE_RATE

LOOP_CONSTANT = 2 * math.pi / PHASE_RATE


def _check_total_frames(total_frames: int) -> None:
    if total_frames < 1:
        raise ValueError(f"total_frames must be at least 1, got {total_frames}")


def loop_time(frame_index: int, total_frames: int) -> float:
    """
    Animation time of a frame in a finite loop.

    Args:
        frame_index: Index in [0, total_frames]; total_frames closes the loop
        total_frames: Number of distinct frames in one loop

    Raises:
        ValueError: If the index is outside the loop
    """
    _check_total_frames(total_frames)
    if not 0 <= frame_index <= total_frames:
        raise ValueError(
            f"frame_index {frame_index} outside loop of {total_frames} frames"
        )
    return (frame_index / total_frames) * LOOP_CONSTANT


def time_step(total_frames: int) -> float:
    """Time advanced per frame for a loop of total_frames frames."""
    _check_total_frames(total_frames)
    return LOOP_CONSTANT / total_frames


def live_time(counter: int, frames_per_loop: int) -> float:
    """Animation time for an unbounded frame counter."""
    return counter * time_step(frames_per_loop)


def batch_times(total_frames: int) -> Iterator[tuple[int, float]]:
    """Yield (index, t) for the frames encoded in a loop, 0..total_frames-1."""
    for index in range(total_frames):
        yield index, loop_time(index, total_frames)


class LiveClock:
    """Monotonic frame counter for the interactive renderer. Never resets."""

    def __init__(self, frames_per_loop: int, start: int = 0):
        _check_total_frames(frames_per_loop)
        if start < 0:
            raise ValueError("start must be non-negative")
        self.frames_per_loop = frames_per_loop
        self.counter = start

    @property
    def time(self) -> float:
        return live_time(self.counter, self.frames_per_loop)

    def tick(self) -> float:
        """Return the current time, then advance one frame."""
        t = self.time
        self.counter += 1
        return t
