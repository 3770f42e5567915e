"""
Animated GIF encoding.

Frames are flattened onto a matte, palette-quantized as soon as they are
added, and written once with per-frame delay and infinite repeat. Keeping
only palette images bounds memory to one byte per pixel per frame.
"""

import io
import logging
from typing import Iterable, Optional

from PIL import Image

from .compositor import Frame
from .exceptions import EncoderUnavailableError, EncodingError

logger = logging.getLogger(__name__)

GIF_FORMAT = "GIF"
PALETTE_COLORS = 256
INFINITE_LOOP = 0


def ensure_gif_support() -> None:
    """
    Raise EncoderUnavailableError if Pillow cannot write GIF files.

    Raises:
        EncoderUnavailableError: GIF writer plugin not registered
    """
    Image.init()
    if GIF_FORMAT not in Image.SAVE:
        raise EncoderUnavailableError("Pillow was built without GIF write support")


class AnimationEncoder:
    """
    Incremental GIF encoder.

    Usage:
        encoder = AnimationEncoder(delay_ms=33)
        for frame in frames:
            encoder.add_frame(frame)
        gif_bytes = encoder.finish()
    """

    def __init__(
        self,
        delay_ms: int,
        loop: int = INFINITE_LOOP,
        matte: tuple[int, int, int] = (0, 0, 0),
    ):
        ensure_gif_support()
        if delay_ms <= 0:
            raise ValueError("delay_ms must be positive")
        self.delay_ms = delay_ms
        self.loop = loop
        self.matte = matte
        self._frames: list[Image.Image] = []
        self._size: Optional[int] = None

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    def add_frame(self, frame: Frame) -> None:
        """Quantize a frame and append it to the animation."""
        if self._size is None:
            self._size = frame.size
        elif frame.size != self._size:
            raise EncodingError(
                f"Frame size {frame.size} does not match animation size {self._size}"
            )

        rgba = frame.to_image()
        flat = Image.new("RGB", rgba.size, self.matte)
        flat.paste(rgba, mask=rgba.getchannel("A"))
        self._frames.append(
            flat.quantize(
                colors=PALETTE_COLORS,
                method=Image.Quantize.FASTOCTREE,
                dither=Image.Dither.NONE,
            )
        )

    def finish(self) -> bytes:
        """
        Write all frames as one GIF.

        Raises:
            EncodingError: No frames were added or Pillow failed to write
        """
        if not self._frames:
            raise EncodingError("Cannot encode an animation without frames")

        buffer = io.BytesIO()
        first, rest = self._frames[0], self._frames[1:]
        try:
            first.save(
                buffer,
                format=GIF_FORMAT,
                save_all=True,
                append_images=rest,
                duration=self.delay_ms,
                loop=self.loop,
                disposal=1,
            )
        except (OSError, ValueError) as e:
            logger.error(f"GIF encoding failed: {e}")
            raise EncodingError(f"GIF encoding failed: {e}") from e

        data = buffer.getvalue()
        logger.info(
            f"Encoded {len(self._frames)} frames ({len(data)} bytes, "
            f"{self.delay_ms}ms delay)"
        )
        return data


def encode_animation(
    frames: Iterable[Frame], delay_ms: int, loop: int = INFINITE_LOOP
) -> bytes:
    """Encode an ordered frame sequence into one animated GIF."""
    encoder = AnimationEncoder(delay_ms=delay_ms, loop=loop)
    for frame in frames:
        encoder.add_frame(frame)
    return encoder.finish()
