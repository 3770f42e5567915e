"""Custom exceptions for the render engine."""


class RenderEngineError(Exception):
    """Base exception for frame rendering and encoding errors."""

    pass


class EncoderUnavailableError(RenderEngineError):
    """The runtime lacks the animated image codec; retrying cannot help."""

    pass


class EncodingError(RenderEngineError):
    """Encoder failed while writing the animation."""

    pass
