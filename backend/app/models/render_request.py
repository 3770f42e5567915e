"""Pydantic models for render job submission and preview requests."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class RenderRequest(BaseModel):
    """
    Request body for POST /api/render endpoint.

    Settings are kept as a raw mapping here and validated by the job queue,
    so out-of-bounds values are reported as one InvalidSettingsError.

    Attributes:
        settings: LayerSettings in wire format
        wallet_address: Requester reference used for metadata and rate limiting
        total_frames: Frames per loop (defaults to RENDER_TOTAL_FRAMES)
        size: Canvas width and height (defaults to RENDER_SIZE)
    """

    settings: dict[str, Any] = Field(
        ...,
        description="Layer settings: flowField, flowFields, contour, contourAffectsFlow",
    )
    wallet_address: str = Field(
        ...,
        alias="walletAddress",
        min_length=1,
        max_length=128,
        description="Wallet address or other opaque requester reference",
    )
    total_frames: Optional[int] = Field(
        None,
        alias="totalFrames",
        description="Frames per loop",
    )
    size: Optional[int] = Field(
        None,
        description="Canvas width and height in pixels",
    )

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "examples": [
                {
                    "settings": {
                        "flowField": {
                            "baseFrequency": 0.02,
                            "amplitude": 1,
                            "octaves": 1,
                            "color1": "#4ade80",
                            "color2": "#22d3ee",
                            "rotation": 0.5,
                            "direction": 1,
                        },
                        "flowFields": {
                            "baseFrequency": 0.01,
                            "amplitude": 1,
                            "octaves": 1,
                            "lineLength": 20,
                            "lineDensity": 0.1,
                            "rotation": 0.3,
                            "direction": 1,
                        },
                        "contour": {
                            "baseFrequency": 0.01,
                            "amplitude": 1,
                            "octaves": 4,
                            "levels": 5,
                            "smoothness": 0.3,
                        },
                        "contourAffectsFlow": True,
                    },
                    "walletAddress": "0x0000000000000000000000000000000000000001",
                    "totalFrames": 1000,
                    "size": 512,
                }
            ]
        },
    }


class PreviewRequest(BaseModel):
    """
    Request body for POST /api/preview endpoint.

    Attributes:
        settings: LayerSettings in wire format
        frame: Live frame counter value to render
        frames_per_loop: Frames per loop the live clock advances over
        size: Canvas width and height
    """

    settings: dict[str, Any]
    frame: int = Field(0, ge=0, description="Live frame counter")
    frames_per_loop: int = Field(
        1000,
        alias="framesPerLoop",
        ge=1,
        description="Frames per loop of the live clock",
    )
    size: int = Field(256, ge=16, description="Canvas width and height in pixels")

    model_config = {"populate_by_name": True}
