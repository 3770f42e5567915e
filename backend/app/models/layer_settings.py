"""
Pydantic models for the three animation layers.

A LayerSettings value is validated once at the submission boundary and then
passed unchanged through every render path. The aliases are the camelCase
keys of the settings document, so dumping by alias reproduces the submitted
payload.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

HEX_COLOR_PATTERN = r"^#[0-9a-fA-F]{6}$"

# Upper bound on line density keeps the flow-line grid at most
# floor(size * 0.5) cells per axis.
MAX_LINE_DENSITY = 0.5

_LAYER_CONFIG = ConfigDict(
    frozen=True,
    extra="forbid",
    populate_by_name=True,
    allow_inf_nan=False,
)


class FlowFieldLayer(BaseModel):
    """Background gradient between two colours, modulated by a scalar field."""

    model_config = _LAYER_CONFIG

    enabled: bool = Field(default=True, description="Draw the background layer")
    base_frequency: float = Field(
        default=0.02,
        alias="baseFrequency",
        gt=0,
        le=1.0,
        description="Spatial frequency of the first octave",
    )
    amplitude: float = Field(default=1.0, ge=0, le=10.0)
    octaves: int = Field(default=1, ge=1, le=8)
    color1: str = Field(default="#4ade80", pattern=HEX_COLOR_PATTERN)
    color2: str = Field(default="#22d3ee", pattern=HEX_COLOR_PATTERN)
    rotation: float = Field(
        default=0.5,
        ge=-360.0,
        le=360.0,
        description="Gradient axis offset in degrees",
    )
    direction: Literal[-1, 1] = Field(
        default=1, description="1 for clockwise, -1 for counterclockwise"
    )


class FlowLinesLayer(BaseModel):
    """Short line segments following the local field gradient."""

    model_config = _LAYER_CONFIG

    enabled: bool = Field(default=True, description="Draw the flow-line layer")
    base_frequency: float = Field(default=0.01, alias="baseFrequency", gt=0, le=1.0)
    amplitude: float = Field(default=1.0, ge=0, le=10.0)
    octaves: int = Field(default=1, ge=1, le=8)
    line_length: float = Field(
        default=20.0,
        alias="lineLength",
        ge=1.0,
        le=200.0,
        description="Segment length in pixels",
    )
    line_density: float = Field(
        default=0.1,
        alias="lineDensity",
        gt=0,
        le=MAX_LINE_DENSITY,
        description="Grid cells per pixel along each axis",
    )
    rotation: float = Field(default=0.3, ge=-360.0, le=360.0)
    direction: Literal[-1, 1] = Field(default=1)


class ContourLayer(BaseModel):
    """Translucent bands over quantized levels of a scalar field."""

    model_config = _LAYER_CONFIG

    enabled: bool = Field(default=True, description="Draw the contour layer")
    base_frequency: float = Field(default=0.01, alias="baseFrequency", gt=0, le=1.0)
    amplitude: float = Field(default=1.0, ge=0, le=10.0)
    octaves: int = Field(default=4, ge=1, le=8)
    levels: int = Field(default=5, ge=2, le=64)
    smoothness: float = Field(default=0.3, ge=0, le=1.0)


class LayerSettings(BaseModel):
    """
    Complete, immutable render configuration for one animation.

    Attributes:
        flow_field: Background layer (wire key ``flowField``)
        flow_lines: Line layer (wire key ``flowFields``)
        contour: Contour layer
        contour_affects_flow: Blend the contour gradient into the line field
    """

    model_config = _LAYER_CONFIG

    flow_field: FlowFieldLayer = Field(default_factory=FlowFieldLayer, alias="flowField")
    flow_lines: FlowLinesLayer = Field(default_factory=FlowLinesLayer, alias="flowFields")
    contour: ContourLayer = Field(default_factory=ContourLayer)
    contour_affects_flow: bool = Field(default=True, alias="contourAffectsFlow")

    def to_attributes(self) -> dict:
        """Serialize with wire keys, as stored in jobs and metadata documents."""
        return self.model_dump(by_alias=True, mode="json")


def hex_to_rgb(color: str) -> tuple[int, int, int]:
    """Convert ``#rrggbb`` to an (r, g, b) tuple."""
    value = color.lstrip("#")
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)
