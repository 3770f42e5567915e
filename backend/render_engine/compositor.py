"""
Frame compositor.

Renders one RGBA frame from LayerSettings at animation time t. Layers are
composited in a fixed order: flow-field background, flow lines, contours.
"""

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np
from PIL import Image, ImageDraw

from app.models.layer_settings import LayerSettings, hex_to_rgb
from .field_engine import evaluate, flow_direction, normalized

# Weight of the field noise against the linear gradient position.
BACKGROUND_NOISE_WEIGHT = 0.35

LINE_COLOR = (255, 255, 255, 153)  # white at 60% alpha
LINE_WIDTH = 1

CONTOUR_GRID_SIZE = 64
CONTOUR_COLOR = (100, 150, 255)
CONTOUR_MAX_ALPHA = 0.3
CONTOUR_ROUGH_FACTOR = 0.3


@dataclass(frozen=True)
class Frame:
    """Immutable square RGBA raster."""

    size: int
    t: float
    pixels: bytes

    def to_image(self) -> Image.Image:
        return Image.frombytes("RGBA", (self.size, self.size), self.pixels)

    def to_array(self) -> np.ndarray:
        """Read-only (size, size, 4) uint8 view of the pixels."""
        return np.frombuffer(self.pixels, dtype=np.uint8).reshape(self.size, self.size, 4)


def _pixel_centers(size: int) -> tuple[np.ndarray, np.ndarray]:
    coords = np.arange(size, dtype=np.float64) + 0.5
    return np.meshgrid(coords, coords)


def render_flow_field(settings: LayerSettings, t: float, size: int) -> Optional[Image.Image]:
    """
    Opaque background blending color1 into color2.

    The blend factor combines the pixel's position along a gradient axis,
    rotated by (t / 100) * direction around the canvas centre, with the
    normalised flow-field value at that pixel.
    """
    layer = settings.flow_field
    if not layer.enabled:
        return None

    angle = math.radians(layer.rotation) + (t / 100.0) * layer.direction
    center = size / 2.0
    x0 = center + math.cos(angle) * size
    y0 = center + math.sin(angle) * size
    x1 = center - math.cos(angle) * size
    y1 = center - math.sin(angle) * size
    axis_x = x1 - x0
    axis_y = y1 - y0

    xs, ys = _pixel_centers(size)
    position = ((xs - x0) * axis_x + (ys - y0) * axis_y) / (axis_x**2 + axis_y**2)
    noise = normalized(layer, xs, ys, t)
    factor = np.clip(
        (1.0 - BACKGROUND_NOISE_WEIGHT) * np.clip(position, 0.0, 1.0)
        + BACKGROUND_NOISE_WEIGHT * noise,
        0.0,
        1.0,
    )

    start = np.array(hex_to_rgb(layer.color1), dtype=np.float64)
    end = np.array(hex_to_rgb(layer.color2), dtype=np.float64)
    rgb = start + (end - start) * factor[..., np.newaxis]

    rgba = np.empty((size, size, 4), dtype=np.uint8)
    rgba[..., :3] = np.rint(rgb).astype(np.uint8)
    rgba[..., 3] = 255
    return Image.fromarray(rgba, "RGBA")


def line_grid_size(size: int, density: float) -> int:
    """Cells per axis of the flow-line grid."""
    return int(math.floor(size * density))


def render_flow_lines(settings: LayerSettings, t: float, size: int) -> Optional[Image.Image]:
    """Transparent overlay with one segment per grid cell."""
    layer = settings.flow_lines
    if not layer.enabled:
        return None

    overlay = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    grid = line_grid_size(size, layer.line_density)
    if grid < 1:
        return overlay

    cell = size / grid
    corners = np.arange(grid, dtype=np.float64) * cell
    xs, ys = np.meshgrid(corners, corners)

    grad_x, grad_y = flow_direction(settings, xs, ys, t)
    length = np.hypot(grad_x, grad_y)
    mask = length > 0
    safe_length = np.where(mask, length, 1.0)
    dir_x = grad_x / safe_length
    dir_y = grad_y / safe_length

    theta = math.radians(layer.rotation)
    cos_t = math.cos(theta)
    sin_t = math.sin(theta)
    final_x = (dir_x * cos_t - dir_y * sin_t) * layer.direction
    final_y = (dir_x * sin_t + dir_y * cos_t) * abs(layer.direction)

    start_x = xs + cell / 2
    start_y = ys + cell / 2
    end_x = start_x + final_x * layer.line_length
    end_y = start_y + final_y * layer.line_length

    draw = ImageDraw.Draw(overlay)
    segments = zip(
        start_x[mask].tolist(),
        start_y[mask].tolist(),
        end_x[mask].tolist(),
        end_y[mask].tolist(),
    )
    for sx, sy, ex, ey in segments:
        draw.line([(sx, sy), (ex, ey)], fill=LINE_COLOR, width=LINE_WIDTH)
    return overlay


def contour_bands(values: np.ndarray, levels: int) -> np.ndarray:
    """
    Band index of each value, or -1 outside [-1, 1).

    Band i covers [(i / levels) * 2 - 1, next edge); the last band closes at 1.
    """
    edges = np.array([(i / levels) * 2 - 1 for i in range(levels)] + [1.0])
    bands = np.searchsorted(edges, values, side="right") - 1
    return np.where((bands >= 0) & (bands < levels), bands, -1)


def render_contours(settings: LayerSettings, t: float, size: int) -> Optional[Image.Image]:
    """Translucent contour bands on a fixed 64x64 grid."""
    layer = settings.contour
    if not layer.enabled:
        return None

    cell = size / CONTOUR_GRID_SIZE
    centers = (np.arange(CONTOUR_GRID_SIZE, dtype=np.float64) + 0.5) * cell
    cx, cy = np.meshgrid(centers, centers)
    values = evaluate(layer, cx, cy, t)

    bands = contour_bands(values, layer.levels)
    alpha = np.where(bands >= 0, (bands + 1) / layer.levels * CONTOUR_MAX_ALPHA, 0.0)

    if layer.smoothness > 0:
        neighbours = (
            evaluate(layer, cx - cell, cy, t)
            + evaluate(layer, cx + cell, cy, t)
            + evaluate(layer, cx, cy - cell, t)
            + evaluate(layer, cx, cy + cell, t)
        ) / 4
        smooth = np.abs(values - neighbours) < layer.smoothness
        alpha = alpha * np.where(smooth, 1.0, CONTOUR_ROUGH_FACTOR)

    cells = np.zeros((CONTOUR_GRID_SIZE, CONTOUR_GRID_SIZE, 4), dtype=np.uint8)
    cells[..., 0], cells[..., 1], cells[..., 2] = CONTOUR_COLOR
    cells[..., 3] = np.rint(alpha * 255).astype(np.uint8)

    index = np.minimum(
        (np.arange(size) / cell).astype(np.int64), CONTOUR_GRID_SIZE - 1
    )
    pixels = cells[index][:, index]
    return Image.fromarray(np.ascontiguousarray(pixels), "RGBA")


def render_frame(settings: LayerSettings, t: float, size: int) -> Frame:
    """
    Render one frame.

    Args:
        settings: Validated layer configuration
        t: Animation time (see loop_scheduler)
        size: Canvas width and height in pixels

    Returns:
        Frame: RGBA raster, transparent where no layer painted
    """
    canvas = Image.new("RGBA", (size, size), (0, 0, 0, 0))

    background = render_flow_field(settings, t, size)
    if background is not None:
        canvas = background

    for overlay in (render_flow_lines(settings, t, size), render_contours(settings, t, size)):
        if overlay is not None:
            canvas = Image.alpha_composite(canvas, overlay)

    return Frame(size=size, t=t, pixels=canvas.tobytes())
