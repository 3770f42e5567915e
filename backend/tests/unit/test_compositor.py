"""
Unit Tests for the frame compositor

Tests layer rendering, determinism and loop closure.
"""

import dataclasses

import numpy as np
import pytest

from app.models.layer_settings import (
    ContourLayer,
    FlowFieldLayer,
    FlowLinesLayer,
    LayerSettings,
)
from render_engine.batch_renderer import render_loop_frame
from render_engine.compositor import (
    CONTOUR_MAX_ALPHA,
    contour_bands,
    line_grid_size,
    render_contours,
    render_flow_field,
    render_flow_lines,
    render_frame,
)

SIZE = 64


def _only(**layers) -> LayerSettings:
    """Settings with every layer disabled except the ones given."""
    base = {
        "flow_field": FlowFieldLayer(enabled=False),
        "flow_lines": FlowLinesLayer(enabled=False),
        "contour": ContourLayer(enabled=False),
    }
    base.update(layers)
    return LayerSettings(**base)


class TestRenderFrame:
    """Tests for render_frame()."""

    def test_frame_dimensions(self):
        frame = render_frame(LayerSettings(), 0.0, SIZE)

        assert frame.size == SIZE
        assert len(frame.pixels) == SIZE * SIZE * 4
        assert frame.to_image().size == (SIZE, SIZE)

    def test_deterministic(self):
        settings = LayerSettings()

        first = render_frame(settings, 123.4, SIZE)
        second = render_frame(settings, 123.4, SIZE)

        assert first.pixels == second.pixels

    def test_frame_is_immutable(self):
        frame = render_frame(LayerSettings(), 0.0, 16)
        with pytest.raises(dataclasses.FrozenInstanceError):
            frame.pixels = b""

    def test_all_layers_disabled_is_transparent(self):
        frame = render_frame(_only(), 10.0, 16)
        assert frame.to_array()[..., 3].max() == 0

    def test_time_changes_frame(self):
        settings = LayerSettings()
        assert render_frame(settings, 0.0, SIZE).pixels != render_frame(settings, 50.0, SIZE).pixels

    @pytest.mark.parametrize("total_frames", [2, 10, 1000])
    def test_seamless_loop(self, total_frames):
        settings = LayerSettings()

        first = render_loop_frame(settings, 0, total_frames, SIZE).to_array().astype(int)
        closing = render_loop_frame(settings, total_frames, total_frames, SIZE).to_array().astype(int)

        diff = np.abs(first - closing)
        assert (diff > 2).mean() < 0.005


class TestFlowField:
    """Tests for the background layer."""

    def test_background_is_opaque(self):
        image = render_flow_field(LayerSettings(), 0.0, SIZE)
        assert np.asarray(image)[..., 3].min() == 255

    def test_background_between_colors(self):
        settings = _only(flow_field=FlowFieldLayer(color1="#000000", color2="#ff0000"))
        pixels = np.asarray(render_flow_field(settings, 0.0, SIZE))

        assert pixels[..., 1].max() == 0
        assert pixels[..., 2].max() == 0
        assert pixels[..., 0].max() > pixels[..., 0].min()

    def test_disabled_returns_none(self):
        assert render_flow_field(_only(), 0.0, SIZE) is None


class TestFlowLines:
    """Tests for the flow-line layer."""

    def test_grid_size(self):
        assert line_grid_size(512, 0.5) == 256
        assert line_grid_size(512, 0.1) == 51
        assert line_grid_size(8, 0.1) == 0

    def test_lines_drawn_with_partial_alpha(self):
        settings = _only(flow_lines=FlowLinesLayer(line_density=0.25))
        pixels = np.asarray(render_flow_lines(settings, 0.0, SIZE))

        painted = pixels[..., 3] > 0
        assert painted.any()
        assert pixels[..., 3].max() < 255

    def test_empty_grid_gives_blank_overlay(self):
        settings = _only(flow_lines=FlowLinesLayer(line_density=0.01))
        pixels = np.asarray(render_flow_lines(settings, 0.0, 32))

        assert pixels[..., 3].max() == 0

    def test_direction_mirrors_lines(self):
        forward = _only(flow_lines=FlowLinesLayer(direction=1))
        backward = _only(flow_lines=FlowLinesLayer(direction=-1))

        assert (
            render_flow_lines(forward, 5.0, SIZE).tobytes()
            != render_flow_lines(backward, 5.0, SIZE).tobytes()
        )


class TestContours:
    """Tests for the contour layer."""

    def test_bands(self):
        values = np.array([-1.2, -1.0, -0.61, 0.0, 0.99, 1.0, 1.5])
        bands = contour_bands(values, 5)

        np.testing.assert_array_equal(bands, [-1, 0, 0, 2, 4, -1, -1])

    def test_alpha_bounded(self):
        settings = _only(contour=ContourLayer(amplitude=1.0, octaves=4, levels=5))
        pixels = np.asarray(render_contours(settings, 0.0, SIZE))

        assert pixels[..., 3].max() <= round(CONTOUR_MAX_ALPHA * 255)

    def test_fixed_grid_resolution(self):
        settings = _only(contour=ContourLayer())
        pixels = np.asarray(render_contours(settings, 0.0, 128))

        # 128px over a 64-cell grid: each cell is a 2x2 block
        np.testing.assert_array_equal(pixels[0::2, 0::2], pixels[1::2, 1::2])

    def test_roughness_reduces_alpha(self):
        smooth = _only(contour=ContourLayer(smoothness=1.0, base_frequency=0.2))
        rough = _only(contour=ContourLayer(smoothness=0.0001, base_frequency=0.2))

        smooth_alpha = np.asarray(render_contours(smooth, 0.0, SIZE))[..., 3].sum()
        rough_alpha = np.asarray(render_contours(rough, 0.0, SIZE))[..., 3].sum()

        assert rough_alpha < smooth_alpha
