"""
Performance Benchmark Tests

Bounds the per-frame cost of the densest flow-line grid.
"""

import logging
import time

import pytest

from app.models.layer_settings import MAX_LINE_DENSITY, FlowLinesLayer, LayerSettings
from render_engine.compositor import line_grid_size, render_flow_lines, render_frame

logger = logging.getLogger(__name__)

CANVAS_SIZE = 512
FRAME_TIME_LIMIT_SECONDS = 10.0


@pytest.fixture
def densest_settings():
    return LayerSettings(flow_lines=FlowLinesLayer(line_density=MAX_LINE_DENSITY))


def test_max_density_grid_is_bounded():
    assert line_grid_size(CANVAS_SIZE, MAX_LINE_DENSITY) == 256
    assert line_grid_size(CANVAS_SIZE, MAX_LINE_DENSITY) ** 2 <= 256 * 256


@pytest.mark.slow
@pytest.mark.integration
def test_max_density_frame_time_bounded(densest_settings):
    start_time = time.time()
    overlay = render_flow_lines(densest_settings, 100.0, CANVAS_SIZE)
    lines_time = time.time() - start_time

    start_time = time.time()
    frame = render_frame(densest_settings, 100.0, CANVAS_SIZE)
    frame_time = time.time() - start_time

    logger.info(f"Max density: lines {lines_time:.2f}s, full frame {frame_time:.2f}s")
    assert overlay.size == (CANVAS_SIZE, CANVAS_SIZE)
    assert frame.size == CANVAS_SIZE
    assert frame_time < FRAME_TIME_LIMIT_SECONDS
