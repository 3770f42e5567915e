"""
Periodic scalar fields shared by the live preview and the batch renderer.

Each layer defines a multi-octave sum of sin/cos products. The functions
accept Python floats or numpy arrays of coordinates and evaluate
element-wise, so a whole frame is computed in one vectorised pass.
"""

from typing import Union

import numpy as np

from app.models.layer_settings import ContourLayer, FlowFieldLayer, FlowLinesLayer, LayerSettings

Coordinate = Union[float, np.ndarray]
FieldLayer = Union[FlowFieldLayer, FlowLinesLayer, ContourLayer]

# Phase advance per unit of animation time.
PHASE_RATE = 0.01

# Forward-difference step for gradients, in pixels.
GRADIENT_EPSILON = 1.0


def evaluate(layer: FieldLayer, x: Coordinate, y: Coordinate, t: float) -> Coordinate:
    """
    Evaluate a layer's scalar field at (x, y) and time t.

    value = sum over octaves of
        amplitude / 2^o * sin(x * freq * 2^o + phase) * cos(y * freq * 2^o + phase)
    with phase = t * PHASE_RATE.
    """
    phase = t * PHASE_RATE
    value = 0.0
    for octave in range(layer.octaves):
        scale = 2.0**octave
        freq = layer.base_frequency * scale
        amplitude = layer.amplitude / scale
        value = value + amplitude * np.sin(x * freq + phase) * np.cos(y * freq + phase)
    return value


def gradient(
    layer: FieldLayer, x: Coordinate, y: Coordinate, t: float
) -> tuple[Coordinate, Coordinate]:
    """Forward-difference gradient of a layer's field with a 1px step."""
    base = evaluate(layer, x, y, t)
    grad_x = evaluate(layer, x + GRADIENT_EPSILON, y, t) - base
    grad_y = evaluate(layer, x, y + GRADIENT_EPSILON, t) - base
    return grad_x, grad_y


def flow_direction(
    settings: LayerSettings, x: Coordinate, y: Coordinate, t: float
) -> tuple[Coordinate, Coordinate]:
    """
    Gradient that orients the flow lines.

    When the contour layer is enabled and allowed to steer the flow, the
    result is the mean of the contour and flow-line gradients.
    """
    flow_x, flow_y = gradient(settings.flow_lines, x, y, t)
    if settings.contour_affects_flow and settings.contour.enabled:
        contour_x, contour_y = gradient(settings.contour, x, y, t)
        return (contour_x + flow_x) / 2, (contour_y + flow_y) / 2
    return flow_x, flow_y


def amplitude_bound(layer: FieldLayer) -> float:
    """Largest absolute value the layer's field can reach."""
    return sum(layer.amplitude / 2.0**octave for octave in range(layer.octaves))


def normalized(layer: FieldLayer, x: Coordinate, y: Coordinate, t: float) -> Coordinate:
    """Field value mapped from [-bound, bound] to [0, 1]."""
    bound = amplitude_bound(layer)
    if bound == 0:
        return np.full_like(np.asarray(x, dtype=np.float64), 0.5)
    return np.clip((evaluate(layer, x, y, t) / bound + 1.0) / 2.0, 0.0, 1.0)
