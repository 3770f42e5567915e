"""
Integration Tests for the Preview Endpoint
"""

import io

import numpy as np
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from app.main import app
from app.models.layer_settings import LayerSettings
from render_engine.batch_renderer import render_loop_frame

client = TestClient(app)


def test_preview_png(layer_settings_payload):
    response = client.post(
        "/api/preview",
        json={"settings": layer_settings_payload, "frame": 10, "size": 32, "framesPerLoop": 100},
    )

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    with Image.open(io.BytesIO(response.content)) as image:
        assert image.size == (32, 32)
        assert image.mode == "RGBA"


def test_preview_matches_batch_frame(layer_settings_payload):
    response = client.post(
        "/api/preview",
        json={"settings": layer_settings_payload, "frame": 7, "size": 32, "framesPerLoop": 50},
    )
    with Image.open(io.BytesIO(response.content)) as image:
        preview = np.asarray(image).astype(int)

    batch = render_loop_frame(LayerSettings.model_validate(layer_settings_payload), 7, 50, 32)

    diff = np.abs(preview - batch.to_array().astype(int))
    assert (diff > 1).mean() < 0.001


def test_preview_invalid_settings(layer_settings_payload):
    layer_settings_payload["flowField"]["color1"] = "red"

    response = client.post("/api/preview", json={"settings": layer_settings_payload})

    assert response.status_code == 422
    assert response.json()["detail"]["errors"]


@pytest.mark.parametrize("size", [8, 100000])
def test_preview_size_bounds(layer_settings_payload, size):
    response = client.post("/api/preview", json={"settings": layer_settings_payload, "size": size})
    assert response.status_code == 422
