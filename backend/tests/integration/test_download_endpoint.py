"""
Integration Tests for the Download Endpoint

Tests GET /api/download/{jobId} across job states.
"""

import asyncio
import io
import json
import uuid

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from app.main import app, create_worker
from app.models.job_record import ErrorKind
from app.services.service_factory import get_job_queue, get_outputs_path

client = TestClient(app)


@pytest.fixture(autouse=True)
def isolated(storage_path):
    yield storage_path


@pytest.fixture
def queued_job_id(layer_settings_payload):
    response = client.post(
        "/api/render",
        json={
            "settings": layer_settings_payload,
            "walletAddress": "0xabc",
            "totalFrames": 4,
            "size": 16,
        },
    )
    assert response.status_code == 200
    return response.json()["jobId"]


@pytest.fixture
def completed_job_id(queued_job_id):
    assert asyncio.run(create_worker().run_once()) is True
    return queued_job_id


class TestDownload:
    """Tests for successful downloads."""

    def test_download_animation(self, completed_job_id):
        response = client.get(f"/api/download/{completed_job_id}")

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/gif"
        assert "attachment" in response.headers["content-disposition"]
        with Image.open(io.BytesIO(response.content)) as image:
            assert image.format == "GIF"
            assert image.size == (16, 16)

    def test_download_metadata(self, completed_job_id, layer_settings_payload):
        response = client.get(f"/api/download/{completed_job_id}?file=metadata")

        assert response.status_code == 200
        metadata = response.json()
        assert metadata["attributes"] == layer_settings_payload
        assert metadata["properties"]["frameCount"] == 4


class TestDownloadErrors:
    """Tests for download error cases."""

    def test_invalid_job_id(self):
        response = client.get("/api/download/../../etc")
        assert response.status_code == 404

    def test_malformed_job_id(self):
        response = client.get("/api/download/not-a-uuid")

        assert response.status_code == 404
        assert response.json()["error"] == "invalid_job_id"

    def test_unknown_job(self):
        response = client.get(f"/api/download/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_incomplete_job(self, queued_job_id):
        response = client.get(f"/api/download/{queued_job_id}")

        assert response.status_code == 409
        data = response.json()
        assert data["error"] == "not_complete"
        assert data["status"] == "queued"

    def test_failed_job(self, queued_job_id):
        queue = get_job_queue()
        queue.claim_next("w1")
        queue.fail(queued_job_id, "w1", "Publish failed: gateway", ErrorKind.PUBLISH, retryable=False)

        response = client.get(f"/api/download/{queued_job_id}")

        assert response.status_code == 404
        assert response.json()["error"] == "failed"

    def test_output_cleaned_up(self, completed_job_id):
        (get_outputs_path() / completed_job_id / "animation.gif").unlink()

        response = client.get(f"/api/download/{completed_job_id}")

        assert response.status_code == 404
        assert response.json()["error"] == "file_not_found"

    def test_unknown_file_type(self, completed_job_id):
        response = client.get(f"/api/download/{completed_job_id}?file=proof")
        assert response.status_code == 422
