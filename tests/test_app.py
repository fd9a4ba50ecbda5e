import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, patch


@pytest.fixture
def test_app():
    from app.main import app
    return app


@pytest.fixture
def client(test_app):
    return TestClient(test_app)


class TestApplication:
    """Test the assembled application and its middleware"""

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert "X-Request-ID" in response.headers

    def test_health_reports_model_state(self, client):
        """Test that health does not force the embedding model to load"""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["embeddingModelLoaded"] is False

    @patch('app.routers.jobs.jobs_coll')
    def test_service_errors_use_standard_envelope(self, mock_jobs_coll, client):
        """Test the error body produced for service exceptions"""
        mock_jobs_coll.find_one = AsyncMock(return_value=None)

        response = client.get("/api/jobs/missing")

        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["status_code"] == 404
        assert body["message"] == "Job not found"
        assert body["error"]["details"] == {"resource": "job", "resource_id": "missing"}
        assert response.headers["X-Request-ID"] == body["request_id"]

    @patch('app.routers.jobs.jobs_coll')
    def test_unexpected_errors_are_hidden(self, mock_jobs_coll, client):
        mock_jobs_coll.find_one = AsyncMock(side_effect=RuntimeError("connection reset"))

        response = client.get("/api/jobs/job-1")

        assert response.status_code == 500
        assert "connection reset" not in response.text
