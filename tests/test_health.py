# tests/test_health.py
from http import HTTPStatus

from fastapi.testclient import TestClient

from conftest import InMemoryAdapter
from progress_hub.core.config import Settings
from progress_hub.main import create_app


def test_health_endpoint_ok(client):
    """
    /health responds with 200 OK and the expected JSON shape and types.
    """
    response = client.get("/health")

    assert response.status_code == HTTPStatus.OK
    data = response.json()

    assert data["status"] == "ok"
    assert isinstance(data["app_name"], str)
    assert isinstance(data["environment"], str)
    assert data["storage_backend"] in ("json_file", "remote_api", "database")
    assert "timestamp_utc" in data


def test_health_reports_settings_passed_to_the_app():
    settings = Settings(APP_NAME="Progress Hub Test", APP_ENV="test", STORAGE_BACKEND="database")

    with TestClient(create_app(settings=settings, adapter=InMemoryAdapter())) as client:
        data = client.get("/health").json()

    assert data["app_name"] == "Progress Hub Test"
    assert data["environment"] == "test"
    # the adapter actually in use wins over STORAGE_BACKEND
    assert data["storage_backend"] == "memory"


def test_status_reports_backend_and_versions(client):
    client.post(
        "/tasks",
        json={"taskName": "Status check", "deadline": "2025-12-01T00:00:00Z"},
    )

    data = client.get("/status").json()

    assert data["backend"] == "json_file"
    assert data["loaded"] is True
    assert data["quota_exceeded"] is False
    assert data["last_error"] is None
    assert data["versions"]["tasks"] == 2
    assert data["backup_recommended"] is True


def test_dashboard_summary_counts_tasks_by_status(client):
    for status in ("not_started", "in_progress", "in_progress", "delayed"):
        client.post(
            "/tasks",
            json={"taskName": status, "deadline": "2025-12-01T00:00:00Z", "status": status},
        )

    data = client.get("/dashboard/summary").json()

    assert data["tasks"] == {
        "total": 4,
        "not_started": 1,
        "in_progress": 2,
        "completed": 0,
        "delayed": 1,
    }
    assert data["staff_count"] == 0
    assert data["data_size_bytes"] > 0
    assert 0 < data["storage_usage_pct"] <= 100


def test_dashboard_usage_follows_the_app_storage_limit():
    payload = {"taskName": "Sized", "deadline": "2025-12-01T00:00:00Z"}

    unlimited = Settings(APP_ENV="test", STORAGE_MAX_BYTES=None)
    with TestClient(create_app(settings=unlimited, adapter=InMemoryAdapter())) as client:
        client.post("/tasks", json=payload)
        assert client.get("/dashboard/summary").json()["storage_usage_pct"] is None

    tiny = Settings(APP_ENV="test", STORAGE_MAX_BYTES=10)
    with TestClient(create_app(settings=tiny, adapter=InMemoryAdapter())) as client:
        client.post("/tasks", json=payload)
        assert client.get("/dashboard/summary").json()["storage_usage_pct"] == 100.0
