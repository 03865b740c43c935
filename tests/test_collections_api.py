# tests/test_collections_api.py
from http import HTTPStatus

import pytest
from fastapi.testclient import TestClient

from conftest import InMemoryAdapter, staff_draft, task_draft
from progress_hub.core.config import Settings
from progress_hub.core.errors import PersistenceError, QuotaExceededError
from progress_hub.main import create_app


def test_task_crud_round_trip(client):
    resp = client.post("/tasks", json=task_draft())
    assert resp.status_code == HTTPStatus.CREATED
    created = resp.json()
    assert created["taskName"] == "Migrate billing batch"
    assert created["createdAt"] == created["updatedAt"]
    task_id = created["id"]

    resp = client.get(f"/tasks/{task_id}")
    assert resp.status_code == HTTPStatus.OK
    assert resp.json() == created

    resp = client.patch(f"/tasks/{task_id}", json={"completionRate": 100, "status": "completed"})
    assert resp.status_code == HTTPStatus.OK
    assert resp.json()["completionRate"] == 100
    assert resp.json()["taskName"] == "Migrate billing batch"

    resp = client.get("/tasks")
    assert [t["id"] for t in resp.json()] == [task_id]

    assert client.delete(f"/tasks/{task_id}").status_code == HTTPStatus.NO_CONTENT
    assert client.get(f"/tasks/{task_id}").status_code == HTTPStatus.NOT_FOUND
    # deleting again is harmless
    assert client.delete(f"/tasks/{task_id}").status_code == HTTPStatus.NO_CONTENT


def test_staff_patch_keeps_nested_siblings(client):
    member = client.post("/staff", json=staff_draft()).json()

    resp = client.patch(f"/staff/{member['id']}", json={"contact": {"phone": "080-1111-2222"}})

    assert resp.status_code == HTTPStatus.OK
    assert resp.json()["contact"] == {"email": "hanako@example.com", "phone": "080-1111-2222"}


def test_shift_requires_hh_mm_times(client):
    payload = {
        "clientName": "Acme Corp",
        "staffId": "s-1",
        "date": "2025-11-12",
        "startTime": "9am",
        "endTime": "18:00",
    }
    assert client.post("/shifts", json=payload).status_code == HTTPStatus.UNPROCESSABLE_ENTITY

    payload["startTime"] = "09:00"
    resp = client.post("/shifts", json=payload)
    assert resp.status_code == HTTPStatus.CREATED
    assert resp.json()["date"] == "2025-11-12"


@pytest.mark.parametrize("rate", [-1, 101])
def test_out_of_range_completion_rate_is_422(client, rate):
    resp = client.post("/tasks", json=task_draft(completionRate=rate))
    assert resp.status_code == HTTPStatus.UNPROCESSABLE_ENTITY


def test_update_of_missing_item_is_404(client):
    resp = client.patch("/meetings/missing", json={"title": "x"})

    assert resp.status_code == HTTPStatus.NOT_FOUND
    assert resp.json()["code"] == "NOT_FOUND"


def test_data_survives_app_restart(tmp_path):
    settings = Settings(APP_ENV="test", DATA_DIR=str(tmp_path))
    from progress_hub.adapters.json_file import JsonFileAdapter

    with TestClient(create_app(settings=settings, adapter=JsonFileAdapter(tmp_path))) as first:
        created = first.post("/staff", json=staff_draft()).json()

    with TestClient(create_app(settings=settings, adapter=JsonFileAdapter(tmp_path))) as second:
        assert second.get(f"/staff/{created['id']}").json() == created


def _app_with(adapter: InMemoryAdapter):
    return create_app(settings=Settings(APP_ENV="test"), adapter=adapter)


def test_backend_failure_maps_to_503():
    adapter = InMemoryAdapter()
    with TestClient(_app_with(adapter)) as client:
        adapter.fail_with = PersistenceError("backend unreachable")

        resp = client.post("/tasks", json=task_draft())
        assert resp.status_code == HTTPStatus.SERVICE_UNAVAILABLE
        assert resp.json() == {"detail": "backend unreachable", "code": "PERSISTENCE_ERROR"}

        assert client.get("/tasks").json() == []
        status = client.get("/status").json()
        assert status["last_error_code"] == "PERSISTENCE_ERROR"


def test_quota_maps_to_507_and_reads_keep_working():
    adapter = InMemoryAdapter()
    with TestClient(_app_with(adapter)) as client:
        created = client.post("/tasks", json=task_draft()).json()
        adapter.fail_with = QuotaExceededError("plan limit reached")

        resp = client.patch(f"/tasks/{created['id']}", json={"completionRate": 90})
        assert resp.status_code == HTTPStatus.INSUFFICIENT_STORAGE
        assert resp.json()["code"] == "QUOTA_EXCEEDED"

        assert client.get(f"/tasks/{created['id']}").json()["completionRate"] == 40
        assert client.get("/status").json()["quota_exceeded"] is True
