# tests/test_internal_auth_dependency.py
from http import HTTPStatus

from progress_hub.api.dependencies import internal_auth as auth_module


class DummySettingsProd:
    APP_ENV = "prod"
    INTERNAL_API_KEY = "supersecret"


class DummySettingsProdMisconfigured:
    APP_ENV = "prod"
    INTERNAL_API_KEY = None


class DummySettingsLocalWithKey:
    APP_ENV = "local"
    INTERNAL_API_KEY = "localkey"


def test_internal_endpoint_401_when_key_missing_in_prod(monkeypatch, client):
    """
    In a non-local env with INTERNAL_API_KEY set, calling an /internal
    endpoint without the X-Internal-Api-Key header returns 401.
    """
    monkeypatch.setattr(auth_module, "get_settings", lambda: DummySettingsProd())

    resp = client.post("/internal/quota/clear")
    assert resp.status_code == HTTPStatus.UNAUTHORIZED
    assert "invalid or missing" in resp.json()["detail"].lower()


def test_internal_endpoint_401_when_key_wrong_in_prod(monkeypatch, client):
    monkeypatch.setattr(auth_module, "get_settings", lambda: DummySettingsProd())

    resp = client.post("/internal/reload", headers={"X-Internal-Api-Key": "wrong-key"})
    assert resp.status_code == HTTPStatus.UNAUTHORIZED


def test_internal_endpoint_200_when_key_correct_in_prod(monkeypatch, client):
    monkeypatch.setattr(auth_module, "get_settings", lambda: DummySettingsProd())

    resp = client.post("/internal/quota/clear", headers={"X-Internal-Api-Key": "supersecret"})
    assert resp.status_code == HTTPStatus.OK
    assert resp.json()["quota_exceeded"] is False


def test_internal_endpoint_500_when_key_not_configured_in_prod(monkeypatch, client):
    monkeypatch.setattr(auth_module, "get_settings", lambda: DummySettingsProdMisconfigured())

    resp = client.post("/internal/quota/clear")
    assert resp.status_code == HTTPStatus.INTERNAL_SERVER_ERROR


def test_local_env_enforces_key_when_configured(monkeypatch, client):
    monkeypatch.setattr(auth_module, "get_settings", lambda: DummySettingsLocalWithKey())

    assert client.post("/internal/reload").status_code == HTTPStatus.UNAUTHORIZED
    resp = client.post("/internal/reload", headers={"X-Internal-Api-Key": "localkey"})
    assert resp.status_code == HTTPStatus.OK


def test_import_endpoint_is_guarded(monkeypatch, client):
    monkeypatch.setattr(auth_module, "get_settings", lambda: DummySettingsProd())

    resp = client.post(
        "/internal/backup/import",
        json={"staff": [], "tasks": [], "meetings": [], "reports": []},
    )
    assert resp.status_code == HTTPStatus.UNAUTHORIZED
