"""Error envelopes and status mapping shared by every route."""

import pytest
from fastapi.testclient import TestClient

from src.api.deps import get_service_ops
from src.api.main import ERROR_STATUS, UNEXPECTED_ERROR_MESSAGE, app
from src.domain.errors import ErrorKind


def test_every_error_kind_has_a_status():
    assert set(ERROR_STATUS) == set(ErrorKind)


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/nothing-here")

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Not Found"}


def test_bad_query_value(client, admin_headers):
    response = client.get(
        "/api/admin/services", params={"isActive": "maybe"}, headers=admin_headers
    )

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation failed"
    assert body["errors"][0]["field"] == "isActive"


@pytest.fixture
def broken_client(client):
    def explode():
        raise RuntimeError("database path /secret/altee.db is gone")

    app.dependency_overrides[get_service_ops] = explode
    return TestClient(app, raise_server_exceptions=False)


def test_unexpected_error_is_generic(broken_client, admin_headers, caplog):
    response = broken_client.get("/api/admin/services", headers=admin_headers)

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": UNEXPECTED_ERROR_MESSAGE}
    assert "/secret" not in response.text
    assert "Unhandled error" in caplog.text
