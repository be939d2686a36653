"""Tests for the REST API routers."""

import time
from concurrent.futures import ThreadPoolExecutor

import pytest
from fastapi.testclient import TestClient

from tokenfactory.auth.models import Principal
from tokenfactory.auth.store import Authority
from tokenfactory.registry.service import RegistryService
from tokenfactory.registry.store import TokenStore
from tokenfactory.security.audit_log import MemoryAuditLog
from web.backend.app.main import app
from web.backend.app.middleware import auth as auth_middleware
from web.backend.app.middleware.auth import get_service
from web.backend.app.models.api import ErrorResponse

OWNER = {"X-Principal": "deployer"}
WALLET_1 = {"X-Principal": "wallet_1"}
WALLET_2 = {"X-Principal": "wallet_2"}

TKCT = {"symbol": "TKCT", "name": "TokenCraft", "max_supply": 1000000, "decimals": 8}


@pytest.fixture
def client():
    service = RegistryService(Authority(Principal("deployer")), TokenStore(), MemoryAuditLog())
    app.dependency_overrides[get_service] = lambda: service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _grant(client, principal="wallet_1"):
    resp = client.put(f"/api/admins/{principal}", json={"status": True}, headers=OWNER)
    assert resp.status_code == 200


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_get_owner(client):
    assert client.get("/api/owner").json() == {"owner": "deployer"}


def test_set_admin_requires_owner(client):
    resp = client.put("/api/admins/wallet_1", json={"status": True}, headers=WALLET_2)
    assert resp.status_code == 403
    assert resp.json()["detail"]["code"] == 1

    _grant(client)
    assert client.get("/api/admins/wallet_1").json() == {"principal": "wallet_1", "is_admin": True}
    assert client.get("/api/admins").json() == ["wallet_1"]


def test_mutation_without_principal_is_401(client):
    assert client.post("/api/tokens", json=TKCT).status_code == 401


def test_create_and_get_token(client):
    _grant(client)

    resp = client.post("/api/tokens", json=TKCT, headers=WALLET_1)
    assert resp.status_code == 201
    assert resp.json() == {"ok": True}

    assert client.get("/api/tokens/TKCT").json() == TKCT
    assert client.get("/api/tokens").json() == [TKCT]


def test_create_token_errors(client):
    resp = client.post("/api/tokens", json=TKCT, headers=WALLET_1)
    assert resp.status_code == 403
    assert resp.json()["detail"] == {"code": 1, "error": "Unauthorized"}

    _grant(client)
    resp = client.post("/api/tokens", json={**TKCT, "max_supply": 0}, headers=WALLET_1)
    assert resp.status_code == 422
    assert resp.json()["detail"]["code"] == 2

    client.post("/api/tokens", json=TKCT, headers=WALLET_1)
    resp = client.post(
        "/api/tokens",
        json={"symbol": "TKCT", "name": "AnotherToken", "max_supply": 500000, "decimals": 6},
        headers=WALLET_1,
    )
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == 3
    assert client.get("/api/tokens/TKCT").json()["name"] == "TokenCraft"


def test_unknown_token_is_404(client):
    assert client.get("/api/tokens/NOPE").status_code == 404


def test_events(client):
    _grant(client)
    client.post("/api/tokens", json=TKCT, headers=WALLET_1)

    events = client.get("/api/events", params={"symbol": "TKCT"}).json()
    assert len(events) == 1
    assert events[0]["actor"] == "wallet_1"
    assert events[0]["payload"]["event"] == "token-created"


def test_error_body_matches_declared_model(client):
    resp = client.post("/api/tokens", json=TKCT, headers=WALLET_2)
    assert resp.status_code == 403
    body = ErrorResponse.model_validate(resp.json())
    assert body.detail.code == 1
    assert body.detail.error == "Unauthorized"


def test_openapi_documents_error_body(client):
    schema = client.get("/openapi.json").json()
    responses = schema["paths"]["/api/tokens"]["post"]["responses"]
    assert responses["409"]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")
    error_schema = schema["components"]["schemas"]["ErrorResponse"]
    assert error_schema["properties"]["detail"]["$ref"].endswith("/ErrorDetail")


def test_service_is_built_once_under_concurrency(monkeypatch):
    built = []

    def slow_build(settings, owner=None):
        time.sleep(0.05)
        service = RegistryService(Authority(Principal("deployer")), TokenStore(), MemoryAuditLog())
        built.append(service)
        return service

    monkeypatch.setattr(auth_middleware, "_service", None)
    monkeypatch.setattr(auth_middleware, "build_service", slow_build)
    monkeypatch.setattr(auth_middleware, "load_settings", lambda: None)

    with ThreadPoolExecutor(max_workers=4) as pool:
        services = list(pool.map(lambda _: auth_middleware.get_service(), range(4)))

    assert len(built) == 1
    assert all(s is built[0] for s in services)
