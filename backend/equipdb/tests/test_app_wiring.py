from __future__ import annotations

from contextlib import contextmanager

from fastapi.testclient import TestClient

from equipdb.apps.accounts import schemas as account_schemas
from equipdb.apps.accounts import services as account_services
from equipdb.config import Settings
from equipdb.database import Database
from equipdb.main import create_app
from equipdb.middleware import SECURITY_HEADERS

PASSWORD = "CorrectHorse1"


def _settings(**overrides) -> Settings:
    values = dict(
        database_url="sqlite+pysqlite:///:memory:",
        log_level="warning",
        rate_limit_max=1000,
    )
    values.update(overrides)
    return Settings(**values)


@contextmanager
def _client(**overrides):
    settings = _settings(**overrides)
    app = create_app(settings=settings, database=Database.from_settings(settings))
    with TestClient(app, raise_server_exceptions=False) as client:
        yield app, client


def _add_user(app, *, email: str, role: str) -> str:
    db = app.state.database.session()
    try:
        user = account_services.create_user(
            db,
            account_schemas.UserCreate(name=role.title(), email=email, password=PASSWORD, role=role),
        )
        return user.id
    finally:
        db.close()


def _login(client, email: str) -> dict:
    resp = client.post("/api/auth/login", json={"email": email, "password": PASSWORD})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


def test_healthz_and_security_headers():
    with _client() as (_, client):
        resp = client.get("/api/healthz")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["timestamp"]
    for name, value in SECURITY_HEADERS.items():
        assert resp.headers[name] == value


def test_protected_endpoint_without_token_is_401():
    with _client() as (_, client):
        resp = client.get("/api/clients")

    assert resp.status_code == 401
    assert resp.json() == {"message": "Could not validate credentials"}
    assert resp.headers["WWW-Authenticate"] == "Bearer"


def test_bad_login_is_401():
    with _client() as (app, client):
        _add_user(app, email="mgr@example.com", role="manager")
        resp = client.post("/api/auth/login", json={"email": "mgr@example.com", "password": "wrong-one"})

    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid email or password"


def test_manager_creates_client_over_http():
    with _client() as (app, client):
        manager_id = _add_user(app, email="mgr@example.com", role="manager")
        headers = _login(client, "mgr@example.com")

        resp = client.post(
            "/api/clients",
            headers=headers,
            json={
                "clientContactPerson": "Jane Doe",
                "contactEmail": "jane@example.com",
                "equipment": [{"purchaseDate": "2024-01-10"}],
            },
        )
        listed = client.get("/api/clients", headers=headers)

    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["managerId"] == manager_id
    assert body["isActive"] is True
    assert body["equipment"][0]["serviceDueDate"] == "2025-01-10"
    assert body["equipment"][0]["serviceStatus"] == "none"
    assert [c["id"] for c in listed.json()] == [body["id"]]


def test_request_validation_error_is_400():
    with _client() as (app, client):
        _add_user(app, email="mgr@example.com", role="manager")
        headers = _login(client, "mgr@example.com")
        resp = client.post("/api/clients", headers=headers, json={"contactEmail": "not-an-email"})

    assert resp.status_code == 400
    body = resp.json()
    assert body["message"] == "Validation failed"
    assert body["errors"]


def test_invalid_service_action_over_http():
    with _client() as (app, client):
        _add_user(app, email="mgr@example.com", role="manager")
        headers = _login(client, "mgr@example.com")
        created = client.post(
            "/api/clients",
            headers=headers,
            json={
                "clientContactPerson": "Jane Doe",
                "contactEmail": "jane@example.com",
                "equipment": [{"model": "Boiler"}],
            },
        ).json()
        url = f"/api/clients/{created['id']}/equipment/{created['equipment'][0]['id']}/service-action"

        bad = client.patch(url, headers=headers, json={"action": "explode"})
        good = client.patch(url, headers=headers, json={"action": "notify"})

    assert bad.status_code == 400
    assert bad.json() == {"message": "Invalid action type"}
    assert good.status_code == 200
    assert good.json() == {"message": "Service notify action completed successfully"}


def test_manager_cannot_soft_delete():
    with _client() as (app, client):
        _add_user(app, email="mgr@example.com", role="manager")
        headers = _login(client, "mgr@example.com")
        created = client.post(
            "/api/clients",
            headers=headers,
            json={"clientContactPerson": "Jane Doe", "contactEmail": "jane@example.com"},
        ).json()

        resp = client.delete(f"/api/clients/{created['id']}/soft-delete", headers=headers)

    assert resp.status_code == 403
    assert resp.json() == {"message": "Insufficient permissions for this operation"}


def test_supervisor_reads_stats():
    with _client() as (app, client):
        _add_user(app, email="boss@example.com", role="supervisor")
        _add_user(app, email="mgr@example.com", role="manager")
        headers = _login(client, "boss@example.com")

        total = client.get("/api/stats/total-managers", headers=headers)
        summary = client.get("/api/stats/clients-summary-per-manager", headers=headers)

    assert total.json() == {"totalManagers": 1}
    assert summary.json()[0]["email"] == "mgr@example.com"


def test_rate_limit_returns_429():
    with _client(rate_limit_max=3) as (_, client):
        codes = [client.get("/api/healthz").status_code for _ in range(4)]
        last = client.get("/api/healthz")

    assert codes == [200, 200, 200, 429]
    assert last.status_code == 429
    assert last.json() == {"message": "Too many requests, please try again later."}


def _add_failing_route(app):
    @app.get("/api/boom")
    def boom():
        raise RuntimeError("kaboom")


def test_unhandled_error_shows_detail_outside_production():
    with _client() as (app, client):
        _add_failing_route(app)
        resp = client.get("/api/boom")

    assert resp.status_code == 500
    body = resp.json()
    assert body["message"] == "kaboom"
    assert "RuntimeError" in body["detail"]


def test_unhandled_error_is_generic_in_production():
    with _client(environment="production") as (app, client):
        _add_failing_route(app)
        resp = client.get("/api/boom")

    assert resp.status_code == 500
    assert resp.json() == {"message": "Internal server error"}


def test_unhandled_error_keeps_cors_and_security_headers():
    origin = "http://app.example.com"
    with _client(cors_origins=[origin]) as (app, client):
        _add_failing_route(app)
        resp = client.get("/api/boom", headers={"Origin": origin})

    assert resp.status_code == 500
    assert resp.json()["message"] == "kaboom"
    assert resp.headers["access-control-allow-origin"] == origin
    for name, value in SECURITY_HEADERS.items():
        assert resp.headers[name] == value


def test_openapi_token_url_follows_api_prefix():
    with _client(api_prefix="/v2") as (_, client):
        schema = client.get("/openapi.json").json()
        login = client.post("/v2/auth/login", json={"email": "nobody@example.com", "password": "x"})

    flow = schema["components"]["securitySchemes"]["OAuth2PasswordBearer"]["flows"]["password"]
    assert flow["tokenUrl"] == "/v2/auth/login"
    assert login.status_code == 401
