from __future__ import annotations

from fastapi.testclient import TestClient

from userapi.api import create_app
from userapi.sessions import SessionManager
from userapi.store import InMemoryUserRepository, UserStore

from conftest import FakeVerifier


def _client(verifier: FakeVerifier, *, secure: bool = True) -> TestClient:
    app = create_app(
        store=UserStore(InMemoryUserRepository()),
        session_manager=SessionManager(verifier, secure=secure),
    )
    return TestClient(app)


def test_session_sets_http_only_secure_cookie(verifier: FakeVerifier) -> None:
    with _client(verifier) as client:
        response = client.post("/session", headers={"Authorization": "Bearer TOKEN123"})

    assert response.status_code == 200, response.text
    assert response.json() == {"status": "success"}
    assert response.headers["set-cookie"] == "session=TOKEN123; Path=/; HttpOnly; Secure"
    assert verifier.calls == ["TOKEN123"]


def test_session_requires_bearer_prefix(verifier: FakeVerifier) -> None:
    with _client(verifier) as client:
        missing = client.post("/session")
        no_prefix = client.post("/session", headers={"Authorization": "TOKEN123"})
        lowercase = client.post("/session", headers={"Authorization": "bearer TOKEN123"})

    for response in (missing, no_prefix, lowercase):
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}
        assert "set-cookie" not in response.headers
    assert verifier.calls == []


def test_session_reports_verifier_failure() -> None:
    verifier = FakeVerifier(accepted=["good"], error="Firebase ID token has been revoked.")
    with _client(verifier) as client:
        response = client.post("/session", headers={"Authorization": "Bearer bad"})

    assert response.status_code == 500
    assert response.json() == {"error": "Firebase ID token has been revoked."}
    assert "set-cookie" not in response.headers


def test_logout_clears_cookie(verifier: FakeVerifier) -> None:
    with _client(verifier) as client:
        response = client.post("/logout")

    assert response.status_code == 200
    assert response.json() == {"message": "Logged out"}
    assert response.headers["set-cookie"] == (
        "session=; Path=/; Expires=Thu, 01 Jan 1970 00:00:00 GMT; HttpOnly; Secure"
    )
    assert verifier.calls == []


def test_read_session_verifies_cookie_per_request(verifier: FakeVerifier) -> None:
    with _client(verifier) as client:
        anonymous = client.get("/session")
        active = client.get("/session", headers={"Cookie": "session=TOKEN123"})

    assert anonymous.status_code == 401
    assert anonymous.json() == {"error": "Unauthorized"}
    assert active.status_code == 200
    assert active.json() == {"status": "active", "uid": "uid-TOKEN123"}


def test_insecure_cookie_configuration(verifier: FakeVerifier) -> None:
    with _client(verifier, secure=False) as client:
        response = client.post("/session", headers={"Authorization": "Bearer abc"})

    assert response.headers["set-cookie"] == "session=abc; Path=/; HttpOnly"


def test_openapi_document_describes_bearer_auth(verifier: FakeVerifier) -> None:
    with _client(verifier) as client:
        document = client.get("/docs").json()

    assert document["info"]["title"] == "WADS-W3 API"
    assert document["info"]["version"] == "1.0.0"
    assert {tag["name"] for tag in document["tags"]} == {"Auth", "Users"}
    assert document["components"]["securitySchemes"]["BearerAuth"]["scheme"] == "bearer"
    assert set(document["paths"]) >= {"/users", "/users/{user_id}", "/session", "/logout"}
    assert "404" in document["paths"]["/users/{user_id}"]["get"]["responses"]
