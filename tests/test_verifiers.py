from __future__ import annotations

import anyio
import firebase_admin
import pytest
from firebase_admin import auth

from userapi.verifiers import FirebaseCredentials, FirebaseTokenVerifier, normalise_private_key


def test_normalise_private_key_strips_quotes_and_escapes() -> None:
    assert normalise_private_key('"line1\\nline2"') == "line1\nline2"
    assert normalise_private_key("line1\\nline2\"") == "line1\nline2"
    assert normalise_private_key(None) == ""


def test_firebase_verifier_checks_revocation(monkeypatch) -> None:
    sentinel_app = object()
    calls = []

    def fake_verify_id_token(token, app=None, check_revoked=False):
        calls.append((token, app, check_revoked))
        return {"uid": "firebase-uid-001", "email": "alice@example.com"}

    monkeypatch.setattr(firebase_admin, "get_app", lambda: sentinel_app)
    monkeypatch.setattr(auth, "verify_id_token", fake_verify_id_token)

    verifier = FirebaseTokenVerifier(FirebaseCredentials())
    identity = anyio.run(verifier.verify, "id-token")

    assert identity.uid == "firebase-uid-001"
    assert identity.claims["email"] == "alice@example.com"
    assert calls == [("id-token", sentinel_app, True)]


def test_firebase_verifier_propagates_sdk_errors(monkeypatch) -> None:
    def fake_verify_id_token(token, app=None, check_revoked=False):
        raise ValueError("Token expired")

    monkeypatch.setattr(firebase_admin, "get_app", lambda: object())
    monkeypatch.setattr(auth, "verify_id_token", fake_verify_id_token)

    verifier = FirebaseTokenVerifier(FirebaseCredentials())
    with pytest.raises(ValueError, match="Token expired"):
        anyio.run(verifier.verify, "id-token")


def test_firebase_verifier_requires_credentials_without_default_app(monkeypatch) -> None:
    def no_app():
        raise ValueError("The default Firebase app does not exist.")

    monkeypatch.setattr(firebase_admin, "get_app", no_app)

    verifier = FirebaseTokenVerifier(FirebaseCredentials(project_id="wads-w3"))
    with pytest.raises(RuntimeError, match="Firebase credentials are not configured"):
        anyio.run(verifier.verify, "id-token")
