"""Identity token verification backends."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import anyio

logger = logging.getLogger("userapi.verifiers")


@dataclass(frozen=True)
class VerifiedIdentity:
    """Identity asserted by a successfully verified token."""

    uid: str
    claims: Dict[str, Any] = field(default_factory=dict)


class TokenVerifier(ABC):
    """Checks an externally issued identity token.

    Implementations raise on rejection; the exception message is surfaced to
    the client unchanged.
    """

    @abstractmethod
    async def verify(self, token: str) -> VerifiedIdentity:
        pass


def normalise_private_key(raw: Optional[str]) -> str:
    """Undo the quoting and escaped newlines that env files apply to PEM keys."""

    key = (raw or "").strip()
    if key.startswith('"'):
        key = key[1:]
    if key.endswith('"'):
        key = key[:-1]
    return key.replace("\\n", "\n")


@dataclass(frozen=True)
class FirebaseCredentials:
    project_id: Optional[str] = None
    client_email: Optional[str] = None
    private_key: Optional[str] = None

    def is_complete(self) -> bool:
        return bool(self.project_id and self.client_email and self.private_key)

    def as_service_account(self) -> Dict[str, str]:
        return {
            "type": "service_account",
            "project_id": self.project_id or "",
            "client_email": self.client_email or "",
            "private_key": normalise_private_key(self.private_key),
            "token_uri": "https://oauth2.googleapis.com/token",
        }


class FirebaseTokenVerifier(TokenVerifier):
    """Verify Firebase ID tokens with the Firebase Admin SDK.

    The SDK app is initialised on first use so that constructing the verifier
    never requires credentials. An already initialised default app is reused.
    """

    def __init__(self, credentials: FirebaseCredentials, *, check_revoked: bool = True) -> None:
        self._credentials = credentials
        self._check_revoked = check_revoked
        self._app = None
        self._lock = threading.Lock()

    def _get_app(self):
        import firebase_admin
        from firebase_admin import credentials as firebase_credentials

        with self._lock:
            if self._app is not None:
                return self._app
            try:
                self._app = firebase_admin.get_app()
            except ValueError:
                if not self._credentials.is_complete():
                    raise RuntimeError(
                        "Firebase credentials are not configured; set FIREBASE_PROJECT_ID, "
                        "FIREBASE_CLIENT_EMAIL and FIREBASE_PRIVATE_KEY"
                    )
                certificate = firebase_credentials.Certificate(self._credentials.as_service_account())
                self._app = firebase_admin.initialize_app(certificate)
                logger.info("Initialised Firebase Admin app for project %s", self._credentials.project_id)
            return self._app

    def _verify_sync(self, token: str) -> VerifiedIdentity:
        from firebase_admin import auth

        app = self._get_app()
        decoded = auth.verify_id_token(token, app=app, check_revoked=self._check_revoked)
        return VerifiedIdentity(uid=str(decoded.get("uid", "")), claims=dict(decoded))

    async def verify(self, token: str) -> VerifiedIdentity:
        return await anyio.to_thread.run_sync(self._verify_sync, token)


__all__ = [
    "FirebaseCredentials",
    "FirebaseTokenVerifier",
    "TokenVerifier",
    "VerifiedIdentity",
    "normalise_private_key",
]
