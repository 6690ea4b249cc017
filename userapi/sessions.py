"""Cookie-based sessions backed by identity token verification."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Optional

from .verifiers import TokenVerifier, VerifiedIdentity

logger = logging.getLogger("userapi.sessions")

SESSION_COOKIE_NAME = "session"
BEARER_PREFIX = "Bearer "
UNAUTHORIZED_MESSAGE = "Unauthorized"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class SessionError(Exception):
    """Base class for session failures."""


class UnauthorizedError(SessionError):
    """The request carried no usable bearer token or session cookie."""

    def __init__(self, message: str = UNAUTHORIZED_MESSAGE) -> None:
        super().__init__(message)


class TokenVerificationError(SessionError):
    """The identity provider rejected the presented token."""


@dataclass(frozen=True)
class SessionCookie:
    """Instruction for the ``Set-Cookie`` header carrying the session marker."""

    value: str
    name: str = SESSION_COOKIE_NAME
    path: str = "/"
    http_only: bool = True
    secure: bool = True
    expires: Optional[datetime] = None

    def header_value(self) -> str:
        parts = [f"{self.name}={self.value}", f"Path={self.path}"]
        if self.expires is not None:
            parts.append(f"Expires={format_datetime(self.expires, usegmt=True)}")
        if self.http_only:
            parts.append("HttpOnly")
        if self.secure:
            parts.append("Secure")
        return "; ".join(parts)


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Return the credential following a case-sensitive ``"Bearer "`` prefix."""

    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise UnauthorizedError()
    return authorization[len(BEARER_PREFIX):]


class SessionManager:
    """Exchange verified identity tokens for session cookies and clear them.

    No server-side state is kept: the cookie value is the verified token and
    is re-verified on demand by :meth:`resolve_session`.
    """

    def __init__(self, verifier: TokenVerifier, *, secure: bool = True) -> None:
        self._verifier = verifier
        self._secure = secure

    async def _verify(self, token: str) -> VerifiedIdentity:
        try:
            return await self._verifier.verify(token)
        except Exception as exc:
            logger.warning("Identity token rejected: %s", exc)
            raise TokenVerificationError(str(exc)) from exc

    async def create_session(self, authorization: Optional[str]) -> SessionCookie:
        try:
            token = extract_bearer_token(authorization)
        except UnauthorizedError:
            logger.warning("Session request without a bearer token")
            raise

        identity = await self._verify(token)
        logger.info("Session established for uid %s", identity.uid)
        return SessionCookie(value=token, secure=self._secure)

    def destroy_session(self) -> SessionCookie:
        return SessionCookie(value="", expires=_EPOCH, secure=self._secure)

    async def resolve_session(self, cookie_value: Optional[str]) -> VerifiedIdentity:
        if not cookie_value:
            raise UnauthorizedError()
        return await self._verify(cookie_value)


__all__ = [
    "BEARER_PREFIX",
    "SESSION_COOKIE_NAME",
    "SessionCookie",
    "SessionError",
    "SessionManager",
    "TokenVerificationError",
    "UnauthorizedError",
    "extract_bearer_token",
]
