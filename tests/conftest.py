from __future__ import annotations

from typing import Iterable, List, Optional

import pytest

from userapi.config import DEFAULT_SEED_USERS
from userapi.sessions import SessionManager
from userapi.store import InMemoryUserRepository, UserStore
from userapi.verifiers import TokenVerifier, VerifiedIdentity


class FakeVerifier(TokenVerifier):
    """Accepts every token unless ``accepted`` restricts the allowed set."""

    def __init__(
        self,
        accepted: Optional[Iterable[str]] = None,
        *,
        error: str = "Firebase ID token has expired.",
    ) -> None:
        self.accepted = set(accepted) if accepted is not None else None
        self.error = error
        self.calls: List[str] = []

    async def verify(self, token: str) -> VerifiedIdentity:
        self.calls.append(token)
        if self.accepted is not None and token not in self.accepted:
            raise ValueError(self.error)
        return VerifiedIdentity(uid=f"uid-{token}", claims={"token": token})


@pytest.fixture()
def verifier() -> FakeVerifier:
    return FakeVerifier()


@pytest.fixture()
def session_manager(verifier: FakeVerifier) -> SessionManager:
    return SessionManager(verifier)


@pytest.fixture()
def store() -> UserStore:
    return UserStore(InMemoryUserRepository(DEFAULT_SEED_USERS))
