"""Domain models for the user directory."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    USER = "user"


@dataclass(frozen=True)
class UserRecord:
    """Represents a single user profile held by the store."""

    id: str
    uid: str
    name: str
    email: str
    role: Role
    created_at: datetime
    last_login: datetime


__all__ = ["Role", "UserRecord"]
