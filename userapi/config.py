"""Configuration management for the user directory service."""
from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Mapping, Optional

import yaml

from .models import Role, UserRecord
from .verifiers import FirebaseCredentials

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _utc(year: int, month: int, day: int, hour: int, minute: int) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


DEFAULT_SEED_USERS = (
    UserRecord(
        id="1",
        uid="firebase-uid-001",
        name="Alice Johnson",
        email="alice@example.com",
        role=Role.ADMIN,
        created_at=_utc(2024, 1, 15, 8, 0),
        last_login=_utc(2024, 6, 1, 10, 30),
    ),
    UserRecord(
        id="2",
        uid="firebase-uid-002",
        name="Bob Smith",
        email="bob@example.com",
        role=Role.USER,
        created_at=_utc(2024, 2, 20, 9, 0),
        last_login=_utc(2024, 6, 2, 14, 20),
    ),
    UserRecord(
        id="3",
        uid="firebase-uid-003",
        name="Carol White",
        email="carol@example.com",
        role=Role.USER,
        created_at=_utc(2024, 3, 10, 11, 0),
        last_login=_utc(2024, 5, 30, 9, 45),
    ),
)


def env_flag(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    return default


@dataclass(frozen=True)
class Settings:
    """Runtime settings resolved from the environment."""

    persist_users: bool = True
    seed_file: Optional[Path] = None
    secure_cookies: bool = True
    firebase: FirebaseCredentials = FirebaseCredentials()


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ

    raw_seed = env.get("USERS_API_SEED_FILE")
    seed_file = Path(raw_seed).expanduser().resolve(strict=False) if raw_seed and raw_seed.strip() else None

    return Settings(
        persist_users=env_flag(env.get("USERS_API_PERSIST"), True),
        seed_file=seed_file,
        secure_cookies=env_flag(env.get("USERS_API_SESSION_SECURE"), True),
        firebase=FirebaseCredentials(
            project_id=env.get("FIREBASE_PROJECT_ID"),
            client_email=env.get("FIREBASE_CLIENT_EMAIL"),
            private_key=env.get("FIREBASE_PRIVATE_KEY"),
        ),
    )


def _parse_timestamp(value: object, fallback: datetime) -> datetime:
    if value is None:
        return fallback
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def seed_user_from_dict(data: Dict[str, object]) -> UserRecord:
    """Create a :class:`UserRecord` from raw seed data."""
    if not isinstance(data, dict):
        raise ValueError("Each seed user must be a mapping")
    required_fields = {"id", "uid", "name", "email"}
    missing = required_fields - data.keys()
    if missing:
        raise ValueError(f"Missing required seed user fields: {', '.join(sorted(missing))}")

    now = datetime.now(timezone.utc)
    try:
        role = Role(str(data.get("role") or Role.USER.value))
        created_at = _parse_timestamp(data.get("createdAt"), now)
        last_login = _parse_timestamp(data.get("lastLogin"), created_at)
    except ValueError as exc:
        raise ValueError(f"Invalid seed user '{data['id']}': {exc}") from exc

    return UserRecord(
        id=str(data["id"]),
        uid=str(data["uid"]),
        name=str(data["name"]),
        email=str(data["email"]),
        role=role,
        created_at=created_at,
        last_login=last_login,
    )


def load_seed_users(seed_path: Path) -> List[UserRecord]:
    """Load seed user records from a YAML file."""
    with seed_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}

    if not isinstance(raw, dict) or not isinstance(raw.get("users"), list):
        raise ValueError("Seed file must define a list of users under the 'users' key")

    users = [seed_user_from_dict(item) for item in raw["users"]]
    ids = [user.id for user in users]
    if len(set(ids)) != len(ids):
        raise ValueError("Seed file contains duplicate user ids")
    return users


def resolve_seed_users(settings: Settings) -> List[UserRecord]:
    if settings.seed_file is None:
        return list(DEFAULT_SEED_USERS)
    return load_seed_users(settings.seed_file)


__all__ = [
    "DEFAULT_SEED_USERS",
    "Settings",
    "env_flag",
    "load_seed_users",
    "load_settings",
    "resolve_seed_users",
    "seed_user_from_dict",
]
