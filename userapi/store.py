"""In-memory user directory backed by a pluggable repository."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime, timezone
from typing import Iterable, List, Mapping, Optional

from .models import Role, UserRecord

logger = logging.getLogger("userapi.store")

REQUIRED_FIELDS_MESSAGE = "uid, name, and email are required"
NOT_FOUND_MESSAGE = "User not found"

_MUTABLE_FIELDS = ("name", "email", "role")


class UserStoreError(Exception):
    """Base class for errors raised by :class:`UserStore`."""


class UserValidationError(UserStoreError):
    """Raised when a create payload is missing required fields."""

    def __init__(self, message: str = REQUIRED_FIELDS_MESSAGE) -> None:
        super().__init__(message)


class UserNotFoundError(UserStoreError):
    """Raised when no record matches the requested id."""

    def __init__(self, user_id: str) -> None:
        super().__init__(NOT_FOUND_MESSAGE)
        self.user_id = user_id


class UserRepository(ABC):
    """Ordered container of user records.

    Implementations keep insertion order and compare ids as opaque strings.
    Locking is the caller's concern.
    """

    @abstractmethod
    def list(self) -> List[UserRecord]:
        pass

    @abstractmethod
    def get(self, user_id: str) -> Optional[UserRecord]:
        pass

    @abstractmethod
    def add(self, record: UserRecord) -> None:
        pass

    @abstractmethod
    def replace(self, record: UserRecord) -> bool:
        """Swap the stored record sharing ``record.id``; ``False`` if absent."""
        pass

    @abstractmethod
    def remove(self, user_id: str) -> Optional[UserRecord]:
        pass


class InMemoryUserRepository(UserRepository):
    """List-backed repository using a linear scan on ``id``."""

    def __init__(self, records: Iterable[UserRecord] = ()) -> None:
        self._records: List[UserRecord] = list(records)

    def list(self) -> List[UserRecord]:
        return list(self._records)

    def get(self, user_id: str) -> Optional[UserRecord]:
        for record in self._records:
            if record.id == user_id:
                return record
        return None

    def add(self, record: UserRecord) -> None:
        self._records.append(record)

    def replace(self, record: UserRecord) -> bool:
        for index, existing in enumerate(self._records):
            if existing.id == record.id:
                self._records[index] = record
                return True
        return False

    def remove(self, user_id: str) -> Optional[UserRecord]:
        for index, existing in enumerate(self._records):
            if existing.id == user_id:
                return self._records.pop(index)
        return None


def _current_timestamp() -> datetime:
    return datetime.now(timezone.utc)


def _is_blank(value: object) -> bool:
    return value is None or not str(value).strip()


def _parse_role(value: object) -> Role:
    try:
        return Role(value)
    except ValueError as exc:
        raise UserValidationError(f"role must be one of: {', '.join(role.value for role in Role)}") from exc


def _initial_sequence(records: Iterable[UserRecord]) -> int:
    items = list(records)
    highest = len(items)
    for record in items:
        if record.id.isdigit():
            highest = max(highest, int(record.id))
    return highest


class UserStore:
    """CRUD operations over a :class:`UserRepository`.

    When ``persist`` is false the store validates and answers exactly as it
    would otherwise, but never writes to the repository. Ids are drawn from
    the same sequence in both modes.
    """

    def __init__(self, repository: UserRepository | None = None, *, persist: bool = True) -> None:
        self._repository = repository if repository is not None else InMemoryUserRepository()
        self._persist = persist
        self._lock = threading.Lock()
        self._sequence = _initial_sequence(self._repository.list())

    def list_all(self) -> List[UserRecord]:
        with self._lock:
            return self._repository.list()

    def get_by_id(self, user_id: str) -> UserRecord:
        with self._lock:
            record = self._repository.get(user_id)
        if record is None:
            raise UserNotFoundError(user_id)
        return record

    def create(self, payload: Mapping[str, object]) -> UserRecord:
        if any(_is_blank(payload.get(key)) for key in ("uid", "name", "email")):
            raise UserValidationError()

        role = _parse_role(payload.get("role") or Role.USER)
        now = _current_timestamp()

        with self._lock:
            self._sequence += 1
            record = UserRecord(
                id=str(self._sequence),
                uid=str(payload["uid"]),
                name=str(payload["name"]),
                email=str(payload["email"]),
                role=role,
                created_at=now,
                last_login=now,
            )
            if self._persist:
                self._repository.add(record)

        logger.info("Created user %s (uid=%s, role=%s)", record.id, record.uid, record.role.value)
        return record

    def update(self, user_id: str, patch: Mapping[str, object]) -> UserRecord:
        with self._lock:
            existing = self._repository.get(user_id)
            if existing is None:
                raise UserNotFoundError(user_id)

            changes = {}
            for key in _MUTABLE_FIELDS:
                value = patch.get(key)
                if value is None:
                    continue
                changes[key] = _parse_role(value) if key == "role" else str(value)
            updated = replace(existing, **changes)
            if self._persist:
                self._repository.replace(updated)

        logger.info("Updated user %s (fields=%s)", user_id, ", ".join(sorted(changes)) or "none")
        return updated

    def delete(self, user_id: str) -> UserRecord:
        with self._lock:
            if self._persist:
                removed = self._repository.remove(user_id)
            else:
                removed = self._repository.get(user_id)
        if removed is None:
            raise UserNotFoundError(user_id)

        logger.info("Deleted user %s", user_id)
        return removed


__all__ = [
    "InMemoryUserRepository",
    "NOT_FOUND_MESSAGE",
    "REQUIRED_FIELDS_MESSAGE",
    "UserNotFoundError",
    "UserRepository",
    "UserStore",
    "UserStoreError",
    "UserValidationError",
]
