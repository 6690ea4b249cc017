"""User directory and session API for the WADS-W3 service."""

from __future__ import annotations

from typing import Any

from .models import Role, UserRecord
from .store import InMemoryUserRepository, UserRepository, UserStore


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the combined API + documentation application."""

    from .application import create_application as _create_application

    return _create_application(*args, **kwargs)


def create_api_app(*args: Any, **kwargs: Any):
    """Factory function for the API-only application."""

    from .api import create_app as _create_api_app

    return _create_api_app(*args, **kwargs)


__all__ = [
    "InMemoryUserRepository",
    "Role",
    "UserRecord",
    "UserRepository",
    "UserStore",
    "create_app",
    "create_api_app",
]
