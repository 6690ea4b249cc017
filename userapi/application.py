"""Application factory that serves the API and its documentation page."""
from __future__ import annotations

from fastapi import FastAPI
from fastapi.openapi.docs import get_swagger_ui_html

from .api import API_TITLE, create_app as create_api_app
from .config import Settings, load_settings
from .sessions import SessionManager
from .store import UserStore

API_PREFIX = "/api"


def create_application(
    *,
    settings: Settings | None = None,
    store: UserStore | None = None,
    session_manager: SessionManager | None = None,
) -> FastAPI:
    """Create the combined ASGI application."""

    if settings is None:
        settings = load_settings()

    api_app = create_api_app(store=store, session_manager=session_manager, settings=settings)

    app = FastAPI(
        title=API_TITLE,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.api = api_app

    @app.get("/docs", include_in_schema=False)
    async def swagger_ui():
        return get_swagger_ui_html(
            openapi_url=f"{API_PREFIX}{api_app.openapi_url}",
            title=f"{API_TITLE} Docs",
        )

    app.mount(API_PREFIX, api_app)

    return app


__all__ = ["API_PREFIX", "create_application"]
