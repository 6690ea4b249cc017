"""FastAPI application exposing the user directory and session endpoints."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import Cookie, Depends, FastAPI, Header, Response, status
from fastapi.responses import JSONResponse
from fastapi.security import HTTPBearer
from pydantic import BaseModel, ConfigDict, Field

from .config import Settings, load_settings, resolve_seed_users
from .models import Role, UserRecord
from .sessions import (
    SessionCookie,
    SessionManager,
    TokenVerificationError,
    UnauthorizedError,
)
from .store import InMemoryUserRepository, UserNotFoundError, UserStore, UserValidationError
from .verifiers import FirebaseTokenVerifier

logger = logging.getLogger("userapi.api")

API_TITLE = "WADS-W3 API"
API_VERSION = "1.0.0"
API_DESCRIPTION = (
    "REST API for WADS Week 3 Assignment.\n\n"
    "Built with **FastAPI** and **Firebase Authentication**.\n\n"
    "### Auth Flow\n"
    "1. Sign in via Firebase (email/password or Google)\n"
    "2. Get ID token: `const idToken = await user.getIdToken()`\n"
    "3. `POST /api/session` with `Authorization: Bearer <idToken>`\n"
    "4. Server verifies via Firebase Admin SDK and sets an HttpOnly `session` cookie\n"
    "5. Logout: `POST /api/logout` clears the cookie with an epoch expiry"
)
OPENAPI_TAGS = [
    {
        "name": "Auth",
        "description": "Session management: create and destroy sessions backed by Firebase Auth",
    },
    {
        "name": "Users",
        "description": "User CRUD: create, read, update and delete user records",
    },
]


class UserPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., examples=["1"], description="Internal record ID")
    uid: str = Field(..., examples=["firebase-uid-001"], description="Firebase UID")
    name: str = Field(..., examples=["Alice Johnson"])
    email: str = Field(..., examples=["alice@example.com"])
    role: Role = Field(..., examples=["user"])
    created_at: datetime = Field(..., alias="createdAt")
    last_login: datetime = Field(..., alias="lastLogin")


class CreateUserRequest(BaseModel):
    uid: Optional[str] = Field(default=None, examples=["firebase-uid-999"])
    name: Optional[str] = Field(default=None, examples=["John Doe"])
    email: Optional[str] = Field(default=None, examples=["john@example.com"])
    role: Optional[Role] = Field(default=None, examples=["user"])


class UpdateUserRequest(BaseModel):
    name: Optional[str] = Field(default=None, examples=["Alice Updated"])
    email: Optional[str] = Field(default=None, examples=["alice.new@example.com"])
    role: Optional[str] = Field(default=None, examples=["admin"])


class UserListResponse(BaseModel):
    success: bool = True
    data: List[UserPayload]
    total: int


class UserResponse(BaseModel):
    success: bool = True
    data: UserPayload


class UserMutationResponse(BaseModel):
    success: bool = True
    message: str
    data: UserPayload


class DeletedUserData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    deleted_user: UserPayload = Field(..., alias="deletedUser")


class UserDeletedResponse(BaseModel):
    success: bool = True
    message: str
    data: DeletedUserData


class ErrorResponse(BaseModel):
    success: bool = False
    message: str


class SessionErrorResponse(BaseModel):
    error: str


class SessionCreatedResponse(BaseModel):
    status: str = "success"


class SessionStatusResponse(BaseModel):
    status: str = "active"
    uid: str


class LogoutResponse(BaseModel):
    message: str = "Logged out"


def user_to_payload(user: UserRecord) -> UserPayload:
    return UserPayload(
        id=user.id,
        uid=user.uid,
        name=user.name,
        email=user.email,
        role=user.role,
        created_at=user.created_at,
        last_login=user.last_login,
    )


def build_store(settings: Settings) -> UserStore:
    repository = InMemoryUserRepository(resolve_seed_users(settings))
    if not settings.persist_users:
        logger.warning("User store persistence is disabled; mutations will not be retained between requests.")
    return UserStore(repository, persist=settings.persist_users)


def build_session_manager(settings: Settings) -> SessionManager:
    if not settings.secure_cookies:
        logger.warning(
            "Session cookies are not marked as secure. Only disable secure cookies for"
            " local development."
        )
    verifier = FirebaseTokenVerifier(settings.firebase)
    return SessionManager(verifier, secure=settings.secure_cookies)


def _attach_cookie(response: Response, cookie: SessionCookie) -> None:
    response.headers.append("set-cookie", cookie.header_value())


_NOT_FOUND_RESPONSES = {status.HTTP_404_NOT_FOUND: {"model": ErrorResponse, "description": "User not found."}}
_SESSION_ERROR_RESPONSES = {
    status.HTTP_401_UNAUTHORIZED: {
        "model": SessionErrorResponse,
        "description": "Missing or malformed credentials.",
    },
    status.HTTP_500_INTERNAL_SERVER_ERROR: {
        "model": SessionErrorResponse,
        "description": "Firebase token expired, revoked, or invalid.",
    },
}


def create_app(
    *,
    store: UserStore | None = None,
    session_manager: SessionManager | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    if settings is None:
        settings = load_settings()
    if store is None:
        store = build_store(settings)
    if session_manager is None:
        session_manager = build_session_manager(settings)

    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=API_VERSION,
        openapi_tags=OPENAPI_TAGS,
        openapi_url="/docs",
        docs_url=None,
        redoc_url=None,
    )
    app.state.store = store
    app.state.session_manager = session_manager

    bearer_scheme = HTTPBearer(
        auto_error=False,
        scheme_name="BearerAuth",
        bearerFormat="Firebase ID Token",
        description="Firebase ID token from `await user.getIdToken()`.",
    )

    def get_store() -> UserStore:
        return store

    def get_session_manager() -> SessionManager:
        return session_manager

    @app.get("/health", include_in_schema=False)
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/users", response_model=UserListResponse, tags=["Users"], summary="Get All Users")
    async def list_users(users: UserStore = Depends(get_store)) -> UserListResponse:
        records = users.list_all()
        return UserListResponse(data=[user_to_payload(user) for user in records], total=len(records))

    @app.post(
        "/users",
        response_model=UserMutationResponse,
        status_code=status.HTTP_201_CREATED,
        tags=["Users"],
        summary="Create User",
        responses={status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse, "description": "Missing required fields."}},
    )
    async def create_user(
        payload: Optional[CreateUserRequest] = None,
        users: UserStore = Depends(get_store),
    ) -> UserMutationResponse:
        data = payload.model_dump() if payload is not None else {}
        user = users.create(data)
        return UserMutationResponse(message="User created successfully", data=user_to_payload(user))

    @app.get(
        "/users/{user_id}",
        response_model=UserResponse,
        tags=["Users"],
        summary="Get User by ID",
        responses=_NOT_FOUND_RESPONSES,
    )
    async def read_user(user_id: str, users: UserStore = Depends(get_store)) -> UserResponse:
        return UserResponse(data=user_to_payload(users.get_by_id(user_id)))

    @app.put(
        "/users/{user_id}",
        response_model=UserMutationResponse,
        tags=["Users"],
        summary="Update User",
        description="Updates user fields. `id` and `uid` are protected and cannot be overwritten.",
        responses={
            **_NOT_FOUND_RESPONSES,
            status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse, "description": "Unknown role."},
        },
    )
    async def update_user(
        user_id: str,
        payload: Optional[UpdateUserRequest] = None,
        users: UserStore = Depends(get_store),
    ) -> UserMutationResponse:
        patch = payload.model_dump(exclude_unset=True) if payload is not None else {}
        updated = users.update(user_id, patch)
        return UserMutationResponse(message="User updated successfully", data=user_to_payload(updated))

    @app.delete(
        "/users/{user_id}",
        response_model=UserDeletedResponse,
        tags=["Users"],
        summary="Delete User",
        responses=_NOT_FOUND_RESPONSES,
    )
    async def delete_user(user_id: str, users: UserStore = Depends(get_store)) -> UserDeletedResponse:
        removed = users.delete(user_id)
        return UserDeletedResponse(
            message=f"User with id {user_id} deleted successfully",
            data=DeletedUserData(deleted_user=user_to_payload(removed)),
        )

    @app.post(
        "/session",
        response_model=SessionCreatedResponse,
        tags=["Auth"],
        summary="Create Session",
        description=(
            "Verifies a Firebase ID Token with the Firebase Admin SDK. On success, stores the token"
            " as an **HttpOnly + Secure** cookie named `session`."
        ),
        dependencies=[Depends(bearer_scheme)],
        responses=_SESSION_ERROR_RESPONSES,
    )
    async def create_session(
        response: Response,
        authorization: Optional[str] = Header(default=None),
        sessions: SessionManager = Depends(get_session_manager),
    ) -> SessionCreatedResponse:
        cookie = await sessions.create_session(authorization)
        _attach_cookie(response, cookie)
        return SessionCreatedResponse()

    @app.get(
        "/session",
        response_model=SessionStatusResponse,
        tags=["Auth"],
        summary="Read Session",
        responses=_SESSION_ERROR_RESPONSES,
    )
    async def read_session(
        session: Optional[str] = Cookie(default=None),
        sessions: SessionManager = Depends(get_session_manager),
    ) -> SessionStatusResponse:
        identity = await sessions.resolve_session(session)
        return SessionStatusResponse(uid=identity.uid)

    @app.post("/logout", response_model=LogoutResponse, tags=["Auth"], summary="Logout")
    async def logout(
        response: Response,
        sessions: SessionManager = Depends(get_session_manager),
    ) -> LogoutResponse:
        _attach_cookie(response, sessions.destroy_session())
        return LogoutResponse()

    @app.exception_handler(UserValidationError)
    async def handle_validation_error(_: object, exc: UserValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "message": str(exc)},
        )

    @app.exception_handler(UserNotFoundError)
    async def handle_not_found(_: object, exc: UserNotFoundError):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"success": False, "message": str(exc)},
        )

    @app.exception_handler(UnauthorizedError)
    async def handle_unauthorized(_: object, exc: UnauthorizedError):
        return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"error": str(exc)})

    @app.exception_handler(TokenVerificationError)
    async def handle_verification_error(_: object, exc: TokenVerificationError):
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": str(exc)})

    return app


__all__ = ["create_app", "build_session_manager", "build_store", "user_to_payload"]
