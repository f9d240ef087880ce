"""Authentication middleware and dependencies."""

from __future__ import annotations

from fastapi import Depends, Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from coprodesk.auth.models import User
from coprodesk.auth.session import SessionContext
from coprodesk.core.errors import (
    AuthenticationError,
    AuthorizationError,
    SessionTimeoutError,
)
from coprodesk.core.types import UserRole


def build_session(request: Request) -> SessionContext:
    """Create a fresh session context wired to the app's collaborators."""
    state = request.app.state
    center = getattr(state, "notification_center", None)
    return SessionContext(
        provider=state.auth_provider,
        users=state.user_store,
        timeout_seconds=state.settings.auth.session_timeout_seconds,
        on_sign_out=(lambda user: center.close(user.id)) if center is not None else None,
    )


class AuthMiddleware(BaseHTTPMiddleware):
    """Middleware that resolves the Bearer token into request.state.session."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        session = build_session(request)
        auth_header = request.headers.get("Authorization", "")
        token = auth_header[7:] if auth_header.startswith("Bearer ") else None
        if token:
            await session.initialize(token)
        request.state.session = session
        return await call_next(request)


def get_session(request: Request) -> SessionContext:
    session = getattr(request.state, "session", None)
    if session is None:
        session = build_session(request)
        request.state.session = session
    return session


def current_user(request: Request) -> User:
    """FastAPI dependency returning the signed-in user."""
    session = get_session(request)
    if session.user is None:
        if session.timed_out:
            raise SessionTimeoutError(session.error or "Session check timed out")
        raise AuthenticationError(session.error or "Authentification requise")
    return session.user


def require_roles(*roles: UserRole):
    """FastAPI dependency that requires one of ``roles``."""
    allowed = frozenset(roles)

    def dependency(request: Request) -> User:
        user = current_user(request)
        if user.role not in allowed:
            raise AuthorizationError(
                f"Rôle {user.role.value!r} non autorisé pour cette action"
            )
        return user

    return Depends(dependency)
