"""Explicitly scoped session context.

A :class:`SessionContext` holds the signed-in user for one client. It is
initialized from a bearer token, torn down on sign-out, and injected into
the consumers that need the current user instead of being read from a
global.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from coprodesk.auth.models import AuthCredentials, User
from coprodesk.auth.provider import AuthProvider
from coprodesk.core.errors import AuthenticationError, InputValidationError
from coprodesk.core.types import AuthEvent, UserRole
from coprodesk.repositories import resolve
from coprodesk.repositories.protocols import UserRepository

logger = logging.getLogger(__name__)

SignOutHook = Callable[[User], Awaitable[None] | None]

TIMEOUT_MESSAGE = "Timeout: Unable to initialize authentication"
MISSING_PROFILE_MESSAGE = "User not found in database"


class SessionContext:
    """Current user, token and loading state for a single client."""

    def __init__(
        self,
        provider: AuthProvider,
        users: UserRepository,
        timeout_seconds: float = 15.0,
        on_sign_out: SignOutHook | None = None,
    ) -> None:
        self._provider = provider
        self._users = users
        self._timeout = timeout_seconds
        self._on_sign_out = on_sign_out
        self._user: User | None = None
        self._token: str | None = None
        self._loading = False
        self._error: str | None = None
        self._timed_out = False

    @property
    def user(self) -> User | None:
        return self._user

    @property
    def token(self) -> str | None:
        return self._token

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def timed_out(self) -> bool:
        return self._timed_out

    @property
    def authenticated(self) -> bool:
        return self._user is not None

    # -- lifecycle --

    async def initialize(self, token: str | None) -> User | None:
        """Resolve ``token`` into a user, bounded by the session timeout.

        On timeout the lookup is cancelled and the session is treated as
        absent.
        """
        self._loading = True
        self._error = None
        self._timed_out = False
        try:
            if not token:
                self._clear()
                return None
            try:
                user = await asyncio.wait_for(self._lookup(token), timeout=self._timeout)
            except TimeoutError:
                logger.warning("Session lookup timed out after %.1fs", self._timeout)
                self._clear()
                self._error = TIMEOUT_MESSAGE
                self._timed_out = True
                return None
            if user is None:
                self._clear()
                return None
            self._user = user
            self._token = token
            return user
        finally:
            self._loading = False

    async def _lookup(self, token: str) -> User | None:
        validation = await resolve(self._provider.validate_token(token))
        if not validation.valid or validation.user_id is None:
            return None
        profile = await resolve(self._users.get(validation.user_id))
        if profile is None:
            logger.warning("Identity %s has no profile, signing out", validation.user_id)
            await resolve(self._provider.revoke_token(token))
            self._error = MISSING_PROFILE_MESSAGE
            return None
        return profile

    async def login(self, email: str, password: str) -> User:
        self._loading = True
        self._error = None
        try:
            result = await resolve(
                self._provider.authenticate(AuthCredentials(email=email, password=password))
            )
            if not result.success or result.token is None or result.user_id is None:
                self._error = result.error or "Invalid login credentials"
                raise AuthenticationError(self._error)

            profile = await resolve(self._users.get(result.user_id))
            if profile is None:
                await resolve(self._provider.revoke_token(result.token))
                self._error = MISSING_PROFILE_MESSAGE
                raise AuthenticationError(self._error)
            if not profile.active:
                await resolve(self._provider.revoke_token(result.token))
                self._error = "Compte désactivé"
                raise AuthenticationError(self._error)

            self._user = profile
            self._token = result.token
            logger.info("User %s signed in", profile.id)
            return profile
        finally:
            self._loading = False

    async def logout(self) -> None:
        self._loading = True
        try:
            if self._token is not None:
                await resolve(self._provider.revoke_token(self._token))
            user = self._user
            self._clear()
            if user is not None:
                logger.info("User %s signed out", user.id)
                if self._on_sign_out is not None:
                    await resolve(self._on_sign_out(user))
        finally:
            self._loading = False

    async def sign_up(
        self,
        email: str,
        password: str,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> User:
        """Register an identity and its profile. New users await a role."""
        result = await resolve(
            self._provider.sign_up(AuthCredentials(email=email, password=password))
        )
        if not result.success or result.user_id is None:
            raise InputValidationError(result.error or "Inscription impossible")

        profile = User(
            id=result.user_id,
            username=email.strip(),
            role=UserRole.PENDING,
            first_name=first_name,
            last_name=last_name,
        )
        await resolve(self._users.save(profile))
        logger.info("Registered pending user %s", profile.id)
        return profile

    async def refresh(self) -> str:
        if self._token is None:
            raise AuthenticationError("Aucune session active")
        result = await resolve(self._provider.refresh_token(self._token))
        if not result.success or result.token is None:
            self._clear()
            raise AuthenticationError(result.error or "Session expirée")
        self._token = result.token
        return result.token

    async def handle_event(self, event: AuthEvent, token: str | None = None) -> User | None:
        """Apply a session lifecycle event from the identity provider."""
        logger.debug("Auth state changed: %s", event)
        if event is AuthEvent.SIGNED_OUT:
            user = self._user
            self._clear()
            if user is not None and self._on_sign_out is not None:
                await resolve(self._on_sign_out(user))
            return None
        return await self.initialize(token or self._token)

    def _clear(self) -> None:
        self._user = None
        self._token = None
