"""Identity provider Protocol and mock implementation."""

from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import yaml
from passlib.context import CryptContext

from coprodesk.auth.models import AuthCredentials, AuthResult, TokenValidation

_DEFAULT_FIXTURES_PATH = Path(__file__).resolve().parents[3] / "config" / "auth_fixtures.yml"


@runtime_checkable
class AuthProvider(Protocol):
    """Protocol for identity providers.

    The provider only owns identities (email, password, tokens). Roles and
    buildings live in the user profile table.
    """

    def authenticate(self, credentials: AuthCredentials) -> AuthResult: ...

    def sign_up(self, credentials: AuthCredentials) -> AuthResult: ...

    def validate_token(self, token: str) -> TokenValidation: ...

    def refresh_token(self, token: str) -> AuthResult: ...

    def revoke_token(self, token: str) -> bool: ...


def password_context(rounds: int = 12) -> CryptContext:
    """bcrypt hashing context; ``rounds`` is the log2 work factor."""
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


class MockAuthProvider:
    """Mock identity provider with fixture identities from YAML.

    Fixture entries carry ``id``, ``email`` and ``password``. Profiles found
    in the same file are exposed through :attr:`profiles` so the app can
    seed its user store.
    """

    def __init__(
        self,
        fixtures_path: str | Path | None = None,
        token_expiry_minutes: int = 60,
        password_rounds: int = 12,
    ) -> None:
        self._pwd_context = password_context(password_rounds)
        self._identities: dict[str, dict[str, Any]] = {}
        self._profiles: list[dict[str, Any]] = []
        self._tokens: dict[str, dict[str, Any]] = {}
        self._token_expiry = timedelta(minutes=token_expiry_minutes)
        self._load_fixtures(Path(fixtures_path) if fixtures_path else _DEFAULT_FIXTURES_PATH)

    def _load_fixtures(self, path: Path) -> None:
        if not path.exists():
            return
        with open(path) as fh:
            data = yaml.safe_load(fh) or {}
        for user in data.get("users", []):
            self._add_identity(user["email"], str(user["password"]), user.get("id"))
            profile = {k: v for k, v in user.items() if k != "password"}
            profile.setdefault("id", self._identities[user["email"]]["id"])
            self._profiles.append(profile)

    def _add_identity(self, email: str, password: str, user_id: str | None = None) -> str:
        identity_id = user_id or str(uuid.uuid4())
        self._identities[email.lower()] = {
            "id": identity_id,
            "email": email,
            "password_hash": self._pwd_context.hash(password),
        }
        return identity_id

    @property
    def profiles(self) -> list[dict[str, Any]]:
        return [dict(p) for p in self._profiles]

    def authenticate(self, credentials: AuthCredentials) -> AuthResult:
        identity = self._identities.get(credentials.email.lower())
        if identity is None or not credentials.password:
            return AuthResult(success=False, error="Invalid login credentials")

        if not self._pwd_context.verify(credentials.password, identity["password_hash"]):
            return AuthResult(success=False, error="Invalid login credentials")

        return AuthResult(
            success=True,
            token=self._issue_token(identity["id"]),
            user_id=identity["id"],
        )

    def sign_up(self, credentials: AuthCredentials) -> AuthResult:
        email = credentials.email.strip()
        if "@" not in email:
            return AuthResult(success=False, error="Invalid email address")
        if len(credentials.password) < 6:
            return AuthResult(success=False, error="Password should be at least 6 characters")
        if email.lower() in self._identities:
            return AuthResult(success=False, error="User already registered")

        user_id = self._add_identity(email, credentials.password)
        return AuthResult(success=True, user_id=user_id)

    def validate_token(self, token: str) -> TokenValidation:
        info = self._tokens.get(token)
        if info is None:
            return TokenValidation(valid=False)

        if datetime.now(timezone.utc) > info["expires_at"]:
            del self._tokens[token]
            return TokenValidation(valid=False)

        return TokenValidation(
            valid=True,
            user_id=info["user_id"],
            expires_at=info["expires_at"],
        )

    def refresh_token(self, token: str) -> AuthResult:
        info = self._tokens.pop(token, None)
        if info is None:
            return AuthResult(success=False, error="Token not found or expired")
        return AuthResult(
            success=True,
            token=self._issue_token(info["user_id"]),
            user_id=info["user_id"],
        )

    def revoke_token(self, token: str) -> bool:
        return self._tokens.pop(token, None) is not None

    def _issue_token(self, user_id: str) -> str:
        token = secrets.token_urlsafe(32)
        self._tokens[token] = {
            "user_id": user_id,
            "expires_at": datetime.now(timezone.utc) + self._token_expiry,
        }
        return token
