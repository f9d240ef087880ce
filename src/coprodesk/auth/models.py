"""Authentication and user profile data models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from coprodesk.core.types import UserRole, new_id


class User(BaseModel):
    """A user profile row. Identity is owned by the auth provider."""

    id: str = Field(default_factory=new_id)
    username: str
    role: UserRole = UserRole.PENDING
    building: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    active: bool = True

    @property
    def display_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) if parts else self.username


class AuthCredentials(BaseModel):
    email: str
    password: str


class AuthResult(BaseModel):
    success: bool
    token: str | None = None
    user_id: str | None = None
    error: str | None = None


class TokenValidation(BaseModel):
    valid: bool
    user_id: str | None = None
    expires_at: datetime | None = None
