"""In-memory store for user profiles."""

from __future__ import annotations

from coprodesk.auth.models import User
from coprodesk.core.types import UserRole


class UserStore:
    """In-memory dict store for user profiles, keyed by identity id."""

    def __init__(self) -> None:
        self._users: dict[str, User] = {}

    def save(self, user: User) -> User:
        self._users[user.id] = user
        return user

    def get(self, user_id: str) -> User | None:
        return self._users.get(user_id)

    def get_by_username(self, username: str) -> User | None:
        for user in self._users.values():
            if user.username == username:
                return user
        return None

    def list_all(self, role: UserRole | None = None) -> list[User]:
        users = [u for u in self._users.values() if role is None or u.role == role]
        return sorted(users, key=lambda u: u.username)
