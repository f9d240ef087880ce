"""PostgreSQL user profile repository."""

from __future__ import annotations

from sqlalchemy import select

from coprodesk.auth.models import User
from coprodesk.core.types import UserRole
from coprodesk.db.engine import DatabaseManager
from coprodesk.db.models import UserRow


class PostgresUserRepository:
    """Postgres-backed user profile storage."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def save(self, user: User) -> User:
        async with self._db.session() as db:
            row = await db.get(UserRow, user.id)
            if row is None:
                row = UserRow(id=user.id)
                db.add(row)
            row.username = user.username
            row.role = user.role.value
            row.building = user.building
            row.first_name = user.first_name
            row.last_name = user.last_name
            row.active = user.active
            await db.commit()
        return user

    async def get(self, user_id: str) -> User | None:
        async with self._db.session() as db:
            row = await db.get(UserRow, user_id)
            return self._row_to_user(row) if row else None

    async def get_by_username(self, username: str) -> User | None:
        async with self._db.session() as db:
            result = await db.execute(select(UserRow).where(UserRow.username == username))
            row = result.scalars().first()
            return self._row_to_user(row) if row else None

    async def list_all(self, role: UserRole | None = None) -> list[User]:
        stmt = select(UserRow).order_by(UserRow.username)
        if role is not None:
            stmt = stmt.where(UserRow.role == role.value)
        async with self._db.session() as db:
            result = await db.execute(stmt)
            return [self._row_to_user(r) for r in result.scalars().all()]

    @staticmethod
    def _row_to_user(row: UserRow) -> User:
        return User(
            id=row.id,
            username=row.username,
            role=UserRole(row.role),
            building=row.building,
            first_name=row.first_name,
            last_name=row.last_name,
            active=row.active,
        )
