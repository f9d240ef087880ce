"""Tests for DatabaseManager and the ORM schema with SQLite async."""

from __future__ import annotations

import pytest
from sqlalchemy import select

from coprodesk.core.config import DBConfig
from coprodesk.db.base import Base
from coprodesk.db.engine import DatabaseManager

# Import models to populate metadata
import coprodesk.db.models  # noqa: F401


@pytest.fixture
async def db_manager():
    """Create a DatabaseManager with an in-memory SQLite database."""
    manager = DatabaseManager("sqlite+aiosqlite:///:memory:")
    await manager.create_schema()
    yield manager
    await manager.close()


def test_all_tables_registered():
    assert set(Base.metadata.tables) == {
        "users",
        "tickets",
        "comments",
        "categories",
        "buildings",
    }


def test_from_config_requires_url():
    with pytest.raises(ValueError):
        DatabaseManager.from_config(DBConfig())


def test_sqlite_detection():
    assert DatabaseManager("sqlite+aiosqlite:///:memory:").is_sqlite


async def test_insert_and_query_user(db_manager):
    """Round-trip: insert a user row and read it back."""
    from coprodesk.db.models import UserRow

    async with db_manager.session() as session:
        session.add(UserRow(id="u1", username="u1@example.com"))
        await session.commit()

    async with db_manager.session() as session:
        result = await session.execute(select(UserRow).where(UserRow.id == "u1"))
        found = result.scalar_one_or_none()
        assert found is not None
        assert found.role == "En attente"
        assert found.active is True


async def test_ticket_defaults(db_manager):
    from coprodesk.db.models import TicketRow

    async with db_manager.session() as session:
        session.add(
            TicketRow(
                id="t1",
                code="TK-000001-AAAA",
                title="T",
                description="D",
                building="B",
                creator_id="u1",
                recipient_role="Conseil_Syndical",
            )
        )
        await session.commit()

    async with db_manager.session() as session:
        row = await session.get(TicketRow, "t1")
        assert row.status == "ouvert"
        assert row.priority == "normale"
        assert row.attachments == []
        assert row.created_at is not None
