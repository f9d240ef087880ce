"""Initial schema: users, tickets, comments, categories, buildings.

Revision ID: 0001
Revises:
Create Date: 2026-10-19

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # -- Users --
    op.create_table(
        "users",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("username", sa.String(255), nullable=False, unique=True),
        sa.Column("role", sa.String(32), server_default="En attente"),
        sa.Column("building", sa.String(255), nullable=True),
        sa.Column("first_name", sa.String(128), nullable=True),
        sa.Column("last_name", sa.String(128), nullable=True),
        sa.Column("active", sa.Boolean, server_default=sa.true()),
    )
    op.create_index("ix_users_role", "users", ["role"])

    # -- Tickets --
    op.create_table(
        "tickets",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("code", sa.String(32), nullable=False, unique=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("category", sa.String(128), server_default=""),
        sa.Column("building", sa.String(255), nullable=False),
        sa.Column("creator_id", sa.String(64), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("recipient_role", sa.String(32), nullable=False),
        sa.Column("status", sa.String(16), server_default="ouvert"),
        sa.Column("priority", sa.String(16), server_default="normale"),
        sa.Column("attachments", postgresql.JSONB().with_variant(sa.JSON(), "sqlite")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("closed_by", sa.String(64), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        "ix_tickets_building_recipient", "tickets", ["building", "recipient_role"]
    )
    op.create_index("ix_tickets_creator_id", "tickets", ["creator_id"])
    op.create_index("ix_tickets_created_at", "tickets", ["created_at"])

    # -- Comments --
    op.create_table(
        "comments",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column(
            "ticket_id",
            sa.String(64),
            sa.ForeignKey("tickets.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("author_id", sa.String(64), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("type", sa.String(16), server_default="reponse"),
        sa.Column("target_role", sa.String(32), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_comments_ticket_created", "comments", ["ticket_id", "created_at"])

    # -- Reference data --
    op.create_table(
        "categories",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "buildings",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("address", sa.String(255), nullable=True),
        sa.Column("city", sa.String(128), nullable=True),
        sa.Column("postal_code", sa.String(16), nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("active", sa.Boolean, server_default=sa.true()),
        sa.Column("syndic_name", sa.String(255), nullable=True),
        sa.Column("syndic_contact_last_name", sa.String(128), nullable=True),
        sa.Column("syndic_contact_first_name", sa.String(128), nullable=True),
        sa.Column("syndic_email", sa.String(255), nullable=True),
        sa.Column("syndic_phone", sa.String(32), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("buildings")
    op.drop_table("categories")
    op.drop_index("ix_comments_ticket_created", table_name="comments")
    op.drop_table("comments")
    op.drop_index("ix_tickets_created_at", table_name="tickets")
    op.drop_index("ix_tickets_creator_id", table_name="tickets")
    op.drop_index("ix_tickets_building_recipient", table_name="tickets")
    op.drop_table("tickets")
    op.drop_index("ix_users_role", table_name="users")
    op.drop_table("users")
