"""Shared test fixtures and helpers."""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone

from coprodesk.auth.models import User
from coprodesk.core.types import TicketStatus, UserRole
from coprodesk.tickets.models import Ticket

# minimum bcrypt work factor so each test app hashes its fixtures quickly
os.environ.setdefault("COPRODESK_AUTH_PASSWORD_ROUNDS", "4")

BUILDING = "Les Tilleuls"
OTHER_BUILDING = "Le Belvédère"

# Credentials from config/auth_fixtures.yml
OWNER_LOGIN = ("proprietaire@coprodesk.local", "owner-pass")
OTHER_OWNER_LOGIN = ("voisin@coprodesk.local", "owner-pass")
COUNCIL_LOGIN = ("conseil@coprodesk.local", "conseil-pass")
SYNDIC_LOGIN = ("syndic@coprodesk.local", "syndic-pass")
ASL_LOGIN = ("asl@coprodesk.local", "asl-pass")
ADMIN_LOGIN = ("admin@coprodesk.local", "admin-pass")
PENDING_LOGIN = ("attente@coprodesk.local", "pending-pass")
INACTIVE_LOGIN = ("inactif@coprodesk.local", "inactive-pass")


def make_user(
    role: UserRole,
    user_id: str | None = None,
    building: str | None = BUILDING,
    active: bool = True,
) -> User:
    user_id = user_id or f"u-{role.name.lower()}"
    return User(
        id=user_id,
        username=f"{user_id}@example.com",
        role=role,
        building=building,
        active=active,
    )


def make_ticket(
    creator_id: str = "u-owner",
    recipient_role: UserRole = UserRole.COUNCIL,
    building: str = BUILDING,
    status: TicketStatus = TicketStatus.OPEN,
    created_at: datetime | None = None,
    ticket_id: str | None = None,
) -> Ticket:
    extra = {"id": ticket_id} if ticket_id else {}
    return Ticket(
        code="TK-000001-ABCD",
        title="Fuite d'eau",
        description="Fuite au plafond du hall",
        building=building,
        creator_id=creator_id,
        recipient_role=recipient_role,
        status=status,
        created_at=created_at or datetime.now(timezone.utc),
        **extra,
    )


def days_ago(days: int) -> datetime:
    return datetime.now(timezone.utc) - timedelta(days=days)


def login(client, credentials: tuple[str, str]) -> dict[str, str]:
    """Sign in through the API and return the Authorization header."""
    email, password = credentials
    resp = client.post("/api/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}
