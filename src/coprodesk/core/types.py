"""Core type definitions shared across all coprodesk modules."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import StrEnum


class UserRole(StrEnum):
    """Roles, stored with the values the backend tables use."""

    SUPERADMIN = "Superadmin"
    ASL = "ASL"
    SYNDIC = "Syndicat_Copropriete"
    COUNCIL = "Conseil_Syndical"
    OWNER = "Proprietaire"
    PENDING = "En attente"

    @property
    def label(self) -> str:
        return _ROLE_LABELS[self]

    @property
    def is_admin(self) -> bool:
        """ASL and Superadmin administer users, buildings and categories."""
        return self in (UserRole.SUPERADMIN, UserRole.ASL)


_ROLE_LABELS = {
    UserRole.SUPERADMIN: "Superadmin",
    UserRole.ASL: "ASL",
    UserRole.SYNDIC: "Syndicat de copropriété",
    UserRole.COUNCIL: "Conseil syndical",
    UserRole.OWNER: "Propriétaire",
    UserRole.PENDING: "En attente",
}


class TicketStatus(StrEnum):
    """Ticket lifecycle status."""

    OPEN = "ouvert"
    IN_PROGRESS = "en cours"
    TRANSFERRED = "transmis"
    CLOSED = "cloture"


class TicketPriority(StrEnum):
    LOW = "basse"
    NORMAL = "normale"
    HIGH = "haute"
    URGENT = "urgente"


class CommentType(StrEnum):
    REPLY = "reponse"
    TRANSFER = "transfert"


class AuthEvent(StrEnum):
    """Session lifecycle events emitted by the identity provider."""

    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes read back from SQLite."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())

