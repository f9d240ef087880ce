"""Ticket visibility rules.

Given the signed-in user and the active filter selection, computes the
predicate that selects the tickets the user may see. The predicate is a
plain value object so that the in-memory store and the SQL repository
evaluate exactly the same conditions.

Role rules, first match wins:

* ``Proprietaire``: tickets they created.
* ``Conseil_Syndical``: own building, addressed to the council or owners.
* ``Syndicat_Copropriete``: own building, addressed to the syndic or council.
* ``ASL`` / ``Superadmin``: every ticket.
* anything else: nothing, and no query is issued.

Building-scoped roles without a building see nothing.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta

from pydantic import BaseModel

from coprodesk.auth.models import User
from coprodesk.core.types import UserRole, utcnow
from coprodesk.tickets.filters import TicketFilters, is_active
from coprodesk.tickets.models import Ticket

_BUILDING_SCOPED_RECIPIENTS: dict[UserRole, tuple[UserRole, ...]] = {
    UserRole.COUNCIL: (UserRole.COUNCIL, UserRole.OWNER),
    UserRole.SYNDIC: (UserRole.SYNDIC, UserRole.COUNCIL),
}

_UNRESTRICTED = frozenset({UserRole.ASL, UserRole.SUPERADMIN})

# leading sign and digits, "30d" reads as 30
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class TicketQuery(BaseModel):
    """Conjunction of equality/range constraints over tickets.

    ``None`` on a field means the field is unconstrained. Results are
    ordered by creation time, newest first.
    """

    creator_id: str | None = None
    building: str | None = None
    recipient_roles: tuple[UserRole, ...] | None = None
    status: str | None = None
    filter_building: str | None = None
    created_after: datetime | None = None

    def matches(self, ticket: Ticket) -> bool:
        if self.creator_id is not None and ticket.creator_id != self.creator_id:
            return False
        if self.building is not None and ticket.building != self.building:
            return False
        if self.recipient_roles is not None and ticket.recipient_role not in self.recipient_roles:
            return False
        if self.status is not None and ticket.status != self.status:
            return False
        if self.filter_building is not None and ticket.building != self.filter_building:
            return False
        if self.created_after is not None and ticket.created_at < self.created_after:
            return False
        return True


def role_query(user: User) -> TicketQuery | None:
    """Return the role part of the predicate, or None when nothing is visible."""
    if user.role is UserRole.OWNER:
        return TicketQuery(creator_id=user.id)
    if user.role in _BUILDING_SCOPED_RECIPIENTS:
        if not user.building:
            return None
        return TicketQuery(
            building=user.building,
            recipient_roles=_BUILDING_SCOPED_RECIPIENTS[user.role],
        )
    if user.role in _UNRESTRICTED:
        return TicketQuery()
    return None


def parse_period_days(period: str | None) -> int | None:
    """Number of days in a period filter, or None when it does not apply.

    Only the leading integer is read, so ``"30d"`` means 30 days. Values
    without one are ignored rather than rejected.
    """
    if not is_active(period):
        return None
    match = _LEADING_INT.match(str(period))
    if match is None:
        return None
    try:
        return int(match.group(1))
    except ValueError:
        # longer than the int conversion limit
        return None


def _period_cutoff(days: int, now: datetime | None) -> datetime | None:
    try:
        return (now or utcnow()) - timedelta(days=days)
    except OverflowError:
        # out of the datetime range, same as an unparsable period
        return None


def resolve_ticket_query(
    user: User,
    filters: TicketFilters | None = None,
    now: datetime | None = None,
) -> TicketQuery | None:
    """Combine the role predicate with the user's filter selection."""
    query = role_query(user)
    if query is None:
        return None

    filters = filters or TicketFilters()
    updates: dict[str, object] = {}
    if is_active(filters.status):
        updates["status"] = filters.status
    if is_active(filters.building):
        updates["filter_building"] = filters.building
    days = parse_period_days(filters.period)
    if days is not None:
        cutoff = _period_cutoff(days, now)
        if cutoff is not None:
            updates["created_after"] = cutoff
    return query.model_copy(update=updates)


def is_visible(ticket: Ticket, user: User) -> bool:
    """Whether the role rules alone let ``user`` see ``ticket``."""
    query = role_query(user)
    return query is not None and query.matches(ticket)


def is_relevant(ticket: Ticket, user: User) -> bool:
    """Whether activity on ``ticket`` concerns ``user`` for notification purposes.

    A ticket is relevant to its creator and to every user holding the role
    it is currently addressed to.
    """
    return ticket.creator_id == user.id or ticket.recipient_role == user.role
