"""Ticket routing chain.

Tickets escalate along a strict linear chain of roles::

    Proprietaire -> Conseil_Syndical -> Syndicat_Copropriete -> ASL

Each role may address only the next role in the chain. ASL and Superadmin
may address any role of the chain. Creation and transfer both validate
their destination against :func:`allowed_destinations`.
"""

from __future__ import annotations

from coprodesk.core.types import UserRole

ESCALATION_CHAIN: tuple[UserRole, ...] = (
    UserRole.OWNER,
    UserRole.COUNCIL,
    UserRole.SYNDIC,
    UserRole.ASL,
)

_PRIVILEGED = frozenset({UserRole.ASL, UserRole.SUPERADMIN})


def escalation_rank(role: UserRole | str) -> int:
    """Position of ``role`` in the escalation chain.

    Superadmin sits above the chain; pending users sit below it.
    """
    role = UserRole(role)
    if role is UserRole.SUPERADMIN:
        return len(ESCALATION_CHAIN)
    if role is UserRole.PENDING:
        return -1
    return ESCALATION_CHAIN.index(role)


def allowed_destinations(role: UserRole | str) -> tuple[UserRole, ...]:
    """Return the roles a user holding ``role`` may route a ticket to."""
    role = UserRole(role)
    if role in _PRIVILEGED:
        return ESCALATION_CHAIN
    if role not in ESCALATION_CHAIN:
        return ()
    rank = ESCALATION_CHAIN.index(role)
    return ESCALATION_CHAIN[rank + 1 : rank + 2]


def can_route(source: UserRole | str, target: UserRole | str) -> bool:
    return UserRole(target) in allowed_destinations(source)
