"""Protocol definitions for all repository interfaces.

Each protocol mirrors the public methods of the corresponding in-memory
store class exactly, enabling both sync (in-memory) and async (SQL)
implementations to satisfy the same interface.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime

    from coprodesk.admin.models import Building, Category
    from coprodesk.auth.models import User
    from coprodesk.core.types import TicketStatus, UserRole
    from coprodesk.tickets.models import Comment, Ticket
    from coprodesk.tickets.visibility import TicketQuery


@runtime_checkable
class UserRepository(Protocol):
    """Protocol for user profile storage."""

    def save(self, user: User) -> User: ...

    def get(self, user_id: str) -> User | None: ...

    def get_by_username(self, username: str) -> User | None: ...

    def list_all(self, role: UserRole | None = None) -> list[User]: ...


@runtime_checkable
class TicketRepository(Protocol):
    """Protocol for ticket and comment storage."""

    def save_ticket(self, ticket: Ticket) -> Ticket: ...

    def get_ticket(self, ticket_id: str) -> Ticket | None: ...

    def list_tickets(self, query: TicketQuery) -> list[Ticket]: ...

    def list_related(self, user_id: str, role: UserRole) -> list[Ticket]: ...

    def add_comment(self, comment: Comment) -> Comment: ...

    def list_comments(self, ticket_id: str) -> list[Comment]: ...

    def latest_comment(self, ticket_id: str) -> Comment | None: ...

    def touch_ticket(self, ticket_id: str, updated_at: datetime) -> Ticket | None: ...

    def set_status(
        self,
        ticket_id: str,
        status: TicketStatus,
        closed_by: str | None,
        closed_at: datetime | None,
        updated_at: datetime,
    ) -> Ticket | None: ...

    def apply_transfer(self, ticket: Ticket, comment: Comment) -> Ticket: ...


@runtime_checkable
class CategoryRepository(Protocol):
    """Protocol for category storage."""

    def save(self, category: Category) -> Category: ...

    def get(self, category_id: str) -> Category | None: ...

    def delete(self, category_id: str) -> bool: ...

    def list_all(self) -> list[Category]: ...


@runtime_checkable
class BuildingRepository(Protocol):
    """Protocol for building (copropriété) storage."""

    def save(self, building: Building) -> Building: ...

    def get(self, building_id: str) -> Building | None: ...

    def delete(self, building_id: str) -> bool: ...

    def list_all(self, active_only: bool = False) -> list[Building]: ...
