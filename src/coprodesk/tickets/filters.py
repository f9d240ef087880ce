"""Filter selection shared between the sidebar and the ticket table."""

from __future__ import annotations

from pydantic import BaseModel

ALL = "all"


class TicketFilters(BaseModel):
    """Active filter selection. Empty or ``"all"`` means unfiltered."""

    status: str = ""
    building: str = ""
    period: str = ""

    def merged(self, **overrides: str | None) -> TicketFilters:
        """Return a copy with every non-None override applied."""
        updates = {k: v for k, v in overrides.items() if v is not None}
        return self.model_copy(update=updates)


def is_active(value: str | None) -> bool:
    return bool(value) and value != ALL


class FilterStateStore:
    """In-memory per-user filter selection."""

    def __init__(self) -> None:
        self._filters: dict[str, TicketFilters] = {}

    def get(self, user_id: str) -> TicketFilters:
        return self._filters.get(user_id, TicketFilters())

    def set(self, user_id: str, filters: TicketFilters) -> TicketFilters:
        self._filters[user_id] = filters
        return filters

    def update(self, user_id: str, **changes: str | None) -> TicketFilters:
        return self.set(user_id, self.get(user_id).merged(**changes))

    def clear(self, user_id: str) -> None:
        self._filters.pop(user_id, None)
