"""Per-user persistence of the tickets a user has already seen."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


def read_state_key(user_id: str) -> str:
    """Storage key of a user's read set."""
    return f"readTickets_{user_id}"


@runtime_checkable
class ReadStatePort(Protocol):
    """Key-value persistence for read ticket ids, scoped by user id."""

    def load(self, user_id: str) -> set[str]: ...

    def save(self, user_id: str, ticket_ids: Iterable[str]) -> None: ...

    def clear(self, user_id: str) -> None: ...


class InMemoryReadStore:
    def __init__(self) -> None:
        self._data: dict[str, list[str]] = {}

    def load(self, user_id: str) -> set[str]:
        return set(self._data.get(read_state_key(user_id), []))

    def save(self, user_id: str, ticket_ids: Iterable[str]) -> None:
        self._data[read_state_key(user_id)] = sorted(ticket_ids)

    def clear(self, user_id: str) -> None:
        self._data.pop(read_state_key(user_id), None)


class JsonFileReadStore:
    """One JSON file per user holding an array of ticket ids."""

    def __init__(self, directory: str | Path) -> None:
        self._dir = Path(directory)

    def _path(self, user_id: str) -> Path:
        return self._dir / f"{read_state_key(user_id)}.json"

    def load(self, user_id: str) -> set[str]:
        path = self._path(user_id)
        if not path.exists():
            return set()
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable read state %s: %s", path, exc)
            return set()
        if not isinstance(data, list):
            logger.warning("Ignoring malformed read state %s", path)
            return set()
        return {str(item) for item in data}

    def save(self, user_id: str, ticket_ids: Iterable[str]) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)
        self._path(user_id).write_text(json.dumps(sorted(ticket_ids)), encoding="utf-8")

    def clear(self, user_id: str) -> None:
        self._path(user_id).unlink(missing_ok=True)
