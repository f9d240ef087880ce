"""Attachment storage Protocol and local-disk implementation."""

from __future__ import annotations

import logging
import re
import uuid
from pathlib import Path
from typing import Protocol, runtime_checkable
from urllib.parse import quote

from coprodesk.core.errors import BackendError, InputValidationError
from coprodesk.tickets.models import Attachment

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@runtime_checkable
class AttachmentStorage(Protocol):
    """Protocol for file upload backends."""

    def upload(self, attachment: Attachment) -> str: ...


def safe_filename(filename: str) -> str:
    name = Path(filename).name
    cleaned = _UNSAFE_CHARS.sub("_", name).strip("._")
    if not cleaned:
        raise InputValidationError(f"Invalid attachment name: {filename!r}")
    return cleaned


class LocalAttachmentStorage:
    """Writes uploads under ``upload_dir`` and returns their public URL.

    Each upload gets its own directory so identical file names never clash.
    """

    def __init__(self, upload_dir: str | Path, public_base_url: str) -> None:
        self._root = Path(upload_dir)
        self._base_url = public_base_url.rstrip("/")

    def upload(self, attachment: Attachment) -> str:
        name = safe_filename(attachment.filename)
        key = uuid.uuid4().hex
        target = self._root / key / name
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(attachment.content)
        except OSError as exc:
            logger.error("Failed to store attachment %s: %s", name, exc)
            raise BackendError(f"Impossible d'envoyer la pièce jointe {name}") from exc
        logger.info("Stored attachment %s (%d bytes)", target, len(attachment.content))
        return f"{self._base_url}/{key}/{quote(name)}"
