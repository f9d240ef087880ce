"""Human-readable ticket codes."""

from __future__ import annotations

import secrets
import string
import time

_ALPHABET = string.ascii_uppercase + string.digits


def generate_ticket_code(prefix: str = "TK", now: float | None = None) -> str:
    """Build a code such as ``TK-482913-Q7ZD``.

    The middle part is the last six digits of the millisecond timestamp and
    the tail is four random characters. Collisions are not checked.
    """
    millis = int((time.time() if now is None else now) * 1000)
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(4))
    return f"{prefix}-{millis % 1_000_000:06d}-{suffix}"
