"""Database layer for coprodesk: SQLAlchemy 2.0 async."""

from __future__ import annotations

from coprodesk.db.base import Base
from coprodesk.db.engine import DatabaseManager

__all__ = ["Base", "DatabaseManager"]
