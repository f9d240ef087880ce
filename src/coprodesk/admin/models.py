"""Reference entities administered by privileged roles."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from coprodesk.core.types import new_id, utcnow


class Category(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str
    created_at: datetime = Field(default_factory=utcnow)


class Building(BaseModel):
    """A managed copropriété and its syndic contact."""

    id: str = Field(default_factory=new_id)
    name: str
    address: str | None = None
    city: str | None = None
    postal_code: str | None = None
    description: str | None = None
    active: bool = True
    syndic_name: str | None = None
    syndic_contact_last_name: str | None = None
    syndic_contact_first_name: str | None = None
    syndic_email: str | None = None
    syndic_phone: str | None = None
