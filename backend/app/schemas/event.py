"""Event Schemas — partial-update body and public event representation.

Invariants:
    - EventUpdate carries only the fields the client sent (model_dump(exclude_unset=True))
    - slug is never client-writable; it follows the title
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.core.domain_types import EventMode


class EventUpdate(BaseModel):
    """PATCH body — every field optional."""
    title: str | None = None
    description: str | None = None
    overview: str | None = None
    image: str | None = None
    venue: str | None = None
    location: str | None = None
    date: str | None = None
    time: str | None = None
    mode: str | None = None
    audience: str | None = None
    agenda: list[str] | None = None
    organizer: str | None = None
    tags: list[str] | None = None


class EventResponse(BaseModel):
    """Event as returned to clients."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    title: str
    slug: str
    description: str
    overview: str
    image: str
    venue: str
    location: str
    date: str
    time: str
    mode: EventMode
    audience: str
    agenda: list[str]
    organizer: str
    tags: list[str]
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "EventResponse":
        return cls.model_validate({**document, "id": str(document["_id"])})
