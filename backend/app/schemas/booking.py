"""Booking Schemas — booking request body and public booking representation."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BookingCreate(BaseModel):
    """POST body. Presence and format are checked by prepare_booking."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    event_id: str | None = None
    email: str | None = None


class BookingResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    event_id: str
    email: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "BookingResponse":
        return cls.model_validate({
            **document,
            "id": str(document["_id"]),
            "eventId": str(document["eventId"]),
        })
