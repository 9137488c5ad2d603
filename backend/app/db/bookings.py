"""Booking Store — MongoDB persistence for bookings with a best-effort event check.

Invariants:
    - create: prepare_booking → event existence check → insert, in that order
    - A booking for a missing event raises ReferentialIntegrityError and writes nothing
    - The check is write-time only: later event deletion does not touch bookings

Design Decisions:
    - No transaction around check-then-insert: an event deleted between the two steps
      leaves a dangling booking (accepted; the store has no foreign keys)
"""

import logging
from typing import Any

from bson import ObjectId
from pymongo.errors import PyMongoError

from app.core.domain_types import Collection, EventId
from app.core.errors import DatabaseError, ErrorContext, ReferentialIntegrityError
from app.core.repository_protocols import EventRepository
from app.core.validate_booking import prepare_booking
from app.db.events import as_object_id, utcnow

logger = logging.getLogger(__name__)


class BookingStore:
    """Create and list bookings."""

    def __init__(self, db, events: EventRepository):
        self._bookings = db[Collection.BOOKINGS.value]
        self._events = events

    async def create(self, data: dict[str, Any]) -> dict[str, Any]:
        document = prepare_booking(data).unwrap()

        event_id = document["eventId"]
        if not await self._events.exists(event_id):
            raise ReferentialIntegrityError(
                "Event", str(event_id), ErrorContext(event_id=str(event_id)),
            )

        now = utcnow()
        document["createdAt"] = now
        document["updatedAt"] = now
        try:
            result = await self._bookings.insert_one(document)
        except PyMongoError as e:
            raise DatabaseError(str(e), "insert")
        document["_id"] = result.inserted_id
        logger.info("Booking created", extra={"event_id": str(event_id)})
        return document

    async def list_for_event(
        self, event_id: EventId | ObjectId,
    ) -> list[dict[str, Any]]:
        oid = as_object_id(event_id)
        if oid is None:
            return []
        cursor = self._bookings.find({"eventId": oid}).sort("createdAt", -1)
        try:
            return await cursor.to_list(length=None)
        except PyMongoError as e:
            raise DatabaseError(str(e), "query")
