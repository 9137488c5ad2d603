"""Event Store — MongoDB persistence for events behind the event write pipeline.

Invariants:
    - create/update call prepare_event and raise its error before any IO on the collection
    - update compares against the stored document: slug changes only with the title
    - get_by_slug trims and lowercases the slug before lookup
    - list_recent is ordered by createdAt descending

Design Decisions:
    - replace_one over $set on update: the pipeline produces the whole canonical document
"""

import logging
from datetime import datetime, timezone
from typing import Any

from bson import ObjectId
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.core.domain_types import Collection, EventId
from app.core.errors import (
    DatabaseError, ErrorContext, ResourceNotFoundError, SlugConflictError,
)
from app.core.validate_event import prepare_event

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_object_id(value: EventId | ObjectId | str) -> ObjectId | None:
    """ObjectId for a stored id, or None when the value cannot be one."""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


class EventStore:
    """Create, update and query events."""

    def __init__(self, db):
        self._events = db[Collection.EVENTS.value]

    async def create(self, data: dict[str, Any]) -> dict[str, Any]:
        document = prepare_event(data).unwrap()
        now = utcnow()
        document["createdAt"] = now
        document["updatedAt"] = now
        try:
            result = await self._events.insert_one(document)
        except DuplicateKeyError:
            raise SlugConflictError(document["slug"])
        except PyMongoError as e:
            raise DatabaseError(str(e), "insert")
        document["_id"] = result.inserted_id
        logger.info(
            f"Event created: {document['title']}",
            extra={"slug": document["slug"], "event_id": str(result.inserted_id)},
        )
        return document

    async def update(self, slug: str, changes: dict[str, Any]) -> dict[str, Any]:
        existing = await self.get_by_slug(slug)
        if existing is None:
            raise ResourceNotFoundError("Event", slug, ErrorContext(slug=slug))

        document = prepare_event({**existing, **changes}, existing).unwrap()
        document["createdAt"] = existing.get("createdAt")
        document["updatedAt"] = utcnow()
        try:
            await self._events.replace_one({"_id": existing["_id"]}, document)
        except DuplicateKeyError:
            raise SlugConflictError(
                document["slug"], ErrorContext(event_id=str(existing["_id"])),
            )
        except PyMongoError as e:
            raise DatabaseError(str(e), "update")
        document["_id"] = existing["_id"]
        if document["slug"] != existing.get("slug"):
            logger.info(
                f"Event slug changed from '{existing.get('slug')}'",
                extra={"slug": document["slug"], "event_id": str(existing["_id"])},
            )
        return document

    async def list_recent(self, limit: int | None = None) -> list[dict[str, Any]]:
        cursor = self._events.find({}).sort("createdAt", -1)
        if limit:
            cursor = cursor.limit(limit)
        try:
            return await cursor.to_list(length=None)
        except PyMongoError as e:
            raise DatabaseError(str(e), "query")

    async def get_by_slug(self, slug: str) -> dict[str, Any] | None:
        sanitized = slug.strip().lower()
        if not sanitized:
            return None
        try:
            return await self._events.find_one({"slug": sanitized})
        except PyMongoError as e:
            raise DatabaseError(str(e), "query")

    async def exists(self, event_id: EventId | ObjectId) -> bool:
        oid = as_object_id(event_id)
        if oid is None:
            return False
        try:
            found = await self._events.find_one({"_id": oid}, {"_id": 1})
        except PyMongoError as e:
            raise DatabaseError(str(e), "query")
        return found is not None
