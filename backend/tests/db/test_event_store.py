"""Event Store — pipeline enforcement on insert/replace and query behavior.

Tests cover:
    - Created events are stored canonical with timestamps and a unique slug
    - A failing pipeline stores nothing
    - Title change on update moves the slug; other updates keep it
    - Slug lookup is trimmed and case-insensitive; listing is newest first
"""

from datetime import datetime, timezone

import pytest
from bson import ObjectId

from app.core.domain_types import Collection
from app.core.errors import (
    EntityValidationError, InvalidDateError, ResourceNotFoundError, SlugConflictError,
)
from app.db.events import EventStore
from app.db.indexes import ensure_indexes
from tests.factories import make_event_data
from tests.fake_mongo import FakeDatabase


@pytest.fixture
async def db():
    database = FakeDatabase()
    await ensure_indexes(database)
    return database


@pytest.fixture
def store(db):
    return EventStore(db)


def _stored(db) -> list[dict]:
    return db[Collection.EVENTS.value].documents


async def test_ensure_indexes_declares_unique_slug(db):
    assert ("slug", {"unique": True, "sparse": True}) in db[Collection.EVENTS.value].indexes
    assert ("eventId", {}) in db[Collection.BOOKINGS.value].indexes


async def test_create_persists_canonical_event(store, db):
    event = await store.create(make_event_data())

    assert isinstance(event["_id"], ObjectId)
    assert event["slug"] == "my-cool-talk"
    assert event["createdAt"] == event["updatedAt"]
    stored = _stored(db)[0]
    assert stored["date"] == "2025-03-05"
    assert stored["time"] == "14:30"


async def test_create_with_empty_agenda_stores_nothing(store, db):
    with pytest.raises(EntityValidationError) as exc:
        await store.create(make_event_data(agenda=[]))
    assert [v.field for v in exc.value.violations] == ["agenda"]
    assert _stored(db) == []


async def test_create_with_bad_date_stores_nothing(store, db):
    with pytest.raises(InvalidDateError):
        await store.create(make_event_data(date="not-a-date"))
    assert _stored(db) == []


async def test_duplicate_slug_is_a_conflict(store):
    await store.create(make_event_data())
    with pytest.raises(SlugConflictError):
        await store.create(make_event_data(title="my cool talk"))


async def test_update_title_regenerates_slug(store):
    await store.create(make_event_data())
    updated = await store.update("my-cool-talk", {"title": "Async Python Deep Dive"})

    assert updated["slug"] == "async-python-deep-dive"
    assert await store.get_by_slug("my-cool-talk") is None
    assert (await store.get_by_slug("async-python-deep-dive"))["title"] == "Async Python Deep Dive"


async def test_update_other_fields_keeps_slug(store):
    created = await store.create(make_event_data())
    updated = await store.update("my-cool-talk", {"venue": "Javits Center", "time": "9:00 am"})

    assert updated["slug"] == "my-cool-talk"
    assert updated["venue"] == "Javits Center"
    assert updated["time"] == "09:00"
    assert updated["createdAt"] == created["createdAt"]
    assert updated["updatedAt"] >= created["updatedAt"]


async def test_update_unknown_event_raises_not_found(store):
    with pytest.raises(ResourceNotFoundError):
        await store.update("nope", {"venue": "x"})


async def test_failed_update_leaves_document_untouched(store, db):
    await store.create(make_event_data())
    with pytest.raises(InvalidDateError):
        await store.update("my-cool-talk", {"date": "someday"})
    assert _stored(db)[0]["date"] == "2025-03-05"


async def test_update_into_taken_slug_is_a_conflict(store):
    await store.create(make_event_data())
    second = await store.create(make_event_data(title="Second Talk"))
    with pytest.raises(SlugConflictError) as exc_info:
        await store.update("second-talk", {"title": "My Cool Talk"})
    assert exc_info.value.context.event_id == str(second["_id"])


async def test_get_by_slug_sanitizes_input(store):
    await store.create(make_event_data())
    assert (await store.get_by_slug("  MY-COOL-TALK ")) is not None
    assert await store.get_by_slug("   ") is None


async def test_list_recent_is_newest_first(store, db):
    collection = db[Collection.EVENTS.value]
    for day, title in ((1, "Oldest"), (3, "Newest"), (2, "Middle")):
        collection.documents.append({
            "_id": ObjectId(), "title": title,
            "createdAt": datetime(2025, 1, day, tzinfo=timezone.utc),
        })

    events = await store.list_recent()
    assert [e["title"] for e in events] == ["Newest", "Middle", "Oldest"]
    assert [e["title"] for e in await store.list_recent(limit=1)] == ["Newest"]


async def test_exists(store):
    event = await store.create(make_event_data())
    assert await store.exists(event["_id"])
    assert await store.exists(str(event["_id"]))
    assert not await store.exists(str(ObjectId()))
    assert not await store.exists("not-an-id")
