"""Collection Indexes — created once, right after the first successful connect.

Invariants:
    - events.slug is unique (sparse: legacy documents without a slug do not collide)
    - bookings.eventId is indexed for per-event listing

Design Decisions:
    - create_index is idempotent: safe to run on every process start
"""

from app.core.domain_types import Collection


async def ensure_indexes(db) -> None:
    await db[Collection.EVENTS.value].create_index("slug", unique=True, sparse=True)
    await db[Collection.BOOKINGS.value].create_index("eventId")
