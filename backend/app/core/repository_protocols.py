"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell (app/db) via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: boundary methods are async because implementations do IO,
      but the pipelines in core that the stores run are never async themselves
"""

from typing import Any, Protocol

from bson import ObjectId

from app.core.domain_types import EventId


class EventRepository(Protocol):
    """Contract for event persistence — implemented by app.db.events."""
    async def create(self, data: dict[str, Any]) -> dict[str, Any]: ...
    async def update(self, slug: str, changes: dict[str, Any]) -> dict[str, Any]: ...
    async def list_recent(self, limit: int | None = None) -> list[dict[str, Any]]: ...
    async def get_by_slug(self, slug: str) -> dict[str, Any] | None: ...
    async def exists(self, event_id: EventId | ObjectId) -> bool: ...


class BookingRepository(Protocol):
    """Contract for booking persistence — implemented by app.db.bookings."""
    async def create(self, data: dict[str, Any]) -> dict[str, Any]: ...
    async def list_for_event(self, event_id: EventId | ObjectId) -> list[dict[str, Any]]: ...


class MediaUploader(Protocol):
    """Contract for the media host — returns a durable URL for the uploaded bytes."""
    async def upload(
        self, content: bytes, filename: str, content_type: str | None = None,
    ) -> str: ...
