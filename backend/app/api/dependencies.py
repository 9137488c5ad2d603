"""Route Dependencies — per-request stores and the media uploader.

Invariants:
    - Stores are built per request on top of the shared database handle (get_db)
    - Tests replace these through app.dependency_overrides, never by patching modules
"""

from fastapi import Depends

from app.config import get_settings
from app.core.repository_protocols import (
    BookingRepository, EventRepository, MediaUploader,
)
from app.db.bookings import BookingStore
from app.db.events import EventStore
from app.infrastructure.database import get_db
from app.infrastructure.media_uploader import build_media_uploader


def get_event_store(db=Depends(get_db)) -> EventRepository:
    return EventStore(db)


def get_booking_store(db=Depends(get_db)) -> BookingRepository:
    return BookingStore(db, EventStore(db))


def get_media_uploader() -> MediaUploader:
    return build_media_uploader(get_settings())
