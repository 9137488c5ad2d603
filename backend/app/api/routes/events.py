"""Event Routes — create (multipart with image), list, fetch by slug, partial update.

Invariants:
    - POST runs the event pipeline (with a placeholder image URL) before uploading:
      a request that fails any field, date or time rule never reaches the media host
    - The uploaded image URL is stored as the event's image field
    - Slug lookups are case- and whitespace-insensitive (sanitized by the store)
    - Missing events raise ResourceNotFoundError → 404 via the global handler

Design Decisions:
    - Form fields all optional at the FastAPI layer: the event pipeline reports every
      violated field at once instead of FastAPI stopping at the first missing one
    - tags/agenda arrive as JSON strings inside the multipart form
"""

import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from app.api.dependencies import get_booking_store, get_event_store, get_media_uploader
from app.core.errors import (
    EntityValidationError, ErrorContext, FieldViolation, ResourceNotFoundError,
)
from app.core.repository_protocols import (
    BookingRepository, EventRepository, MediaUploader,
)
from app.core.validate_event import prepare_event
from app.schemas.booking import BookingResponse
from app.schemas.event import EventResponse, EventUpdate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/events", tags=["events"])

# Stands in for the media URL while the rest of the form is checked
PENDING_IMAGE_URL = "pending://image"


def _parse_json_list(raw: str | None, field: str) -> tuple[Any, FieldViolation | None]:
    """Decode a JSON form field; None stays None so the pipeline reports it as required."""
    if raw is None or not raw.strip():
        return None, None
    try:
        return json.loads(raw), None
    except json.JSONDecodeError:
        return None, FieldViolation(field, f"{field} must be a JSON array of strings")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_event(
    title: str | None = Form(None),
    description: str | None = Form(None),
    overview: str | None = Form(None),
    venue: str | None = Form(None),
    location: str | None = Form(None),
    date: str | None = Form(None),
    time: str | None = Form(None),
    mode: str | None = Form(None),
    audience: str | None = Form(None),
    organizer: str | None = Form(None),
    tags: str | None = Form(None),
    agenda: str | None = Form(None),
    image: UploadFile | None = File(None),
    events: EventRepository = Depends(get_event_store),
    uploader: MediaUploader = Depends(get_media_uploader),
):
    """Create an event; the image is uploaded only once every other field passes."""
    parsed_tags, tags_error = _parse_json_list(tags, "tags")
    parsed_agenda, agenda_error = _parse_json_list(agenda, "agenda")
    violations = [v for v in (tags_error, agenda_error) if v is not None]
    if image is None:
        violations.insert(0, FieldViolation("image", "Image file is required"))

    candidate = {
        "title": title,
        "description": description,
        "overview": overview,
        "image": PENDING_IMAGE_URL,
        "venue": venue,
        "location": location,
        "date": date,
        "time": time,
        "mode": mode,
        "audience": audience,
        "organizer": organizer,
        "tags": parsed_tags,
        "agenda": parsed_agenda,
    }
    preflight = prepare_event(candidate)
    if isinstance(preflight.error, EntityValidationError):
        reported = {v.field for v in violations}
        violations.extend(v for v in preflight.error.violations if v.field not in reported)
    if violations:
        raise EntityValidationError(violations)
    preflight.unwrap()

    content = await image.read()
    candidate["image"] = await uploader.upload(
        content, image.filename or "upload", image.content_type,
    )
    event = await events.create(candidate)
    return {
        "message": "Event created successfully",
        "data": EventResponse.from_document(event),
    }


@router.get("")
async def list_events(events: EventRepository = Depends(get_event_store)):
    """List events, newest first."""
    documents = await events.list_recent()
    return {
        "message": "Events fetched successfully",
        "data": [EventResponse.from_document(d) for d in documents],
    }


async def get_event_or_404(slug: str, events: EventRepository) -> dict:
    event = await events.get_by_slug(slug)
    if event is None:
        sanitized = slug.strip().lower()
        raise ResourceNotFoundError("Event", sanitized, ErrorContext(slug=sanitized))
    return event


@router.get("/{slug}")
async def get_event(slug: str, events: EventRepository = Depends(get_event_store)):
    """Fetch one event by slug."""
    event = await get_event_or_404(slug, events)
    return {
        "message": "Event fetched successfully",
        "event": EventResponse.from_document(event),
    }


@router.patch("/{slug}")
async def update_event(
    slug: str, body: EventUpdate, events: EventRepository = Depends(get_event_store),
):
    """Apply a partial update; a new title yields a new slug."""
    event = await events.update(slug, body.model_dump(exclude_unset=True))
    return {
        "message": "Event updated successfully",
        "data": EventResponse.from_document(event),
    }


@router.get("/{slug}/bookings")
async def list_event_bookings(
    slug: str,
    events: EventRepository = Depends(get_event_store),
    bookings: BookingRepository = Depends(get_booking_store),
):
    """List the bookings of one event."""
    event = await get_event_or_404(slug, events)
    documents = await bookings.list_for_event(event["_id"])
    return {
        "message": "Bookings fetched successfully",
        "data": [BookingResponse.from_document(d) for d in documents],
    }
