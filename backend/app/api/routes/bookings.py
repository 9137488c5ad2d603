"""Booking Routes — book a seat on an existing event.

Invariants:
    - Unknown eventId → ReferentialIntegrityError (404), nothing stored
"""

import logging

from fastapi import APIRouter, Depends, status

from app.api.dependencies import get_booking_store
from app.core.repository_protocols import BookingRepository
from app.schemas.booking import BookingCreate, BookingResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/bookings", tags=["bookings"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_booking(
    body: BookingCreate, bookings: BookingRepository = Depends(get_booking_store),
):
    """Create a booking for an event."""
    booking = await bookings.create({"eventId": body.event_id, "email": body.email})
    return {
        "message": "Booking created successfully",
        "data": BookingResponse.from_document(booking),
    }
