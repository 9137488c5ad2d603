"""Booking Write Pipeline — field rules and email normalization before every save.

Invariants:
    - prepare_booking is PURE: the referential check (IO) is done by the booking store
    - eventId is converted to ObjectId; an unparsable id is a field violation
    - email stored trimmed and lowercased

Design Decisions:
    - Referential check split out of the pure stage: core stays IO-free, the store
      runs prepare_booking → event lookup → insert (ADR: functional core, imperative shell)
"""

import re
from collections.abc import Mapping
from typing import Any

from bson import ObjectId

from app.core.errors import EntityValidationError, FieldViolation
from app.core.field_rules import PreparedWrite, TextRule, apply_rules


EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

BOOKING_RULES = (
    TextRule(
        "email", "Email is required",
        lowercase=True,
        pattern=EMAIL_PATTERN,
        pattern_message="Invalid email format",
    ),
)


def _coerce_event_id(value: Any) -> ObjectId | FieldViolation:
    if value is None or value == "":
        return FieldViolation("eventId", "Event ID is required")
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value.strip()):
        return ObjectId(value.strip())
    return FieldViolation("eventId", "Invalid event ID")


def prepare_booking(candidate: Mapping[str, Any]) -> PreparedWrite:
    """Validate and normalize a booking candidate (eventId, email)."""
    document: dict[str, Any] = {"email": candidate.get("email")}
    violations = []

    event_id = _coerce_event_id(candidate.get("eventId"))
    if isinstance(event_id, FieldViolation):
        violations.append(event_id)
    else:
        document["eventId"] = event_id

    violations.extend(apply_rules(BOOKING_RULES, document))
    if violations:
        return PreparedWrite.failed(EntityValidationError(violations))
    return PreparedWrite.succeeded(document)
