"""Event Write Pipeline — validate, derive slug, normalize date/time before every save.

Invariants:
    - prepare_event is PURE: works on a copy, never mutates the caller's mapping
    - Order: field rules → slug → date → time; the first failing stage stops the pipeline
    - Slug recomputed only when the title changed against `existing` (always on create)
      or when no slug is set
    - Stored date/time are always canonical (YYYY-MM-DD, HH:MM), never raw input

Design Decisions:
    - Explicit pipeline over ORM pre-save hooks: the store calls it before every
      insert/update and must check the PreparedWrite result (no implicit triggering)
    - Unknown keys dropped here; createdAt/updatedAt owned by the store
"""

from collections.abc import Mapping
from typing import Any

from app.core.domain_types import EventMode
from app.core.errors import (
    EntityValidationError, FieldViolation, InvalidDateError, InvalidTimeError,
)
from app.core.field_rules import (
    ChoiceRule, PreparedWrite, StringListRule, TextRule, apply_rules,
)
from app.core.normalize_datetime import normalize_date, normalize_time
from app.core.slugify import slugify


TITLE_MIN_LENGTH: int = 3

EVENT_FIELDS: tuple[str, ...] = (
    "title", "slug", "description", "overview", "image", "venue", "location",
    "date", "time", "mode", "audience", "agenda", "organizer", "tags",
)

EVENT_RULES = (
    TextRule(
        "title", "Event title is required",
        min_length=TITLE_MIN_LENGTH,
        min_length_message=f"Title must be at least {TITLE_MIN_LENGTH} characters",
    ),
    TextRule("description", "Event description is required"),
    TextRule("overview", "Event overview is required"),
    TextRule("image", "Event image URL is required"),
    TextRule("venue", "Event venue is required"),
    TextRule("location", "Event location is required"),
    TextRule("date", "Event date is required"),
    TextRule("time", "Event time is required"),
    ChoiceRule(
        "mode", tuple(m.value for m in EventMode),
        "Event mode is required",
        "Mode must be online, offline, or hybrid",
    ),
    TextRule("audience", "Event audience is required"),
    StringListRule(
        "agenda", "Event agenda is required",
        "Agenda must contain at least one item",
    ),
    TextRule("organizer", "Event organizer is required"),
    StringListRule(
        "tags", "Event tags are required",
        "Tags must contain at least one item",
    ),
)


def validate_event_fields(document: dict[str, Any]) -> list[FieldViolation]:
    """Apply EVENT_RULES to a working copy in place; return every violation."""
    return apply_rules(EVENT_RULES, document)


def _needs_new_slug(
    document: Mapping[str, Any], existing: Mapping[str, Any] | None,
) -> bool:
    if existing is None or existing.get("title") != document["title"]:
        return True
    return not document.get("slug")


def prepare_event(
    candidate: Mapping[str, Any], existing: Mapping[str, Any] | None = None,
) -> PreparedWrite:
    """Run the full event pipeline. `existing` is the stored version on update."""
    document = {key: candidate[key] for key in EVENT_FIELDS if key in candidate}

    violations = validate_event_fields(document)
    if violations:
        return PreparedWrite.failed(EntityValidationError(violations))

    if _needs_new_slug(document, existing):
        document["slug"] = slugify(document["title"])
        if not document["slug"]:
            return PreparedWrite.failed(EntityValidationError([
                FieldViolation("title", "Title must contain at least one letter or digit"),
            ]))
    else:
        document["slug"] = str(document["slug"]).lower()

    try:
        document["date"] = normalize_date(document["date"])
        document["time"] = normalize_time(document["time"])
    except (InvalidDateError, InvalidTimeError) as e:
        return PreparedWrite.failed(e)

    return PreparedWrite.succeeded(document)
