"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - EventId wraps the store's ObjectId string form — never a bare str in store signatures
    - Slug is always the output of slugify() (lowercase, [a-z0-9-])
    - All valid event modes encoded as an Enum — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

EventId = NewType("EventId", str)
Slug = NewType("Slug", str)


# ─── Enums ───────────────────────────────────────────────────────

class EventMode(str, Enum):
    """How attendees take part in an event."""
    ONLINE = "online"
    OFFLINE = "offline"
    HYBRID = "hybrid"


class Collection(str, Enum):
    """MongoDB collection names — single source of truth for stores and indexes."""
    EVENTS = "events"
    BOOKINGS = "bookings"
