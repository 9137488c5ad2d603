"""Domain Types — verifies rich type definitions and enum values.

Tests:
    - NewType wrappers are transparent at runtime
    - EventMode has exactly the three accepted modes and serializes to string
    - Collection names match the MongoDB collections
"""

from app.core.domain_types import Collection, EventId, EventMode, Slug


def test_identity_types_wrap_str():
    assert EventId("65f0c0ffee0000000000abcd") == "65f0c0ffee0000000000abcd"
    assert Slug("my-cool-talk") == "my-cool-talk"


def test_event_mode_has_three_members():
    assert {m.value for m in EventMode} == {"online", "offline", "hybrid"}


def test_event_mode_is_str():
    assert EventMode.HYBRID == "hybrid"
    assert EventMode("online") is EventMode.ONLINE


def test_collection_names():
    assert Collection.EVENTS.value == "events"
    assert Collection.BOOKINGS.value == "bookings"
