"""Persistence Layer — MongoDB stores for events and bookings.

Invariants:
    - Every insert/replace goes through the matching core pipeline first
      (prepare_event / prepare_booking); a failed pipeline means no write
    - Stores own createdAt/updatedAt (UTC)
    - Driver errors mapped to DatabaseError / SlugConflictError (core/errors.py)

Design Decisions:
    - Stores take the database handle from get_db: one handle per process, stores are per request
"""
