"""Pydantic Schemas — request/response shapes for API endpoints.

Invariants:
    - Request schemas check types only; field rules live in core pipelines so that
      every violation is reported in one EntityValidationError
    - Response schemas serialize with the stored camelCase names (createdAt, eventId)

Design Decisions:
    - Separate from app/db: schemas are API contracts, documents are persistence
"""
