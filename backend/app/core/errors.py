"""Error Hierarchy — typed, categorized exceptions for all DevEvent failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - to_response() produces the REST envelope
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with DevEventError base: FastAPI global handler catches all (ADR: uniform error shape)
    - ErrorContext as dataclass: rich observability without coupling to logging framework
    - Names avoid shadowing builtins and pydantic (DatabaseConnectionError, EntityValidationError)
"""

from dataclasses import dataclass, field
from enum import Enum
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFIGURATION = "configuration"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_id: str | None = None
    slug: str | None = None


@dataclass(frozen=True)
class FieldViolation:
    """One violated field rule."""
    field: str
    message: str


class DevEventError(Exception):
    """Base exception for all DevEvent errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "event_id": self.context.event_id,
                    "slug": self.context.slug,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class EntityValidationError(DevEventError):
    """One or more field rules violated. Carries every violation, not just the first."""
    def __init__(
        self, violations: list[FieldViolation], context: ErrorContext | None = None,
    ):
        fields = ", ".join(v.field for v in violations)
        super().__init__(
            f"Validation failed for: {fields}",
            "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.violations = list(violations)

    def to_response(self) -> dict:
        response = super().to_response()
        response["error"]["details"] = [
            {"field": v.field, "message": v.message} for v in self.violations
        ]
        return response


class InvalidDateError(DevEventError):
    """Date input could not be parsed."""
    def __init__(self, value: object, context: ErrorContext | None = None):
        super().__init__(
            "Invalid date format",
            "INVALID_DATE", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.value = value


class InvalidTimeError(DevEventError):
    """Time input does not match H:MM, HH:MM or HH:MM:SS with optional AM/PM."""
    def __init__(self, value: object, context: ErrorContext | None = None):
        super().__init__(
            "Invalid time format. Use HH:MM or HH:MM AM/PM",
            "INVALID_TIME", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.value = value


class ReferentialIntegrityError(DevEventError):
    """Referenced document does not exist at write time."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} with ID {resource_id} does not exist",
            "REFERENCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class ResourceNotFoundError(DevEventError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


class SlugConflictError(DevEventError):
    """Another event already owns the slug derived from this title."""
    def __init__(self, slug: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.slug = slug
        super().__init__(
            f"An event with slug '{slug}' already exists",
            "SLUG_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, ctx, 409,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class ConfigurationError(DevEventError):
    """Required configuration missing. Fatal at startup."""
    def __init__(self, setting: str, context: ErrorContext | None = None):
        super().__init__(
            f"{setting} environment variable is not defined",
            "CONFIGURATION_ERROR", ErrorCategory.CONFIGURATION,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.setting = setting


class DatabaseConnectionError(DevEventError):
    """Transport-level connect failure. Retryable by a fresh acquire()."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database connection failed: {message}",
            "DATABASE_UNAVAILABLE", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )


class DatabaseError(DevEventError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class MediaUploadError(DevEventError):
    """Media host rejected or could not receive the upload."""
    def __init__(
        self, message: str, reason: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Image upload failed ({reason}): {message}",
            "MEDIA_UPLOAD_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, context, 502,
        )
        self.reason = reason
