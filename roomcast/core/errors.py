"""Error Hierarchy — typed, categorized exceptions for all roomcast failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors are recoverable (the view shows them inline); storage errors are critical
    - Validation errors are raised before any write or publish — no partial state is observable
    - to_response() produces a structured dict; to_event() produces the view-facing envelope

Design Decisions:
    - Single hierarchy with RoomcastError base: callers catch one type for every command
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and view handling."""
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    STORAGE = "storage"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    command: str | None = None
    user_id: str | None = None
    room_id: str | None = None
    collection: str | None = None
    user_message: str | None = None


class RoomcastError(Exception):
    """Base exception for all roomcast errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()

    @property
    def recoverable(self) -> bool:
        return self.severity is not ErrorSeverity.CRITICAL

    def to_response(self) -> dict:
        """Convert to standardized error envelope."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "command": self.context.command,
                    "user_id": self.context.user_id,
                    "room_id": self.context.room_id,
                    "collection": self.context.collection,
                },
            }
        }

    def to_event(self) -> dict:
        """Convert to the envelope a view renders as an inline error."""
        return {
            "type": "error",
            "data": {
                "code": self.code,
                "message": self.context.user_message or self.message,
                "severity": self.severity.value,
                "recoverable": self.recoverable,
            },
        }


# ─── Domain Errors ──────────────────────────────────────────────

class InvalidCredentialsError(RoomcastError):
    """No user matches the (email, credential) pair."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Invalid credentials", "INVALID_CREDENTIALS",
            ErrorCategory.VALIDATION, ErrorSeverity.WARNING, context,
        )


class EmailTakenError(RoomcastError):
    """Registration attempted with an email that already exists."""
    def __init__(self, email: str, context: ErrorContext | None = None):
        super().__init__(
            "Email already exists", "EMAIL_TAKEN",
            ErrorCategory.CONFLICT, ErrorSeverity.WARNING, context,
        )
        self.email = email


class MissingPasswordError(RoomcastError):
    """Private room requested without a credential."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Private rooms require a password", "MISSING_PASSWORD",
            ErrorCategory.VALIDATION, ErrorSeverity.WARNING, context,
        )


class NotOwnerError(RoomcastError):
    """Room deletion requested by someone other than its owner."""
    def __init__(
        self, room_id: str, requester_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Only the owner can delete room '{room_id}'", "NOT_OWNER",
            ErrorCategory.BUSINESS_RULE, ErrorSeverity.ERROR, context,
        )
        self.room_id = room_id
        self.requester_id = requester_id


class ResourceNotFoundError(RoomcastError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, code: str = "RESOURCE_NOT_FOUND",
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found", code,
            ErrorCategory.RESOURCE_NOT_FOUND, ErrorSeverity.ERROR, context,
        )
        self.resource_id = resource_id


class RoomNotFoundError(ResourceNotFoundError):
    def __init__(self, room_id: str, context: ErrorContext | None = None):
        super().__init__("Room", room_id, "ROOM_NOT_FOUND", context)


class UserNotFoundError(ResourceNotFoundError):
    def __init__(self, user_id: str, context: ErrorContext | None = None):
        super().__init__("User", user_id, "USER_NOT_FOUND", context)


class EmptyMessageError(RoomcastError):
    """Message content is empty or whitespace."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Message content cannot be empty", "EMPTY_MESSAGE",
            ErrorCategory.VALIDATION, ErrorSeverity.WARNING, context,
        )


class ImageEncodingError(RoomcastError):
    """Raw bytes could not be decoded as a raster image."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"Failed to process image: {message}", "IMAGE_ENCODING_FAILED",
            ErrorCategory.VALIDATION, ErrorSeverity.WARNING, context,
        )


# ─── Storage Errors ─────────────────────────────────────────────

class StoreCorruptError(RoomcastError):
    """Persisted payload is not a valid collection."""
    def __init__(self, key: str, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"Persisted payload for '{key}' is corrupt: {reason}", "STORE_CORRUPT",
            ErrorCategory.STORAGE, ErrorSeverity.CRITICAL, context,
        )
        self.key = key
        self.context.collection = self.context.collection or key
        self.reason = reason


class ConcurrencyError(RoomcastError):
    """Write rejected because the observed version is stale."""
    def __init__(
        self, key: str, expected: int, actual: int, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Stale write on '{key}': expected version {expected}, found {actual}",
            "CONCURRENCY_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context,
        )
        self.key = key
        self.context.collection = self.context.collection or key
        self.expected = expected
        self.actual = actual


class DatabaseError(RoomcastError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.STORAGE,
            ErrorSeverity.CRITICAL, context,
        )
        self.operation = operation
