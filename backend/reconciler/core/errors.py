"""Error Hierarchy — typed, categorized exceptions for all reconciliation failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - ConfigurationError is the only fatal error: it stops the service from starting
    - Everything else is per-record: the sweep turns it into a RecordResult, never re-raises
    - to_response() produces REST envelope; to_log_extra() produces structured log fields
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with ReconcilerError base: one except clause at the per-record boundary
    - ErrorContext as dataclass: record ids travel with the error without coupling to logging
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    CONFIGURATION = "configuration"
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Record identity and debugging detail for one failure."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    pass_id: str | None = None
    event_id: str | None = None
    playlist_id: str | None = None
    debug_info: dict[str, Any] | None = None


class ReconcilerError(Exception):
    """Base exception for all event-completion errors."""

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
                    "playlist_id": self.context.playlist_id,
                },
            }
        }

    def to_log_extra(self) -> dict:
        """Fields for logger `extra=` — ids and code only, never payloads."""
        extra = {"error_code": self.code}
        for key in ("pass_id", "event_id", "playlist_id"):
            val = getattr(self.context, key)
            if val is not None:
                extra[key] = val
        return extra


# ─── Startup Errors (fatal) ─────────────────────────────────────

class ConfigurationError(ReconcilerError):
    """Missing, unparsable, or out-of-range configuration."""
    def __init__(self, message: str, setting: str, context: ErrorContext | None = None):
        super().__init__(
            f"Invalid configuration for {setting}: {message}",
            "CONFIGURATION_ERROR", ErrorCategory.CONFIGURATION,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.setting = setting


# ─── Per-record Errors ──────────────────────────────────────────

class PreconditionFailedError(ReconcilerError):
    """Conditional status write refused: the record is no longer new/running.

    current_status is the status observed when the write was refused and is
    the latest known status for the record.
    """
    def __init__(
        self,
        record_kind: str,
        record_id: str,
        current_status: str | None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{record_kind} '{record_id}' is {current_status}, expected new or running",
            "PRECONDITION_FAILED", ErrorCategory.CONFLICT,
            ErrorSeverity.INFO, context, 412,
        )
        self.record_kind = record_kind
        self.record_id = record_id
        self.current_status = current_status


class ResourceNotFoundError(ReconcilerError):
    """Requested record does not exist (or is soft-deleted)."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class StatusValidationError(ReconcilerError):
    """Status patch payload failed validation."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


# ─── Infrastructure Errors ──────────────────────────────────────

class DatabaseError(ReconcilerError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
