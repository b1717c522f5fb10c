"""Error Hierarchy — typed, categorized exceptions for all FinLedger failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Action errors (400-level) are reported in-band as failed FunctionResults, never thrown to the caller
    - Inference and retrieval errors always have a textual fallback in the orchestrator
    - Only store errors (LedgerStoreError, ConcurrencyError) surface to the HTTP caller
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with FinLedgerError base: FastAPI global handler catches all
    - ErrorContext as dataclass: observability fields without coupling to logging
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
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
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"
    CONFLICT = "conflict"
    TIMEOUT = "timeout"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    conversation_id: str | None = None
    action_name: str | None = None
    step: int | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class FinLedgerError(Exception):
    """Base exception for all FinLedger errors."""

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
                "message": self.context.user_message or self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "conversation_id": self.context.conversation_id,
                    "action_name": self.context.action_name,
                    "step": self.context.step,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


# ─── Action Errors (400-level, reported in-band) ────────────────

class ActionValidationError(FinLedgerError):
    """Action arguments failed schema validation."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.field = field


class ResourceNotFoundError(FinLedgerError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


# ─── Inference / Retrieval Errors (recovered by fallback) ───────

class InferenceAPIError(FinLedgerError):
    """Inference endpoint call failed."""
    def __init__(
        self,
        message: str,
        api_error_type: str,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.retry_after_ms = retry_after_ms
        super().__init__(
            f"Inference API error ({api_error_type}): {message}",
            "INFERENCE_API_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, ctx, 503,
        )
        self.api_error_type = api_error_type


class InferenceTimeoutError(FinLedgerError):
    """Inference call exceeded its fixed ceiling."""
    def __init__(self, timeout_seconds: float, context: ErrorContext | None = None):
        super().__init__(
            f"Inference call timed out after {timeout_seconds:g} seconds",
            "INFERENCE_TIMEOUT", ErrorCategory.TIMEOUT,
            ErrorSeverity.WARNING, context, 504,
        )
        self.timeout_seconds = timeout_seconds


class InferenceMalformedError(FinLedgerError):
    """Model output contained a directive that could not be parsed."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INFERENCE_MALFORMED", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.WARNING, context, 502,
        )


class RetrievalUnavailableError(FinLedgerError):
    """Embedding or vector search backend failed."""
    def __init__(self, message: str, backend: str, context: ErrorContext | None = None):
        super().__init__(
            f"Retrieval backend '{backend}' unavailable: {message}",
            "RETRIEVAL_UNAVAILABLE", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.WARNING, context, 503,
        )
        self.backend = backend


# ─── Store Errors (500-level, surface to caller) ────────────────

class LedgerStoreError(FinLedgerError):
    """Key-value persistence operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Ledger store {operation} failed: {message}",
            "LEDGER_STORE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class ConcurrencyError(FinLedgerError):
    """Concurrent modification detected and not resolved by retry."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONCURRENCY_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )
