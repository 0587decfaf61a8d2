"""Error Hierarchy — typed, categorized exceptions for all collection-sync failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Transport failures (network, auth, server) all derive from TransportError
    - The coordinator re-raises transport errors unchanged — never wraps or reclassifies
    - to_dict() produces the structured envelope used in logs and UI error banners

Design Decisions:
    - Single hierarchy with CollectionSyncError base: callers catch one type for everything
    - ErrorContext as dataclass: request details travel with the error, not the log line
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    NETWORK = "network"
    AUTHENTICATION = "authentication"
    SERVER = "server"
    VALIDATION = "validation"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Request details attached to an error."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    operation: str | None = None
    url: str | None = None
    status_code: int | None = None
    debug_info: dict[str, Any] | None = None


class CollectionSyncError(Exception):
    """Base exception for all collection-sync errors."""

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
        return self.severity in (ErrorSeverity.INFO, ErrorSeverity.WARNING)

    def to_dict(self) -> dict:
        """Convert to a structured error envelope."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "operation": self.context.operation,
                    "url": self.context.url,
                    "status_code": self.context.status_code,
                },
            }
        }


# ─── Transport Errors ───────────────────────────────────────────

class TransportError(CollectionSyncError):
    """Any failure originating in the Transport collaborator."""


class NetworkError(TransportError):
    """Connectivity or transport-level failure (DNS, refused, timeout)."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"Network failure: {message}",
            "NETWORK_ERROR", ErrorCategory.NETWORK,
            ErrorSeverity.WARNING, context,
        )


class AuthError(TransportError):
    """Credentials invalid or expired after the transport's own refresh attempt."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "AUTH_ERROR", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.ERROR, context,
        )


class ServerError(TransportError):
    """Remote endpoint answered with a non-success status."""
    def __init__(
        self,
        status_code: int,
        detail: Any = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.status_code = status_code
        severity = ErrorSeverity.CRITICAL if status_code >= 500 else ErrorSeverity.ERROR
        super().__init__(
            f"Server responded {status_code}: {detail}" if detail else
            f"Server responded {status_code}",
            "SERVER_ERROR", ErrorCategory.SERVER, severity, ctx,
        )
        self.status_code = status_code
        self.detail = detail

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


# ─── Local Errors ───────────────────────────────────────────────

class UrlResolutionError(CollectionSyncError):
    """A path parameter required by a resource URL template is missing."""
    def __init__(self, template: str, missing: list[str]):
        super().__init__(
            f"Cannot resolve '{template}': missing path parameters {', '.join(missing)}",
            "URL_RESOLUTION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR,
        )
        self.template = template
        self.missing = missing


class SortKeyError(CollectionSyncError):
    """Values of a sort attribute cannot be ordered against each other."""
    def __init__(self, attribute: str, reason: str):
        super().__init__(
            f"Cannot sort by '{attribute}': {reason}",
            "SORT_KEY_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR,
        )
        self.attribute = attribute
