"""Domain exceptions for AVERzO.

Defines domain-level exceptions independent of infrastructure concerns.
The presentation layer maps them to HTTP responses in exception handlers.
"""

from typing import Any


class AverzoException(Exception):
    """Base exception for all AVERzO application errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. path, operation).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON body used by the API exception handler."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(AverzoException):
    """Raised when input validation fails (e.g. invalid format or range)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class FirestorePermissionError(AverzoException):
    """Raised when the document store rejects an awaited write.

    Carries the same context that is broadcast as a permission-error event,
    so the message reads like a denied security-rule evaluation.
    """

    def __init__(
        self,
        path: str,
        operation: str,
        request_resource_data: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the denied path and operation.

        Args:
            path: Physical document or collection path.
            operation: One of list, get, create, update, delete.
            request_resource_data: Payload of the rejected write, if any.
        """
        details: dict[str, Any] = {"path": path, "operation": operation}
        if request_resource_data is not None:
            details["request_resource_data"] = request_resource_data
        super().__init__(
            f"Missing or insufficient permissions: {operation} on {path}",
            "PERMISSION_DENIED",
            details,
        )


class FlowUnavailableException(AverzoException):
    """Raised when an AI flow needs a model but no provider is configured."""

    def __init__(self, flow_name: str) -> None:
        super().__init__(
            f"AI flow '{flow_name}' is not available: no model provider configured",
            "FLOW_UNAVAILABLE",
            {"flow": flow_name},
        )


class FlowOutputException(AverzoException):
    """Raised when a model reply does not match the flow's output schema."""

    def __init__(self, flow_name: str, reason: str) -> None:
        """Initialize with flow name and reason.

        Args:
            flow_name: Name of the flow whose output failed validation.
            reason: Short description (e.g. 'reply is not JSON').
        """
        super().__init__(
            f"AI flow '{flow_name}' returned invalid output",
            "FLOW_OUTPUT_ERROR",
            {"flow": flow_name, "reason": reason},
        )


class FlowRequestException(AverzoException):
    """Raised when the model provider is configured but the request to it fails."""

    def __init__(self, flow_name: str, reason: str) -> None:
        super().__init__(
            f"AI flow '{flow_name}' model request failed",
            "FLOW_REQUEST_ERROR",
            {"flow": flow_name, "reason": reason},
        )
