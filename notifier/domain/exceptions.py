"""Domain exceptions for the notifier daemon.

Defines the error taxonomy shared by reconciliation, replication and
delivery. Callers decide which errors are fatal (configuration) and which
are logged and absorbed (feed, delivery).
"""

from typing import Any


class NotifierException(Exception):
    """Base exception for all notifier errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. variable, recipient).
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


class ConfigurationException(NotifierException):
    """Raised when a required setting is missing or invalid. Fatal at startup."""

    def __init__(self, variable: str, message: str | None = None) -> None:
        """Initialize with the offending environment variable.

        Args:
            variable: Environment variable name (e.g. 'SMTP_HOST').
            message: Optional message; defaults to 'Env-Var <variable> missing'.
        """
        super().__init__(
            message or f"Env-Var {variable} missing",
            "CONFIGURATION_ERROR",
            {"variable": variable},
        )


class ValidationException(NotifierException):
    """Raised when data violates an invariant (e.g. duplicate snapshot keys)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class FeedException(NotifierException):
    """Raised when replication from the remote source fails."""

    def __init__(self, collection: str, reason: str) -> None:
        """Initialize with collection and reason.

        Args:
            collection: Collection whose feed failed (e.g. 'users').
            reason: Human-readable reason (e.g. 'HTTP 503').
        """
        super().__init__(
            f"Sync of {collection} failed: {reason}",
            "FEED_ERROR",
            {"collection": collection, "reason": reason},
        )


class DeliveryException(NotifierException):
    """Raised when a single email cannot be delivered. Terminal for that message."""

    def __init__(
        self,
        recipient: str,
        reason: str,
        error_code: str = "DELIVERY_ERROR",
    ) -> None:
        """Initialize with recipient and reason.

        Args:
            recipient: Address the message was meant for.
            reason: Human-readable reason (e.g. 'authentication failed').
            error_code: Override for subclasses.
        """
        super().__init__(
            f"Email to {recipient} failed: {reason}",
            error_code,
            {"recipient": recipient, "reason": reason},
        )


class RenderException(DeliveryException):
    """Raised when a template cannot be rendered; treated as a delivery failure."""

    def __init__(self, template_name: str, reason: str, recipient: str = "") -> None:
        super().__init__(recipient, f"template {template_name!r}: {reason}", "RENDER_ERROR")
        self.details["template_name"] = template_name
