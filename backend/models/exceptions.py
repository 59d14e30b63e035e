"""
Custom domain exceptions for the contact API.

The service layer raises these and the centralized exception handlers in
main.py turn them into JSON error responses, so services stay HTTP-agnostic
and can be driven from tests or scripts directly.

Each exception carries a correlation ID for matching a visitor's report to
the server logs.
"""

from core.correlation import generate_correlation_id, get_correlation_id


class DomainException(Exception):
    """
    Base class for all domain exceptions.

    Attributes:
        message: Human-readable error message, safe to show to the visitor.
        correlation_id: Unique ID for error tracking (auto-generated if not provided).
    """

    def __init__(self, message: str, correlation_id: str | None = None):
        self.message = message
        # Use request correlation ID if available, otherwise generate new one
        self.correlation_id = (
            correlation_id or get_correlation_id() or generate_correlation_id()
        )
        super().__init__(self.message)


class ValidationException(DomainException):
    """Raised when input validation fails."""

    pass


class ContactValidationException(ValidationException):
    """A contact submission broke one of the form rules."""

    pass


class RateLimitExceededException(DomainException):
    """Raised when a client has used up its submissions for the window."""

    def __init__(
        self,
        message: str = "Too many contact form submissions, please try again later.",
        retry_after: int | None = None,
        limit: int | None = None,
    ):
        super().__init__(message)
        self.retry_after = retry_after
        self.limit = limit


class EmailDeliveryException(DomainException):
    """Raised when the contact emails could not be delivered.

    The message is generic on purpose; provider errors stay in the logs.
    """

    def __init__(
        self,
        message: str = "Failed to send message. Please try again or contact me directly.",
        failed_step: str | None = None,
    ):
        super().__init__(message)
        self.failed_step = failed_step
