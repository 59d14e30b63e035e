"""
Contact form controller.

Drives a contact form from the visitor's side: reads the fields from a view,
applies the same rules the API enforces, posts the submission and shows
exactly one notification for the outcome. The view is abstract so the same
controller serves the terminal client and tests.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import httpx
from loguru import logger

from helpers.contact_validation import (
    FieldStatus,
    validate_contact_submission,
    validate_field,
)

CONTACT_PATH = "/api/contact"
FIELDS = ("name", "email", "subject", "message")

DEFAULT_NOTIFICATION_SECONDS = 5.0
FALLBACK_ERROR_MESSAGE = "Failed to send message. Please try again."
NETWORK_ERROR_MESSAGE = "Network error. Please check your connection and try again."


class NotificationKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True)
class Notification:
    """A dismissible message; views hide it after `duration` seconds."""

    message: str
    kind: NotificationKind
    duration: float = DEFAULT_NOTIFICATION_SECONDS


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    VALIDATION_ERROR = "validation_error"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    NETWORK_ERROR = "network_error"
    IN_PROGRESS = "in_progress"


@dataclass(frozen=True)
class ClientOutcome:
    kind: OutcomeKind
    message: str
    status_code: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS


class FormView(ABC):
    """What the controller needs from a contact form UI."""

    @abstractmethod
    def get_values(self) -> dict[str, str]:
        """Current field values keyed by field name."""

    @abstractmethod
    def set_submitting(self, submitting: bool) -> None:
        """Disable the submit control and show progress while True."""

    @abstractmethod
    def show_notification(self, notification: Notification) -> None:
        """Show one notification, replacing any visible one."""

    @abstractmethod
    def reset_form(self) -> None:
        """Clear the fields and their validation state."""


class ContactFormController:
    """Submits a contact form and renders the result on a FormView."""

    def __init__(
        self,
        view: FormView,
        base_url: str,
        http_client: httpx.Client | None = None,
        timeout: float = 10.0,
        notification_duration: float = DEFAULT_NOTIFICATION_SECONDS,
    ) -> None:
        self.view = view
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.Client(timeout=timeout)
        self.notification_duration = notification_duration
        self._submitting = False

    def close(self) -> None:
        if self._owns_client:
            self.http_client.close()

    def __enter__(self) -> "ContactFormController":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @staticmethod
    def field_feedback(field: str, value: str | None) -> FieldStatus:
        """Live valid/invalid state for one field."""
        return validate_field(field, value)

    def _notify(self, outcome: ClientOutcome) -> ClientOutcome:
        kind = NotificationKind.SUCCESS if outcome.ok else NotificationKind.ERROR
        self.view.show_notification(
            Notification(outcome.message, kind, self.notification_duration)
        )
        return outcome

    def _collect(self) -> dict[str, str]:
        values = self.view.get_values()
        return {field: values.get(field) or "" for field in FIELDS}

    def submit(self) -> ClientOutcome:
        """
        Validate locally, post the form and render the outcome.

        A submission that fails the local rules never reaches the network.
        The submit control is re-enabled on every exit path. A submit while
        one is already running is ignored and shows nothing.

        Returns:
            The outcome that was shown to the visitor
        """
        if self._submitting:
            return ClientOutcome(OutcomeKind.IN_PROGRESS, "Submission in progress")

        payload = self._collect()
        error = validate_contact_submission(**payload)
        if error:
            return self._notify(ClientOutcome(OutcomeKind.VALIDATION_ERROR, error))

        self._submitting = True
        self.view.set_submitting(True)
        try:
            outcome = self._post(payload)
            if outcome.ok:
                self.view.reset_form()
            return self._notify(outcome)
        finally:
            self._submitting = False
            self.view.set_submitting(False)

    def _post(self, payload: dict[str, str]) -> ClientOutcome:
        try:
            response = self.http_client.post(
                f"{self.base_url}{CONTACT_PATH}", json=payload
            )
        except httpx.HTTPError as e:
            logger.warning(f"Contact form request failed: {e!r}")
            return ClientOutcome(OutcomeKind.NETWORK_ERROR, NETWORK_ERROR_MESSAGE)

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        status_code = response.status_code
        if response.is_success and body.get("success"):
            return ClientOutcome(
                OutcomeKind.SUCCESS, body.get("message") or "Message sent", status_code
            )

        message = body.get("error") or FALLBACK_ERROR_MESSAGE
        if status_code == httpx.codes.TOO_MANY_REQUESTS:
            kind = OutcomeKind.RATE_LIMITED
        elif status_code == httpx.codes.BAD_REQUEST:
            kind = OutcomeKind.VALIDATION_ERROR
        else:
            kind = OutcomeKind.SERVER_ERROR
        return ClientOutcome(kind, message, status_code)
