"""Contact form service.

Handles a portfolio contact submission end to end: form rules, per-client
rate limiting, then the two emails (notification to the owner, confirmation
to the visitor).
"""

import html
from dataclasses import dataclass
from enum import Enum

from loguru import logger

from helpers.contact_validation import validate_contact_submission
from models.config import Settings
from models.exceptions import ContactValidationException, EmailDeliveryException
from models.schemas import ContactResponse, ContactSubmission
from services.email_service import EmailProvider
from services.rate_limit_service import FixedWindowRateLimiter, RateLimitDecision

SUCCESS_MESSAGE = "Message sent successfully! I'll get back to you soon."
CONFIRMATION_SUBJECT = "Thank you for contacting me!"


class DispatchOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    DISPATCH_FAILED = "dispatch_failed"


class DispatchStep(str, Enum):
    OWNER_NOTIFICATION = "owner_notification"
    SENDER_CONFIRMATION = "sender_confirmation"


@dataclass(frozen=True)
class EmailContent:
    to_email: str
    subject: str
    html_body: str
    text_body: str
    reply_to: str | None = None


@dataclass(frozen=True)
class DispatchResult:
    """Result of sending the two contact emails."""

    outcome: DispatchOutcome
    failed_step: DispatchStep | None = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is DispatchOutcome.SUCCEEDED


@dataclass(frozen=True)
class ContactResult:
    """Successful submission, with the rate limit state for response headers."""

    response: ContactResponse
    rate_limit: RateLimitDecision


def _html_message(message: str) -> str:
    """Escape user text for an HTML body and keep its line breaks."""
    return html.escape(message).replace("\n", "<br>")


def _single_line(value: str) -> str:
    """Collapse line breaks and runs of whitespace for use in a mail header."""
    return " ".join(value.split())


class ContactMailDispatcher:
    """Builds and sends the owner notification and the sender confirmation."""

    def __init__(self, settings: Settings, provider: EmailProvider) -> None:
        self.settings = settings
        self.provider = provider

    def build_owner_notification(self, submission: ContactSubmission) -> EmailContent:
        """Build the notification for the site owner.

        Replies go straight to the visitor. All user-provided data is
        HTML-escaped in the HTML body.
        """
        name, email = submission.name or "", submission.email or ""
        subject, message = submission.subject or "", submission.message or ""

        text_body = f"""New Contact Form Submission

Contact Details:
Name: {name}
Email: {email}
Subject: {subject}

Message:
{message}

This message was sent from your portfolio website contact form.
"""

        html_body = f"""<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
    <h2 style="color: #333;">New Contact Form Submission</h2>
    <div style="background: #f5f5f5; padding: 20px; border-radius: 8px; margin: 20px 0;">
        <h3 style="color: #555; margin-top: 0;">Contact Details:</h3>
        <p><strong>Name:</strong> {html.escape(name)}</p>
        <p><strong>Email:</strong> {html.escape(email)}</p>
        <p><strong>Subject:</strong> {html.escape(subject)}</p>
        <p><strong>Message:</strong></p>
        <div style="background: white; padding: 15px; border-radius: 5px; border-left: 4px solid #007bff;">
            {_html_message(message)}
        </div>
    </div>
    <p style="color: #666; font-size: 14px;">
        This message was sent from your portfolio website contact form.
    </p>
</div>"""

        return EmailContent(
            to_email=self.settings.owner_email,
            subject=f"Portfolio Contact: {_single_line(subject)}",
            html_body=html_body,
            text_body=text_body,
            reply_to=email,
        )

    def build_sender_confirmation(self, submission: ContactSubmission) -> EmailContent:
        """Build the confirmation for the visitor, echoing what they sent."""
        name, email = submission.name or "", submission.email or ""
        subject, message = submission.subject or "", submission.message or ""
        owner_name = self.settings.OWNER_NAME

        text_body = f"""Thank you for reaching out!

Hi {name},

Thank you for contacting me through my portfolio website. I have received your message and will get back to you as soon as possible.

Your Message:
Subject: {subject}
Message: {message}

Best regards,
{owner_name}
"""

        html_body = f"""<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
    <h2 style="color: #333;">Thank you for reaching out!</h2>
    <p>Hi {html.escape(name)},</p>
    <p>Thank you for contacting me through my portfolio website. I have received your message and will get back to you as soon as possible.</p>
    <div style="background: #f5f5f5; padding: 20px; border-radius: 8px; margin: 20px 0;">
        <h3 style="color: #555; margin-top: 0;">Your Message:</h3>
        <p><strong>Subject:</strong> {html.escape(subject)}</p>
        <p><strong>Message:</strong></p>
        <div style="background: white; padding: 15px; border-radius: 5px; border-left: 4px solid #007bff;">
            {_html_message(message)}
        </div>
    </div>
    <p>Best regards,<br>{html.escape(owner_name)}</p>
</div>"""

        return EmailContent(
            to_email=email,
            subject=CONFIRMATION_SUBJECT,
            html_body=html_body,
            text_body=text_body,
        )

    def _send(self, content: EmailContent, step: DispatchStep) -> bool:
        try:
            sent = self.provider.send(
                content.to_email,
                content.subject,
                content.html_body,
                content.text_body,
                reply_to=content.reply_to,
            )
        except Exception as e:
            logger.exception(f"Email provider raised during {step.value}: {e!r}")
            return False

        if not sent:
            logger.error(f"Failed to send {step.value} to {content.to_email}")
        return sent

    def dispatch(self, submission: ContactSubmission) -> DispatchResult:
        """
        Send the owner notification, then the sender confirmation.

        The confirmation is only attempted once the notification has gone
        out, so a visitor is never told their message arrived when it did
        not. No retries.
        """
        notification = self.build_owner_notification(submission)
        if not self._send(notification, DispatchStep.OWNER_NOTIFICATION):
            return DispatchResult(
                DispatchOutcome.DISPATCH_FAILED, DispatchStep.OWNER_NOTIFICATION
            )
        logger.info(f"Contact notification sent to owner: {notification.to_email}")

        confirmation = self.build_sender_confirmation(submission)
        if not self._send(confirmation, DispatchStep.SENDER_CONFIRMATION):
            return DispatchResult(
                DispatchOutcome.DISPATCH_FAILED, DispatchStep.SENDER_CONFIRMATION
            )
        logger.info(f"Contact confirmation sent to {confirmation.to_email}")

        return DispatchResult(DispatchOutcome.SUCCEEDED)


class ContactService:
    """Service for handling contact form submissions."""

    def __init__(
        self,
        rate_limiter: FixedWindowRateLimiter,
        dispatcher: ContactMailDispatcher,
    ) -> None:
        self.rate_limiter = rate_limiter
        self.dispatcher = dispatcher

    def submit(self, submission: ContactSubmission, identifier: str) -> ContactResult:
        """Process a contact form submission.

        Invalid submissions are rejected before the rate limiter is consulted,
        so they do not use up the client's quota.

        Args:
            submission: Contact form data as received
            identifier: Rate limit key for the client (its IP address)

        Returns:
            ContactResult with the success response

        Raises:
            ContactValidationException: A form rule failed (400)
            RateLimitExceededException: The client's window is full (429)
            EmailDeliveryException: Either email could not be sent (500)
        """
        error = validate_contact_submission(
            submission.name, submission.email, submission.subject, submission.message
        )
        if error:
            logger.info(f"Contact submission rejected: {error}")
            raise ContactValidationException(error)

        decision = self.rate_limiter.check(identifier)

        try:
            result = self.dispatcher.dispatch(submission)
        except Exception as e:
            logger.exception(f"Contact dispatch crashed: {e!r}")
            result = DispatchResult(DispatchOutcome.DISPATCH_FAILED)

        if not result.succeeded:
            step = result.failed_step.value if result.failed_step else "unknown"
            logger.error(f"Contact form dispatch failed at step: {step}")
            raise EmailDeliveryException(failed_step=step)

        logger.info(f"Contact form processed: subject={submission.subject!r}")
        return ContactResult(
            response=ContactResponse(success=True, message=SUCCESS_MESSAGE),
            rate_limit=decision,
        )
